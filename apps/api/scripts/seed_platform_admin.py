"""
Seed Platform Admin User

Creates the initial OneAU admin account and the platform settings row.
Run this script once per environment after `alembic upgrade head`.

Usage:
    cd apps/api
    ADMIN_EMAIL=admin@au.edu ADMIN_PASSWORD=... python scripts/seed_platform_admin.py
"""

import asyncio
import os

from app.core.database import async_session_maker, close_db
from app.core.security import hash_password
from app.modules.platform_settings.service import get_platform_settings
from app.modules.users.repository import UserRepository


async def seed_platform_admin() -> None:
    """Create the admin user if it doesn't exist."""
    email = os.environ.get("ADMIN_EMAIL", "").strip().lower()
    password = os.environ.get("ADMIN_PASSWORD", "")
    name = os.environ.get("ADMIN_NAME", "Platform Admin")

    if not email or not password:
        raise SystemExit("ADMIN_EMAIL and ADMIN_PASSWORD must be set")

    async with async_session_maker() as db:
        existing_user = await UserRepository.get_by_email(db, email)
        if existing_user:
            print(f"Platform admin already exists: {email}")
            print(f"  ID: {existing_user.id}")
            return

        admin_user = await UserRepository.create(
            db,
            email=email,
            password_hash=hash_password(password),
            name=name,
        )
        await get_platform_settings(db)
        await db.commit()

        print("Platform admin created successfully!")
        print(f"  Email: {admin_user.email}")
        print(f"  Name: {admin_user.name}")
        print(f"  ID: {admin_user.id}")

    await close_db()


if __name__ == "__main__":
    asyncio.run(seed_platform_admin())
