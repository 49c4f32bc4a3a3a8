"""
User Repository

Database operations for platform administrators.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.shared import next_id
from app.modules.users.models import User

logger = logging.getLogger(__name__)

SEQUENCE_NAME = "users"


class UserRepository:
    """Repository for admin user database operations."""

    @staticmethod
    async def create(
        db: AsyncSession,
        *,
        email: str,
        password_hash: str,
        name: str,
        is_active: bool = True,
    ) -> User:
        """
        Create a new admin user (flushed, not committed).

        Args:
            db: Database session
            email: Admin's email address (unique)
            password_hash: Hashed password
            name: Display name
            is_active: Whether the account can log in

        Returns:
            Created User instance
        """
        user = User(
            id=await next_id(db, SEQUENCE_NAME),
            email=email.lower(),
            password_hash=password_hash,
            name=name,
            email_verified=True,
            is_active=is_active,
        )

        db.add(user)
        await db.flush()

        logger.info(f"Created admin user: {user.id} - {user.email}")
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> User | None:
        return await db.get(User, user_id)

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    @staticmethod
    async def email_exists(db: AsyncSession, email: str) -> bool:
        user = await UserRepository.get_by_email(db, email)
        return user is not None
