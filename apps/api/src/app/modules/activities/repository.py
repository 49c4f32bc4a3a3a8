"""
Activity Repository

Inserts and dashboard queries for the audit log.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.shared import next_id

from .models import Activity, ActivityType

SEQUENCE_NAME = "activities"


async def create(db: AsyncSession, **fields) -> Activity:
    activity = Activity(id=await next_id(db, SEQUENCE_NAME), **fields)
    db.add(activity)
    await db.flush()
    return activity


async def get_recent(db: AsyncSession, limit: int) -> list[Activity]:
    result = await db.execute(select(Activity).order_by(Activity.created_at.desc()).limit(limit))
    return list(result.scalars().all())


async def get_by_type(db: AsyncSession, activity_type: ActivityType, limit: int) -> list[Activity]:
    result = await db.execute(
        select(Activity)
        .where(Activity.type == activity_type)
        .order_by(Activity.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def count_all(db: AsyncSession) -> int:
    result = await db.execute(select(func.count()).select_from(Activity))
    return int(result.scalar_one())


async def count_by_type(db: AsyncSession) -> dict[str, int]:
    result = await db.execute(select(Activity.type, func.count()).group_by(Activity.type))
    return {row[0].value: int(row[1]) for row in result.all()}


async def count_since(db: AsyncSession, since: datetime) -> int:
    result = await db.execute(
        select(func.count()).select_from(Activity).where(Activity.created_at >= since)
    )
    return int(result.scalar_one())
