"""
Activity Service

Records audit entries and serves the admin dashboard feed.

record_activity() only adds the row to the caller's session so the entry
commits together with the change it describes. Callers that treat the
audit trail as best effort use record_activity_safely(), which isolates
a failed insert in a SAVEPOINT and logs it instead of failing the
surrounding transaction.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.activities import repository
from app.modules.activities.models import Activity, ActivityType

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
RECENT_WINDOW = timedelta(hours=24)


async def record_activity(
    db: AsyncSession,
    activity_type: ActivityType,
    title: str,
    description: str,
    *,
    user_id: int | None = None,
    user_name: str | None = None,
    user_email: str | None = None,
    organization_id: int | None = None,
    organization_name: str | None = None,
    event_id: int | None = None,
    event_title: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> Activity:
    """Add an activity row to the current unit of work."""
    return await repository.create(
        db,
        type=activity_type,
        title=title,
        description=description,
        user_id=user_id,
        user_name=user_name,
        user_email=user_email,
        organization_id=organization_id,
        organization_name=organization_name,
        event_id=event_id,
        event_title=event_title,
        details=metadata or {},
    )


async def record_activity_safely(
    db: AsyncSession,
    activity_type: ActivityType,
    title: str,
    description: str,
    **kwargs: Any,
) -> Activity | None:
    """
    Best-effort variant of record_activity().

    Returns:
        The activity, or None if it could not be recorded
    """
    try:
        async with db.begin_nested():
            return await record_activity(db, activity_type, title, description, **kwargs)
    except Exception as e:
        logger.error(f"Failed to record {activity_type.value} activity: {e}", exc_info=True)
        return None


async def get_recent_activities(db: AsyncSession, limit: int = DEFAULT_LIMIT) -> list[Activity]:
    return await repository.get_recent(db, limit)


async def get_activities_by_type(
    db: AsyncSession, activity_type: ActivityType, limit: int = DEFAULT_LIMIT
) -> list[Activity]:
    return await repository.get_by_type(db, activity_type, limit)


async def get_activity_stats(db: AsyncSession) -> dict[str, Any]:
    """Totals for the dashboard: overall, per type, and the last 24 hours."""
    since = datetime.now(UTC) - RECENT_WINDOW
    return {
        "total_activities": await repository.count_all(db),
        "activities_by_type": await repository.count_by_type(db),
        "recent_activity_count": await repository.count_since(db, since),
    }
