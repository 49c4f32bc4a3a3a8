"""
Event Repository

Database operations for events.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.shared import next_id

from .models import Event, EventStatus

SEQUENCE_NAME = "events"


async def create(db: AsyncSession, **fields) -> Event:
    """Create an event with a freshly allocated id (flushed, not committed)."""
    event = Event(
        id=await next_id(db, SEQUENCE_NAME),
        registered=0,
        participants=[],
        status=EventStatus.ACTIVE,
        **fields,
    )
    db.add(event)
    await db.flush()
    return event


async def get_by_id(db: AsyncSession, event_id: int, *, for_update: bool = False) -> Event | None:
    stmt = select(Event).where(Event.id == event_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_events(
    db: AsyncSession,
    *,
    org_id: int | None = None,
    status: EventStatus | None = EventStatus.ACTIVE,
) -> list[Event]:
    stmt = select(Event)
    if org_id is not None:
        stmt = stmt.where(Event.org_id == org_id)
    if status is not None:
        stmt = stmt.where(Event.status == status)
    result = await db.execute(stmt.order_by(Event.date.asc(), Event.start_time.asc()))
    return list(result.scalars().all())
