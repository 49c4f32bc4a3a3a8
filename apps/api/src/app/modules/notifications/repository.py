"""
Notification Repository

Feed queries, push token storage and outbox claiming.
"""

from datetime import UTC, datetime

from sqlalchemy import or_, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.shared import next_id

from .models import (
    Notification,
    NotificationOutbox,
    NotificationType,
    OutboxStatus,
    PushToken,
    RecipientType,
)

SEQUENCE_NAME = "notifications"


async def add_with_outbox(
    db: AsyncSession,
    *,
    recipient_type: RecipientType,
    recipient_id: int,
    title: str,
    body: str,
    notification_type: NotificationType,
    data: dict,
) -> Notification:
    """Add a notification and its pending outbox entry (flushed, not committed)."""
    notification = Notification(
        id=await next_id(db, SEQUENCE_NAME),
        recipient_type=recipient_type,
        recipient_id=recipient_id,
        title=title,
        body=body,
        type=notification_type,
        data=data,
        read=False,
    )
    notification.outbox_entry = NotificationOutbox(status=OutboxStatus.PENDING, attempts=0)
    db.add(notification)
    await db.flush()
    return notification


async def list_for_recipient(
    db: AsyncSession, recipient_type: RecipientType, recipient_id: int, limit: int
) -> list[Notification]:
    result = await db.execute(
        select(Notification)
        .where(
            Notification.recipient_type == recipient_type,
            Notification.recipient_id == recipient_id,
        )
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_for_recipient(
    db: AsyncSession, notification_id: int, recipient_type: RecipientType, recipient_id: int
) -> Notification | None:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.recipient_type == recipient_type,
            Notification.recipient_id == recipient_id,
        )
    )
    return result.scalar_one_or_none()


async def mark_all_read(db: AsyncSession, recipient_type: RecipientType, recipient_id: int) -> int:
    result = await db.execute(
        update(Notification)
        .where(
            Notification.recipient_type == recipient_type,
            Notification.recipient_id == recipient_id,
            Notification.read.is_(False),
        )
        .values(read=True)
    )
    return result.rowcount or 0


async def upsert_push_token(
    db: AsyncSession, recipient_type: RecipientType, recipient_id: int, token: str
) -> None:
    stmt = insert(PushToken).values(
        recipient_type=recipient_type, recipient_id=recipient_id, token=token
    )
    await db.execute(
        stmt.on_conflict_do_update(
            constraint="uq_push_tokens_recipient",
            set_={"token": stmt.excluded.token, "updated_at": datetime.now(UTC)},
        )
    )


async def get_push_token(
    db: AsyncSession, recipient_type: RecipientType, recipient_id: int
) -> str | None:
    result = await db.execute(
        select(PushToken.token).where(
            PushToken.recipient_type == recipient_type,
            PushToken.recipient_id == recipient_id,
        )
    )
    return result.scalar_one_or_none()


async def claim_due_outbox_entries(
    db: AsyncSession, now: datetime, batch_size: int
) -> list[NotificationOutbox]:
    """
    Lock a batch of due pending entries.

    SKIP LOCKED lets several dispatchers (one per API instance) drain the
    outbox without double-sending. Locks are held until the caller commits.
    """
    result = await db.execute(
        select(NotificationOutbox)
        .where(
            NotificationOutbox.status == OutboxStatus.PENDING,
            or_(
                NotificationOutbox.next_attempt_at.is_(None),
                NotificationOutbox.next_attempt_at <= now,
            ),
        )
        .order_by(NotificationOutbox.created_at)
        .limit(batch_size)
        .with_for_update(skip_locked=True, of=NotificationOutbox)
    )
    return list(result.unique().scalars().all())
