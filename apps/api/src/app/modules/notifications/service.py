"""
Notification Service

Fan-out of in-app notifications with push delivery through an outbox.

enqueue_to_user() / enqueue_to_users() only add rows to the caller's
session: the notification and its delivery intent commit together with
the state change that caused them, or not at all. Nothing here talks to
Firebase; the dispatcher job (jobs.py) delivers pending intents with
retry, so a push outage can never fail or slow an approval.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, PrincipalRole
from app.modules.notifications import repository
from app.modules.notifications.models import Notification, NotificationType, RecipientType

logger = logging.getLogger(__name__)

DEFAULT_FEED_LIMIT = 20


@dataclass(frozen=True)
class NotificationPayload:
    title: str
    body: str
    type: NotificationType
    data: dict[str, Any]


class NotificationServiceError(Exception):
    """Base exception for notification service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class NotificationNotFoundError(NotificationServiceError):
    def __init__(self):
        super().__init__(
            message="Notification not found",
            error_code="NOTIFICATION_NOT_FOUND",
            status_code=404,
        )


def recipient_type_for(user: CurrentUser) -> RecipientType:
    return {
        PrincipalRole.STUDENT: RecipientType.STUDENT,
        PrincipalRole.ORGANIZATION: RecipientType.ORGANIZATION,
        PrincipalRole.ADMIN: RecipientType.ADMIN,
    }[user.role]


async def enqueue_to_user(
    db: AsyncSession,
    recipient_type: RecipientType,
    recipient_id: int,
    payload: NotificationPayload,
) -> Notification:
    """Stage a notification plus push intent in the current transaction."""
    notification = await repository.add_with_outbox(
        db,
        recipient_type=recipient_type,
        recipient_id=recipient_id,
        title=payload.title,
        body=payload.body,
        notification_type=payload.type,
        data=payload.data,
    )
    logger.debug(
        f"Queued {payload.type.value} notification {notification.id} for "
        f"{recipient_type.value} {recipient_id}"
    )
    return notification


async def enqueue_to_users(
    db: AsyncSession,
    recipient_type: RecipientType,
    recipient_ids: Iterable[int],
    payload: NotificationPayload,
) -> list[Notification]:
    """Stage the same notification for many recipients (duplicates collapsed)."""
    notifications = []
    for recipient_id in dict.fromkeys(recipient_ids):
        notifications.append(await enqueue_to_user(db, recipient_type, recipient_id, payload))
    if notifications:
        logger.info(
            f"Queued '{payload.title}' for {len(notifications)} {recipient_type.value} recipients"
        )
    return notifications


async def register_push_token(db: AsyncSession, user: CurrentUser, token: str) -> None:
    await repository.upsert_push_token(db, recipient_type_for(user), user.id, token)
    await db.commit()
    logger.info(f"Registered push token for {user}")


async def get_user_notifications(
    db: AsyncSession, user: CurrentUser, limit: int = DEFAULT_FEED_LIMIT
) -> list[Notification]:
    """Newest first."""
    return await repository.list_for_recipient(db, recipient_type_for(user), user.id, limit)


async def mark_as_read(db: AsyncSession, user: CurrentUser, notification_id: int) -> Notification:
    """
    Raises:
        NotificationNotFoundError: If the notification doesn't exist or isn't the caller's
    """
    notification = await repository.get_for_recipient(
        db, notification_id, recipient_type_for(user), user.id
    )
    if notification is None:
        raise NotificationNotFoundError()

    notification.read = True
    await db.commit()
    return notification


async def mark_all_as_read(db: AsyncSession, user: CurrentUser) -> int:
    count = await repository.mark_all_read(db, recipient_type_for(user), user.id)
    await db.commit()
    return count
