"""
Notification Background Jobs

Outbox dispatcher: drains pending push intents written by business
transactions and delivers them through FCM.

Design Principles:
- Claims rows with FOR UPDATE SKIP LOCKED, so concurrent dispatchers
  (one per API instance) never deliver the same row twice
- Each row is handled independently; one bad token doesn't stop the batch
- Failures back off exponentially (2, 4, 8 ... capped at 300 seconds) and
  give up after settings.outbox_max_attempts
- Recipients without a push token are marked skipped: the in-app
  notification already exists, there is nothing to push to
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import async_session_maker
from app.core.push import send_push
from app.core.scheduler import register_job
from app.modules.notifications import repository
from app.modules.notifications.models import NotificationOutbox, OutboxStatus

logger = logging.getLogger(__name__)

JOB_ID_DISPATCH_OUTBOX = "notifications_dispatch_outbox"

MAX_RETRY_DELAY_SECONDS = 300


def retry_delay_seconds(attempts: int) -> int:
    """Backoff before the next attempt after `attempts` failures."""
    return min(2**attempts, MAX_RETRY_DELAY_SECONDS)


def record_failure(
    entry: NotificationOutbox,
    error: str,
    now: datetime,
    max_attempts: int,
) -> OutboxStatus:
    """
    Count a failed delivery attempt and schedule the retry.

    Returns:
        PENDING if another attempt is scheduled, FAILED if giving up
    """
    entry.attempts += 1
    entry.last_error = error[:2000]

    if entry.attempts >= max_attempts:
        entry.status = OutboxStatus.FAILED
        entry.next_attempt_at = None
    else:
        entry.status = OutboxStatus.PENDING
        entry.next_attempt_at = now + timedelta(seconds=retry_delay_seconds(entry.attempts))

    return entry.status


async def _deliver(db: AsyncSession, entry: NotificationOutbox, now: datetime) -> str:
    """
    Deliver one outbox entry.

    Returns:
        Result bucket: "sent", "skipped", "retrying" or "failed"
    """
    notification = entry.notification

    token = await repository.get_push_token(
        db, notification.recipient_type, notification.recipient_id
    )
    if not token:
        entry.status = OutboxStatus.SKIPPED
        entry.sent_at = now
        return "skipped"

    try:
        await send_push(
            token,
            notification.title,
            notification.body,
            {**notification.data, "type": notification.type.value},
        )
    except Exception as e:
        status = record_failure(entry, str(e), now, settings.outbox_max_attempts)
        logger.warning(
            f"Push for notification {notification.id} failed "
            f"(attempt {entry.attempts}/{settings.outbox_max_attempts}): {e}"
        )
        return "failed" if status == OutboxStatus.FAILED else "retrying"

    entry.status = OutboxStatus.SENT
    entry.sent_at = now
    entry.last_error = None
    return "sent"


async def dispatch_pending_notifications() -> dict[str, Any]:
    """
    Deliver one batch of due outbox entries.

    Returns:
        Per-run counts: claimed, sent, skipped, retrying, failed, errors
    """
    results: dict[str, Any] = {
        "claimed": 0,
        "sent": 0,
        "skipped": 0,
        "retrying": 0,
        "failed": 0,
        "errors": 0,
    }
    now = datetime.now(UTC)

    async with async_session_maker() as db:
        entries = await repository.claim_due_outbox_entries(db, now, settings.outbox_batch_size)
        results["claimed"] = len(entries)

        for entry in entries:
            try:
                bucket = await _deliver(db, entry, now)
                results[bucket] += 1
            except Exception as e:
                # Token lookup or bookkeeping failed; retry the row later
                logger.error(f"Error dispatching outbox entry {entry.id}: {e}", exc_info=True)
                record_failure(entry, str(e), now, settings.outbox_max_attempts)
                results["errors"] += 1

        await db.commit()

    if results["claimed"]:
        logger.info(
            f"Outbox dispatch: claimed={results['claimed']} sent={results['sent']} "
            f"skipped={results['skipped']} retrying={results['retrying']} "
            f"failed={results['failed']} errors={results['errors']}"
        )

    return results


def register_notification_jobs() -> None:
    """Register the outbox dispatcher with the scheduler."""
    register_job(
        job_id=JOB_ID_DISPATCH_OUTBOX,
        func=dispatch_pending_notifications,
        trigger=IntervalTrigger(seconds=settings.outbox_poll_seconds),
    )
    logger.info(
        f"Registered job: {JOB_ID_DISPATCH_OUTBOX} (interval: {settings.outbox_poll_seconds}s)"
    )
