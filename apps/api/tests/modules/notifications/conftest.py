"""
Fixtures for notifications tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.modules.notifications.models import (
    Notification,
    NotificationOutbox,
    NotificationType,
    OutboxStatus,
    RecipientType,
)


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.flush = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def session_maker(mock_db):
    """Stand-in for async_session_maker yielding mock_db."""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=mock_db)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


def make_outbox_entry(entry_id: int = 1, recipient_id: int = 10) -> NotificationOutbox:
    notification = MagicMock(spec=Notification)
    notification.id = 100 + entry_id
    notification.recipient_type = RecipientType.STUDENT
    notification.recipient_id = recipient_id
    notification.title = "New Event Created"
    notification.body = "Chess Society created a new event: Spring Tournament"
    notification.type = NotificationType.EVENT
    notification.data = {"event_id": 21}

    entry = MagicMock(spec=NotificationOutbox)
    entry.id = entry_id
    entry.notification = notification
    entry.status = OutboxStatus.PENDING
    entry.attempts = 0
    entry.next_attempt_at = None
    entry.last_error = None
    entry.sent_at = None
    return entry


@pytest.fixture
def outbox_factory():
    return make_outbox_entry


@pytest.fixture
def outbox_entry():
    return make_outbox_entry()
