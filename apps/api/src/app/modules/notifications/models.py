"""
Notification Models

- Notification: the in-app notification a recipient sees in their feed.
- NotificationOutbox: one push-delivery intent per notification, written
  in the same transaction as the business change that caused it and
  drained asynchronously by the dispatcher job.
- PushToken: the FCM registration token of a recipient.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.modules.shared import pg_enum


class RecipientType(str, enum.Enum):
    """Which principal table recipient_id points into."""

    STUDENT = "student"
    ORGANIZATION = "organization"
    ADMIN = "admin"


class NotificationType(str, enum.Enum):
    EVENT = "event"
    ORGANIZATION = "organization"
    SYSTEM = "system"
    APPROVAL = "approval"
    TEST = "test"


class OutboxStatus(str, enum.Enum):
    PENDING = "pending"
    SENT = "sent"
    SKIPPED = "skipped"  # Recipient has no push token; the feed entry is the delivery
    FAILED = "failed"  # Gave up after max attempts


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    recipient_type: Mapped[RecipientType] = mapped_column(
        pg_enum(RecipientType, "recipient_type"), nullable=False
    )
    recipient_id: Mapped[int] = mapped_column(Integer, nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        pg_enum(NotificationType, "notification_type"), nullable=False
    )
    data: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    outbox_entry: Mapped["NotificationOutbox"] = relationship(
        "NotificationOutbox", back_populates="notification", uselist=False
    )

    __table_args__ = (
        Index(
            "ix_notifications_recipient_created",
            "recipient_type",
            "recipient_id",
            "created_at",
        ),
    )


class NotificationOutbox(Base):
    __tablename__ = "notification_outbox"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    notification_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("notifications.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    status: Mapped[OutboxStatus] = mapped_column(
        pg_enum(OutboxStatus, "outbox_status"), nullable=False, default=OutboxStatus.PENDING
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_attempt_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    notification: Mapped["Notification"] = relationship(
        "Notification", back_populates="outbox_entry", lazy="joined"
    )

    # Dispatcher query: pending rows whose retry time has come
    __table_args__ = (Index("ix_notification_outbox_status_next", "status", "next_attempt_at"),)


class PushToken(Base):
    __tablename__ = "push_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipient_type: Mapped[RecipientType] = mapped_column(
        pg_enum(RecipientType, "recipient_type"), nullable=False
    )
    recipient_id: Mapped[int] = mapped_column(Integer, nullable=False)
    token: Mapped[str] = mapped_column(Text, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("recipient_type", "recipient_id", name="uq_push_tokens_recipient"),
    )
