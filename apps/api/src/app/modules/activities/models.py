"""
Activity Models

Append-only audit log shown on the admin dashboard. Rows are never
updated after insert.
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.modules.shared import pg_enum


class ActivityType(str, enum.Enum):
    ORGANIZATION_REGISTRATION = "organization_registration"
    STUDENT_REGISTRATION = "student_registration"
    EVENT_CREATION = "event_creation"
    EVENT_CAPACITY_REACHED = "event_capacity_reached"
    ORGANIZATION_APPROVED = "organization_approved"
    ORGANIZATION_SUSPENDED = "organization_suspended"
    STUDENT_SUSPENDED = "student_suspended"


class Activity(Base):
    """A single audit log entry."""

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    type: Mapped[ActivityType] = mapped_column(
        pg_enum(ActivityType, "activity_type"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    # Actor
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    user_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Subjects
    organization_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    organization_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    event_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    event_title: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # "metadata" is reserved on declarative classes
    details: Mapped[dict] = mapped_column("metadata", JSONB, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_activities_created_at", "created_at"),
        Index("ix_activities_type_created_at", "type", "created_at"),
    )
