"""
Event Models

Events hosted by organizations. `registered` mirrors len(participants)
and never exceeds `capacity`; the join/leave service maintains both
under a row lock.
"""

import enum

from sqlalchemy import CheckConstraint, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel, pg_enum

DEFAULT_CAPACITY = 100


class EventStatus(str, enum.Enum):
    ACTIVE = "active"
    DRAFT = "draft"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Event(BaseModel):
    """An event and its participant list."""

    __tablename__ = "events"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    date: Mapped[str] = mapped_column(String(20), nullable=False)
    start_time: Mapped[str] = mapped_column(String(10), nullable=False)
    end_time: Mapped[str] = mapped_column(String(10), nullable=False)

    org_id: Mapped[int] = mapped_column(Integer, nullable=False)
    org_name: Mapped[str] = mapped_column(String(200), nullable=False)

    type: Mapped[str] = mapped_column(String(100), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    venue: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_CAPACITY)
    registered: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    participants: Mapped[list[int]] = mapped_column(JSONB, nullable=False, default=list)

    status: Mapped[EventStatus] = mapped_column(
        pg_enum(EventStatus, "event_status"), nullable=False, default=EventStatus.ACTIVE
    )

    __table_args__ = (
        CheckConstraint("registered >= 0", name="ck_events_registered_non_negative"),
        CheckConstraint("registered <= capacity", name="ck_events_registered_within_capacity"),
        Index("ix_events_org_id", "org_id"),
        Index("ix_events_status", "status"),
    )

    @property
    def is_full(self) -> bool:
        return self.registered >= self.capacity

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, {self.registered}/{self.capacity})>"
