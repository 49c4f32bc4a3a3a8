"""
Shared Models

Abstract base for integer-keyed entities plus the PostgreSQL sequences
that hand out their ids.
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, Sequence, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class AuthProvider(str, enum.Enum):
    """How a student or organization account authenticates."""

    LOCAL = "local"
    GOOGLE = "google"


def pg_enum(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Enum column type that stores member values ('pending') rather than names."""
    return Enum(enum_cls, name=name, values_callable=lambda members: [m.value for m in members])


# Exactly one credential per account: a password hash for local accounts,
# a Google subject id for Google accounts.
CREDENTIAL_CHECK = (
    "(provider = 'local' AND password_hash IS NOT NULL AND google_id IS NULL) OR "
    "(provider = 'google' AND google_id IS NOT NULL AND password_hash IS NULL)"
)


class BaseModel(Base):
    """
    Abstract base for platform entities.

    Ids are public integers (organizations, events and approvals are
    addressed by them in URLs), allocated with next_id() from one named sequence per entity
    kind.
    """

    __abstract__ = True

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


ID_SEQUENCES = (
    "users",
    "students",
    "organizations",
    "events",
    "pending_approvals",
    "activities",
    "notifications",
)


def id_sequence(name: str) -> Sequence:
    """The PostgreSQL sequence backing ids for `name` (e.g. events_id_seq)."""
    return Sequence(f"{name}_id_seq")


async def next_id(db: AsyncSession, name: str) -> int:
    """
    Allocate the next id for `name` with nextval().

    Sequence increments are non-transactional and take no row lock, so
    concurrent transactions never wait on each other here. A rolled-back
    transaction leaves a gap.
    """
    return int(await db.scalar(select(id_sequence(name).next_value())))
