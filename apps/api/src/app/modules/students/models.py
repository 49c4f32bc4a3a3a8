"""
Student Models

Student accounts. Follow and event-participation lists are stored on the
student row; the organization follower count and event registration
count are kept in step with them by the follow and event services.
"""

import enum

from sqlalchemy import Boolean, CheckConstraint, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import CREDENTIAL_CHECK, AuthProvider, BaseModel, pg_enum


class StudentStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    SUSPENDED = "suspended"


class Student(BaseModel):
    """Student profile and login credentials."""

    __tablename__ = "students"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    faculty: Mapped[str] = mapped_column(String(200), nullable=False)
    student_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    status: Mapped[StudentStatus] = mapped_column(
        pg_enum(StudentStatus, "student_status"),
        nullable=False,
        default=StudentStatus.ACTIVE,
    )

    # Integer ids; reassign (never mutate in place) so changes are tracked
    followed_orgs: Mapped[list[int]] = mapped_column(JSONB, nullable=False, default=list)
    joined_events: Mapped[list[int]] = mapped_column(JSONB, nullable=False, default=list)

    # Authentication
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    google_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    provider: Mapped[AuthProvider] = mapped_column(
        pg_enum(AuthProvider, "auth_provider"), nullable=False, default=AuthProvider.GOOGLE
    )
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint(CREDENTIAL_CHECK, name="ck_students_single_credential"),
        Index("ix_students_status", "status"),
        Index("ix_students_followed_orgs_gin", "followed_orgs", postgresql_using="gin"),
    )

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, email={self.email})>"
