"""
Organization Models

Student organizations (clubs, societies, associations). An organization
account is created in `pending` status at registration and only becomes
usable once an admin approves its application.
"""

import enum

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import CREDENTIAL_CHECK, AuthProvider, BaseModel, pg_enum


class OrganizationStatus(str, enum.Enum):
    """Lifecycle of an organization account."""

    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


# Organization-side shadow of the approval state machine
VALID_ORGANIZATION_TRANSITIONS: dict[OrganizationStatus, set[OrganizationStatus]] = {
    OrganizationStatus.PENDING: {OrganizationStatus.ACTIVE},
    OrganizationStatus.ACTIVE: {OrganizationStatus.SUSPENDED},
    OrganizationStatus.SUSPENDED: {
        OrganizationStatus.ACTIVE,  # Re-approved
        OrganizationStatus.INACTIVE,  # Rejected while suspended
    },
    OrganizationStatus.INACTIVE: {OrganizationStatus.ACTIVE},
}


class Organization(BaseModel):
    """Organization profile and login credentials."""

    __tablename__ = "organizations"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # Profile
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    president: Mapped[str | None] = mapped_column(String(200), nullable=True)
    founded: Mapped[str | None] = mapped_column(String(50), nullable=True)
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)
    members: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    followers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    social_media: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    verification_file: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[OrganizationStatus] = mapped_column(
        pg_enum(OrganizationStatus, "organization_status"),
        nullable=False,
        default=OrganizationStatus.PENDING,
    )

    # Authentication
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    google_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    provider: Mapped[AuthProvider] = mapped_column(
        pg_enum(AuthProvider, "auth_provider"), nullable=False, default=AuthProvider.LOCAL
    )
    email_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        CheckConstraint("followers >= 0", name="ck_organizations_followers_non_negative"),
        CheckConstraint("members >= 0", name="ck_organizations_members_non_negative"),
        CheckConstraint(CREDENTIAL_CHECK, name="ck_organizations_single_credential"),
        Index("ix_organizations_status", "status"),
        Index("ix_organizations_type", "type"),
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, email={self.email}, status={self.status.value})>"
