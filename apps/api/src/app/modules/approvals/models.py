"""
Approval Models

A PendingApproval is the review ticket created when an organization
registers. It holds a snapshot of the submitted form (registration_data),
the uploaded verification document's metadata, and, once an admin
rejects it, the rejection feedback.

The organization account itself is created alongside the ticket (status
pending); approving the ticket copies the reviewed snapshot onto it and
activates it.
"""

import enum

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.modules.shared import BaseModel, pg_enum


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalType(str, enum.Enum):
    ORGANIZATION = "organization"
    EVENT = "event"


class QueueItemKind(str, enum.Enum):
    """Which record an admin approval-queue entry stands for."""

    PENDING_APPROVAL = "pending_approval"
    SUSPENDED_ORGANIZATION = "suspended_organization"


# Keys of registration_data. The password is hashed onto the organization
# at registration and never kept in the snapshot.
REGISTRATION_FIELDS = (
    "name",
    "email",
    "org_type",
    "description",
    "president",
    "founded",
    "website",
    "members",
    "social_media",
)


class PendingApproval(BaseModel):
    """
    Review ticket for an organization registration.

    rejection_details keys: reason, allow_resubmission,
    resubmission_deadline (ISO string or None), rejected_at, rejected_by.
    It is set on rejection and deliberately kept when the applicant
    resubmits, so reviewers still see the earlier feedback.
    """

    __tablename__ = "pending_approvals"

    type: Mapped[ApprovalType] = mapped_column(
        pg_enum(ApprovalType, "approval_type"),
        nullable=False,
        default=ApprovalType.ORGANIZATION,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    applicant: Mapped[str] = mapped_column(String(200), nullable=False)
    # Submission date, YYYY-MM-DD
    date: Mapped[str] = mapped_column(String(10), nullable=False)

    # Lowercased copy of registration_data["email"]; tickets are looked up by it
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[ApprovalStatus] = mapped_column(
        pg_enum(ApprovalStatus, "approval_status"),
        nullable=False,
        default=ApprovalStatus.PENDING,
    )
    org_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    registration_data: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    verification_file: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
    rejection_details: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status <> 'rejected' OR (rejection_details->>'reason' IS NOT NULL AND "
            "rejection_details->>'rejected_by' IS NOT NULL)",
            name="ck_pending_approvals_rejection_details",
        ),
        Index("ix_pending_approvals_status_updated", "status", "updated_at"),
        Index("ix_pending_approvals_email", "email"),
    )

    @property
    def verification_url(self) -> str | None:
        return (self.verification_file or {}).get("url")

    def __repr__(self) -> str:
        return f"<PendingApproval(id={self.id}, email={self.email}, status={self.status.value})>"
