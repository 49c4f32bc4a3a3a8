"""
Approval Repository

Database operations for approval tickets.

Design Principles:
- Functions flush, the service commits: approve/reject write the ticket,
  the organization, activities and notification intents in one transaction
- Status changes go through update_status(), which enforces
  VALID_STATUS_TRANSITIONS
- JSON columns are reassigned, never mutated in place, so changes are
  always detected
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.shared import next_id

from .models import ApprovalStatus, ApprovalType, PendingApproval

SEQUENCE_NAME = "pending_approvals"


# Ticket state machine
VALID_STATUS_TRANSITIONS: dict[ApprovalStatus, set[ApprovalStatus]] = {
    ApprovalStatus.PENDING: {
        ApprovalStatus.APPROVED,
        ApprovalStatus.REJECTED,
    },
    ApprovalStatus.REJECTED: {
        ApprovalStatus.PENDING,  # Applicant resubmitted
    },
    # Terminal
    ApprovalStatus.APPROVED: set(),
}


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, current_status: ApprovalStatus, new_status: ApprovalStatus):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {[s.value for s in valid_transitions]}"
        )


def can_transition(current: ApprovalStatus, new: ApprovalStatus) -> bool:
    return new in VALID_STATUS_TRANSITIONS.get(current, set())


async def create(
    db: AsyncSession,
    *,
    registration_data: dict[str, Any],
    applicant: str,
    verification_file: dict[str, Any] | None = None,
    org_id: int | None = None,
    approval_type: ApprovalType = ApprovalType.ORGANIZATION,
) -> PendingApproval:
    """Create a pending ticket (flushed, not committed)."""
    approval = PendingApproval(
        id=await next_id(db, SEQUENCE_NAME),
        type=approval_type,
        name=registration_data["name"],
        applicant=applicant,
        date=datetime.now(UTC).date().isoformat(),
        email=registration_data["email"].lower(),
        status=ApprovalStatus.PENDING,
        org_id=org_id,
        registration_data=dict(registration_data),
        verification_file=verification_file,
        rejection_details=None,
    )
    db.add(approval)
    await db.flush()
    return approval


async def get_by_id(
    db: AsyncSession, approval_id: int, *, for_update: bool = False
) -> PendingApproval | None:
    stmt = select(PendingApproval).where(PendingApproval.id == approval_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_by_email(db: AsyncSession, email: str) -> PendingApproval | None:
    """Most recent ticket for an applicant email."""
    result = await db.execute(
        select(PendingApproval)
        .where(PendingApproval.email == email.lower())
        .order_by(PendingApproval.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def list_by_status(db: AsyncSession, status: ApprovalStatus) -> list[PendingApproval]:
    """Tickets in a status, most recently updated first."""
    result = await db.execute(
        select(PendingApproval)
        .where(PendingApproval.status == status)
        .order_by(PendingApproval.updated_at.desc(), PendingApproval.id.desc())
    )
    return list(result.scalars().all())


async def count_by_status(db: AsyncSession) -> dict[ApprovalStatus, int]:
    result = await db.execute(
        select(PendingApproval.status, func.count()).group_by(PendingApproval.status)
    )
    counts = {status: 0 for status in ApprovalStatus}
    for status, count in result.all():
        counts[status] = count
    return counts


async def update_status(
    db: AsyncSession,
    approval: PendingApproval,
    status: ApprovalStatus,
    **kwargs,
) -> PendingApproval:
    """
    Move a ticket to a new status and set optional fields.

    Raises:
        InvalidStatusTransitionError: If the move is not allowed
    """
    current_status = approval.status
    if not can_transition(current_status, status):
        raise InvalidStatusTransitionError(current_status, status)

    approval.status = status
    for key, value in kwargs.items():
        if hasattr(approval, key):
            setattr(approval, key, value)

    await db.flush()
    return approval


def merge_registration_data(approval: PendingApproval, updates: dict[str, Any]) -> None:
    """
    Shallow-merge resubmitted fields into the snapshot.

    Fields not resent are preserved. The applicant email is the ticket's
    identity and is never overwritten.
    """
    merged = dict(approval.registration_data or {})
    for key, value in updates.items():
        if key == "email":
            continue
        merged[key] = value
    approval.registration_data = merged
    if merged.get("name"):
        approval.name = merged["name"]
