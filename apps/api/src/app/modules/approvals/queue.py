"""
Admin Approval Queue

The admin queue shows everything an admin can act on: pending tickets
and suspended organizations (which can be re-approved or rejected into
`inactive`). The two are different records, so the queue is a tagged
union of PendingApprovalItem | SuspendedOrganizationItem, converted to
one view model (ApprovalQueueEntry) only at the API boundary. Entries
carry `kind` plus the real id of the record they stand for; no ids are
synthesized across tables.
"""

from dataclasses import dataclass
from typing import ClassVar

from app.modules.approvals.models import (
    ApprovalStatus,
    ApprovalType,
    PendingApproval,
    QueueItemKind,
)
from app.modules.approvals.schemas import ApprovalQueueEntry, ApprovalResponse
from app.modules.organizations.models import Organization, OrganizationStatus


@dataclass(frozen=True)
class PendingApprovalItem:
    approval: PendingApproval
    kind: ClassVar[QueueItemKind] = QueueItemKind.PENDING_APPROVAL


@dataclass(frozen=True)
class SuspendedOrganizationItem:
    organization: Organization
    kind: ClassVar[QueueItemKind] = QueueItemKind.SUSPENDED_ORGANIZATION


QueueItem = PendingApprovalItem | SuspendedOrganizationItem


def select_queue_item(
    approval: PendingApproval | None,
    suspended_organization: Organization | None,
    kind: QueueItemKind | None = None,
) -> QueueItem | None:
    """
    Pick the record an admin command targets.

    Without `kind`, an existing ticket owns the id: it is returned when
    pending, and a decided ticket yields None rather than falling through
    to a suspended organization that happens to share the number. The
    suspended organization is used only when there is no ticket. With
    `kind`, only that variant is considered.
    """
    actionable_approval = (
        approval if approval is not None and approval.status == ApprovalStatus.PENDING else None
    )

    if kind == QueueItemKind.PENDING_APPROVAL:
        return PendingApprovalItem(actionable_approval) if actionable_approval else None
    if kind == QueueItemKind.SUSPENDED_ORGANIZATION:
        return (
            SuspendedOrganizationItem(suspended_organization) if suspended_organization else None
        )

    if approval is not None:
        return PendingApprovalItem(actionable_approval) if actionable_approval else None
    if suspended_organization is not None:
        return SuspendedOrganizationItem(suspended_organization)
    return None


def build_queue(
    approvals: list[PendingApproval], suspended_organizations: list[Organization]
) -> list[QueueItem]:
    """Pending tickets first, then suspended organizations."""
    return [PendingApprovalItem(a) for a in approvals] + [
        SuspendedOrganizationItem(o) for o in suspended_organizations
    ]


# ============================================
# View Conversion
# ============================================


def organization_snapshot(organization: Organization) -> dict:
    """An organization's profile in registration_data form."""
    return {
        "name": organization.name,
        "email": organization.email,
        "org_type": organization.type,
        "description": organization.description,
        "president": organization.president,
        "founded": organization.founded,
        "members": organization.members,
        "website": organization.website,
        "social_media": organization.social_media or {},
    }


def _organization_file(organization: Organization) -> dict | None:
    if not organization.verification_file:
        return None
    return {"url": organization.verification_file}


def approval_to_response(approval: PendingApproval) -> ApprovalResponse:
    return ApprovalResponse(
        approval_id=approval.id,
        org_id=approval.org_id,
        type=approval.type,
        name=approval.name,
        applicant=approval.applicant,
        date=approval.date,
        status=approval.status.value,
        registration_data=approval.registration_data or {},
        verification_file=approval.verification_file,
        rejection_details=approval.rejection_details,
        created_at=approval.created_at,
        updated_at=approval.updated_at,
    )


def organization_to_response(organization: Organization) -> ApprovalResponse:
    """
    Present an organization without a ticket as an application.

    An active organization reads as approved; other statuses as-is.
    """
    status = (
        ApprovalStatus.APPROVED.value
        if organization.status == OrganizationStatus.ACTIVE
        else organization.status.value
    )
    return ApprovalResponse(
        approval_id=None,
        org_id=organization.id,
        type=ApprovalType.ORGANIZATION,
        name=organization.name,
        applicant=organization.email,
        date=organization.created_at.date().isoformat(),
        status=status,
        registration_data=organization_snapshot(organization),
        verification_file=_organization_file(organization),
        rejection_details=None,
        created_at=organization.created_at,
        updated_at=organization.updated_at,
    )


def to_queue_entry(item: QueueItem) -> ApprovalQueueEntry:
    if isinstance(item, PendingApprovalItem):
        approval = item.approval
        return ApprovalQueueEntry(
            **approval_to_response(approval).model_dump(),
            kind=item.kind,
            organization_id=approval.org_id,
        )

    organization = item.organization
    return ApprovalQueueEntry(
        approval_id=None,
        org_id=organization.id,
        type=ApprovalType.ORGANIZATION,
        name=organization.name,
        applicant=organization.email,
        date=organization.created_at.date().isoformat(),
        status=ApprovalStatus.PENDING.value,
        registration_data=organization_snapshot(organization),
        verification_file=_organization_file(organization),
        rejection_details=None,
        created_at=organization.created_at,
        updated_at=organization.updated_at,
        kind=item.kind,
        organization_id=organization.id,
        organization_status=organization.status,
    )
