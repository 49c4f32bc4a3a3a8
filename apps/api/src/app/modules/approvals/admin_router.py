"""
Approvals Admin Router

API endpoints for platform administrators to work the approval queue.

Endpoints:
- GET /admin/pending-approvals - Queue (pending tickets + suspended organizations) and stats
- GET /admin/approved-approvals - Approved tickets
- GET /admin/rejected-approvals - Rejected tickets
- GET /admin/organization-status/{email} - Ticket lookup by applicant email
- POST /admin/approve/{id} - Approve a ticket / re-approve a suspended organization
- POST /admin/reject/{id} - Reject a ticket / deactivate a suspended organization
- PUT /admin/update-pending-file/{id} - Applicant resubmission (not admin-only)
- POST /admin/suspend-organization/{id} - Suspend an organization
- POST /admin/suspend-student/{id} - Suspend a student

Security:
- All endpoints except update-pending-file require an admin token
- update-pending-file only lets applicants touch their own ticket
- Rate limiting on action endpoints to prevent mass operations
"""

import json
import logging

from fastapi import APIRouter, Body, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user, get_optional_user
from app.core.database import get_db
from app.core.rate_limit import enforce_rate_limit
from app.modules.approvals import service
from app.modules.approvals.models import ApprovalStatus, QueueItemKind
from app.modules.approvals.queue import approval_to_response
from app.modules.approvals.schemas import (
    ApprovalEnvelope,
    ApprovalQueueResponse,
    ApprovalUpdatedResponse,
    ApprovedApprovalsResponse,
    ApproveResponse,
    RejectedApprovalsResponse,
    RejectRequest,
    RejectResponse,
    SuspendOrganizationResponse,
    SuspendRequest,
    SuspendStudentResponse,
)
from app.modules.approvals.service import ApprovalServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_APPROVE = (10, 60)  # 10 approvals per minute
RATE_LIMIT_REJECT = (10, 60)  # 10 rejections per minute
RATE_LIMIT_SUSPEND = (10, 60)  # 10 suspensions per minute
RATE_LIMIT_RESUBMIT = (10, 3600)  # 10 resubmissions per hour per ticket


async def _check_admin_rate_limit(admin: CurrentUser, action: str, limit: int, window: int) -> None:
    await enforce_rate_limit(f"admin:{action}:{admin.id}", limit, window)


# ============================================
# Helper Functions
# ============================================


def _handle_service_error(e: ApprovalServiceError) -> None:
    """Convert service errors to HTTPExceptions."""
    raise HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    ) from e


def _parse_registration_data(raw: str | None) -> dict | None:
    """Decode the multipart registration_data field (a JSON object)."""
    if not raw:
        return None
    try:
        updates = json.loads(raw)
    except json.JSONDecodeError:
        updates = None
    if not isinstance(updates, dict):
        raise HTTPException(
            status_code=400,
            detail={
                "error": "INVALID_REGISTRATION_DATA",
                "message": "registration_data must be a JSON object",
            },
        )
    return updates


KIND_QUERY = Query(
    None,
    description="Force the target record: pending_approval or suspended_organization. "
    "Without it a ticket with this id takes precedence; a suspended organization is "
    "used only when no ticket has the id.",
)


# ============================================
# Queue & Lists
# ============================================


@router.get(
    "/pending-approvals",
    response_model=ApprovalQueueResponse,
    summary="Approval Queue",
    description="""
Everything an admin can act on, as one list:

- `kind=pending_approval`: a registration ticket awaiting review (`approval_id` set)
- `kind=suspended_organization`: a suspended organization that can be re-approved
  or rejected into inactive (`organization_id` set, `approval_id` null)

**Stats:** `pending` is the length of the combined list; `approved` and
`rejected` count tickets.
""",
)
async def get_pending_approvals(
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApprovalQueueResponse:
    queue = await service.get_approval_queue(db)
    logger.info(f"Admin {admin.email} listed approval queue ({queue.stats.pending} items)")
    return queue


@router.get(
    "/approved-approvals",
    response_model=ApprovedApprovalsResponse,
    summary="Approved Tickets",
)
async def get_approved_approvals(
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin_user),
) -> ApprovedApprovalsResponse:
    approvals = await service.list_decided(db, ApprovalStatus.APPROVED)
    return ApprovedApprovalsResponse(
        approved_approvals=[approval_to_response(a) for a in approvals]
    )


@router.get(
    "/rejected-approvals",
    response_model=RejectedApprovalsResponse,
    summary="Rejected Tickets",
)
async def get_rejected_approvals(
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin_user),
) -> RejectedApprovalsResponse:
    approvals = await service.list_decided(db, ApprovalStatus.REJECTED)
    return RejectedApprovalsResponse(
        rejected_approvals=[approval_to_response(a) for a in approvals]
    )


@router.get(
    "/organization-status/{email}",
    response_model=ApprovalEnvelope,
    summary="Ticket by Applicant Email",
    responses={404: {"description": "No application found for this email"}},
)
async def get_organization_status(
    email: str,
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin_user),
) -> ApprovalEnvelope:
    try:
        approval = await service.get_status_by_email(db, email)
    except ApprovalServiceError as e:
        _handle_service_error(e)
    return ApprovalEnvelope(approval=approval_to_response(approval))


# ============================================
# Decisions
# ============================================


@router.post(
    "/approve/{item_id}",
    response_model=ApproveResponse,
    summary="Approve",
    description="""
Approve a pending ticket or re-approve a suspended organization.

**Ticket:** the reviewed registration data is copied onto the organization
(matched by email), which becomes `active`; the ticket becomes `approved`
with `org_id` set. All-or-nothing.

**Suspended organization:** back to `active`.

A ticket that is no longer pending returns 404 `APPROVAL_NOT_PENDING`.

**Rate Limit:** 10 requests per minute.
""",
    responses={
        400: {"description": "Invalid state transition"},
        404: {"description": "Nothing pending with this id"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def approve(
    item_id: int,
    kind: QueueItemKind | None = KIND_QUERY,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> ApproveResponse:
    await _check_admin_rate_limit(admin, "approve", *RATE_LIMIT_APPROVE)

    try:
        return await service.approve(db, item_id, admin, kind)
    except ApprovalServiceError as e:
        logger.warning(f"Approve {item_id} failed: {e.message}")
        _handle_service_error(e)


@router.post(
    "/reject/{item_id}",
    response_model=RejectResponse,
    summary="Reject",
    description="""
Reject a pending ticket with feedback, or deactivate a suspended organization.

**Validation:**
- `rejection_reason` is required
- with `allow_resubmission`, a `resubmission_deadline` must be in the future

**Rate Limit:** 10 requests per minute.
""",
    responses={
        400: {"description": "Missing reason or past deadline"},
        404: {"description": "Nothing pending with this id"},
        429: {"description": "Rate limit exceeded"},
    },
)
async def reject(
    item_id: int,
    data: RejectRequest,
    kind: QueueItemKind | None = KIND_QUERY,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> RejectResponse:
    await _check_admin_rate_limit(admin, "reject", *RATE_LIMIT_REJECT)

    try:
        return await service.reject(
            db,
            item_id,
            admin,
            reason=data.rejection_reason,
            allow_resubmission=data.allow_resubmission,
            resubmission_deadline=data.resubmission_deadline,
            kind=kind,
        )
    except ApprovalServiceError as e:
        logger.warning(f"Reject {item_id} failed: {e.message}")
        _handle_service_error(e)


# ============================================
# Resubmission
# ============================================


@router.put(
    "/update-pending-file/{approval_id}",
    response_model=ApprovalUpdatedResponse,
    summary="Resubmit Application",
    description="""
Applicant update of their own ticket (multipart form).

**Fields:**
- `registration_data`: JSON object of fields to change; others are kept
- `email`: applicant email, used when no token is sent
- `file`: optional replacement verification document

A rejected ticket goes back to `pending`; the earlier rejection feedback
stays on the ticket.
""",
    responses={
        400: {"description": "Missing email, bad data or file, or ticket already approved"},
        403: {"description": "Not your application"},
        404: {"description": "Ticket not found"},
    },
)
async def update_pending_file(
    approval_id: int,
    registration_data: str | None = Form(None),
    email: str | None = Form(None),
    file: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser | None = Depends(get_optional_user),
) -> ApprovalUpdatedResponse:
    await enforce_rate_limit(f"resubmit:{approval_id}", *RATE_LIMIT_RESUBMIT)

    updates = _parse_registration_data(registration_data)
    requester_email = user.email if user and user.email else email

    try:
        approval = await service.resubmit(db, approval_id, requester_email, updates, file)
    except ApprovalServiceError as e:
        _handle_service_error(e)

    return ApprovalUpdatedResponse(approval=approval_to_response(approval))


# ============================================
# Suspensions
# ============================================


@router.post(
    "/suspend-organization/{organization_id}",
    response_model=SuspendOrganizationResponse,
    summary="Suspend Organization",
    description="""
Suspend an active organization. The organization and its active followers
are notified; the organization then shows up in the approval queue.

**Rate Limit:** 10 requests per minute.
""",
)
async def suspend_organization(
    organization_id: int,
    data: SuspendRequest | None = Body(None),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> SuspendOrganizationResponse:
    await _check_admin_rate_limit(admin, "suspend", *RATE_LIMIT_SUSPEND)

    try:
        return await service.suspend_organization(
            db, organization_id, admin, reason=data.reason if data else None
        )
    except ApprovalServiceError as e:
        _handle_service_error(e)


@router.post(
    "/suspend-student/{student_id}",
    response_model=SuspendStudentResponse,
    summary="Suspend Student",
)
async def suspend_student(
    student_id: int,
    data: SuspendRequest | None = Body(None),
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> SuspendStudentResponse:
    await _check_admin_rate_limit(admin, "suspend", *RATE_LIMIT_SUSPEND)

    try:
        return await service.suspend_student(
            db, student_id, admin, reason=data.reason if data else None
        )
    except ApprovalServiceError as e:
        _handle_service_error(e)
