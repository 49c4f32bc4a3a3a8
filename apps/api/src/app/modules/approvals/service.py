"""
Approval Service Layer

Business logic for the organization approval workflow.

This module implements:
1. Submit: organization registration creates the organization (pending)
   and its review ticket in one transaction, behind the settings gate,
   the email rules and the one-time code.

2. Admin decisions on the queue (pending tickets + suspended organizations):
   - approve(): pending ticket -> approved, organization -> active; or a
     suspended organization -> active
   - reject(): pending ticket -> rejected with feedback; or a suspended
     organization -> inactive

3. Resubmit: the applicant updates a rejected (or still pending) ticket,
   which goes back to pending. rejection_details is kept so reviewers see
   the previous feedback next to the new submission.

4. Suspend: organization (active -> suspended) or student.

5. Queries: queue + stats, approved/rejected lists, status by email.

Consistency:
- Each command is one database transaction. The ticket and organization
  rows are locked (SELECT ... FOR UPDATE) before their status is checked,
  so concurrent approvals serialize and the second sees a non-pending
  ticket (404 APPROVAL_NOT_PENDING) instead of approving twice.
- Notifications are staged as outbox rows in the same transaction and
  pushed later by the dispatcher; activities are recorded in a SAVEPOINT
  and a failure there is logged, never fatal.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import UploadFile
from pydantic import ValidationError
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.core.security import hash_password
from app.core.storage import (
    FileValidationError,
    store_verification_file,
    validate_verification_file,
)
from app.modules.activities.models import ActivityType
from app.modules.activities.service import record_activity_safely
from app.modules.approvals import repository
from app.modules.approvals.models import ApprovalStatus, PendingApproval, QueueItemKind
from app.modules.approvals.queue import (
    PendingApprovalItem,
    QueueItem,
    build_queue,
    select_queue_item,
    to_queue_entry,
)
from app.modules.approvals.repository import InvalidStatusTransitionError
from app.modules.approvals.schemas import (
    ApprovalQueueResponse,
    ApprovalStats,
    ApproveResponse,
    OrganizationSummary,
    RegistrationDataUpdate,
    RegistrationForm,
    RejectResponse,
    StudentSummary,
    SuspendOrganizationResponse,
    SuspendStudentResponse,
)
from app.modules.notifications.models import NotificationType, RecipientType
from app.modules.notifications.service import (
    NotificationPayload,
    enqueue_to_user,
    enqueue_to_users,
)
from app.modules.organizations import repository as organization_repository
from app.modules.organizations.models import Organization, OrganizationStatus
from app.modules.organizations.repository import InvalidOrganizationTransitionError
from app.modules.platform_settings import service as settings_service
from app.modules.students import repository as student_repository
from app.modules.students.models import StudentStatus
from app.modules.verification import service as verification_service

logger = logging.getLogger(__name__)

NO_REASON = "No reason provided"


# ============================================
# Exceptions
# ============================================


class ApprovalServiceError(Exception):
    """Base exception for approval service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ApprovalNotFoundError(ApprovalServiceError):
    def __init__(self, message: str = "Approval not found"):
        super().__init__(message=message, error_code="APPROVAL_NOT_FOUND", status_code=404)


class ApprovalNotPendingError(ApprovalServiceError):
    """The ticket exists but has already been decided (or awaits resubmission)."""

    def __init__(self, approval_id: int, status: ApprovalStatus):
        super().__init__(
            message=f"Approval {approval_id} is not pending (current status: {status.value})",
            error_code="APPROVAL_NOT_PENDING",
            status_code=404,
        )


class OrganizationNotFoundError(ApprovalServiceError):
    def __init__(self, message: str = "Organization not found"):
        super().__init__(message=message, error_code="ORGANIZATION_NOT_FOUND", status_code=404)


class StudentNotFoundError(ApprovalServiceError):
    def __init__(self):
        super().__init__(
            message="Student not found", error_code="STUDENT_NOT_FOUND", status_code=404
        )


class ApplicationNotFoundError(ApprovalServiceError):
    def __init__(self, message: str = "No application found for this email"):
        super().__init__(message=message, error_code="APPLICATION_NOT_FOUND", status_code=404)


class RejectionReasonRequiredError(ApprovalServiceError):
    def __init__(self):
        super().__init__(
            message="Rejection reason is required",
            error_code="REJECTION_REASON_REQUIRED",
            status_code=400,
        )


class InvalidDeadlineError(ApprovalServiceError):
    def __init__(self):
        super().__init__(
            message="Resubmission deadline cannot be in the past",
            error_code="INVALID_RESUBMISSION_DEADLINE",
            status_code=400,
        )


class EmailRequiredError(ApprovalServiceError):
    def __init__(self):
        super().__init__(
            message="Email is required for verification",
            error_code="EMAIL_REQUIRED",
            status_code=400,
        )


class NotApplicationOwnerError(ApprovalServiceError):
    def __init__(self):
        super().__init__(
            message="You can only update your own application",
            error_code="NOT_APPLICATION_OWNER",
            status_code=403,
        )


class InvalidApprovalStateError(ApprovalServiceError):
    def __init__(self, message: str):
        super().__init__(message=message, error_code="INVALID_APPROVAL_STATE", status_code=400)


class InvalidOrganizationStateError(ApprovalServiceError):
    def __init__(self, message: str):
        super().__init__(
            message=message, error_code="INVALID_ORGANIZATION_STATE", status_code=400
        )


class InvalidRegistrationDataError(ApprovalServiceError):
    def __init__(self, message: str):
        super().__init__(message=message, error_code="INVALID_REGISTRATION_DATA", status_code=400)


class InvalidVerificationFileError(ApprovalServiceError):
    def __init__(self, message: str):
        super().__init__(message=message, error_code="INVALID_FILE", status_code=400)


class RegistrationClosedError(ApprovalServiceError):
    def __init__(self):
        super().__init__(
            message="New user registration is currently disabled",
            error_code="REGISTRATION_DISABLED",
            status_code=403,
        )


# ============================================
# Helpers
# ============================================


def _admin_label(admin: CurrentUser | None) -> str:
    return admin.email if admin and admin.email else "Admin"


def _summary(organization: Organization) -> OrganizationSummary:
    return OrganizationSummary(
        id=organization.id,
        name=organization.name,
        email=organization.email,
        status=organization.status,
    )


def _as_aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def build_rejection_details(
    reason: str,
    allow_resubmission: bool,
    resubmission_deadline: datetime | None,
    rejected_by: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Validate rejection input and build the stored feedback.

    Raises:
        RejectionReasonRequiredError: Empty (or whitespace) reason
        InvalidDeadlineError: Resubmission allowed with a deadline not in the future
    """
    now = now or datetime.now(UTC)
    reason = (reason or "").strip()
    if not reason:
        raise RejectionReasonRequiredError()

    deadline = None
    if allow_resubmission and resubmission_deadline is not None:
        deadline = _as_aware(resubmission_deadline)
        if deadline <= now:
            raise InvalidDeadlineError()

    return {
        "reason": reason,
        "allow_resubmission": allow_resubmission,
        "resubmission_deadline": deadline.isoformat() if deadline else None,
        "rejected_at": now.isoformat(),
        "rejected_by": rejected_by,
    }


def parse_registration_updates(raw: dict[str, Any] | None) -> dict[str, Any]:
    """
    Check resubmitted registration fields and return only the keys sent.

    Raises:
        InvalidRegistrationDataError: Unknown key, wrong type or null for a
            field that must keep a value
    """
    try:
        data = RegistrationDataUpdate.model_validate(raw or {})
    except ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "registration_data"
        raise InvalidRegistrationDataError(f"{field}: {error['msg']}") from e
    return data.model_dump(exclude_unset=True)


async def _validate_upload(db: AsyncSession, upload: UploadFile | None) -> bytes | None:
    """Read and check an optional upload against the platform size limit."""
    if upload is None or not upload.filename:
        return None
    max_size = await settings_service.get_max_file_size(db)
    try:
        return await validate_verification_file(upload, max_size)
    except FileValidationError as e:
        raise InvalidVerificationFileError(str(e)) from e


async def _resolve_queue_item(
    db: AsyncSession, item_id: int, kind: QueueItemKind | None
) -> QueueItem:
    """
    Lock and return the queue item an admin command targets.

    Raises:
        ApprovalNotPendingError: The ticket exists but isn't pending
        ApprovalNotFoundError / OrganizationNotFoundError: Nothing actionable
    """
    approval = None
    suspended = None

    if kind != QueueItemKind.SUSPENDED_ORGANIZATION:
        approval = await repository.get_by_id(db, item_id, for_update=True)

    # Ticket and organization ids are separate sequences: an existing ticket
    # owns the id even when it is no longer pending
    if kind == QueueItemKind.SUSPENDED_ORGANIZATION or (kind is None and approval is None):
        suspended = await organization_repository.get_suspended_by_id(
            db, item_id, for_update=True
        )

    item = select_queue_item(approval, suspended, kind)
    if item is not None:
        return item

    if approval is not None:
        raise ApprovalNotPendingError(item_id, approval.status)
    if kind == QueueItemKind.SUSPENDED_ORGANIZATION:
        raise OrganizationNotFoundError("Suspended organization not found")
    raise ApprovalNotFoundError()


async def _notify_organization(
    db: AsyncSession, organization_id: int, payload: NotificationPayload
) -> None:
    await enqueue_to_user(db, RecipientType.ORGANIZATION, organization_id, payload)


# ============================================
# Submit
# ============================================


async def submit_registration(
    db: AsyncSession,
    redis: Redis,
    form: RegistrationForm,
    upload: UploadFile | None = None,
) -> PendingApproval:
    """
    Register an organization and open its review ticket.

    Steps: settings gate, email rules + uniqueness, file checks, code
    redemption, file storage; then the organization (pending, email verified),
    the ticket and the registration activity commit together.

    Raises:
        RegistrationClosedError: Registration disabled or maintenance mode
        VerificationServiceError: Email rules, duplicate email, bad code
        InvalidVerificationFileError: File too large or wrong type
    """
    if not await settings_service.is_registration_allowed(db):
        raise RegistrationClosedError()

    email = form.email.strip().lower()
    await verification_service.validate_registration_email(db, email)
    # A rejected file must leave the code (and verified marker) redeemable
    content = await _validate_upload(db, upload)
    await verification_service.consume_for_registration(redis, email, form.verification_code)

    verification_file = None
    if content is not None:
        verification_file = await store_verification_file(upload, content)

    organization = await organization_repository.create(
        db,
        email=email,
        name=form.name,
        org_type=form.org_type,
        description=form.description,
        password_hash=hash_password(form.password),
        president=form.president,
        founded=form.founded,
        website=form.website,
        members=form.members,
        verification_file=verification_file["url"] if verification_file else None,
        email_verified=True,
    )

    registration_data = {
        "name": form.name,
        "email": email,
        "org_type": form.org_type,
        "description": form.description,
        "president": form.president,
        "founded": form.founded,
        "website": form.website,
        "members": form.members,
        "social_media": {},
    }
    approval = await repository.create(
        db,
        registration_data=registration_data,
        applicant=form.president or form.name,
        verification_file=verification_file,
        org_id=organization.id,
    )

    await record_activity_safely(
        db,
        ActivityType.ORGANIZATION_REGISTRATION,
        "New organization registered",
        f'Organization "{organization.name}" registered and is awaiting approval',
        user_email=email,
        user_name=approval.applicant,
        organization_id=organization.id,
        organization_name=organization.name,
        metadata={"approval_id": approval.id, "org_type": form.org_type},
    )

    await db.commit()
    logger.info(
        f"Organization {organization.id} registered ({email}); approval {approval.id} pending"
    )
    return approval


# ============================================
# Admin Decisions
# ============================================


async def approve(
    db: AsyncSession,
    item_id: int,
    admin: CurrentUser,
    kind: QueueItemKind | None = None,
) -> ApproveResponse:
    """
    Approve a pending ticket or re-approve a suspended organization.

    For a ticket, the reviewed registration_data is copied onto the
    organization matched by email, which becomes active; the ticket
    becomes approved with org_id stamped. Everything commits together.

    Raises:
        ApprovalNotFoundError / ApprovalNotPendingError / OrganizationNotFoundError
        InvalidApprovalStateError: Status change not allowed
    """
    item = await _resolve_queue_item(db, item_id, kind)
    approval_id = None

    try:
        if isinstance(item, PendingApprovalItem):
            approval = item.approval
            approval_id = approval.id
            organization = await organization_repository.get_by_email(
                db, approval.email, for_update=True
            )
            if organization is None:
                raise OrganizationNotFoundError("Organization not found for approval")

            organization_repository.apply_registration_data(
                organization, approval.registration_data, approval.verification_url
            )
            if organization.status != OrganizationStatus.ACTIVE:
                await organization_repository.update_status(
                    db, organization, OrganizationStatus.ACTIVE
                )
            await repository.update_status(
                db, approval, ApprovalStatus.APPROVED, org_id=organization.id
            )
        else:
            organization = item.organization
            await organization_repository.update_status(
                db, organization, OrganizationStatus.ACTIVE
            )
    except (InvalidStatusTransitionError, InvalidOrganizationTransitionError) as e:
        raise InvalidApprovalStateError(str(e)) from e

    await record_activity_safely(
        db,
        ActivityType.ORGANIZATION_APPROVED,
        "Organization approved",
        f'Organization "{organization.name}" has been approved by admin',
        user_email=organization.email,
        organization_id=organization.id,
        organization_name=organization.name,
        metadata={
            "org_type": organization.type,
            "president": organization.president,
            "founded": organization.founded,
            "members": organization.members,
            "approval_id": approval_id,
            "approved_by": _admin_label(admin),
        },
    )

    await _notify_organization(
        db,
        organization.id,
        NotificationPayload(
            title="Organization Approved",
            body=f'Your organization "{organization.name}" has been approved!',
            type=NotificationType.APPROVAL,
            data={"organization_id": organization.id, "organization_name": organization.name},
        ),
    )

    await db.commit()
    logger.info(
        f"Admin {admin.email} approved {item.kind.value} {item_id} "
        f"(organization {organization.id})"
    )

    return ApproveResponse(approval_id=approval_id, organization=_summary(organization))


async def reject(
    db: AsyncSession,
    item_id: int,
    admin: CurrentUser,
    reason: str,
    allow_resubmission: bool = True,
    resubmission_deadline: datetime | None = None,
    kind: QueueItemKind | None = None,
) -> RejectResponse:
    """
    Reject a pending ticket, or deactivate a suspended organization.

    The suspended-organization path moves the organization straight to
    inactive; no ticket is involved.

    Raises:
        RejectionReasonRequiredError, InvalidDeadlineError: Bad input (400)
        ApprovalNotFoundError / ApprovalNotPendingError / OrganizationNotFoundError
    """
    if not (reason or "").strip():
        raise RejectionReasonRequiredError()

    item = await _resolve_queue_item(db, item_id, kind)

    if not isinstance(item, PendingApprovalItem):
        organization = item.organization
        try:
            await organization_repository.update_status(
                db, organization, OrganizationStatus.INACTIVE
            )
        except InvalidOrganizationTransitionError as e:
            raise InvalidOrganizationStateError(str(e)) from e
        await db.commit()
        logger.info(f"Admin {admin.email} deactivated suspended organization {organization.id}")
        return RejectResponse(
            message="Suspended organization rejected and deactivated",
            organization=_summary(organization),
        )

    approval = item.approval
    details = build_rejection_details(
        reason, allow_resubmission, resubmission_deadline, _admin_label(admin)
    )

    try:
        await repository.update_status(
            db, approval, ApprovalStatus.REJECTED, rejection_details=details
        )
    except InvalidStatusTransitionError as e:
        raise InvalidApprovalStateError(str(e)) from e

    organization = await organization_repository.get_by_email(db, approval.email)
    if organization is not None:
        await _notify_organization(
            db,
            organization.id,
            NotificationPayload(
                title="Application Rejected",
                body=f'Your application for "{approval.name}" was rejected. '
                f"Reason: {details['reason']}",
                type=NotificationType.APPROVAL,
                data={
                    "approval_id": approval.id,
                    "reason": details["reason"],
                    "allow_resubmission": details["allow_resubmission"],
                    "resubmission_deadline": details["resubmission_deadline"],
                },
            ),
        )

    await db.commit()
    logger.info(f"Admin {admin.email} rejected approval {approval.id}")

    return RejectResponse(
        message="Organization rejected with feedback provided",
        rejection_details=details,
    )


# ============================================
# Resubmit
# ============================================


async def resubmit(
    db: AsyncSession,
    approval_id: int,
    requester_email: str | None,
    registration_updates: dict[str, Any] | None = None,
    upload: UploadFile | None = None,
) -> PendingApproval:
    """
    Applicant update of their own ticket.

    registration_data is shallow-merged (fields not resent are kept), a
    new file replaces verification_file, and a rejected ticket returns to
    pending. rejection_details is left as it was.

    Raises:
        ApprovalNotFoundError: Unknown ticket
        EmailRequiredError: No requester email
        NotApplicationOwnerError: Email doesn't match the ticket
        InvalidApprovalStateError: Ticket already approved
        InvalidRegistrationDataError / InvalidVerificationFileError: Bad input
    """
    approval = await repository.get_by_id(db, approval_id, for_update=True)
    if approval is None:
        raise ApprovalNotFoundError("Pending approval not found")

    if not requester_email:
        raise EmailRequiredError()
    if requester_email.strip().lower() != approval.email:
        logger.warning(f"Resubmission of approval {approval_id} refused for {requester_email}")
        raise NotApplicationOwnerError()

    if approval.status == ApprovalStatus.APPROVED:
        raise InvalidApprovalStateError("Approved applications cannot be resubmitted")

    updates = parse_registration_updates(registration_updates)
    content = await _validate_upload(db, upload)

    if content is not None:
        approval.verification_file = await store_verification_file(upload, content)

    if updates:
        repository.merge_registration_data(approval, updates)

    if approval.status == ApprovalStatus.REJECTED:
        await repository.update_status(db, approval, ApprovalStatus.PENDING)

    approval.updated_at = datetime.now(UTC)
    await db.commit()
    await db.refresh(approval)

    logger.info(f"Approval {approval.id} resubmitted by {approval.email}")
    return approval


# ============================================
# Suspend
# ============================================


async def suspend_organization(
    db: AsyncSession,
    organization_id: int,
    admin: CurrentUser,
    reason: str | None = None,
) -> SuspendOrganizationResponse:
    """
    Suspend an active organization and tell its owner and active followers.

    Raises:
        OrganizationNotFoundError: Unknown organization
        InvalidOrganizationStateError: Organization is not active
    """
    organization = await organization_repository.get_by_id(db, organization_id, for_update=True)
    if organization is None:
        raise OrganizationNotFoundError()

    try:
        await organization_repository.update_status(
            db, organization, OrganizationStatus.SUSPENDED
        )
    except InvalidOrganizationTransitionError as e:
        raise InvalidOrganizationStateError(str(e)) from e

    reason = (reason or "").strip() or NO_REASON
    data = {
        "organization_id": organization.id,
        "organization_name": organization.name,
        "reason": reason,
    }

    await record_activity_safely(
        db,
        ActivityType.ORGANIZATION_SUSPENDED,
        "Organization suspended",
        f'Organization "{organization.name}" was suspended by admin',
        user_email=organization.email,
        organization_id=organization.id,
        organization_name=organization.name,
        metadata={"reason": reason, "suspended_by": _admin_label(admin)},
    )

    await _notify_organization(
        db,
        organization.id,
        NotificationPayload(
            title="Organization Suspended",
            body=f'Your organization "{organization.name}" has been suspended. Reason: {reason}',
            type=NotificationType.SYSTEM,
            data=data,
        ),
    )

    follower_ids = await student_repository.get_active_follower_ids(db, organization.id)
    await enqueue_to_users(
        db,
        RecipientType.STUDENT,
        follower_ids,
        NotificationPayload(
            title="Organization Suspended",
            body=f'"{organization.name}" has been suspended',
            type=NotificationType.ORGANIZATION,
            data=data,
        ),
    )

    await db.commit()
    logger.info(
        f"Admin {admin.email} suspended organization {organization.id} "
        f"({len(follower_ids)} followers notified)"
    )

    return SuspendOrganizationResponse(organization=_summary(organization))


async def suspend_student(
    db: AsyncSession,
    student_id: int,
    admin: CurrentUser,
    reason: str | None = None,
) -> SuspendStudentResponse:
    """
    Suspend a student and tell them and the organizations they follow.

    Raises:
        StudentNotFoundError: Unknown student
    """
    student = await student_repository.get_by_id(db, student_id, for_update=True)
    if student is None:
        raise StudentNotFoundError()

    await student_repository.set_status(db, student, StudentStatus.SUSPENDED)

    reason = (reason or "").strip() or NO_REASON
    data = {"student_id": student.id, "student_name": student.name, "reason": reason}

    await record_activity_safely(
        db,
        ActivityType.STUDENT_SUSPENDED,
        "Student suspended",
        f'Student "{student.name}" was suspended by admin',
        user_id=student.id,
        user_name=student.name,
        user_email=student.email,
        metadata={"reason": reason, "suspended_by": _admin_label(admin)},
    )

    await enqueue_to_user(
        db,
        RecipientType.STUDENT,
        student.id,
        NotificationPayload(
            title="Account Suspended",
            body=f"Your account has been suspended. Reason: {reason}",
            type=NotificationType.SYSTEM,
            data=data,
        ),
    )
    await enqueue_to_users(
        db,
        RecipientType.ORGANIZATION,
        student.followed_orgs or [],
        NotificationPayload(
            title="Follower Suspended",
            body=f"{student.name} has been suspended",
            type=NotificationType.SYSTEM,
            data=data,
        ),
    )

    await db.commit()
    logger.info(f"Admin {admin.email} suspended student {student.id}")

    return SuspendStudentResponse(
        student=StudentSummary(id=student.id, name=student.name, status=student.status.value)
    )


# ============================================
# Queries
# ============================================


async def get_approval_queue(db: AsyncSession) -> ApprovalQueueResponse:
    """Pending tickets plus suspended organizations, with dashboard counts."""
    approvals = await repository.list_by_status(db, ApprovalStatus.PENDING)
    suspended = await organization_repository.list_by_status(db, OrganizationStatus.SUSPENDED)
    queue = build_queue(approvals, suspended)
    counts = await repository.count_by_status(db)

    return ApprovalQueueResponse(
        pending_approvals=[to_queue_entry(item) for item in queue],
        stats=ApprovalStats(
            pending=len(queue),
            approved=counts[ApprovalStatus.APPROVED],
            rejected=counts[ApprovalStatus.REJECTED],
        ),
    )


async def list_decided(db: AsyncSession, status: ApprovalStatus) -> list[PendingApproval]:
    """Approved or rejected tickets, most recently updated first."""
    return await repository.list_by_status(db, status)


async def get_status_by_email(db: AsyncSession, email: str) -> PendingApproval:
    """
    Raises:
        ApplicationNotFoundError: No ticket for the email
    """
    approval = await repository.get_by_email(db, email)
    if approval is None:
        raise ApplicationNotFoundError()
    return approval


async def get_my_application(
    db: AsyncSession, user: CurrentUser
) -> PendingApproval | Organization:
    """
    The calling organization's ticket, or its organization record if it
    has no ticket (e.g. created by seeding).

    Raises:
        ApplicationNotFoundError: Neither exists
    """
    approval = await repository.get_by_email(db, user.email)
    if approval is not None:
        return approval

    organization = await organization_repository.get_by_email(db, user.email)
    if organization is not None:
        return organization

    raise ApplicationNotFoundError("No application found for this organization")
