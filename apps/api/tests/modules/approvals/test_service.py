"""
Unit tests for the approvals service layer.

These tests cover:
- Rejection feedback validation (reason, resubmission deadline)
- Approve: pending ticket and suspended organization paths, double approval
- Reject: feedback stored on the ticket, suspended organization deactivated
- Resubmit: back to pending, feedback kept, ownership checks, field checks
- Suspend organization / student, activity recorded before notifications
- Registration submission, file checked before the code is redeemed
"""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import UploadFile

from app.core.auth import CurrentUser, PrincipalRole
from app.modules.approvals.models import ApprovalStatus, QueueItemKind
from app.modules.approvals.service import (
    ApplicationNotFoundError,
    ApprovalNotFoundError,
    ApprovalNotPendingError,
    EmailRequiredError,
    InvalidApprovalStateError,
    InvalidDeadlineError,
    InvalidOrganizationStateError,
    InvalidRegistrationDataError,
    InvalidVerificationFileError,
    NotApplicationOwnerError,
    OrganizationNotFoundError,
    RegistrationClosedError,
    RejectionReasonRequiredError,
    approve,
    build_rejection_details,
    get_my_application,
    parse_registration_updates,
    reject,
    resubmit,
    submit_registration,
    suspend_organization,
    suspend_student,
)
from app.modules.organizations.models import OrganizationStatus
from app.modules.students.models import Student, StudentStatus

SERVICE = "app.modules.approvals.service"


@pytest.fixture
def side_effects():
    """Patch notification and activity side effects."""
    with (
        patch(f"{SERVICE}.enqueue_to_user", new_callable=AsyncMock) as notify_one,
        patch(f"{SERVICE}.enqueue_to_users", new_callable=AsyncMock) as notify_many,
        patch(f"{SERVICE}.record_activity_safely", new_callable=AsyncMock) as activity,
    ):
        yield {"notify_one": notify_one, "notify_many": notify_many, "activity": activity}


@pytest.fixture
def call_order(side_effects):
    """Names of the side effects in the order they ran."""
    order = []
    side_effects["activity"].side_effect = lambda *a, **k: order.append("activity")
    side_effects["notify_one"].side_effect = lambda *a, **k: order.append("notify_one")
    side_effects["notify_many"].side_effect = lambda *a, **k: order.append("notify_many")
    return order


def _upload(content_type: str, content: bytes = b"%PDF-1.4") -> MagicMock:
    upload = MagicMock(spec=UploadFile)
    upload.filename = "charter.pdf"
    upload.content_type = content_type
    upload.read = AsyncMock(return_value=content)
    return upload


class TestBuildRejectionDetails:
    """Tests for rejection feedback validation."""

    NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)

    def test_future_deadline_accepted(self):
        deadline = self.NOW + timedelta(days=7)

        details = build_rejection_details(
            "  Missing documents  ", True, deadline, "admin@au.edu", now=self.NOW
        )

        assert details == {
            "reason": "Missing documents",
            "allow_resubmission": True,
            "resubmission_deadline": deadline.isoformat(),
            "rejected_at": self.NOW.isoformat(),
            "rejected_by": "admin@au.edu",
        }

    def test_past_deadline_rejected(self):
        with pytest.raises(InvalidDeadlineError) as exc_info:
            build_rejection_details(
                "Missing documents",
                True,
                self.NOW - timedelta(days=1),
                "admin@au.edu",
                now=self.NOW,
            )
        assert exc_info.value.message == "Resubmission deadline cannot be in the past"
        assert exc_info.value.status_code == 400

    def test_deadline_equal_to_now_rejected(self):
        with pytest.raises(InvalidDeadlineError):
            build_rejection_details("Missing documents", True, self.NOW, "a", now=self.NOW)

    def test_naive_deadline_treated_as_utc(self):
        naive = datetime(2026, 10, 25, 12, 0)

        details = build_rejection_details("Missing documents", True, naive, "a", now=self.NOW)

        assert details["resubmission_deadline"] == "2026-10-25T12:00:00+00:00"

    def test_deadline_ignored_without_resubmission(self):
        details = build_rejection_details(
            "Not eligible", False, self.NOW - timedelta(days=1), "a", now=self.NOW
        )

        assert details["allow_resubmission"] is False
        assert details["resubmission_deadline"] is None

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_reason_required(self, reason):
        with pytest.raises(RejectionReasonRequiredError):
            build_rejection_details(reason, True, None, "a", now=self.NOW)


    @pytest.mark.parametrize("allow", [True, False])
    def test_allow_resubmission_stored_as_given(self, allow):
        details = build_rejection_details("Missing documents", allow, None, "a", now=self.NOW)

        assert details["allow_resubmission"] is allow



class TestApprove:
    """Tests for approve."""

    @pytest.mark.asyncio
    async def test_approve_pending_ticket(
        self, mock_db, admin_user, pending_approval, pending_organization, side_effects
    ):
        with (
            patch(
                f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
            ),
            patch(
                f"{SERVICE}.organization_repository.get_by_email",
                AsyncMock(return_value=pending_organization),
            ) as get_org,
        ):
            result = await approve(mock_db, 7, admin_user)

        assert pending_approval.status == ApprovalStatus.APPROVED
        assert pending_approval.org_id == pending_organization.id
        assert pending_organization.status == OrganizationStatus.ACTIVE
        assert pending_organization.verification_file == "/uploads/abc.pdf"
        assert result.approval_id == 7
        assert result.organization.status == OrganizationStatus.ACTIVE
        get_org.assert_awaited_once_with(mock_db, "org@example.com", for_update=True)
        side_effects["notify_one"].assert_awaited_once()
        assert side_effects["notify_one"].await_args.args[3].title == "Organization Approved"
        side_effects["activity"].assert_awaited_once()
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_second_approval_is_not_pending(
        self, mock_db, admin_user, pending_approval, pending_organization, side_effects
    ):
        with (
            patch(
                f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
            ),
            patch(
                f"{SERVICE}.organization_repository.get_by_email",
                AsyncMock(return_value=pending_organization),
            ),
            patch(
                f"{SERVICE}.organization_repository.get_suspended_by_id",
                AsyncMock(return_value=None),
            ),
        ):
            await approve(mock_db, 7, admin_user)

            with pytest.raises(ApprovalNotPendingError) as exc_info:
                await approve(mock_db, 7, admin_user)

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_code == "APPROVAL_NOT_PENDING"
        assert mock_db.commit.await_count == 1
        assert side_effects["notify_one"].await_count == 1

    @pytest.mark.asyncio
    async def test_approve_unknown_id(self, mock_db, admin_user, side_effects):
        with (
            patch(f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=None)),
            patch(
                f"{SERVICE}.organization_repository.get_suspended_by_id",
                AsyncMock(return_value=None),
            ),
        ):
            with pytest.raises(ApprovalNotFoundError):
                await approve(mock_db, 99, admin_user)

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_approve_missing_organization(
        self, mock_db, admin_user, pending_approval, side_effects
    ):
        with (
            patch(
                f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
            ),
            patch(
                f"{SERVICE}.organization_repository.get_by_email", AsyncMock(return_value=None)
            ),
        ):
            with pytest.raises(OrganizationNotFoundError):
                await approve(mock_db, 7, admin_user)

        assert pending_approval.status == ApprovalStatus.PENDING
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reapprove_suspended_organization(
        self, mock_db, admin_user, suspended_organization, side_effects
    ):
        with (
            patch(f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=None)),
            patch(
                f"{SERVICE}.organization_repository.get_suspended_by_id",
                AsyncMock(return_value=suspended_organization),
            ),
        ):
            result = await approve(mock_db, 3, admin_user)

        assert suspended_organization.status == OrganizationStatus.ACTIVE
        assert result.approval_id is None
        assert result.organization.id == 3
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_kind_restricts_lookup(
        self, mock_db, admin_user, suspended_organization, side_effects
    ):
        get_by_id = AsyncMock()
        with (
            patch(f"{SERVICE}.repository.get_by_id", get_by_id),
            patch(
                f"{SERVICE}.organization_repository.get_suspended_by_id",
                AsyncMock(return_value=suspended_organization),
            ),
        ):
            await approve(mock_db, 3, admin_user, kind=QueueItemKind.SUSPENDED_ORGANIZATION)

        get_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_decided_ticket_shadows_suspended_organization_with_same_id(
        self, mock_db, admin_user, pending_approval, suspended_organization, side_effects
    ):
        """Ticket 7 is already approved; organization 7 is a different, suspended one."""
        pending_approval.status = ApprovalStatus.APPROVED
        suspended_organization.id = 7
        get_suspended = AsyncMock(return_value=suspended_organization)
        with (
            patch(
                f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
            ),
            patch(f"{SERVICE}.organization_repository.get_suspended_by_id", get_suspended),
        ):
            with pytest.raises(ApprovalNotPendingError) as exc_info:
                await approve(mock_db, 7, admin_user)

        assert exc_info.value.error_code == "APPROVAL_NOT_PENDING"
        get_suspended.assert_not_awaited()
        assert suspended_organization.status == OrganizationStatus.SUSPENDED
        side_effects["notify_one"].assert_not_awaited()
        mock_db.commit.assert_not_awaited()


class TestReject:
    """Tests for reject."""

    @pytest.mark.asyncio
    async def test_reject_with_future_deadline(
        self, mock_db, admin_user, pending_approval, pending_organization, side_effects
    ):
        deadline = datetime.now(UTC) + timedelta(days=7)
        with (
            patch(
                f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
            ),
            patch(
                f"{SERVICE}.organization_repository.get_by_email",
                AsyncMock(return_value=pending_organization),
            ),
        ):
            result = await reject(
                mock_db, 7, admin_user, "Missing documents", True, deadline
            )

        assert pending_approval.status == ApprovalStatus.REJECTED
        assert pending_approval.rejection_details["reason"] == "Missing documents"
        assert pending_approval.rejection_details["rejected_by"] == "admin@au.edu"
        assert pending_approval.rejection_details["resubmission_deadline"] == deadline.isoformat()
        assert result.message == "Organization rejected with feedback provided"
        assert result.rejection_details == pending_approval.rejection_details
        assert side_effects["notify_one"].await_args.args[3].title == "Application Rejected"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reject_with_past_deadline(
        self, mock_db, admin_user, pending_approval, side_effects
    ):
        with patch(
            f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
        ):
            with pytest.raises(InvalidDeadlineError):
                await reject(
                    mock_db,
                    7,
                    admin_user,
                    "Missing documents",
                    True,
                    datetime.now(UTC) - timedelta(days=1),
                )

        assert pending_approval.status == ApprovalStatus.PENDING
        assert pending_approval.rejection_details is None
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, mock_db, admin_user, side_effects):
        get_by_id = AsyncMock()
        with patch(f"{SERVICE}.repository.get_by_id", get_by_id):
            with pytest.raises(RejectionReasonRequiredError):
                await reject(mock_db, 7, admin_user, "   ")

        get_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reject_suspended_organization_deactivates(
        self, mock_db, admin_user, suspended_organization, side_effects
    ):
        with (
            patch(f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=None)),
            patch(
                f"{SERVICE}.organization_repository.get_suspended_by_id",
                AsyncMock(return_value=suspended_organization),
            ),
        ):
            result = await reject(mock_db, 3, admin_user, "Repeated violations")

        assert suspended_organization.status == OrganizationStatus.INACTIVE
        assert result.message == "Suspended organization rejected and deactivated"
        assert result.rejection_details is None
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_rejected_ticket_shadows_suspended_organization_with_same_id(
        self, mock_db, admin_user, pending_approval, suspended_organization, side_effects
    ):
        pending_approval.status = ApprovalStatus.REJECTED
        suspended_organization.id = 7
        get_suspended = AsyncMock(return_value=suspended_organization)
        with (
            patch(
                f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
            ),
            patch(f"{SERVICE}.organization_repository.get_suspended_by_id", get_suspended),
        ):
            with pytest.raises(ApprovalNotPendingError):
                await reject(mock_db, 7, admin_user, "Repeated violations")

        get_suspended.assert_not_awaited()
        assert suspended_organization.status == OrganizationStatus.SUSPENDED
        mock_db.commit.assert_not_awaited()


class TestResubmit:
    """Tests for resubmit."""

    @pytest.mark.asyncio
    async def test_rejected_ticket_returns_to_pending_and_keeps_feedback(
        self, mock_db, pending_approval
    ):
        pending_approval.status = ApprovalStatus.REJECTED
        pending_approval.rejection_details = {
            "reason": "Missing documents",
            "allow_resubmission": True,
            "resubmission_deadline": None,
            "rejected_at": "2026-10-10T10:00:00+00:00",
            "rejected_by": "admin@au.edu",
        }

        with patch(
            f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
        ):
            result = await resubmit(
                mock_db, 7, "ORG@example.com", {"description": "Now with documents"}
            )

        assert result.status == ApprovalStatus.PENDING
        assert result.rejection_details["reason"] == "Missing documents"
        assert result.registration_data["description"] == "Now with documents"
        assert result.registration_data["president"] == "Jane Doe"
        mock_db.commit.assert_awaited_once()
        mock_db.refresh.assert_awaited_once_with(pending_approval)

    @pytest.mark.asyncio
    async def test_pending_ticket_can_be_updated(self, mock_db, pending_approval):
        with patch(
            f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
        ):
            result = await resubmit(mock_db, 7, "org@example.com", {"members": "40"})

        assert result.status == ApprovalStatus.PENDING
        assert result.registration_data["members"] == 40

    @pytest.mark.asyncio
    async def test_approved_ticket_cannot_be_resubmitted(self, mock_db, pending_approval):
        pending_approval.status = ApprovalStatus.APPROVED
        with patch(
            f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
        ):
            with pytest.raises(InvalidApprovalStateError):
                await resubmit(mock_db, 7, "org@example.com", {"description": "x"})

        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_other_applicant_forbidden(self, mock_db, pending_approval):
        with patch(
            f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
        ):
            with pytest.raises(NotApplicationOwnerError) as exc_info:
                await resubmit(mock_db, 7, "someone@else.org", {"description": "x"})

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_email_required(self, mock_db, pending_approval):
        with patch(
            f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
        ):
            with pytest.raises(EmailRequiredError):
                await resubmit(mock_db, 7, None, {})

    @pytest.mark.asyncio
    async def test_unknown_ticket(self, mock_db):
        with patch(f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=None)):
            with pytest.raises(ApprovalNotFoundError):
                await resubmit(mock_db, 404, "org@example.com", {})

    @pytest.mark.asyncio
    async def test_invalid_members(self, mock_db, pending_approval):
        with patch(
            f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
        ):
            with pytest.raises(InvalidRegistrationDataError):
                await resubmit(mock_db, 7, "org@example.com", {"members": "lots"})

    @pytest.mark.asyncio
    async def test_wrongly_typed_field_refused_before_anything_changes(
        self, mock_db, pending_approval
    ):
        with patch(
            f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
        ):
            with pytest.raises(InvalidRegistrationDataError) as exc_info:
                await resubmit(mock_db, 7, "org@example.com", {"website": {}})

        assert exc_info.value.error_code == "INVALID_REGISTRATION_DATA"
        assert exc_info.value.message.startswith("website:")
        assert pending_approval.registration_data["website"] is None
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_bad_file_refused_without_touching_ticket(self, mock_db, pending_approval):
        pending_approval.status = ApprovalStatus.REJECTED
        with (
            patch(
                f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
            ),
            patch(
                f"{SERVICE}.settings_service.get_max_file_size",
                AsyncMock(return_value=5 * 1024 * 1024),
            ),
            patch(f"{SERVICE}.store_verification_file", AsyncMock()) as store,
        ):
            with pytest.raises(InvalidVerificationFileError):
                await resubmit(
                    mock_db,
                    7,
                    "org@example.com",
                    {"description": "x"},
                    _upload("application/x-msdownload"),
                )

        store.assert_not_awaited()
        assert pending_approval.status == ApprovalStatus.REJECTED
        assert pending_approval.registration_data["description"] == "We play chess"
        mock_db.commit.assert_not_awaited()


class TestParseRegistrationUpdates:
    """Tests for resubmitted registration field checks."""

    def test_only_sent_keys_returned(self):
        updates = parse_registration_updates(
            {"description": "Charter attached", "members": "30", "website": None}
        )

        assert updates == {"description": "Charter attached", "members": 30, "website": None}

    def test_social_media_links(self):
        updates = parse_registration_updates({"social_media": {"instagram": "@chess"}})

        assert updates == {"social_media": {"instagram": "@chess"}}

    def test_empty(self):
        assert parse_registration_updates(None) == {}
        assert parse_registration_updates({}) == {}

    @pytest.mark.parametrize(
        "raw",
        [
            {"status": "approved"},
            {"password": "hunter22"},
            {"website": {}},
            {"name": ["Chess Society"]},
            {"name": ""},
            {"name": None},
            {"members": -1},
            {"members": 2.5},
            {"social_media": {"instagram": 5}},
        ],
    )
    def test_refused(self, raw):
        with pytest.raises(InvalidRegistrationDataError) as exc_info:
            parse_registration_updates(raw)

        assert exc_info.value.status_code == 400


class TestRejectThenResubmit:
    """Reject with feedback, then the applicant resubmits."""

    @pytest.mark.asyncio
    async def test_feedback_survives_resubmission(
        self, mock_db, admin_user, pending_approval, pending_organization, side_effects
    ):
        deadline = datetime.now(UTC) + timedelta(days=7)
        with (
            patch(
                f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=pending_approval)
            ),
            patch(
                f"{SERVICE}.organization_repository.get_by_email",
                AsyncMock(return_value=pending_organization),
            ),
        ):
            await reject(mock_db, 7, admin_user, "Missing documents", True, deadline)
            assert pending_approval.status == ApprovalStatus.REJECTED

            await resubmit(
                mock_db, 7, "org@example.com", {"description": "Charter attached"}
            )

        assert pending_approval.status == ApprovalStatus.PENDING
        assert pending_approval.rejection_details["reason"] == "Missing documents"


class TestSuspendOrganization:
    """Tests for suspend_organization."""

    @pytest.mark.asyncio
    async def test_suspend_active_organization(
        self, mock_db, admin_user, active_organization, side_effects
    ):
        with (
            patch(
                f"{SERVICE}.organization_repository.get_by_id",
                AsyncMock(return_value=active_organization),
            ),
            patch(
                f"{SERVICE}.student_repository.get_active_follower_ids",
                AsyncMock(return_value=[10, 11]),
            ),
        ):
            result = await suspend_organization(mock_db, 3, admin_user, "  ")

        assert active_organization.status == OrganizationStatus.SUSPENDED
        assert result.organization.status == OrganizationStatus.SUSPENDED
        notify_many = side_effects["notify_many"]
        assert notify_many.await_args.args[2] == [10, 11]
        assert notify_many.await_args.args[3].data["reason"] == "No reason provided"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_suspend_pending_organization_refused(
        self, mock_db, admin_user, pending_organization, side_effects
    ):
        with patch(
            f"{SERVICE}.organization_repository.get_by_id",
            AsyncMock(return_value=pending_organization),
        ):
            with pytest.raises(InvalidOrganizationStateError):
                await suspend_organization(mock_db, 3, admin_user, "Spam")

        assert pending_organization.status == OrganizationStatus.PENDING
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_suspend_unknown_organization(self, mock_db, admin_user, side_effects):
        with patch(
            f"{SERVICE}.organization_repository.get_by_id", AsyncMock(return_value=None)
        ):
            with pytest.raises(OrganizationNotFoundError):
                await suspend_organization(mock_db, 3, admin_user, "Spam")

    @pytest.mark.asyncio
    async def test_activity_recorded_before_notifications(
        self, mock_db, admin_user, active_organization, call_order
    ):
        with (
            patch(
                f"{SERVICE}.organization_repository.get_by_id",
                AsyncMock(return_value=active_organization),
            ),
            patch(
                f"{SERVICE}.student_repository.get_active_follower_ids",
                AsyncMock(return_value=[10]),
            ),
        ):
            await suspend_organization(mock_db, 3, admin_user, "Spam")

        assert call_order == ["activity", "notify_one", "notify_many"]


class TestSuspendStudent:
    """Tests for suspend_student."""

    @pytest.fixture
    def active_student(self):
        student = MagicMock(spec=Student)
        student.id = 10
        student.name = "Ama Mensah"
        student.email = "u1234567@au.edu"
        student.status = StudentStatus.ACTIVE
        student.followed_orgs = [3]
        return student

    @pytest.mark.asyncio
    async def test_suspend_student(self, mock_db, admin_user, active_student, call_order):
        with patch(
            f"{SERVICE}.student_repository.get_by_id",
            AsyncMock(return_value=active_student),
        ) as get_student:
            result = await suspend_student(mock_db, 10, admin_user, "Harassment")

        get_student.assert_awaited_once_with(mock_db, 10, for_update=True)
        assert active_student.status == StudentStatus.SUSPENDED
        assert result.student.status == "suspended"
        assert call_order == ["activity", "notify_one", "notify_many"]
        mock_db.commit.assert_awaited_once()


class TestSubmitRegistration:
    """Tests for submit_registration."""

    @pytest.mark.asyncio
    async def test_registration_closed(self, mock_db, mock_redis, registration_form):
        with patch(
            f"{SERVICE}.settings_service.is_registration_allowed",
            AsyncMock(return_value=False),
        ):
            with pytest.raises(RegistrationClosedError) as exc_info:
                await submit_registration(mock_db, mock_redis, registration_form)

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_creates_organization_and_ticket(
        self,
        mock_db,
        mock_redis,
        registration_form,
        pending_organization,
        pending_approval,
        side_effects,
    ):
        with (
            patch(
                f"{SERVICE}.settings_service.is_registration_allowed",
                AsyncMock(return_value=True),
            ),
            patch(
                f"{SERVICE}.verification_service.validate_registration_email",
                AsyncMock(),
            ) as validate,
            patch(
                f"{SERVICE}.verification_service.consume_for_registration",
                AsyncMock(),
            ) as consume,
            patch(f"{SERVICE}.hash_password", return_value="hashed"),
            patch(
                f"{SERVICE}.organization_repository.create",
                AsyncMock(return_value=pending_organization),
            ) as create_org,
            patch(
                f"{SERVICE}.repository.create", AsyncMock(return_value=pending_approval)
            ) as create_ticket,
        ):
            result = await submit_registration(mock_db, mock_redis, registration_form)

        assert result is pending_approval
        validate.assert_awaited_once_with(mock_db, "org@example.com")
        consume.assert_awaited_once_with(mock_redis, "org@example.com", "123456")

        org_kwargs = create_org.await_args.kwargs
        assert org_kwargs["email"] == "org@example.com"
        assert org_kwargs["password_hash"] == "hashed"
        assert org_kwargs["email_verified"] is True

        ticket_kwargs = create_ticket.await_args.kwargs
        assert ticket_kwargs["org_id"] == pending_organization.id
        assert ticket_kwargs["applicant"] == "Jane Doe"
        assert "password" not in ticket_kwargs["registration_data"]
        assert ticket_kwargs["registration_data"]["social_media"] == {}

        side_effects["activity"].assert_awaited_once()
        mock_db.commit.assert_awaited_once()

    @pytest.fixture
    def registration_open(self):
        with (
            patch(
                f"{SERVICE}.settings_service.is_registration_allowed",
                AsyncMock(return_value=True),
            ),
            patch(
                f"{SERVICE}.settings_service.get_max_file_size",
                AsyncMock(return_value=5 * 1024 * 1024),
            ),
            patch(f"{SERVICE}.verification_service.validate_registration_email", AsyncMock()),
        ):
            yield

    @pytest.mark.asyncio
    async def test_bad_file_keeps_code_redeemable(
        self, mock_db, mock_redis, registration_form, registration_open, side_effects
    ):
        with (
            patch(
                f"{SERVICE}.verification_service.consume_for_registration", AsyncMock()
            ) as consume,
            patch(f"{SERVICE}.organization_repository.create", AsyncMock()) as create_org,
        ):
            with pytest.raises(InvalidVerificationFileError) as exc_info:
                await submit_registration(
                    mock_db,
                    mock_redis,
                    registration_form,
                    _upload("application/x-msdownload"),
                )

        assert exc_info.value.error_code == "INVALID_FILE"
        consume.assert_not_awaited()
        mock_redis.delete.assert_not_awaited()
        create_org.assert_not_awaited()
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_oversized_file_keeps_code_redeemable(
        self, mock_db, mock_redis, registration_form, registration_open, side_effects
    ):
        with (
            patch(
                f"{SERVICE}.settings_service.get_max_file_size", AsyncMock(return_value=4)
            ),
            patch(
                f"{SERVICE}.verification_service.consume_for_registration", AsyncMock()
            ) as consume,
        ):
            with pytest.raises(InvalidVerificationFileError):
                await submit_registration(
                    mock_db, mock_redis, registration_form, _upload("application/pdf")
                )

        consume.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_file_checked_then_code_redeemed_then_file_stored(
        self,
        mock_db,
        mock_redis,
        registration_form,
        registration_open,
        pending_organization,
        pending_approval,
        side_effects,
    ):
        order = []
        stored = {"filename": "verification-1.pdf", "url": "/uploads/verification/v.pdf"}
        upload = _upload("application/pdf")
        upload.read.side_effect = lambda: order.append("read") or b"%PDF-1.4"
        with (
            patch(
                f"{SERVICE}.verification_service.consume_for_registration",
                AsyncMock(side_effect=lambda *a: order.append("consume")),
            ),
            patch(
                f"{SERVICE}.store_verification_file",
                AsyncMock(side_effect=lambda *a: order.append("store") or stored),
            ) as store,
            patch(f"{SERVICE}.hash_password", return_value="hashed"),
            patch(
                f"{SERVICE}.organization_repository.create",
                AsyncMock(return_value=pending_organization),
            ) as create_org,
            patch(
                f"{SERVICE}.repository.create", AsyncMock(return_value=pending_approval)
            ) as create_ticket,
        ):
            await submit_registration(mock_db, mock_redis, registration_form, upload)

        assert order == ["read", "consume", "store"]
        store.assert_awaited_once_with(upload, b"%PDF-1.4")
        assert create_org.await_args.kwargs["verification_file"] == stored["url"]
        assert create_ticket.await_args.kwargs["verification_file"] == stored


class TestGetMyApplication:
    """Tests for get_my_application."""

    @pytest.mark.asyncio
    async def test_falls_back_to_organization(self, mock_db, active_organization):
        user = CurrentUser(id=3, email="org@example.com", role=PrincipalRole.ORGANIZATION)
        with (
            patch(f"{SERVICE}.repository.get_by_email", AsyncMock(return_value=None)),
            patch(
                f"{SERVICE}.organization_repository.get_by_email",
                AsyncMock(return_value=active_organization),
            ),
        ):
            result = await get_my_application(mock_db, user)

        assert result is active_organization

    @pytest.mark.asyncio
    async def test_nothing_found(self, mock_db):
        user = CurrentUser(id=3, email="org@example.com", role=PrincipalRole.ORGANIZATION)
        with (
            patch(f"{SERVICE}.repository.get_by_email", AsyncMock(return_value=None)),
            patch(
                f"{SERVICE}.organization_repository.get_by_email", AsyncMock(return_value=None)
            ),
        ):
            with pytest.raises(ApplicationNotFoundError):
                await get_my_application(mock_db, user)
