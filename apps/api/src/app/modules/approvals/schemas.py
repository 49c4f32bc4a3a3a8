"""
Approval Schemas

Pydantic schemas for the admin approval surface and the applicant's
status view.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.modules.approvals.models import ApprovalType, QueueItemKind
from app.modules.organizations.models import OrganizationStatus

# ============================================
# Ticket Views
# ============================================


class ApprovalResponse(BaseModel):
    """A review ticket as shown to admins and to the applicant."""

    model_config = ConfigDict(from_attributes=True)

    approval_id: int | None = Field(None, description="Ticket id; null for organization records")
    org_id: int | None = None
    type: ApprovalType
    name: str
    applicant: str
    date: str
    status: str = Field(..., description="pending, approved, rejected (or the organization's status)")
    registration_data: dict[str, Any]
    verification_file: dict[str, Any] | None = None
    rejection_details: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime


class ApprovalQueueEntry(ApprovalResponse):
    """
    One actionable item in the admin approval queue.

    `kind` says which record `approval_id` / `organization_id` refer to;
    pass it back as the `kind` query parameter to target that record.
    """

    kind: QueueItemKind
    organization_id: int | None = None
    organization_status: OrganizationStatus | None = None


class ApprovalStats(BaseModel):
    pending: int = Field(..., description="Length of the combined queue")
    approved: int
    rejected: int


class ApprovalQueueResponse(BaseModel):
    success: bool = True
    pending_approvals: list[ApprovalQueueEntry]
    stats: ApprovalStats


class ApprovedApprovalsResponse(BaseModel):
    success: bool = True
    approved_approvals: list[ApprovalResponse]


class RejectedApprovalsResponse(BaseModel):
    success: bool = True
    rejected_approvals: list[ApprovalResponse]


class ApprovalEnvelope(BaseModel):
    success: bool = True
    approval: ApprovalResponse


class ApprovalUpdatedResponse(BaseModel):
    success: bool = True
    message: str = "Application updated successfully"
    approval: ApprovalResponse


# ============================================
# Admin Action Schemas
# ============================================


class RejectRequest(BaseModel):
    """Request body for rejecting a ticket or a suspended organization."""

    rejection_reason: str = Field(
        "",
        max_length=1000,
        description="Feedback shown to the applicant (required)",
        json_schema_extra={"example": "Missing documents"},
    )
    allow_resubmission: bool = Field(True, description="Whether the applicant may resubmit")
    resubmission_deadline: datetime | None = Field(
        None, description="Must be in the future when given"
    )


class SuspendRequest(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class OrganizationSummary(BaseModel):
    id: int
    name: str
    email: str | None = None
    status: OrganizationStatus | None = None


class StudentSummary(BaseModel):
    id: int
    name: str
    status: str


class ApproveResponse(BaseModel):
    success: bool = True
    message: str = "Organization approved successfully"
    approval_id: int | None = None
    organization: OrganizationSummary


class RejectResponse(BaseModel):
    success: bool = True
    message: str
    rejection_details: dict[str, Any] | None = None
    organization: OrganizationSummary | None = None


class SuspendOrganizationResponse(BaseModel):
    success: bool = True
    message: str = "Organization suspended successfully"
    organization: OrganizationSummary


class SuspendStudentResponse(BaseModel):
    success: bool = True
    message: str = "Student suspended successfully"
    student: StudentSummary


# ============================================
# Registration
# ============================================


class RegistrationForm(BaseModel):
    """Organization registration fields (sent as multipart form data)."""

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    org_type: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=5000)
    president: str | None = Field(None, max_length=200)
    founded: str | None = Field(None, max_length=50)
    website: str | None = Field(None, max_length=500)
    members: int = Field(0, ge=0)
    verification_code: str | None = Field(None, max_length=6)


class RegistrationDataUpdate(BaseModel):
    """
    Fields an applicant may resend on resubmission.

    Every key is optional; only the ones sent are merged into the
    snapshot. Unknown keys are refused. `email` is accepted so a full
    snapshot can be sent back, but the ticket keeps its applicant email.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(None, min_length=1, max_length=200)
    email: str | None = Field(None, max_length=255)
    org_type: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=5000)
    president: str | None = Field(None, max_length=200)
    founded: str | None = Field(None, max_length=50)
    website: str | None = Field(None, max_length=500)
    members: int | None = Field(None, ge=0)
    social_media: dict[str, str] | None = None

    @field_validator("name", "org_type", "description", "members", "social_media")
    @classmethod
    def not_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("cannot be null")
        return v


class RegistrationResponse(BaseModel):
    success: bool = True
    message: str = (
        "Organization registered successfully. Your application is now pending admin approval."
    )
    requires_approval: bool = True
    approval_id: int
