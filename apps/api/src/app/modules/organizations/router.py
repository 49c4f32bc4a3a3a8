"""
Organizations Router

Endpoints:
- GET /organizations - Active organizations
- GET /organizations/my-application/status - Calling organization's application
- GET /organizations/{id} - Organization profile
- POST /organizations/{id}/follow - Follow (students)
- DELETE /organizations/{id}/follow - Unfollow (students)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_organization, get_current_student
from app.core.database import get_db
from app.modules.approvals import service as approval_service
from app.modules.approvals.models import PendingApproval
from app.modules.approvals.queue import approval_to_response, organization_to_response
from app.modules.approvals.schemas import ApprovalEnvelope
from app.modules.approvals.service import ApprovalServiceError
from app.modules.organizations import service
from app.modules.organizations.schemas import (
    FollowResponse,
    OrganizationEnvelope,
    OrganizationListResponse,
    OrganizationResponse,
)
from app.modules.organizations.service import OrganizationServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


def _handle_service_error(e: OrganizationServiceError) -> None:
    raise HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    ) from e


@router.get("", response_model=OrganizationListResponse, summary="List Organizations")
async def list_organizations(db: AsyncSession = Depends(get_db)) -> OrganizationListResponse:
    organizations = await service.list_organizations(db)
    return OrganizationListResponse(
        data=[OrganizationResponse.model_validate(o) for o in organizations]
    )


# Declared before /{organization_id} so the literal path wins
@router.get(
    "/my-application/status",
    response_model=ApprovalEnvelope,
    summary="My Application Status",
    description="""
The calling organization's registration ticket, including any rejection
feedback. Organizations without a ticket get their organization record in
the same shape (`active` shown as `approved`).
""",
)
async def my_application_status(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_organization),
) -> ApprovalEnvelope:
    try:
        record = await approval_service.get_my_application(db, user)
    except ApprovalServiceError as e:
        raise HTTPException(
            status_code=e.status_code,
            detail={"error": e.error_code, "message": e.message},
        ) from e

    if isinstance(record, PendingApproval):
        return ApprovalEnvelope(approval=approval_to_response(record))
    return ApprovalEnvelope(approval=organization_to_response(record))


@router.get("/{organization_id}", response_model=OrganizationEnvelope, summary="Get Organization")
async def get_organization(
    organization_id: int,
    db: AsyncSession = Depends(get_db),
) -> OrganizationEnvelope:
    try:
        organization = await service.get_organization(db, organization_id)
    except OrganizationServiceError as e:
        _handle_service_error(e)
    return OrganizationEnvelope(organization=OrganizationResponse.model_validate(organization))


@router.post(
    "/{organization_id}/follow",
    response_model=FollowResponse,
    summary="Follow Organization",
)
async def follow_organization(
    organization_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> FollowResponse:
    try:
        followers = await service.follow(db, user, organization_id)
    except OrganizationServiceError as e:
        _handle_service_error(e)
    return FollowResponse(message="Successfully followed organization", followers=followers)


@router.delete(
    "/{organization_id}/follow",
    response_model=FollowResponse,
    summary="Unfollow Organization",
)
async def unfollow_organization(
    organization_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> FollowResponse:
    try:
        followers = await service.unfollow(db, user, organization_id)
    except OrganizationServiceError as e:
        _handle_service_error(e)
    return FollowResponse(message="Successfully unfollowed organization", followers=followers)
