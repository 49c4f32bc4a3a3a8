"""
Organization Schemas
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from app.modules.organizations.models import OrganizationStatus


class OrganizationResponse(BaseModel):
    """Public organization profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    type: str
    description: str
    president: str | None = None
    founded: str | None = None
    website: str | None = None
    members: int
    followers: int
    social_media: dict[str, Any]
    status: OrganizationStatus
    created_at: datetime


class OrganizationListResponse(BaseModel):
    success: bool = True
    data: list[OrganizationResponse]


class OrganizationEnvelope(BaseModel):
    success: bool = True
    organization: OrganizationResponse


class FollowResponse(BaseModel):
    success: bool = True
    message: str
    followers: int
