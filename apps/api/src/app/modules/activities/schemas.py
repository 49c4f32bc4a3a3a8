"""
Activity Schemas
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.modules.activities.models import ActivityType


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: ActivityType
    title: str
    description: str
    user_id: int | None = None
    user_name: str | None = None
    user_email: str | None = None
    organization_id: int | None = None
    organization_name: str | None = None
    event_id: int | None = None
    event_title: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="details")
    created_at: datetime


class ActivityListResponse(BaseModel):
    success: bool = True
    activities: list[ActivityResponse]


class ActivityStats(BaseModel):
    total_activities: int = Field(..., description="All recorded activities")
    activities_by_type: dict[str, int]
    recent_activity_count: int = Field(..., description="Activities in the last 24 hours")


class ActivityStatsResponse(BaseModel):
    success: bool = True
    stats: ActivityStats
