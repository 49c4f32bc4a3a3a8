"""
Activities Router

Admin dashboard feed over the audit log.

Endpoints:
- GET /activities/recent - Latest activities
- GET /activities/by-type/{type} - Latest activities of one type
- GET /activities/stats - Totals by type and for the last 24 hours
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user
from app.core.database import get_db
from app.modules.activities import service
from app.modules.activities.models import ActivityType
from app.modules.activities.schemas import (
    ActivityListResponse,
    ActivityResponse,
    ActivityStats,
    ActivityStatsResponse,
)

router = APIRouter()


@router.get("/recent", response_model=ActivityListResponse, summary="Recent Activities")
async def recent_activities(
    limit: int = Query(service.DEFAULT_LIMIT, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin_user),
) -> ActivityListResponse:
    activities = await service.get_recent_activities(db, limit)
    return ActivityListResponse(
        activities=[ActivityResponse.model_validate(a) for a in activities]
    )


@router.get(
    "/by-type/{activity_type}",
    response_model=ActivityListResponse,
    summary="Activities by Type",
)
async def activities_by_type(
    activity_type: ActivityType,
    limit: int = Query(service.DEFAULT_LIMIT, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin_user),
) -> ActivityListResponse:
    activities = await service.get_activities_by_type(db, activity_type, limit)
    return ActivityListResponse(
        activities=[ActivityResponse.model_validate(a) for a in activities]
    )


@router.get("/stats", response_model=ActivityStatsResponse, summary="Activity Statistics")
async def activity_stats(
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin_user),
) -> ActivityStatsResponse:
    stats = await service.get_activity_stats(db)
    return ActivityStatsResponse(stats=ActivityStats(**stats))
