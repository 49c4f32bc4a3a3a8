"""
Notifications Router

Endpoints (any authenticated principal):
- POST /notifications/register-token - Store the caller's FCM token
- GET /notifications - The caller's latest notifications
- PUT /notifications/read-all - Mark all of the caller's notifications read
- PUT /notifications/{id}/read - Mark one notification read
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_user
from app.core.database import get_db
from app.modules.notifications import service
from app.modules.notifications.schemas import (
    MessageResponse,
    NotificationListResponse,
    NotificationResponse,
    RegisterTokenRequest,
)
from app.modules.notifications.service import NotificationServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


def _handle_service_error(e: NotificationServiceError) -> None:
    raise HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    ) from e


@router.post("/register-token", response_model=MessageResponse, summary="Register Push Token")
async def register_token(
    data: RegisterTokenRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    await service.register_push_token(db, user, data.token)
    return MessageResponse(message="Push token registered successfully")


@router.get("", response_model=NotificationListResponse, summary="List My Notifications")
async def list_notifications(
    limit: int = Query(service.DEFAULT_FEED_LIMIT, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> NotificationListResponse:
    notifications = await service.get_user_notifications(db, user, limit)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications]
    )


@router.put("/read-all", response_model=MessageResponse, summary="Mark All Read")
async def mark_all_read(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    count = await service.mark_all_as_read(db, user)
    return MessageResponse(message=f"{count} notifications marked as read")


@router.put("/{notification_id}/read", response_model=MessageResponse, summary="Mark Read")
async def mark_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    try:
        await service.mark_as_read(db, user, notification_id)
    except NotificationServiceError as e:
        _handle_service_error(e)
    return MessageResponse(message="Notification marked as read")
