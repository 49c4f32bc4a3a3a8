"""
Notification Schemas
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.modules.notifications.models import NotificationType


class RegisterTokenRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=4096, description="FCM registration token")


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    body: str
    type: NotificationType
    data: dict[str, Any]
    read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    success: bool = True
    notifications: list[NotificationResponse]


class MessageResponse(BaseModel):
    success: bool = True
    message: str
