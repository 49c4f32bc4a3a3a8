"""
Platform Settings Schemas
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.modules.platform_settings.models import MAX_FILE_SIZE, MIN_FILE_SIZE


class PlatformSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    platform_name: str
    allow_registration: bool
    require_approval: bool
    email_notifications: bool
    maintenance_mode: bool
    max_file_size: int
    updated_by: str | None = None
    updated_at: datetime | None = None


class PlatformSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their current value."""

    platform_name: str | None = Field(None, min_length=1, max_length=100)
    allow_registration: bool | None = None
    require_approval: bool | None = None
    email_notifications: bool | None = None
    maintenance_mode: bool | None = None
    max_file_size: int | None = Field(
        None,
        ge=MIN_FILE_SIZE,
        le=MAX_FILE_SIZE,
        description="Maximum upload size in bytes (1MB - 50MB)",
    )


class SettingsEnvelope(BaseModel):
    success: bool = True
    message: str | None = None
    settings: PlatformSettingsResponse


class RegistrationStatusResponse(BaseModel):
    success: bool = True
    allow_registration: bool


class MaintenanceStatusResponse(BaseModel):
    success: bool = True
    maintenance_mode: bool
