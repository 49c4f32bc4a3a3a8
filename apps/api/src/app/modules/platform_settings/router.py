"""
Platform Settings Router

Endpoints:
- GET /settings - Current settings (admin)
- PUT /settings - Update settings (admin)
- GET /settings/registration-status - Public: is registration open
- GET /settings/maintenance-status - Public: is maintenance mode on
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_admin_user
from app.core.database import get_db
from app.modules.platform_settings import service
from app.modules.platform_settings.schemas import (
    MaintenanceStatusResponse,
    PlatformSettingsResponse,
    PlatformSettingsUpdate,
    RegistrationStatusResponse,
    SettingsEnvelope,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=SettingsEnvelope, summary="Get Platform Settings")
async def get_settings(
    db: AsyncSession = Depends(get_db),
    _admin: CurrentUser = Depends(get_current_admin_user),
) -> SettingsEnvelope:
    settings_row = await service.get_platform_settings(db)
    await db.commit()
    return SettingsEnvelope(settings=PlatformSettingsResponse.model_validate(settings_row))


@router.put("", response_model=SettingsEnvelope, summary="Update Platform Settings")
async def update_settings(
    data: PlatformSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(get_current_admin_user),
) -> SettingsEnvelope:
    settings_row = await service.update_platform_settings(db, data, admin.email)
    return SettingsEnvelope(
        message="Settings updated successfully",
        settings=PlatformSettingsResponse.model_validate(settings_row),
    )


@router.get("/registration-status", response_model=RegistrationStatusResponse)
async def registration_status(db: AsyncSession = Depends(get_db)) -> RegistrationStatusResponse:
    return RegistrationStatusResponse(
        allow_registration=await service.is_registration_allowed(db)
    )


@router.get("/maintenance-status", response_model=MaintenanceStatusResponse)
async def maintenance_status(db: AsyncSession = Depends(get_db)) -> MaintenanceStatusResponse:
    return MaintenanceStatusResponse(maintenance_mode=await service.is_maintenance_mode(db))
