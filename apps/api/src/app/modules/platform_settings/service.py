"""
Platform Settings Service

Reads and updates the runtime toggles. The predicate helpers fail
closed: if settings cannot be read, registration is treated as
disallowed.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.platform_settings import repository
from app.modules.platform_settings.models import DEFAULT_MAX_FILE_SIZE, PlatformSettings
from app.modules.platform_settings.schemas import PlatformSettingsUpdate

logger = logging.getLogger(__name__)


async def get_platform_settings(db: AsyncSession) -> PlatformSettings:
    return await repository.get_or_create(db)


async def update_platform_settings(
    db: AsyncSession,
    data: PlatformSettingsUpdate,
    admin_email: str,
) -> PlatformSettings:
    changes = data.model_dump(exclude_none=True)
    updated = await repository.update(db, changes, admin_email)
    logger.info(f"Admin {admin_email} updated platform settings: {sorted(changes)}")
    return updated


async def is_registration_allowed(db: AsyncSession) -> bool:
    """Registration is open only when allowed and not in maintenance mode."""
    try:
        settings_row = await repository.get_or_create(db)
        return settings_row.allow_registration and not settings_row.maintenance_mode
    except Exception as e:
        logger.error(f"Failed to read platform settings, closing registration: {e}")
        return False


async def is_maintenance_mode(db: AsyncSession) -> bool:
    try:
        settings_row = await repository.get_or_create(db)
        return settings_row.maintenance_mode
    except Exception as e:
        logger.error(f"Failed to read platform settings: {e}")
        return False


async def get_max_file_size(db: AsyncSession) -> int:
    try:
        settings_row = await repository.get_or_create(db)
        return settings_row.max_file_size
    except Exception as e:
        logger.error(f"Failed to read platform settings, using default upload limit: {e}")
        return DEFAULT_MAX_FILE_SIZE
