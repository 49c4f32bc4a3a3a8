"""
Unit tests for platform settings helpers.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from app.modules.platform_settings.models import DEFAULT_MAX_FILE_SIZE, PlatformSettings
from app.modules.platform_settings.schemas import PlatformSettingsUpdate
from app.modules.platform_settings.service import (
    get_max_file_size,
    is_maintenance_mode,
    is_registration_allowed,
    update_platform_settings,
)

GET_OR_CREATE = "app.modules.platform_settings.service.repository.get_or_create"


def _settings_row(**overrides) -> PlatformSettings:
    row = MagicMock(spec=PlatformSettings)
    row.allow_registration = True
    row.maintenance_mode = False
    row.max_file_size = 10 * 1024 * 1024
    for key, value in overrides.items():
        setattr(row, key, value)
    return row


class TestIsRegistrationAllowed:
    @pytest.mark.asyncio
    async def test_open(self):
        with patch(GET_OR_CREATE, AsyncMock(return_value=_settings_row())):
            assert await is_registration_allowed(AsyncMock()) is True

    @pytest.mark.asyncio
    async def test_closed_by_toggle(self):
        with patch(GET_OR_CREATE, AsyncMock(return_value=_settings_row(allow_registration=False))):
            assert await is_registration_allowed(AsyncMock()) is False

    @pytest.mark.asyncio
    async def test_closed_during_maintenance(self):
        with patch(GET_OR_CREATE, AsyncMock(return_value=_settings_row(maintenance_mode=True))):
            assert await is_registration_allowed(AsyncMock()) is False

    @pytest.mark.asyncio
    async def test_read_failure_closes_registration(self):
        with patch(GET_OR_CREATE, AsyncMock(side_effect=RuntimeError("db down"))):
            assert await is_registration_allowed(AsyncMock()) is False


class TestOtherHelpers:
    @pytest.mark.asyncio
    async def test_maintenance_read_failure(self):
        with patch(GET_OR_CREATE, AsyncMock(side_effect=RuntimeError("db down"))):
            assert await is_maintenance_mode(AsyncMock()) is False

    @pytest.mark.asyncio
    async def test_max_file_size(self):
        with patch(GET_OR_CREATE, AsyncMock(return_value=_settings_row())):
            assert await get_max_file_size(AsyncMock()) == 10 * 1024 * 1024

    @pytest.mark.asyncio
    async def test_max_file_size_default_on_failure(self):
        with patch(GET_OR_CREATE, AsyncMock(side_effect=RuntimeError("db down"))):
            assert await get_max_file_size(AsyncMock()) == DEFAULT_MAX_FILE_SIZE


class TestUpdate:
    @pytest.mark.asyncio
    async def test_only_supplied_fields_change(self):
        db = AsyncMock()
        with patch(
            "app.modules.platform_settings.service.repository.update",
            AsyncMock(return_value=_settings_row()),
        ) as update:
            await update_platform_settings(
                db, PlatformSettingsUpdate(maintenance_mode=True), "admin@au.edu"
            )

        update.assert_awaited_once_with(db, {"maintenance_mode": True}, "admin@au.edu")

    def test_file_size_bounds(self):
        with pytest.raises(ValidationError):
            PlatformSettingsUpdate(max_file_size=1024)
        with pytest.raises(ValidationError):
            PlatformSettingsUpdate(max_file_size=100 * 1024 * 1024)
