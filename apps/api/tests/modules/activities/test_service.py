"""
Unit tests for the activity service.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.modules.activities.models import ActivityType
from app.modules.activities.service import (
    get_activity_stats,
    record_activity,
    record_activity_safely,
)

REPOSITORY = "app.modules.activities.service.repository"


@pytest.fixture
def mock_db():
    db = AsyncMock()
    savepoint = MagicMock()
    savepoint.__aenter__ = AsyncMock(return_value=None)
    savepoint.__aexit__ = AsyncMock(return_value=False)
    db.begin_nested = MagicMock(return_value=savepoint)
    return db


class TestRecordActivity:
    @pytest.mark.asyncio
    async def test_metadata_stored_as_details(self, mock_db):
        with patch(f"{REPOSITORY}.create", new_callable=AsyncMock) as create:
            await record_activity(
                mock_db,
                ActivityType.ORGANIZATION_APPROVED,
                "Organization Approved",
                "Chess Society was approved",
                organization_id=3,
                metadata={"approval_id": 7},
            )

        kwargs = create.await_args.kwargs
        assert kwargs["type"] == ActivityType.ORGANIZATION_APPROVED
        assert kwargs["organization_id"] == 3
        assert kwargs["details"] == {"approval_id": 7}

    @pytest.mark.asyncio
    async def test_safely_uses_savepoint(self, mock_db):
        with patch(f"{REPOSITORY}.create", AsyncMock(return_value="row")):
            result = await record_activity_safely(
                mock_db, ActivityType.EVENT_CREATION, "New Event Created", "..."
            )

        assert result == "row"
        mock_db.begin_nested.assert_called_once()

    @pytest.mark.asyncio
    async def test_safely_swallows_insert_failure(self, mock_db):
        with patch(f"{REPOSITORY}.create", AsyncMock(side_effect=RuntimeError("constraint"))):
            result = await record_activity_safely(
                mock_db, ActivityType.EVENT_CREATION, "New Event Created", "..."
            )

        assert result is None


class TestActivityStats:
    @pytest.mark.asyncio
    async def test_stats_shape(self, mock_db):
        with (
            patch(f"{REPOSITORY}.count_all", AsyncMock(return_value=12)),
            patch(
                f"{REPOSITORY}.count_by_type",
                AsyncMock(return_value={"event_creation": 8, "organization_approved": 4}),
            ),
            patch(f"{REPOSITORY}.count_since", AsyncMock(return_value=3)) as count_since,
        ):
            stats = await get_activity_stats(mock_db)

        assert stats == {
            "total_activities": 12,
            "activities_by_type": {"event_creation": 8, "organization_approved": 4},
            "recent_activity_count": 3,
        }
        count_since.assert_awaited_once()
