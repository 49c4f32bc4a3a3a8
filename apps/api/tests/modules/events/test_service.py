"""
Unit tests for the event service.

These tests cover:
- Event creation (active organization only, follower fan-out)
- Joining (open, duplicate, full, capacity activity)
- Leaving
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from app.core.auth import CurrentUser, PrincipalRole
from app.modules.activities.models import ActivityType
from app.modules.events.models import EventStatus
from app.modules.events.schemas import EventCreateRequest
from app.modules.events.service import (
    AlreadyJoinedError,
    EventFullError,
    EventNotFoundError,
    EventNotOpenError,
    NotJoinedError,
    OrganizationNotActiveError,
    create_event,
    join_event,
    leave_event,
)
from app.modules.notifications.models import NotificationType, RecipientType
from app.modules.organizations.models import OrganizationStatus
from app.modules.students.models import Student

SERVICE = "app.modules.events.service"


@pytest.fixture
def side_effects():
    """Patch notification and activity side effects."""
    with (
        patch(f"{SERVICE}.enqueue_to_user", new_callable=AsyncMock) as to_user,
        patch(f"{SERVICE}.enqueue_to_users", new_callable=AsyncMock) as to_users,
        patch(f"{SERVICE}.record_activity_safely", new_callable=AsyncMock) as activity,
    ):
        yield MagicMock(to_user=to_user, to_users=to_users, activity=activity)


@pytest.fixture
def loaded(sample_event, sample_student):
    """Repository lookups return the sample event and student."""
    with (
        patch(
            f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=sample_event)
        ) as get_event,
        patch(
            f"{SERVICE}.student_repository.get_by_id", AsyncMock(return_value=sample_student)
        ) as get_student,
    ):
        yield get_event, get_student


@pytest.fixture
def create_request():
    return EventCreateRequest(
        title="  Spring Tournament ",
        date="2026-11-02",
        start_time="10:00",
        end_time="16:00",
        type="Competition",
        capacity=40,
    )


class TestEventCreateRequest:
    def test_default_capacity(self):
        request = EventCreateRequest(
            title="Open Night", date="2026-11-02", start_time="18:00", end_time="20:00", type="Social"
        )

        assert request.capacity == 100

    def test_blank_title(self):
        with pytest.raises(ValidationError):
            EventCreateRequest(
                title="   ", date="2026-11-02", start_time="18:00", end_time="20:00", type="Social"
            )

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValidationError):
            EventCreateRequest(
                title="Open Night",
                date="2026-11-02",
                start_time="18:00",
                end_time="20:00",
                type="Social",
                capacity=0,
            )


class TestCreateEvent:
    """Tests for create_event."""

    @pytest.mark.asyncio
    async def test_creates_and_notifies_followers(
        self,
        mock_db,
        organization_user,
        sample_organization,
        sample_event,
        create_request,
        side_effects,
    ):
        with (
            patch(
                f"{SERVICE}.organization_repository.get_by_id",
                AsyncMock(return_value=sample_organization),
            ),
            patch(f"{SERVICE}.repository.create", AsyncMock(return_value=sample_event)) as create,
            patch(
                f"{SERVICE}.student_repository.get_active_follower_ids",
                AsyncMock(return_value=[10, 11]),
            ),
        ):
            event = await create_event(mock_db, organization_user, create_request)

        assert event is sample_event
        kwargs = create.await_args.kwargs
        assert kwargs["org_id"] == 3
        assert kwargs["org_name"] == "Chess Society"
        assert kwargs["title"] == "Spring Tournament"
        assert kwargs["capacity"] == 40

        assert side_effects.activity.await_args.args[1] == ActivityType.EVENT_CREATION
        recipient_type, recipient_ids, payload = side_effects.to_users.await_args.args[1:]
        assert recipient_type == RecipientType.STUDENT
        assert recipient_ids == [10, 11]
        assert payload.title == "New Event Created"
        assert payload.type == NotificationType.EVENT
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status", [OrganizationStatus.PENDING, OrganizationStatus.SUSPENDED, OrganizationStatus.INACTIVE]
    )
    async def test_requires_active_organization(
        self, mock_db, organization_user, sample_organization, create_request, side_effects, status
    ):
        sample_organization.status = status
        with (
            patch(
                f"{SERVICE}.organization_repository.get_by_id",
                AsyncMock(return_value=sample_organization),
            ),
            patch(f"{SERVICE}.repository.create", new_callable=AsyncMock) as create,
        ):
            with pytest.raises(OrganizationNotActiveError) as exc_info:
                await create_event(mock_db, organization_user, create_request)

        assert exc_info.value.status_code == 403
        create.assert_not_awaited()


class TestJoinEvent:
    """Tests for join_event."""

    @pytest.mark.asyncio
    async def test_join(self, mock_db, student_user, sample_event, sample_student, loaded, side_effects):
        get_event, get_student = loaded

        event = await join_event(mock_db, student_user, 21)

        assert event.participants == [10]
        assert event.registered == 1
        assert sample_student.joined_events == [21]
        get_event.assert_awaited_once_with(mock_db, 21, for_update=True)
        get_student.assert_awaited_once_with(mock_db, 10, for_update=True)
        side_effects.activity.assert_not_awaited()

        recipient_type, recipient_id, payload = side_effects.to_user.await_args.args[1:]
        assert recipient_type == RecipientType.ORGANIZATION
        assert recipient_id == 3
        assert payload.title == "New Event Participant"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_join_twice(self, mock_db, student_user, sample_event, loaded, side_effects):
        sample_event.participants = [10]
        sample_event.registered = 1

        with pytest.raises(AlreadyJoinedError) as exc_info:
            await join_event(mock_db, student_user, 21)

        assert exc_info.value.message == "Already joined this event"
        assert sample_event.registered == 1

    @pytest.mark.asyncio
    async def test_join_full_event(self, mock_db, student_user, sample_event, loaded, side_effects):
        sample_event.participants = [30, 31]
        sample_event.registered = 2

        with pytest.raises(EventFullError) as exc_info:
            await join_event(mock_db, student_user, 21)

        assert exc_info.value.message == "Event is full"
        assert sample_event.participants == [30, 31]
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_last_seat_records_capacity_activity(
        self, mock_db, student_user, sample_event, loaded, side_effects
    ):
        sample_event.participants = [30]
        sample_event.registered = 1

        event = await join_event(mock_db, student_user, 21)

        assert event.registered == event.capacity == 2
        assert side_effects.activity.await_args.args[1] == ActivityType.EVENT_CAPACITY_REACHED

    @pytest.mark.asyncio
    async def test_join_cancelled_event(
        self, mock_db, student_user, sample_event, loaded, side_effects
    ):
        sample_event.status = EventStatus.CANCELLED

        with pytest.raises(EventNotOpenError):
            await join_event(mock_db, student_user, 21)

    @pytest.mark.asyncio
    async def test_missing_event(self, mock_db, student_user, side_effects):
        with patch(f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=None)):
            with pytest.raises(EventNotFoundError):
                await join_event(mock_db, student_user, 99)

    @pytest.mark.asyncio
    async def test_capacity_never_exceeded(self, mock_db, sample_event, side_effects):
        """More students than seats: exactly `capacity` get in."""
        students = {}
        for student_id in range(100, 105):
            student = MagicMock(spec=Student)
            student.id = student_id
            student.name = f"Student {student_id}"
            student.joined_events = []
            students[student_id] = student

        async def _get_student(db, student_id, for_update=False):
            return students[student_id]

        joined, rejected = 0, 0
        with (
            patch(f"{SERVICE}.repository.get_by_id", AsyncMock(return_value=sample_event)),
            patch(f"{SERVICE}.student_repository.get_by_id", AsyncMock(side_effect=_get_student)),
        ):
            for student_id in students:
                user = CurrentUser(id=student_id, email="s@au.edu", role=PrincipalRole.STUDENT)
                try:
                    await join_event(mock_db, user, 21)
                    joined += 1
                except EventFullError:
                    rejected += 1

        assert (joined, rejected) == (2, 3)
        assert sample_event.registered == len(sample_event.participants) == 2


class TestLeaveEvent:
    """Tests for leave_event."""

    @pytest.mark.asyncio
    async def test_leave(self, mock_db, student_user, sample_event, sample_student, loaded, side_effects):
        sample_event.participants = [30, 10]
        sample_event.registered = 2
        sample_student.joined_events = [21, 22]

        event = await leave_event(mock_db, student_user, 21)

        assert event.participants == [30]
        assert event.registered == 1
        assert sample_student.joined_events == [22]
        assert side_effects.to_user.await_args.args[3].title == "Event Participant Left"

    @pytest.mark.asyncio
    async def test_leave_not_joined(self, mock_db, student_user, sample_event, loaded, side_effects):
        with pytest.raises(NotJoinedError) as exc_info:
            await leave_event(mock_db, student_user, 21)

        assert exc_info.value.message == "Not joined this event"
        assert sample_event.registered == 0
