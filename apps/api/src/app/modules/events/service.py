"""
Event Service

Event creation and participation.

Join and leave lock the event row and then the student row, always in
that order. Under the event lock `registered` is rewritten from the
participant list, so `registered == len(participants)` and
`registered <= capacity` hold after every commit.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.modules.activities.models import ActivityType
from app.modules.activities.service import record_activity_safely
from app.modules.events import repository
from app.modules.events.models import Event, EventStatus
from app.modules.events.schemas import EventCreateRequest
from app.modules.notifications.models import NotificationType, RecipientType
from app.modules.notifications.service import (
    NotificationPayload,
    enqueue_to_user,
    enqueue_to_users,
)
from app.modules.organizations import repository as organization_repository
from app.modules.organizations.models import OrganizationStatus
from app.modules.students import repository as student_repository
from app.modules.students.models import Student

logger = logging.getLogger(__name__)


class EventServiceError(Exception):
    """Base exception for event service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class EventNotFoundError(EventServiceError):
    def __init__(self):
        super().__init__(message="Event not found", error_code="EVENT_NOT_FOUND", status_code=404)


class OrganizationNotActiveError(EventServiceError):
    def __init__(self):
        super().__init__(
            message="Only active organizations can create events",
            error_code="ORGANIZATION_NOT_ACTIVE",
            status_code=403,
        )


class StudentNotFoundError(EventServiceError):
    def __init__(self):
        super().__init__(
            message="Student not found", error_code="STUDENT_NOT_FOUND", status_code=404
        )


class EventFullError(EventServiceError):
    def __init__(self):
        super().__init__(message="Event is full", error_code="EVENT_FULL", status_code=400)


class EventNotOpenError(EventServiceError):
    def __init__(self):
        super().__init__(
            message="Event is not open for registration",
            error_code="EVENT_NOT_OPEN",
            status_code=400,
        )


class AlreadyJoinedError(EventServiceError):
    def __init__(self):
        super().__init__(
            message="Already joined this event", error_code="ALREADY_JOINED", status_code=400
        )


class NotJoinedError(EventServiceError):
    def __init__(self):
        super().__init__(message="Not joined this event", error_code="NOT_JOINED", status_code=400)


# ============================================
# Reads
# ============================================


async def list_events(db: AsyncSession, org_id: int | None = None) -> list[Event]:
    return await repository.list_events(db, org_id=org_id)


async def get_event(db: AsyncSession, event_id: int) -> Event:
    event = await repository.get_by_id(db, event_id)
    if event is None:
        raise EventNotFoundError()
    return event


# ============================================
# Commands
# ============================================


async def create_event(db: AsyncSession, user: CurrentUser, data: EventCreateRequest) -> Event:
    """
    Create an event for the calling organization and tell its followers.

    Raises:
        OrganizationNotActiveError: The organization is missing or not active
    """
    organization = await organization_repository.get_by_id(db, user.id)
    if organization is None or organization.status != OrganizationStatus.ACTIVE:
        raise OrganizationNotActiveError()

    event = await repository.create(
        db,
        org_id=organization.id,
        org_name=organization.name,
        **data.model_dump(),
    )

    await record_activity_safely(
        db,
        ActivityType.EVENT_CREATION,
        "New Event Created",
        f"{organization.name} created event '{event.title}'",
        user_id=organization.id,
        user_name=organization.name,
        user_email=organization.email,
        organization_id=organization.id,
        organization_name=organization.name,
        event_id=event.id,
        event_title=event.title,
        metadata={"date": event.date, "capacity": event.capacity},
    )

    follower_ids = await student_repository.get_active_follower_ids(db, organization.id)
    await enqueue_to_users(
        db,
        RecipientType.STUDENT,
        follower_ids,
        NotificationPayload(
            title="New Event Created",
            body=f"{organization.name} created a new event: {event.title}",
            type=NotificationType.EVENT,
            data={
                "event_id": event.id,
                "event_title": event.title,
                "organization_id": organization.id,
                "organization_name": organization.name,
            },
        ),
    )

    await db.commit()
    await db.refresh(event)
    logger.info(
        f"Organization {organization.id} created event {event.id}, "
        f"notified {len(follower_ids)} followers"
    )
    return event


async def _load_for_participation(
    db: AsyncSession, user: CurrentUser, event_id: int
) -> tuple[Event, Student]:
    event = await repository.get_by_id(db, event_id, for_update=True)
    if event is None:
        raise EventNotFoundError()

    student = await student_repository.get_by_id(db, user.id, for_update=True)
    if student is None:
        raise StudentNotFoundError()

    return event, student


def _participant_payload(title: str, body: str, event: Event, student: Student) -> NotificationPayload:
    return NotificationPayload(
        title=title,
        body=body,
        type=NotificationType.EVENT,
        data={
            "event_id": event.id,
            "event_title": event.title,
            "student_id": student.id,
            "student_name": student.name,
        },
    )


async def join_event(db: AsyncSession, user: CurrentUser, event_id: int) -> Event:
    """
    Register the calling student for an event.

    Raises:
        EventNotFoundError, StudentNotFoundError
        EventNotOpenError: The event is not active
        AlreadyJoinedError: The student is already a participant
        EventFullError: registered has reached capacity
    """
    event, student = await _load_for_participation(db, user, event_id)

    if event.status != EventStatus.ACTIVE:
        raise EventNotOpenError()

    participants = list(event.participants or [])
    if student.id in participants:
        raise AlreadyJoinedError()
    if event.is_full:
        raise EventFullError()

    participants.append(student.id)
    event.participants = participants
    event.registered = len(participants)

    joined = list(student.joined_events or [])
    if event.id not in joined:
        student.joined_events = [*joined, event.id]

    await db.flush()

    if event.is_full:
        await record_activity_safely(
            db,
            ActivityType.EVENT_CAPACITY_REACHED,
            "Event Capacity Reached",
            f"'{event.title}' reached its capacity of {event.capacity}",
            organization_id=event.org_id,
            organization_name=event.org_name,
            event_id=event.id,
            event_title=event.title,
            metadata={"capacity": event.capacity},
        )

    await enqueue_to_user(
        db,
        RecipientType.ORGANIZATION,
        event.org_id,
        _participant_payload(
            "New Event Participant",
            f"{student.name} joined your event: {event.title}",
            event,
            student,
        ),
    )

    await db.commit()
    await db.refresh(event)
    logger.info(f"Student {student.id} joined event {event.id} ({event.registered}/{event.capacity})")
    return event


async def leave_event(db: AsyncSession, user: CurrentUser, event_id: int) -> Event:
    """
    Withdraw the calling student from an event.

    Raises:
        EventNotFoundError, StudentNotFoundError
        NotJoinedError: The student is not a participant
    """
    event, student = await _load_for_participation(db, user, event_id)

    participants = list(event.participants or [])
    if student.id not in participants:
        raise NotJoinedError()

    event.participants = [p for p in participants if p != student.id]
    event.registered = max(len(event.participants), 0)
    student.joined_events = [e for e in (student.joined_events or []) if e != event.id]

    await enqueue_to_user(
        db,
        RecipientType.ORGANIZATION,
        event.org_id,
        _participant_payload(
            "Event Participant Left",
            f"{student.name} left your event: {event.title}",
            event,
            student,
        ),
    )

    await db.commit()
    await db.refresh(event)
    logger.info(f"Student {student.id} left event {event.id} ({event.registered}/{event.capacity})")
    return event
