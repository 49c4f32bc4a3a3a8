"""
Events Router

Endpoints:
- POST /events - Create event (organizations)
- GET /events - Active events, optionally for one organization
- GET /events/{id} - Event details
- POST /events/{id}/join - Join event (students)
- DELETE /events/{id}/leave - Leave event (students)
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser, get_current_organization, get_current_student
from app.core.database import get_db
from app.modules.events import service
from app.modules.events.schemas import (
    EventCreateRequest,
    EventEnvelope,
    EventListResponse,
    EventResponse,
)
from app.modules.events.service import EventServiceError

router = APIRouter()


def _handle_service_error(e: EventServiceError) -> None:
    raise HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    ) from e


@router.post(
    "",
    response_model=EventEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Event",
)
async def create_event(
    data: EventCreateRequest,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_organization),
) -> EventEnvelope:
    try:
        event = await service.create_event(db, user, data)
    except EventServiceError as e:
        _handle_service_error(e)
    return EventEnvelope(message="Event created successfully", event=EventResponse.model_validate(event))


@router.get("", response_model=EventListResponse, summary="List Events")
async def list_events(
    org_id: int | None = Query(None, description="Only events of this organization"),
    db: AsyncSession = Depends(get_db),
) -> EventListResponse:
    events = await service.list_events(db, org_id)
    return EventListResponse(data=[EventResponse.model_validate(e) for e in events])


@router.get("/{event_id}", response_model=EventEnvelope, summary="Get Event")
async def get_event(event_id: int, db: AsyncSession = Depends(get_db)) -> EventEnvelope:
    try:
        event = await service.get_event(db, event_id)
    except EventServiceError as e:
        _handle_service_error(e)
    return EventEnvelope(event=EventResponse.model_validate(event))


@router.post("/{event_id}/join", response_model=EventEnvelope, summary="Join Event")
async def join_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> EventEnvelope:
    try:
        event = await service.join_event(db, user, event_id)
    except EventServiceError as e:
        _handle_service_error(e)
    return EventEnvelope(message="Successfully joined event", event=EventResponse.model_validate(event))


@router.delete("/{event_id}/leave", response_model=EventEnvelope, summary="Leave Event")
async def leave_event(
    event_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_student),
) -> EventEnvelope:
    try:
        event = await service.leave_event(db, user, event_id)
    except EventServiceError as e:
        _handle_service_error(e)
    return EventEnvelope(message="Successfully left event", event=EventResponse.model_validate(event))
