"""
Event Schemas
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.modules.events.models import DEFAULT_CAPACITY, EventStatus


class EventCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    date: str = Field(..., min_length=1, max_length=20, description="YYYY-MM-DD")
    start_time: str = Field(..., min_length=1, max_length=10, description="HH:MM")
    end_time: str = Field(..., min_length=1, max_length=10, description="HH:MM")
    type: str = Field(..., min_length=1, max_length=100)
    location: str = Field(default="", max_length=200)
    venue: str = Field(default="", max_length=200)
    description: str = Field(default="", max_length=5000)
    capacity: int = Field(default=DEFAULT_CAPACITY, ge=1)

    @field_validator("title", "type")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    date: str
    start_time: str
    end_time: str
    org_id: int
    org_name: str
    type: str
    location: str
    venue: str
    description: str
    capacity: int
    registered: int
    participants: list[int]
    status: EventStatus
    created_at: datetime


class EventListResponse(BaseModel):
    success: bool = True
    data: list[EventResponse]


class EventEnvelope(BaseModel):
    success: bool = True
    message: str | None = None
    event: EventResponse
