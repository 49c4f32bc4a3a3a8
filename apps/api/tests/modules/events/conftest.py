"""
Fixtures for events tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.auth import CurrentUser, PrincipalRole
from app.modules.events.models import Event, EventStatus
from app.modules.organizations.models import Organization, OrganizationStatus
from app.modules.students.models import Student


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.flush = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def student_user():
    return CurrentUser(id=10, email="u1234567@au.edu", role=PrincipalRole.STUDENT)


@pytest.fixture
def organization_user():
    return CurrentUser(id=3, email="org@example.com", role=PrincipalRole.ORGANIZATION)


@pytest.fixture
def sample_student():
    student = MagicMock(spec=Student)
    student.id = 10
    student.name = "Ama Mensah"
    student.joined_events = []
    return student


@pytest.fixture
def sample_organization():
    organization = MagicMock(spec=Organization)
    organization.id = 3
    organization.name = "Chess Society"
    organization.email = "org@example.com"
    organization.status = OrganizationStatus.ACTIVE
    return organization


@pytest.fixture
def sample_event():
    """A real Event instance so is_full reflects registered/capacity."""
    return Event(
        id=21,
        title="Spring Tournament",
        date="2026-11-02",
        start_time="10:00",
        end_time="16:00",
        org_id=3,
        org_name="Chess Society",
        type="Competition",
        location="Main Campus",
        venue="Hall B",
        description="",
        capacity=2,
        registered=0,
        participants=[],
        status=EventStatus.ACTIVE,
    )
