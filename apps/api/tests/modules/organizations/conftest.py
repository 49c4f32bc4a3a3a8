"""
Fixtures for organizations tests.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.auth import CurrentUser, PrincipalRole
from app.modules.organizations.models import Organization, OrganizationStatus
from app.modules.students.models import Student, StudentStatus


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def student_user():
    return CurrentUser(
        id=10, email="u1234567@au.edu", role=PrincipalRole.STUDENT, name="Ama Mensah"
    )


@pytest.fixture
def sample_student():
    student = MagicMock(spec=Student)
    student.id = 10
    student.name = "Ama Mensah"
    student.email = "u1234567@au.edu"
    student.status = StudentStatus.ACTIVE
    student.followed_orgs = []
    student.joined_events = []
    return student


@pytest.fixture
def sample_organization():
    organization = MagicMock(spec=Organization)
    organization.id = 3
    organization.name = "Chess Society"
    organization.email = "org@example.com"
    organization.status = OrganizationStatus.ACTIVE
    organization.followers = 0
    return organization
