"""
Fixtures for auth tests.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.security import hash_password
from app.modules.organizations.models import Organization, OrganizationStatus
from app.modules.students.models import Student, StudentStatus
from app.modules.users.models import User

PASSWORD = "correct-horse-battery"


@pytest.fixture(scope="session")
def password_hash():
    return hash_password(PASSWORD)


@pytest.fixture
def mock_db():
    return AsyncMock()


@pytest.fixture
def admin(password_hash):
    user = MagicMock(spec=User)
    user.id = 1
    user.name = "Platform Admin"
    user.email = "admin@au.edu"
    user.password_hash = password_hash
    user.email_verified = True
    user.is_active = True
    return user


@pytest.fixture
def student(password_hash):
    student = MagicMock(spec=Student)
    student.id = 10
    student.name = "Ama Mensah"
    student.email = "u1234567@au.edu"
    student.password_hash = password_hash
    student.email_verified = True
    student.status = StudentStatus.ACTIVE
    student.faculty = "Engineering"
    student.student_id = "1234567"
    student.followed_orgs = [3]
    student.joined_events = []
    return student


@pytest.fixture
def organization(password_hash):
    organization = MagicMock(spec=Organization)
    organization.id = 3
    organization.name = "Chess Society"
    organization.email = "org@example.com"
    organization.password_hash = password_hash
    organization.email_verified = True
    organization.status = OrganizationStatus.ACTIVE
    organization.type = "Academic"
    organization.description = "Weekly chess"
    organization.president = "Kofi Boateng"
    organization.founded = "2019"
    organization.members = 40
    organization.followers = 12
    organization.website = None
    organization.social_media = None
    return organization


@pytest.fixture
def principals():
    """
    Patch the three principal lookups. Tests set return values on the
    yielded mocks; all default to "not found".
    """
    service = "app.modules.auth.service"
    with (
        patch(f"{service}.UserRepository.get_by_email", AsyncMock(return_value=None)) as admins,
        patch(
            f"{service}.student_repository.get_by_email", AsyncMock(return_value=None)
        ) as students,
        patch(
            f"{service}.organization_repository.get_by_email", AsyncMock(return_value=None)
        ) as organizations,
    ):
        yield MagicMock(admins=admins, students=students, organizations=organizations)
