"""
Fixtures for approvals tests.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.core.auth import CurrentUser, PrincipalRole
from app.modules.approvals.models import ApprovalStatus, ApprovalType, PendingApproval
from app.modules.approvals.schemas import RegistrationForm
from app.modules.organizations.models import Organization, OrganizationStatus

ORG_EMAIL = "org@example.com"


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
def mock_redis():
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.delete = AsyncMock(return_value=1)
    return redis


@pytest.fixture
def admin_user():
    return CurrentUser(id=1, email="admin@au.edu", role=PrincipalRole.ADMIN, name="Admin")


@pytest.fixture
def registration_data():
    return {
        "name": "Chess Society",
        "email": ORG_EMAIL,
        "org_type": "Academic",
        "description": "We play chess",
        "president": "Jane Doe",
        "founded": "2019",
        "website": None,
        "members": 25,
        "social_media": {},
    }


@pytest.fixture
def pending_approval(registration_data):
    """A pending ticket (mocked model with real attribute storage)."""
    approval = MagicMock(spec=PendingApproval)
    approval.id = 7
    approval.type = ApprovalType.ORGANIZATION
    approval.name = "Chess Society"
    approval.applicant = "Jane Doe"
    approval.date = "2026-10-01"
    approval.email = ORG_EMAIL
    approval.status = ApprovalStatus.PENDING
    approval.org_id = 3
    approval.registration_data = dict(registration_data)
    approval.verification_file = {
        "filename": "abc.pdf",
        "original_name": "charter.pdf",
        "mimetype": "application/pdf",
        "size": 2048,
        "url": "/uploads/abc.pdf",
    }
    approval.verification_url = "/uploads/abc.pdf"
    approval.rejection_details = None
    approval.created_at = datetime(2026, 10, 1, 9, 0, tzinfo=UTC)
    approval.updated_at = datetime(2026, 10, 1, 9, 0, tzinfo=UTC)
    return approval


def _organization(status: OrganizationStatus) -> MagicMock:
    organization = MagicMock(spec=Organization)
    organization.id = 3
    organization.email = ORG_EMAIL
    organization.name = "Chess Society"
    organization.type = "Academic"
    organization.description = "We play chess"
    organization.president = "Jane Doe"
    organization.founded = "2019"
    organization.website = None
    organization.members = 25
    organization.followers = 4
    organization.social_media = {}
    organization.verification_file = "/uploads/abc.pdf"
    organization.status = status
    organization.created_at = datetime(2026, 9, 1, 12, 0, tzinfo=UTC)
    organization.updated_at = datetime(2026, 9, 1, 12, 0, tzinfo=UTC)
    return organization


@pytest.fixture
def pending_organization():
    return _organization(OrganizationStatus.PENDING)


@pytest.fixture
def active_organization():
    return _organization(OrganizationStatus.ACTIVE)


@pytest.fixture
def suspended_organization():
    return _organization(OrganizationStatus.SUSPENDED)


@pytest.fixture
def registration_form():
    return RegistrationForm(
        name="Chess Society",
        email="Org@Example.com",
        password="secret123",
        org_type="Academic",
        description="We play chess",
        president="Jane Doe",
        founded="2019",
        members=25,
        verification_code="123456",
    )
