"""
Organization Repository

Database operations for organization accounts.

Design Principles:
- Functions flush, callers commit: approval, registration and follow
  flows compose several writes into one transaction
- Status changes are validated against VALID_ORGANIZATION_TRANSITIONS
- Counter updates are single SQL statements, never read-modify-write
"""

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.shared import AuthProvider, next_id

from .models import VALID_ORGANIZATION_TRANSITIONS, Organization, OrganizationStatus

SEQUENCE_NAME = "organizations"


class InvalidOrganizationTransitionError(ValueError):
    """Raised when an organization status change is not allowed."""

    def __init__(self, current_status: OrganizationStatus, new_status: OrganizationStatus):
        self.current_status = current_status
        self.new_status = new_status
        valid = VALID_ORGANIZATION_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid organization status transition: {current_status.value} -> "
            f"{new_status.value}. Valid transitions: {[s.value for s in valid]}"
        )


async def create(
    db: AsyncSession,
    *,
    email: str,
    name: str,
    org_type: str,
    description: str,
    password_hash: str,
    president: str | None = None,
    founded: str | None = None,
    website: str | None = None,
    members: int = 0,
    verification_file: str | None = None,
    email_verified: bool = False,
) -> Organization:
    """Create a local-credential organization in pending status."""
    organization = Organization(
        id=await next_id(db, SEQUENCE_NAME),
        email=email.lower(),
        name=name,
        type=org_type,
        description=description,
        president=president,
        founded=founded,
        website=website,
        members=members,
        followers=0,
        social_media={},
        verification_file=verification_file,
        status=OrganizationStatus.PENDING,
        password_hash=password_hash,
        provider=AuthProvider.LOCAL,
        email_verified=email_verified,
    )
    db.add(organization)
    await db.flush()
    return organization


async def get_by_id(
    db: AsyncSession, organization_id: int, *, for_update: bool = False
) -> Organization | None:
    stmt = select(Organization).where(Organization.id == organization_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_by_email(
    db: AsyncSession, email: str, *, for_update: bool = False
) -> Organization | None:
    stmt = select(Organization).where(Organization.email == email.lower())
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_suspended_by_id(
    db: AsyncSession, organization_id: int, *, for_update: bool = False
) -> Organization | None:
    """Get an organization only if it is currently suspended."""
    stmt = select(Organization).where(
        Organization.id == organization_id,
        Organization.status == OrganizationStatus.SUSPENDED,
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_by_status(db: AsyncSession, status: OrganizationStatus) -> list[Organization]:
    result = await db.execute(
        select(Organization)
        .where(Organization.status == status)
        .order_by(Organization.updated_at.desc())
    )
    return list(result.scalars().all())


async def count_by_status(db: AsyncSession, status: OrganizationStatus) -> int:
    result = await db.execute(
        select(func.count()).select_from(Organization).where(Organization.status == status)
    )
    return int(result.scalar_one())


async def update_status(
    db: AsyncSession,
    organization: Organization,
    status: OrganizationStatus,
) -> Organization:
    """
    Change an organization's status.

    Raises:
        InvalidOrganizationTransitionError: If the move is not allowed
    """
    current = organization.status
    if status not in VALID_ORGANIZATION_TRANSITIONS.get(current, set()):
        raise InvalidOrganizationTransitionError(current, status)

    organization.status = status
    await db.flush()
    return organization


def apply_registration_data(
    organization: Organization,
    registration_data: dict,
    verification_url: str | None,
) -> None:
    """Copy the reviewed application snapshot onto the organization profile."""
    organization.name = registration_data.get("name") or organization.name
    organization.type = registration_data.get("org_type") or organization.type
    organization.description = registration_data.get("description") or ""
    organization.president = registration_data.get("president")
    organization.founded = registration_data.get("founded")
    organization.website = registration_data.get("website")
    organization.members = int(registration_data.get("members") or 0)
    if verification_url:
        organization.verification_file = verification_url


async def increment_followers(db: AsyncSession, organization_id: int) -> None:
    await db.execute(
        update(Organization)
        .where(Organization.id == organization_id)
        .values(followers=Organization.followers + 1)
    )


async def decrement_followers(db: AsyncSession, organization_id: int) -> None:
    """Decrement the follower count, clamped at zero."""
    await db.execute(
        update(Organization)
        .where(Organization.id == organization_id)
        .values(followers=func.greatest(Organization.followers - 1, 0))
    )
