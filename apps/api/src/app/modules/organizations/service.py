"""
Organization Service

Profile reads and the follow relationship.

Follow state lives in two places: the student's followed_orgs list and
the organization's followers counter. Both change in one transaction.
The student row is locked first, so a student's follow/unfollow calls
serialize and the membership check can't race; the counter moves by a
single UPDATE (followers + 1 / GREATEST(followers - 1, 0)), so
concurrent followers of the same organization never lose increments.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CurrentUser
from app.modules.notifications.models import NotificationType, RecipientType
from app.modules.notifications.service import NotificationPayload, enqueue_to_user
from app.modules.organizations import repository
from app.modules.organizations.models import Organization, OrganizationStatus
from app.modules.students import repository as student_repository
from app.modules.students.models import Student

logger = logging.getLogger(__name__)


class OrganizationServiceError(Exception):
    """Base exception for organization service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class OrganizationNotFoundError(OrganizationServiceError):
    def __init__(self):
        super().__init__(
            message="Organization not found",
            error_code="ORGANIZATION_NOT_FOUND",
            status_code=404,
        )


class StudentNotFoundError(OrganizationServiceError):
    def __init__(self):
        super().__init__(
            message="Student not found", error_code="STUDENT_NOT_FOUND", status_code=404
        )


class AlreadyFollowingError(OrganizationServiceError):
    def __init__(self):
        super().__init__(
            message="Already following this organization",
            error_code="ALREADY_FOLLOWING",
            status_code=400,
        )


class NotFollowingError(OrganizationServiceError):
    def __init__(self):
        super().__init__(
            message="Not following this organization",
            error_code="NOT_FOLLOWING",
            status_code=400,
        )


async def list_organizations(db: AsyncSession) -> list[Organization]:
    """Active organizations."""
    return await repository.list_by_status(db, OrganizationStatus.ACTIVE)


async def get_organization(db: AsyncSession, organization_id: int) -> Organization:
    organization = await repository.get_by_id(db, organization_id)
    if organization is None:
        raise OrganizationNotFoundError()
    return organization


async def _load_for_follow(
    db: AsyncSession, user: CurrentUser, organization_id: int
) -> tuple[Student, Organization]:
    organization = await repository.get_by_id(db, organization_id)
    if organization is None:
        raise OrganizationNotFoundError()

    student = await student_repository.get_by_id(db, user.id, for_update=True)
    if student is None:
        raise StudentNotFoundError()

    return student, organization


async def follow(db: AsyncSession, user: CurrentUser, organization_id: int) -> int:
    """
    Follow an organization.

    Returns:
        The organization's follower count after the change

    Raises:
        OrganizationNotFoundError, StudentNotFoundError
        AlreadyFollowingError: The student already follows it
    """
    student, organization = await _load_for_follow(db, user, organization_id)

    followed = list(student.followed_orgs or [])
    if organization_id in followed:
        raise AlreadyFollowingError()

    student.followed_orgs = [*followed, organization_id]
    await repository.increment_followers(db, organization_id)

    await enqueue_to_user(
        db,
        RecipientType.ORGANIZATION,
        organization_id,
        NotificationPayload(
            title="New Follower",
            body=f"{student.name} started following your organization",
            type=NotificationType.ORGANIZATION,
            data={
                "student_id": student.id,
                "student_name": student.name,
                "organization_id": organization_id,
                "organization_name": organization.name,
            },
        ),
    )

    await db.commit()
    await db.refresh(organization)
    logger.info(f"Student {student.id} followed organization {organization_id}")
    return organization.followers


async def unfollow(db: AsyncSession, user: CurrentUser, organization_id: int) -> int:
    """
    Stop following an organization.

    Returns:
        The organization's follower count after the change

    Raises:
        OrganizationNotFoundError, StudentNotFoundError
        NotFollowingError: The student doesn't follow it
    """
    student, organization = await _load_for_follow(db, user, organization_id)

    followed = list(student.followed_orgs or [])
    if organization_id not in followed:
        raise NotFollowingError()

    student.followed_orgs = [org_id for org_id in followed if org_id != organization_id]
    await repository.decrement_followers(db, organization_id)

    await enqueue_to_user(
        db,
        RecipientType.ORGANIZATION,
        organization_id,
        NotificationPayload(
            title="Follower Left",
            body=f"{student.name} unfollowed your organization",
            type=NotificationType.ORGANIZATION,
            data={
                "student_id": student.id,
                "student_name": student.name,
                "organization_id": organization_id,
                "organization_name": organization.name,
            },
        ),
    )

    await db.commit()
    await db.refresh(organization)
    logger.info(f"Student {student.id} unfollowed organization {organization_id}")
    return organization.followers
