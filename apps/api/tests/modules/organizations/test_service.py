"""
Unit tests for the organization service: reads and the follow relationship.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.auth import CurrentUser, PrincipalRole
from app.modules.notifications.models import RecipientType
from app.modules.organizations.models import OrganizationStatus
from app.modules.organizations.service import (
    AlreadyFollowingError,
    NotFollowingError,
    OrganizationNotFoundError,
    StudentNotFoundError,
    follow,
    get_organization,
    list_organizations,
    unfollow,
)
from app.modules.students.models import Student

SERVICE = "app.modules.organizations.service"


@pytest.fixture
def follow_counter(sample_organization):
    """
    Route the atomic counter updates to the sample organization, so a
    sequence of follow/unfollow calls can be checked against the count.
    """

    async def _increment(db, organization_id):
        sample_organization.followers += 1

    async def _decrement(db, organization_id):
        sample_organization.followers = max(sample_organization.followers - 1, 0)

    with (
        patch(f"{SERVICE}.repository") as mock_repo,
        patch(f"{SERVICE}.enqueue_to_user", new_callable=AsyncMock) as notify,
    ):
        mock_repo.get_by_id = AsyncMock(return_value=sample_organization)
        mock_repo.increment_followers = AsyncMock(side_effect=_increment)
        mock_repo.decrement_followers = AsyncMock(side_effect=_decrement)
        yield mock_repo, notify


class TestReads:
    @pytest.mark.asyncio
    async def test_list_only_active(self, mock_db, sample_organization):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.list_by_status = AsyncMock(return_value=[sample_organization])

            result = await list_organizations(mock_db)

        assert result == [sample_organization]
        mock_repo.list_by_status.assert_awaited_once_with(mock_db, OrganizationStatus.ACTIVE)

    @pytest.mark.asyncio
    async def test_get_missing(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(OrganizationNotFoundError) as exc_info:
                await get_organization(mock_db, 99)

        assert exc_info.value.status_code == 404


class TestFollow:
    """Tests for follow / unfollow."""

    @pytest.mark.asyncio
    async def test_follow(self, mock_db, student_user, sample_student, follow_counter):
        _repo, notify = follow_counter
        with patch(
            f"{SERVICE}.student_repository.get_by_id", AsyncMock(return_value=sample_student)
        ) as get_student:
            followers = await follow(mock_db, student_user, 3)

        assert followers == 1
        assert sample_student.followed_orgs == [3]
        get_student.assert_awaited_once_with(mock_db, 10, for_update=True)
        notify.assert_awaited_once()
        assert notify.await_args.args[1] == RecipientType.ORGANIZATION
        assert notify.await_args.args[3].title == "New Follower"
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_follow_twice(self, mock_db, student_user, sample_student, follow_counter):
        sample_student.followed_orgs = [3]
        with patch(
            f"{SERVICE}.student_repository.get_by_id", AsyncMock(return_value=sample_student)
        ):
            with pytest.raises(AlreadyFollowingError) as exc_info:
                await follow(mock_db, student_user, 3)

        assert exc_info.value.message == "Already following this organization"
        mock_db.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unfollow_not_following(
        self, mock_db, student_user, sample_student, follow_counter
    ):
        with patch(
            f"{SERVICE}.student_repository.get_by_id", AsyncMock(return_value=sample_student)
        ):
            with pytest.raises(NotFollowingError) as exc_info:
                await unfollow(mock_db, student_user, 3)

        assert exc_info.value.message == "Not following this organization"

    @pytest.mark.asyncio
    async def test_unfollow(self, mock_db, student_user, sample_student, follow_counter):
        mock_repo, notify = follow_counter
        sample_organization = mock_repo.get_by_id.return_value
        sample_organization.followers = 1
        sample_student.followed_orgs = [5, 3]
        with patch(
            f"{SERVICE}.student_repository.get_by_id", AsyncMock(return_value=sample_student)
        ):
            followers = await unfollow(mock_db, student_user, 3)

        assert followers == 0
        assert sample_student.followed_orgs == [5]
        assert notify.await_args.args[3].title == "Follower Left"

    @pytest.mark.asyncio
    async def test_counter_tracks_follows_minus_unfollows(
        self, mock_db, sample_organization, follow_counter
    ):
        """N follows and M unfollows by distinct students leave N - M followers."""
        students = {}
        for student_id in range(100, 105):
            student = MagicMock(spec=Student)
            student.id = student_id
            student.name = f"Student {student_id}"
            student.followed_orgs = []
            students[student_id] = student

        async def _get_student(db, student_id, for_update=False):
            return students[student_id]

        with patch(f"{SERVICE}.student_repository.get_by_id", AsyncMock(side_effect=_get_student)):
            for student_id in students:
                user = CurrentUser(id=student_id, email="s@au.edu", role=PrincipalRole.STUDENT)
                await follow(mock_db, user, 3)
            for student_id in (100, 101):
                user = CurrentUser(id=student_id, email="s@au.edu", role=PrincipalRole.STUDENT)
                await unfollow(mock_db, user, 3)

        assert sample_organization.followers == 3
        following = [s for s in students.values() if 3 in s.followed_orgs]
        assert len(following) == sample_organization.followers

    @pytest.mark.asyncio
    async def test_missing_organization(self, mock_db, student_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(OrganizationNotFoundError):
                await follow(mock_db, student_user, 99)

    @pytest.mark.asyncio
    async def test_missing_student(self, mock_db, student_user, follow_counter):
        with patch(f"{SERVICE}.student_repository.get_by_id", AsyncMock(return_value=None)):
            with pytest.raises(StudentNotFoundError):
                await follow(mock_db, student_user, 3)
