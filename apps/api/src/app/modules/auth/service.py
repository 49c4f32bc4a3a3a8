"""
Authentication Service

Password login across the three principal tables.

Lookup order is admin, student, organization; the first table holding
the address decides. Google-provisioned accounts carry no password hash
and therefore never pass verify_password().
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import PrincipalRole
from app.core.security import create_access_token, create_refresh_token, verify_password
from app.modules.organizations import repository as organization_repository
from app.modules.organizations.models import Organization, OrganizationStatus
from app.modules.students import repository as student_repository
from app.modules.students.models import Student, StudentStatus
from app.modules.users.models import User
from app.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)


class AuthServiceError(Exception):
    """Base exception for authentication errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 401, **extra: Any):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.extra = extra
        super().__init__(message)


class InvalidCredentialsError(AuthServiceError):
    def __init__(self):
        super().__init__(message="Invalid credentials", error_code="INVALID_CREDENTIALS")


class EmailNotVerifiedError(AuthServiceError):
    def __init__(self):
        super().__init__(
            message=(
                "Please verify your email address before logging in. "
                "Check your email for the verification code."
            ),
            error_code="EMAIL_NOT_VERIFIED",
            requires_verification=True,
        )


class AccountInactiveError(AuthServiceError):
    def __init__(self):
        super().__init__(message="Account is inactive", error_code="ACCOUNT_INACTIVE")


@dataclass
class LoginResult:
    access_token: str
    refresh_token: str
    user: dict[str, Any] = field(default_factory=dict)


Principal = User | Student | Organization


async def _find_principal(db: AsyncSession, email: str) -> tuple[PrincipalRole, Principal] | None:
    user = await UserRepository.get_by_email(db, email)
    if user is not None:
        return PrincipalRole.ADMIN, user

    student = await student_repository.get_by_email(db, email)
    if student is not None:
        return PrincipalRole.STUDENT, student

    organization = await organization_repository.get_by_email(db, email)
    if organization is not None:
        return PrincipalRole.ORGANIZATION, organization

    return None


def _is_inactive(role: PrincipalRole, principal: Principal) -> bool:
    if role == PrincipalRole.ADMIN:
        return not principal.is_active
    if role == PrincipalRole.STUDENT:
        return principal.status == StudentStatus.INACTIVE
    return principal.status == OrganizationStatus.INACTIVE


def user_payload(role: PrincipalRole, principal: Principal) -> dict[str, Any]:
    """Role-shaped user object returned after login."""
    payload: dict[str, Any] = {
        "id": principal.id,
        "name": principal.name,
        "email": principal.email,
        "role": role.value,
        "email_verified": principal.email_verified,
    }

    if role == PrincipalRole.ADMIN:
        payload["status"] = "active" if principal.is_active else "inactive"
    elif role == PrincipalRole.STUDENT:
        payload.update(
            status=principal.status.value,
            faculty=principal.faculty,
            student_id=principal.student_id,
            followed_orgs=list(principal.followed_orgs or []),
            joined_events=list(principal.joined_events or []),
        )
    else:
        payload.update(
            status=principal.status.value,
            org_type=principal.type,
            description=principal.description,
            president=principal.president,
            founded=principal.founded,
            members=principal.members,
            followers=principal.followers,
            website=principal.website,
            social_media=principal.social_media or {},
        )
    return payload


async def login(db: AsyncSession, email: str, password: str) -> LoginResult:
    """
    Authenticate with email and password.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
        EmailNotVerifiedError: Address never verified
        AccountInactiveError: Account deactivated
    """
    email = email.strip().lower()
    found = await _find_principal(db, email)
    if found is None:
        logger.warning(f"Login attempt for unknown email: {email}")
        raise InvalidCredentialsError()

    role, principal = found

    if not principal.email_verified:
        logger.warning(f"Login attempt before email verification: {email}")
        raise EmailNotVerifiedError()

    if _is_inactive(role, principal):
        logger.warning(f"Login attempt for inactive {role.value}: {email}")
        raise AccountInactiveError()

    if not verify_password(password, principal.password_hash):
        logger.warning(f"Invalid password for {role.value}: {email}")
        raise InvalidCredentialsError()

    access_token = create_access_token(
        subject=str(principal.id),
        additional_claims={
            "email": principal.email,
            "role": role.value,
            "name": principal.name,
        },
    )
    refresh_token = create_refresh_token(subject=str(principal.id))

    logger.info(f"{role.value.title()} logged in: {principal.email}")
    return LoginResult(
        access_token=access_token,
        refresh_token=refresh_token,
        user=user_payload(role, principal),
    )
