"""
Email Verification Service

Gatekeeps organization registration behind a one-time code:

1. issue_code(): the address must pass the registration email rules and
   must not belong to any admin, student or organization. A fresh
   6-digit code is stored in Redis (TTL settings.verification_code_ttl_seconds)
   and emailed via Resend. If the email can't be sent the code is
   deleted again, so no usable code exists that nobody received.
2. verify_code(): single-use redemption. Leaves a verified marker that
   registration can consume instead of the code.
3. check_code(): frontend pre-check, never consumes.
4. consume_for_registration(): what registration calls; accepts either a
   fresh code or the verified marker, exactly once.

Codes are never logged.
"""

import logging

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.email import send_verification_code
from app.modules.organizations import repository as organization_repository
from app.modules.students import repository as student_repository
from app.modules.users.repository import UserRepository
from app.modules.verification import code_store
from app.modules.verification.code_store import CodeCheck
from app.modules.verification.email_rules import (
    EmailCheck,
    EmailRole,
    validate_email_for_registration,
)

logger = logging.getLogger(__name__)


class VerificationServiceError(Exception):
    """Base exception for verification service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class InvalidEmailError(VerificationServiceError):
    def __init__(self, reason: str | None):
        super().__init__(
            message=reason or "Invalid email address",
            error_code="INVALID_EMAIL",
            status_code=400,
        )


class EmailAlreadyRegisteredError(VerificationServiceError):
    def __init__(self):
        super().__init__(
            message="User already exists with this email",
            error_code="EMAIL_ALREADY_REGISTERED",
            status_code=400,
        )


class CodeRequiredError(VerificationServiceError):
    def __init__(self):
        super().__init__(
            message="Verification code is required",
            error_code="VERIFICATION_CODE_REQUIRED",
            status_code=400,
        )


class CodeNotFoundError(VerificationServiceError):
    """No live code: never issued, expired, or already used."""

    def __init__(self):
        super().__init__(
            message="No verification code found. Please request a new code.",
            error_code="VERIFICATION_CODE_NOT_FOUND",
            status_code=400,
        )


class InvalidCodeError(VerificationServiceError):
    def __init__(self):
        super().__init__(
            message="Invalid verification code",
            error_code="INVALID_VERIFICATION_CODE",
            status_code=400,
        )


class EmailDeliveryError(VerificationServiceError):
    def __init__(self):
        super().__init__(
            message="Failed to send verification email",
            error_code="EMAIL_DELIVERY_FAILED",
            status_code=500,
        )


def _raise_for(result: CodeCheck) -> None:
    if result == CodeCheck.MISSING:
        raise CodeNotFoundError()
    if result == CodeCheck.MISMATCH:
        raise InvalidCodeError()


async def is_email_registered(db: AsyncSession, email: str) -> bool:
    """True if any admin, student or organization already uses the address."""
    if await UserRepository.email_exists(db, email):
        return True
    if await student_repository.get_by_email(db, email) is not None:
        return True
    return await organization_repository.get_by_email(db, email) is not None


async def validate_registration_email(
    db: AsyncSession,
    email: str,
    role: EmailRole = EmailRole.ORGANIZATION,
) -> EmailCheck:
    """
    Email rules plus the uniqueness check.

    Raises:
        InvalidEmailError: If a rule fails
        EmailAlreadyRegisteredError: If the address is taken
    """
    result = await validate_email_for_registration(email, role)
    if not result.valid:
        raise InvalidEmailError(result.reason)

    if await is_email_registered(db, email):
        raise EmailAlreadyRegisteredError()

    return result


async def issue_code(db: AsyncSession, redis: Redis, email: str) -> int:
    """
    Issue and email a fresh code.

    Returns:
        Code lifetime in seconds

    Raises:
        InvalidEmailError, EmailAlreadyRegisteredError: Address not eligible
        EmailDeliveryError: If the email could not be sent (code discarded)
    """
    await validate_registration_email(db, email)

    ttl = settings.verification_code_ttl_seconds
    code = code_store.generate_code()
    await code_store.store_code(redis, email, code, ttl)

    sent = await send_verification_code(email, code, expires_in_minutes=ttl // 60)
    if not sent:
        await code_store.delete_code(redis, email)
        logger.error(f"Verification email to {email} failed; code discarded")
        raise EmailDeliveryError()

    logger.info(f"Issued verification code for {email}")
    return ttl


async def verify_code(db: AsyncSession, redis: Redis, email: str, code: str) -> None:
    """
    Redeem a code (single use).

    An existing organization with that address gets email_verified set.

    Raises:
        CodeNotFoundError: No live code for the address
        InvalidCodeError: Wrong code
    """
    result = await code_store.redeem_code(redis, email, code)
    if result != CodeCheck.VALID:
        logger.warning(f"Verification code rejected for {email}: {result.value}")
        _raise_for(result)

    await code_store.mark_verified(redis, email, settings.verification_code_ttl_seconds)

    organization = await organization_repository.get_by_email(db, email)
    if organization is not None and not organization.email_verified:
        organization.email_verified = True
        await db.commit()
        logger.info(f"Marked organization {organization.id} email as verified")

    logger.info(f"Verification code redeemed for {email}")


async def check_code(redis: Redis, email: str, code: str) -> None:
    """
    Validate a code without consuming it.

    Raises:
        CodeNotFoundError, InvalidCodeError
    """
    _raise_for(await code_store.check_code(redis, email, code))


async def consume_for_registration(redis: Redis, email: str, code: str | None) -> None:
    """
    Use up the proof of address ownership for a registration.

    A supplied code is redeemed first; otherwise (or if it was already
    redeemed through verify_code) the verified marker is consumed.

    Raises:
        CodeRequiredError: No code and no verified marker
        CodeNotFoundError, InvalidCodeError: Code supplied but unusable
    """
    result = CodeCheck.MISSING
    if code:
        result = await code_store.redeem_code(redis, email, code)
        if result == CodeCheck.VALID:
            return

    if await code_store.consume_verified(redis, email):
        return

    if not code:
        raise CodeRequiredError()
    logger.warning(f"Registration code rejected for {email}: {result.value}")
    _raise_for(result)
