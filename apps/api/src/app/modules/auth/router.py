"""
Authentication Router

Endpoints:
- POST /auth/login - Password login (admin, student, organization)
- POST /auth/register - Organization registration (multipart, with verification file)
- POST /auth/send-code - Email a one-time verification code
- POST /auth/verify-code - Redeem a code (single use)
- POST /auth/verify-code-frontend - Check a code without redeeming it
- POST /auth/validate-email - Run the registration email rules

Security:
- login, send-code and the verify endpoints are rate limited per client and address
- Codes live in Redis; code endpoints answer 503 without it
"""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from pydantic import ValidationError
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.rate_limit import client_ip, enforce_rate_limit
from app.core.redis import require_redis
from app.modules.approvals import service as approval_service
from app.modules.approvals.schemas import RegistrationForm, RegistrationResponse
from app.modules.approvals.service import ApprovalServiceError
from app.modules.auth import service
from app.modules.auth.schemas import (
    LoginRequest,
    LoginResponse,
    SendCodeRequest,
    SendCodeResponse,
    ValidateEmailRequest,
    ValidateEmailResponse,
    VerifyCodeRequest,
    VerifyCodeResponse,
)
from app.modules.auth.service import AuthServiceError
from app.modules.verification import service as verification_service
from app.modules.verification.service import VerificationServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Rate Limiting Configuration
# ============================================

RATE_LIMIT_LOGIN = (10, 900)  # 10 attempts per 15 minutes
RATE_LIMIT_SEND_CODE = (5, 3600)  # 5 codes per hour
RATE_LIMIT_VERIFY_CODE = (10, 900)  # 10 guesses per 15 minutes


def _handle_service_error(
    e: AuthServiceError | VerificationServiceError | ApprovalServiceError,
) -> None:
    detail = {"error": e.error_code, "message": e.message}
    detail.update(getattr(e, "extra", {}))
    raise HTTPException(status_code=e.status_code, detail=detail) from e


# ============================================
# Login
# ============================================


@router.post("/login", response_model=LoginResponse, summary="Login")
async def login(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    """
    Authenticate and return JWT tokens.

    Raises:
        HTTPException 401: Invalid credentials, unverified email, inactive account
        HTTPException 429: Too many attempts
    """
    await enforce_rate_limit(f"login:{client_ip(request)}", *RATE_LIMIT_LOGIN)

    try:
        result = await service.login(db, credentials.email, credentials.password)
    except AuthServiceError as e:
        _handle_service_error(e)

    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        user=result.user,
    )


# ============================================
# Registration
# ============================================


@router.post(
    "/register",
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register Organization",
    description="""
Submit an organization registration as multipart form data.

The address must be proven first: either pass the emailed
`verification_code`, or redeem it beforehand through /auth/verify-code.
The organization is created in `pending` status together with a review
ticket; it becomes usable once an admin approves it.
""",
)
async def register(
    name: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    org_type: str = Form(...),
    description: str = Form(""),
    president: str | None = Form(None),
    founded: str | None = Form(None),
    website: str | None = Form(None),
    members: int = Form(0),
    verification_code: str | None = Form(None),
    role: str = Form("organization"),
    verification_file: UploadFile | None = File(None),
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(require_redis),
) -> RegistrationResponse:
    if role != "organization":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "REGISTRATION_NOT_AVAILABLE",
                "message": (
                    "Manual registration for students is not available. "
                    "Please use Google sign-in."
                ),
            },
        )

    try:
        form = RegistrationForm(
            name=name,
            email=email,
            password=password,
            org_type=org_type,
            description=description,
            president=president or None,
            founded=founded or None,
            website=website or None,
            members=members,
            verification_code=verification_code or None,
        )
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "VALIDATION_ERROR",
                "message": "Validation failed",
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in e.errors()
                ],
            },
        ) from e

    try:
        approval = await approval_service.submit_registration(db, redis, form, verification_file)
    except (ApprovalServiceError, VerificationServiceError) as e:
        _handle_service_error(e)

    return RegistrationResponse(approval_id=approval.id)


# ============================================
# Verification Codes
# ============================================


@router.post("/send-code", response_model=SendCodeResponse, summary="Send Verification Code")
async def send_code(
    data: SendCodeRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(require_redis),
) -> SendCodeResponse:
    email = data.email.strip().lower()
    await enforce_rate_limit(f"send_code:{email}", *RATE_LIMIT_SEND_CODE)
    await enforce_rate_limit(f"send_code_ip:{client_ip(request)}", *RATE_LIMIT_SEND_CODE)

    try:
        ttl = await verification_service.issue_code(db, redis, email)
    except VerificationServiceError as e:
        _handle_service_error(e)

    return SendCodeResponse(expires_in_seconds=ttl)


@router.post("/verify-code", response_model=VerifyCodeResponse, summary="Verify Code")
async def verify_code(
    data: VerifyCodeRequest,
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(require_redis),
) -> VerifyCodeResponse:
    email = data.email.strip().lower()
    await enforce_rate_limit(f"verify_code:{email}", *RATE_LIMIT_VERIFY_CODE)

    try:
        await verification_service.verify_code(db, redis, email, data.code)
    except VerificationServiceError as e:
        _handle_service_error(e)

    return VerifyCodeResponse(message="Email verified successfully")


@router.post(
    "/verify-code-frontend",
    response_model=VerifyCodeResponse,
    summary="Check Code",
    description="Checks a code without consuming it; registration still needs the code.",
)
async def verify_code_frontend(
    data: VerifyCodeRequest,
    redis: Redis = Depends(require_redis),
) -> VerifyCodeResponse:
    email = data.email.strip().lower()
    await enforce_rate_limit(f"verify_code:{email}", *RATE_LIMIT_VERIFY_CODE)

    try:
        await verification_service.check_code(redis, email, data.code)
    except VerificationServiceError as e:
        _handle_service_error(e)

    return VerifyCodeResponse(message="Verification code is valid")


@router.post("/validate-email", response_model=ValidateEmailResponse, summary="Validate Email")
async def validate_email(
    data: ValidateEmailRequest,
    db: AsyncSession = Depends(get_db),
) -> ValidateEmailResponse:
    try:
        await verification_service.validate_registration_email(db, data.email.strip(), data.role)
    except VerificationServiceError as e:
        return ValidateEmailResponse(success=False, valid=False, message=e.message)

    return ValidateEmailResponse(success=True, valid=True, message="Email is valid")
