"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
Tokens identify one of three principal kinds (admin, student,
organization) by integer id, with the role carried as a claim.

SECURITY NOTE:
- Development mode auth bypass is ONLY enabled when PYTHON_ENV=development
- Production environments MUST set PYTHON_ENV=production to disable test tokens
"""

import logging
import os
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.security import decode_token

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation
security = HTTPBearer(
    auto_error=False,
    description="JWT Bearer token for authentication",
)


class PrincipalRole(str, Enum):
    """Kinds of authenticated principals."""

    ADMIN = "admin"
    STUDENT = "student"
    ORGANIZATION = "organization"


@dataclass
class CurrentUser:
    """
    Represents an authenticated principal.

    Populated from JWT claims after token validation.

    Attributes:
        id: Integer id within the principal's own table
        email: Email address
        role: admin, student or organization
        name: Display name (optional)
    """

    id: int
    email: str
    role: PrincipalRole
    name: str | None = None

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, email={self.email}, role={self.role.value})"


def _is_dev_mode_safe() -> bool:
    """
    Check if development mode is safe to enable.

    Requires settings.is_development, not settings.is_production, and a
    PYTHON_ENV environment variable that is neither production nor staging.
    """
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in ("production", "staging")
    )

    if is_safe:
        logger.warning(
            "SECURITY: Development auth mode is ENABLED. This MUST NOT be used in production!"
        )

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

_DEV_ADMIN = CurrentUser(
    id=1,
    email="admin@oneau.dev",
    role=PrincipalRole.ADMIN,
    name="Development Admin",
)


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _dev_token_user(token: str) -> CurrentUser | None:
    """
    Resolve development tokens.

    "dev-token" is the development admin; "dev-<role>-<id>" impersonates
    any principal, e.g. "dev-organization-3".
    """
    if token == "dev-token":
        return _DEV_ADMIN

    parts = token.split("-")
    if len(parts) == 3 and parts[0] == "dev" and parts[2].isdigit():
        try:
            role = PrincipalRole(parts[1])
        except ValueError:
            return None
        principal_id = int(parts[2])
        return CurrentUser(
            id=principal_id,
            email=f"{role.value}-{principal_id}@oneau.dev",
            role=role,
            name=f"Test {role.value.title()}",
        )
    return None


async def _validate_jwt_token(token: str) -> CurrentUser:
    """
    Validate JWT token and extract principal claims.

    Raises:
        HTTPException 401: If token is invalid, expired or has bad claims
    """
    if _DEVELOPMENT_MODE:
        dev_user = _dev_token_user(token)
        if dev_user is not None:
            logger.debug("Development mode: Using test token")
            return dev_user

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired token")

    token_type = payload.get("type", "access")
    if token_type != "access":
        logger.warning(f"Invalid token type: {token_type}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        return CurrentUser(
            id=int(payload["sub"]),
            email=payload.get("email", ""),
            role=PrincipalRole(payload.get("role", "")),
            name=payload.get("name"),
        )
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency that validates the bearer token.

    Raises:
        HTTPException 401: If the token is missing, invalid, or expired
    """
    if credentials is None:
        raise _unauthorized("TOKEN_REQUIRED", "Access token required")

    user = await _validate_jwt_token(credentials.credentials)
    logger.debug(f"Authenticated {user}")
    return user


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser | None:
    """
    Optional authentication dependency.

    Returns the principal if a valid token is provided, or None otherwise.
    """
    if not credentials:
        return None

    try:
        return await _validate_jwt_token(credentials.credentials)
    except HTTPException:
        return None


def require_roles(*roles: PrincipalRole) -> Callable[..., Awaitable[CurrentUser]]:
    """
    Build a dependency that only admits the given roles.

    Usage:
        @router.post("/events")
        async def create_event(
            user: CurrentUser = Depends(require_roles(PrincipalRole.ORGANIZATION)),
        ): ...
    """

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            logger.warning(
                f"Access denied: {user} tried an endpoint restricted to "
                f"{[r.value for r in roles]}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "INSUFFICIENT_PERMISSIONS",
                    "message": "Insufficient permissions",
                },
            )
        return user

    return dependency


get_current_admin_user = require_roles(PrincipalRole.ADMIN)
get_current_student = require_roles(PrincipalRole.STUDENT)
get_current_organization = require_roles(PrincipalRole.ORGANIZATION)


__all__ = [
    "CurrentUser",
    "PrincipalRole",
    "get_current_user",
    "get_optional_user",
    "require_roles",
    "get_current_admin_user",
    "get_current_student",
    "get_current_organization",
]
