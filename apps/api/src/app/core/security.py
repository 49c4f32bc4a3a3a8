"""Security utilities for password hashing and JWT tokens."""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import get_settings

# Password hashing context using bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Verify a password against its hash. Accounts without a hash never match."""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def _encode(claims: dict[str, Any], expire: datetime) -> str:
    settings = get_settings()
    to_encode = {**claims, "exp": expire, "iat": datetime.now(UTC)}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    additional_claims: dict[str, Any] | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        subject: The subject of the token (the principal's integer id as a string)
        expires_delta: Optional custom expiration time
        additional_claims: Extra claims such as role, email and name

    Returns:
        Encoded JWT token string
    """
    settings = get_settings()
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims: dict[str, Any] = {"sub": subject, "type": "access"}
    if additional_claims:
        claims.update(additional_claims)
    return _encode(claims, expire)


def create_refresh_token(subject: str) -> str:
    """Create a long-lived refresh token carrying only the subject."""
    settings = get_settings()
    expire = datetime.now(UTC) + timedelta(days=settings.refresh_token_expire_days)
    return _encode({"sub": subject, "type": "refresh"}, expire)


def decode_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT.

    Returns:
        Token payload if valid, None otherwise
    """
    settings = get_settings()
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
