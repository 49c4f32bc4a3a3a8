"""Authentication schemas."""

from typing import Any

from pydantic import BaseModel, Field

from app.modules.verification.email_rules import EmailRole


class LoginRequest(BaseModel):
    """Login request schema."""

    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)


class LoginResponse(BaseModel):
    """Login response schema."""

    success: bool = True
    message: str = "Login successful"
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: dict[str, Any]


class SendCodeRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)


class SendCodeResponse(BaseModel):
    success: bool = True
    message: str = "Verification code sent successfully"
    expires_in_seconds: int


class VerifyCodeRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


class VerifyCodeResponse(BaseModel):
    success: bool = True
    message: str


class ValidateEmailRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    role: EmailRole = EmailRole.ORGANIZATION


class ValidateEmailResponse(BaseModel):
    """Outcome of the registration email rules; failures are not HTTP errors."""

    success: bool
    valid: bool
    message: str
