"""
Authentication module data models.

These models define the data structures used by the auth module
and exposed to other modules through the interface.
"""

import re
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, EmailStr, field_validator

from modules.users.models import UserResponse

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
# bcrypt ignores everything past this many bytes
PASSWORD_MAX_BYTES = 72

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"[0-9]")
_SPECIAL = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?]""")


def check_password_strength(password: str) -> str:
    """
    Enforce the password rule.

    Raises:
        ValueError: Naming the first requirement the password misses
    """
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError(f"password must be at most {PASSWORD_MAX_BYTES} bytes")
    if not _UPPER.search(password):
        raise ValueError("password must contain at least one uppercase letter")
    if not _LOWER.search(password):
        raise ValueError("password must contain at least one lowercase letter")
    if not _DIGIT.search(password):
        raise ValueError("password must contain at least one digit")
    if not _SPECIAL.search(password):
        raise ValueError("password must contain at least one special character")
    return password


class TokenClaims(BaseModel):
    """
    Decoded claims of an access or refresh token.

    ``sub`` carries the email, ``user_id`` the numeric user ID.
    """

    user_id: int = Field(..., description="User ID")
    email: str = Field(..., description="User's email")
    sub: str = Field(..., description="Subject (email)")
    iss: str = Field(..., description="Issuer")
    iat: int = Field(..., description="Issued at timestamp")
    nbf: int = Field(..., description="Not valid before timestamp")
    exp: int = Field(..., description="Expiration timestamp")


class TokenPair(BaseModel):
    """Access and refresh token issued together."""

    access_token: str
    refresh_token: str
    expires_at: datetime = Field(..., description="Access token expiry")


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request to register a new account."""

    name: str = Field(..., min_length=2, max_length=100, description="Display name")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        description="Password",
    )

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


class LoginRequest(BaseModel):
    """Request to log in with email and password."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    """Request to exchange a refresh token for a new access token."""

    refresh_token: str = Field(..., min_length=1)


class VerifyEmailRequest(BaseModel):
    """Email verification token, when sent in the body rather than the query."""

    token: Optional[str] = None


class ResendVerificationRequest(BaseModel):
    """Request a new verification email."""

    email: EmailStr


class ForgotPasswordRequest(BaseModel):
    """Request a password reset email."""

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Set a new password using a reset token (body or query)."""

    token: Optional[str] = None
    password: str = Field(
        ...,
        min_length=PASSWORD_MIN_LENGTH,
        max_length=PASSWORD_MAX_LENGTH,
        description="New password",
    )

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password_strength(v)


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------


class AuthResponse(BaseModel):
    """User view plus a freshly issued token pair."""

    user: UserResponse
    access_token: str
    refresh_token: str
    expires_at: datetime


class TokenResponse(BaseModel):
    """New access token issued from a refresh token."""

    access_token: str
    expires_at: datetime


class ResetPasswordInstructions(BaseModel):
    """Returned when a reset link is opened with GET."""

    token: str
    instructions: str
    example: dict
