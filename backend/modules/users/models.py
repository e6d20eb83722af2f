"""
Users module data models.

The User record is owned by the user store and carries credentials and
one-time tokens. Only UserResponse is ever serialized to clients.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, EmailStr


class UserRole(str, Enum):
    """Roles available for role-based access control."""

    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(BaseModel):
    """
    A stored user record.

    Invariants:
    - A verification token is always accompanied by its expiry.
    - A password reset token is cleared in the same write that changes the hash.
    """

    id: int
    name: str
    email: str
    password_hash: Optional[str] = None
    role: UserRole = UserRole.USER
    email_verified: bool = False
    email_verification_token: Optional[str] = None
    email_verification_expires_at: Optional[datetime] = None
    password_reset_token: Optional[str] = None
    password_reset_expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def to_response(self) -> "UserResponse":
        """Build the outward view of this record."""
        return UserResponse(
            id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            email_verified=self.email_verified,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class UserResponse(BaseModel):
    """User as returned by the API. Never carries secrets."""

    id: int = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    role: UserRole = Field(..., description="Access role")
    email_verified: bool = Field(..., description="Whether the email address is verified")
    created_at: datetime = Field(..., description="Account creation time")
    updated_at: datetime = Field(..., description="Last update time")


class CreateUserRequest(BaseModel):
    """Admin request to create a user without credentials."""

    name: str = Field(..., min_length=2, max_length=100, description="Display name")
    email: EmailStr = Field(..., description="Email address")


class UpdateUserRequest(BaseModel):
    """Request to update a user's profile."""

    name: Optional[str] = Field(
        default=None,
        min_length=2,
        max_length=100,
        description="New display name",
    )
