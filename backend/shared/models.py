"""
Shared data models used across modules.

These models are shared infrastructure, not business logic.
Module-specific models should stay in their respective module directories.
"""

from pydantic import BaseModel, Field


class AuthenticatedUser(BaseModel):
    """
    Represents an authenticated user in the system.

    This model is populated from access token claims and made available
    to route handlers via dependency injection.

    Role is not carried here: it can change after the token was issued,
    so role checks always re-read the user record.
    """

    id: int = Field(..., description="User ID")
    email: str = Field(..., description="User's email address")

    model_config = {
        "frozen": True,
        "extra": "ignore",  # extra JWT claims
    }
