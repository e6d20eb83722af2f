"""
Users module exceptions.
"""

from typing import Optional

from shared.exceptions import NotFoundError, ConflictError


class UserNotFoundError(NotFoundError):
    """Raised when a user record does not exist."""

    def __init__(self, user_id: Optional[int] = None, email: Optional[str] = None):
        details: dict = {}
        if user_id is not None:
            details["user_id"] = user_id
        if email is not None:
            details["email"] = email
        super().__init__("User not found", code="USER_NOT_FOUND", details=details)


class UserAlreadyExistsError(ConflictError):
    """Raised when creating a user with an email that is already registered."""

    def __init__(self, email: str):
        super().__init__(
            "User with this email already exists",
            code="USER_ALREADY_EXISTS",
            details={"email": email},
        )
