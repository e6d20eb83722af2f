"""
Users module interfaces.

IUserRepository is the contract for the user store. Methods are synchronous;
services call them through shared.concurrency.call_with_timeout. A return of
None (or False) means "not found"; anything else that goes wrong is raised.

IUserService is what the API layer depends on for user management.
"""

from datetime import datetime
from typing import Protocol, Optional, runtime_checkable

from .models import User, UserRole, UserResponse, CreateUserRequest, UpdateUserRequest


@runtime_checkable
class IUserRepository(Protocol):
    """Contract for user record storage."""

    def create_user(self, name: str, email: str) -> User:
        """
        Create a user without credentials.

        Raises:
            UserAlreadyExistsError: If the email is taken
        """
        ...

    def create_user_with_credentials(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole,
        verification_token: str,
        verification_expires_at: datetime,
    ) -> User:
        """
        Create an unverified user with a password and a pending verification token.

        Raises:
            UserAlreadyExistsError: If the email is taken
        """
        ...

    def get_by_id(self, user_id: int) -> Optional[User]:
        ...

    def get_by_email(self, email: str) -> Optional[User]:
        ...

    def get_by_email_with_password(self, email: str) -> Optional[User]:
        """Like get_by_email, but guaranteed to include the password hash."""
        ...

    def get_by_verification_token(self, token: str) -> Optional[User]:
        ...

    def get_by_password_reset_token(self, token: str) -> Optional[User]:
        ...

    def update_name(self, user_id: int, name: str) -> Optional[User]:
        ...

    def set_verified(self, token: str) -> bool:
        """
        Mark the holder of ``token`` verified and clear the token and expiry.

        Returns:
            False if no user holds the token
        """
        ...

    def set_verification_token(
        self, user_id: int, token: str, expires_at: datetime
    ) -> bool:
        ...

    def set_password_reset_token(
        self, user_id: int, token: str, expires_at: datetime
    ) -> bool:
        ...

    def reset_password(self, token: str, password_hash: str) -> bool:
        """
        Set a new password hash and clear the reset token in one write.

        The write is conditional on the token still being present, so a
        token can be used at most once.

        Returns:
            False if no user holds the token
        """
        ...

    def delete(self, user_id: int) -> bool:
        ...

    def list_all(self) -> list[User]:
        ...

    def ping(self) -> None:
        """Raise if the store cannot be reached."""
        ...


@runtime_checkable
class IUserService(Protocol):
    """Interface for user management operations."""

    async def create_user(self, request: CreateUserRequest) -> UserResponse:
        ...

    async def get_user(self, user_id: int) -> UserResponse:
        ...

    async def update_user(self, user_id: int, request: UpdateUserRequest) -> UserResponse:
        ...

    async def delete_user(self, user_id: int) -> None:
        ...

    async def list_users(self) -> list[UserResponse]:
        ...

    async def find_user(self, user_id: int) -> Optional[UserResponse]:
        """
        Look up a user without raising when it is missing.

        Used by role-gated routes on every request so that role changes
        take effect immediately.

        Returns:
            The user, or None if it no longer exists
        """
        ...
