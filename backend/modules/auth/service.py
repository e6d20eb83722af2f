"""
Authentication service implementation.

Orchestrates registration, login, token refresh, email verification and
password reset on top of the user store, the email sender, the password
hasher and the JWT manager.
"""

import asyncio
import logging
from datetime import timedelta
from typing import Any, Callable

from shared.concurrency import call_with_timeout
from shared.exceptions import AuthenticationError, ExternalServiceError
from modules.email.interfaces import IEmailSender
from modules.users.exceptions import UserAlreadyExistsError, UserNotFoundError
from modules.users.interfaces import IUserRepository
from modules.users.models import User, UserResponse, UserRole

from .exceptions import (
    EmailAlreadyVerifiedError,
    InvalidCredentialsError,
    InvalidPasswordResetTokenError,
    InvalidRefreshTokenError,
    InvalidTokenFormatError,
    InvalidVerificationTokenError,
)
from .interfaces import IAuthService
from .models import AuthResponse, TokenClaims, TokenResponse
from .passwords import PasswordHasher
from .secret_tokens import (
    DEFAULT_TOKEN_TTL,
    generate_secret_token_with_expiry,
    is_token_expired,
    validate_token_format,
)
from .tokens import JWTManager

logger = logging.getLogger(__name__)


def _token_prefix(token: str) -> str:
    return f"{token[:8]}..."


class AuthService(IAuthService):
    """
    Implementation of the authentication service.

    Store and email calls run in worker threads with a bounded timeout
    (see shared.concurrency). Password hashing also runs off the event
    loop since bcrypt is deliberately slow.
    """

    def __init__(
        self,
        users: IUserRepository,
        jwt_manager: JWTManager,
        email_sender: IEmailSender,
        hasher: PasswordHasher,
        secret_token_ttl: timedelta = DEFAULT_TOKEN_TTL,
        timeout: float = 5.0,
    ):
        self._users = users
        self._jwt = jwt_manager
        self._email = email_sender
        self._hasher = hasher
        self._token_ttl = secret_token_ttl
        self._timeout = timeout

    async def _store(self, func: Callable[..., Any], *args: Any) -> Any:
        return await call_with_timeout(
            func, *args, service="user_store", timeout=self._timeout
        )

    async def _mail(self, func: Callable[..., Any], *args: Any) -> None:
        await call_with_timeout(func, *args, service="email", timeout=self._timeout)

    def _auth_response(self, user: User) -> AuthResponse:
        pair = self._jwt.issue_pair(user.id, user.email)
        return AuthResponse(
            user=user.to_response(),
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            expires_at=pair.expires_at,
        )

    # -------------------------------------------------------------------------
    # Registration and login
    # -------------------------------------------------------------------------

    async def register(self, name: str, email: str, password: str) -> AuthResponse:
        existing = await self._store(self._users.get_by_email, email)
        if existing is not None:
            raise UserAlreadyExistsError(email)

        password_hash = await asyncio.to_thread(self._hasher.hash, password)
        token, expires_at = generate_secret_token_with_expiry(self._token_ttl)

        user = await self._store(
            self._users.create_user_with_credentials,
            name,
            email,
            password_hash,
            UserRole.USER,
            token,
            expires_at,
        )
        logger.info(f"Registered user {user.id} ({user.email})")

        try:
            await self._mail(self._email.send_verification_email, user.email, user.name, token)
        except ExternalServiceError as e:
            # Registration stands; the user can ask for another email later.
            logger.warning(f"Verification email for user {user.id} not sent: {e.message}")

        return self._auth_response(user)

    async def login(self, email: str, password: str) -> AuthResponse:
        user = await self._store(self._users.get_by_email_with_password, email)
        if user is None or not user.password_hash:
            await asyncio.to_thread(self._hasher.verify_dummy, password)
            logger.info("Login failed: unknown email")
            raise InvalidCredentialsError()

        matches = await asyncio.to_thread(self._hasher.verify, password, user.password_hash)
        if not matches:
            logger.info(f"Login failed for user {user.id}: wrong password")
            raise InvalidCredentialsError()

        logger.info(f"User {user.id} logged in")
        return self._auth_response(user)

    async def refresh_token(self, refresh_token: str) -> TokenResponse:
        try:
            access_token = self._jwt.refresh_access(refresh_token)
        except AuthenticationError as e:
            logger.info(f"Refresh rejected: {e.code}")
            raise InvalidRefreshTokenError() from e
        return TokenResponse(
            access_token=access_token,
            expires_at=self._jwt.access_expires_at(),
        )

    async def get_profile(self, user_id: int) -> UserResponse:
        user = await self._store(self._users.get_by_id, user_id)
        if user is None:
            raise UserNotFoundError(user_id=user_id)
        return user.to_response()

    def validate_access_token(self, token: str) -> TokenClaims:
        return self._jwt.validate_access(token)

    # -------------------------------------------------------------------------
    # Email verification
    # -------------------------------------------------------------------------

    async def verify_email(self, token: str) -> None:
        try:
            validate_token_format(token)
        except InvalidTokenFormatError as e:
            raise InvalidVerificationTokenError() from e

        user = await self._store(self._users.get_by_verification_token, token)
        if user is None:
            logger.info(f"Unknown verification token {_token_prefix(token)}")
            raise InvalidVerificationTokenError()

        if user.email_verified:
            raise EmailAlreadyVerifiedError()

        if is_token_expired(user.email_verification_expires_at):
            logger.info(f"Expired verification token for user {user.id}")
            raise InvalidVerificationTokenError("Verification token has expired")

        if not await self._store(self._users.set_verified, token):
            # Consumed by a concurrent request between lookup and update
            raise InvalidVerificationTokenError()

        logger.info(f"Email verified for user {user.id}")

    async def resend_verification_email(self, email: str) -> None:
        user = await self._store(self._users.get_by_email, email)
        if user is None:
            raise UserNotFoundError(email=email)

        if user.email_verified:
            raise EmailAlreadyVerifiedError()

        token, expires_at = generate_secret_token_with_expiry(self._token_ttl)
        await self._store(self._users.set_verification_token, user.id, token, expires_at)
        await self._mail(self._email.send_verification_email, user.email, user.name, token)
        logger.info(f"Verification email resent for user {user.id}")

    # -------------------------------------------------------------------------
    # Password reset
    # -------------------------------------------------------------------------

    async def forgot_password(self, email: str) -> None:
        user = await self._store(self._users.get_by_email, email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        token, expires_at = generate_secret_token_with_expiry(self._token_ttl)
        await self._store(self._users.set_password_reset_token, user.id, token, expires_at)
        await self._mail(self._email.send_password_reset_email, user.email, user.name, token)
        logger.info(f"Password reset email sent for user {user.id}")

    def validate_reset_token(self, token: str) -> None:
        try:
            validate_token_format(token)
        except InvalidTokenFormatError as e:
            raise InvalidPasswordResetTokenError() from e

    async def reset_password(self, token: str, new_password: str) -> None:
        self.validate_reset_token(token)

        user = await self._store(self._users.get_by_password_reset_token, token)
        if user is None:
            logger.info(f"Unknown password reset token {_token_prefix(token)}")
            raise InvalidPasswordResetTokenError()

        if is_token_expired(user.password_reset_expires_at):
            logger.info(f"Expired password reset token for user {user.id}")
            raise InvalidPasswordResetTokenError("Password reset token has expired")

        password_hash = await asyncio.to_thread(self._hasher.hash, new_password)
        if not await self._store(self._users.reset_password, token, password_hash):
            raise InvalidPasswordResetTokenError()

        logger.info(f"Password reset for user {user.id}")
