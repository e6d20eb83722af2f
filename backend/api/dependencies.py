"""
Dependency injection setup for FastAPI.

This module provides the "container" that wires together all module
implementations. Each module exposes its service through an interface,
and this file creates the concrete implementations.

The application stores its container on ``app.state.container``; the
dependency functions below read it from there, so tests can build an
app around a container holding fakes.
"""

import logging
from typing import TYPE_CHECKING, Optional

from fastapi import Request

from shared.config import Settings, get_settings

# Type checking imports for interfaces (avoids circular imports)
if TYPE_CHECKING:
    from modules.auth.interfaces import IAuthService
    from modules.auth.passwords import PasswordHasher
    from modules.auth.tokens import JWTManager
    from modules.email.interfaces import IEmailSender
    from modules.users.interfaces import IUserRepository, IUserService
    from api.middleware.rate_limit import SlidingWindowRateLimiter

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for all service instances.

    This class manages the lifecycle of service instances and their
    dependencies. Services are created lazily on first access.

    All services are cached as singletons within the container.
    Collaborators passed to the constructor are used instead of the
    configured implementations. Use reset() to clear cached services.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        user_repository: "IUserRepository | None" = None,
        email_sender: "IEmailSender | None" = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._injected_repository = user_repository
        self._injected_email_sender = email_sender
        self.reset()

    @property
    def user_repository(self) -> "IUserRepository":
        """Get the user store selected by USER_STORE_BACKEND."""
        if self._user_repository is None:
            backend = self.settings.user_store_backend.lower()
            if backend == "supabase":
                from modules.users.repository import SupabaseUserRepository
                from shared.database import get_supabase_client
                self._user_repository = SupabaseUserRepository(get_supabase_client(self.settings))
            elif backend == "memory":
                from modules.users.repository import InMemoryUserRepository
                self._user_repository = InMemoryUserRepository()
            else:
                raise ValueError(f"Unknown user store backend: {backend}")
            logger.info(f"Using '{backend}' user store")
        return self._user_repository

    @property
    def email_sender(self) -> "IEmailSender":
        """Get the outbound email sender."""
        if self._email_sender is None:
            from modules.email.sender import SMTPEmailSender
            self._email_sender = SMTPEmailSender.from_settings(self.settings)
        return self._email_sender

    @property
    def password_hasher(self) -> "PasswordHasher":
        if self._password_hasher is None:
            from modules.auth.passwords import PasswordHasher
            self._password_hasher = PasswordHasher(rounds=self.settings.bcrypt_rounds)
        return self._password_hasher

    @property
    def jwt_manager(self) -> "JWTManager":
        if self._jwt_manager is None:
            from modules.auth.tokens import JWTManager
            s = self.settings
            self._jwt_manager = JWTManager(
                access_secret=s.jwt_access_secret,
                refresh_secret=s.jwt_refresh_secret,
                access_ttl=s.access_token_ttl,
                refresh_ttl=s.refresh_token_ttl,
                issuer=s.jwt_issuer,
                algorithm=s.jwt_algorithm,
            )
        return self._jwt_manager

    @property
    def auth(self) -> "IAuthService":
        """Get the auth service instance."""
        if self._auth_service is None:
            from modules.auth.service import AuthService
            self._auth_service = AuthService(
                users=self.user_repository,
                jwt_manager=self.jwt_manager,
                email_sender=self.email_sender,
                hasher=self.password_hasher,
                secret_token_ttl=self.settings.secret_token_ttl,
                timeout=self.settings.collaborator_timeout_seconds,
            )
        return self._auth_service

    @property
    def users(self) -> "IUserService":
        """Get the user management service instance."""
        if self._user_service is None:
            from modules.users.service import UserService
            self._user_service = UserService(
                repository=self.user_repository,
                timeout=self.settings.collaborator_timeout_seconds,
            )
        return self._user_service

    @property
    def rate_limiter(self) -> "SlidingWindowRateLimiter":
        if self._rate_limiter is None:
            from api.middleware.rate_limit import SlidingWindowRateLimiter
            self._rate_limiter = SlidingWindowRateLimiter(
                limit=self.settings.rate_limit_requests,
                window=self.settings.rate_limit_window,
            )
        return self._rate_limiter

    def reset(self) -> None:
        """
        Reset all cached services.

        This is primarily for testing - allows tests to get fresh
        service instances with different mock dependencies.
        """
        self._user_repository: "IUserRepository | None" = self._injected_repository
        self._email_sender: "IEmailSender | None" = self._injected_email_sender
        self._password_hasher: "PasswordHasher | None" = None
        self._jwt_manager: "JWTManager | None" = None
        self._auth_service: "IAuthService | None" = None
        self._user_service: "IUserService | None" = None
        self._rate_limiter: "SlidingWindowRateLimiter | None" = None


# Module-level container singleton
_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the singleton service container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """
    Reset the service container.

    This clears the cached container, so the next call to get_container()
    will create a fresh container with new service instances.

    Primarily used for testing.
    """
    global _container
    _container = None


# FastAPI dependency functions
# These are the functions that should be used in route Depends() calls


def get_request_container(request: Request) -> ServiceContainer:
    """Container of the application serving this request."""
    return getattr(request.app.state, "container", None) or get_container()


def get_auth_service(request: Request) -> "IAuthService":
    """FastAPI dependency for auth service."""
    return get_request_container(request).auth


def get_user_service(request: Request) -> "IUserService":
    """FastAPI dependency for user management service."""
    return get_request_container(request).users
