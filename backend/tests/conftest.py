"""
Shared test fixtures and utilities.

This module provides common test infrastructure used across all test modules.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from api.dependencies import ServiceContainer
from modules.auth.passwords import PasswordHasher
from modules.auth.service import AuthService
from modules.auth.tokens import JWTManager
from modules.users.models import User, UserRole
from modules.users.repository import InMemoryUserRepository
from modules.users.service import UserService
from shared.config import Settings


# Test JWT secrets (only for testing)
TEST_ACCESS_SECRET = "test-access-secret-for-testing-only"
TEST_REFRESH_SECRET = "test-refresh-secret-for-testing-only"

TEST_PASSWORD = "Str0ng!Pass"


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment, with fast bcrypt."""
    return Settings(
        _env_file=None,
        jwt_access_secret=TEST_ACCESS_SECRET,
        jwt_refresh_secret=TEST_REFRESH_SECRET,
        bcrypt_rounds=4,
        user_store_backend="memory",
        rate_limit_requests=1000,
        collaborator_timeout_seconds=2.0,
        public_base_url="http://testserver",
    )


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def email_sender() -> MagicMock:
    """Email sender that records calls instead of talking to SMTP."""
    sender = MagicMock()
    sender.send_verification_email.return_value = None
    sender.send_password_reset_email.return_value = None
    return sender


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def jwt_manager() -> JWTManager:
    return JWTManager(
        access_secret=TEST_ACCESS_SECRET,
        refresh_secret=TEST_REFRESH_SECRET,
        access_ttl=timedelta(minutes=30),
        refresh_ttl=timedelta(days=7),
        issuer="portcullis",
    )


@pytest.fixture
def auth_service(user_repository, jwt_manager, email_sender, hasher) -> AuthService:
    return AuthService(
        users=user_repository,
        jwt_manager=jwt_manager,
        email_sender=email_sender,
        hasher=hasher,
        timeout=2.0,
    )


@pytest.fixture
def user_service(user_repository) -> UserService:
    return UserService(repository=user_repository, timeout=2.0)


@pytest.fixture
def container(test_settings, user_repository, email_sender) -> ServiceContainer:
    """Service container wired with the in-memory store and the mock sender."""
    return ServiceContainer(
        settings=test_settings,
        user_repository=user_repository,
        email_sender=email_sender,
    )


@pytest.fixture
def client(container) -> TestClient:
    """Test client for an app built around the test container."""
    return TestClient(create_app(container))


@pytest.fixture
def make_user(user_repository, hasher):
    """
    Factory that stores a user with a password and returns the record.

    Usage:
        admin = make_user("admin@example.com", role=UserRole.ADMIN)
    """

    def _make_user(
        email: str = "test@example.com",
        name: str = "Test User",
        role: UserRole = UserRole.USER,
        verified: bool = True,
        password: str = TEST_PASSWORD,
    ) -> User:
        user = user_repository.create_user_with_credentials(
            name=name,
            email=email,
            password_hash=hasher.hash(password),
            role=role,
            verification_token="a" * 64,
            verification_expires_at=datetime.now(timezone.utc) + timedelta(hours=24),
        )
        if verified:
            user_repository.set_verified("a" * 64)
            user = user_repository.get_by_id(user.id)
        else:
            # Distinct tokens so several unverified users can coexist
            token = f"{user.id:064x}"
            user_repository.set_verification_token(
                user.id, token, datetime.now(timezone.utc) + timedelta(hours=24)
            )
            user = user_repository.get_by_id(user.id)
        return user

    return _make_user


@pytest.fixture
def auth_headers_for(container):
    """Build Authorization headers carrying an access token for a user."""

    def _headers(user: User) -> dict[str, str]:
        pair = container.jwt_manager.issue_pair(user.id, user.email)
        return {"Authorization": f"Bearer {pair.access_token}"}

    return _headers
