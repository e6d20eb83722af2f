import asyncio
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from shared.exceptions import ExternalServiceError
from modules.auth.exceptions import (
    EmailAlreadyVerifiedError,
    InvalidCredentialsError,
    InvalidPasswordResetTokenError,
    InvalidRefreshTokenError,
    InvalidVerificationTokenError,
)
from modules.auth.service import AuthService
from modules.email.exceptions import EmailDeliveryError
from modules.users.exceptions import UserAlreadyExistsError, UserNotFoundError
from modules.users.models import UserRole
from modules.users.repository import InMemoryUserRepository
from tests.conftest import TEST_PASSWORD


def _sent_token(mock_method) -> str:
    """Token passed to the last send_*_email call."""
    return mock_method.call_args.args[2]


def _past(hours: int = 1) -> datetime:
    return datetime.now(timezone.utc) - timedelta(hours=hours)


class TestRegister:
    @pytest.mark.asyncio
    async def test_register_creates_unverified_user(self, auth_service, user_repository):
        """Registration should store an unverified user with a hashed password."""
        result = await auth_service.register("Alice", "alice@example.com", TEST_PASSWORD)

        assert result.user.email == "alice@example.com"
        assert result.user.role == UserRole.USER
        assert result.user.email_verified is False

        stored = user_repository.get_by_email("alice@example.com")
        assert stored.password_hash != TEST_PASSWORD
        assert len(stored.email_verification_token) == 64
        assert stored.email_verification_expires_at is not None

    @pytest.mark.asyncio
    async def test_register_issues_working_tokens(self, auth_service, jwt_manager):
        result = await auth_service.register("Alice", "alice@example.com", TEST_PASSWORD)

        claims = jwt_manager.validate_access(result.access_token)
        assert claims.user_id == result.user.id
        assert jwt_manager.validate_refresh(result.refresh_token).user_id == result.user.id

    @pytest.mark.asyncio
    async def test_register_sends_verification_email(self, auth_service, email_sender, user_repository):
        await auth_service.register("Alice", "alice@example.com", TEST_PASSWORD)

        email_sender.send_verification_email.assert_called_once()
        to, name, token = email_sender.send_verification_email.call_args.args
        assert (to, name) == ("alice@example.com", "Alice")
        assert user_repository.get_by_email("alice@example.com").email_verification_token == token

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, auth_service, user_repository):
        """A second registration with the same email should conflict."""
        await auth_service.register("Alice", "alice@example.com", TEST_PASSWORD)

        with pytest.raises(UserAlreadyExistsError):
            await auth_service.register("Alice Again", "alice@example.com", TEST_PASSWORD)

        users = user_repository.list_all()
        assert len(users) == 1
        assert users[0].name == "Alice"

    @pytest.mark.asyncio
    async def test_register_survives_email_failure(self, auth_service, email_sender, user_repository):
        """Registration stands even if the verification email cannot be sent."""
        email_sender.send_verification_email.side_effect = EmailDeliveryError(
            "alice@example.com", "connection refused"
        )

        result = await auth_service.register("Alice", "alice@example.com", TEST_PASSWORD)

        assert result.access_token
        assert user_repository.get_by_email("alice@example.com") is not None

    @pytest.mark.asyncio
    async def test_register_survives_unexpected_sender_error(self, auth_service, email_sender):
        email_sender.send_verification_email.side_effect = RuntimeError("boom")

        result = await auth_service.register("Alice", "alice@example.com", TEST_PASSWORD)

        assert result.user.email == "alice@example.com"


class TestLogin:
    @pytest.mark.asyncio
    async def test_login_success(self, auth_service, make_user, jwt_manager):
        user = make_user("alice@example.com")

        result = await auth_service.login("alice@example.com", TEST_PASSWORD)

        assert result.user.id == user.id
        assert jwt_manager.validate_access(result.access_token).user_id == user.id

    @pytest.mark.asyncio
    async def test_login_allowed_before_verification(self, auth_service, make_user):
        make_user("alice@example.com", verified=False)

        result = await auth_service.login("alice@example.com", TEST_PASSWORD)

        assert result.user.email_verified is False

    @pytest.mark.asyncio
    async def test_wrong_password_and_unknown_email_look_the_same(self, auth_service, make_user):
        """Login failures should not reveal which accounts exist."""
        make_user("alice@example.com")

        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await auth_service.login("alice@example.com", "Wr0ng!Pass")
        with pytest.raises(InvalidCredentialsError) as unknown_email:
            await auth_service.login("nobody@example.com", TEST_PASSWORD)

        assert wrong_password.value.to_dict() == unknown_email.value.to_dict()

    @pytest.mark.asyncio
    async def test_unknown_email_still_checks_a_hash(self, auth_service, hasher):
        """A missing account pays the same bcrypt cost as a wrong password."""
        with patch.object(hasher, "verify_dummy", wraps=hasher.verify_dummy) as verify_dummy:
            with pytest.raises(InvalidCredentialsError):
                await auth_service.login("nobody@example.com", TEST_PASSWORD)

        verify_dummy.assert_called_once_with(TEST_PASSWORD)

    @pytest.mark.asyncio
    async def test_known_email_skips_dummy_check(self, auth_service, make_user, hasher):
        make_user("alice@example.com")

        with patch.object(hasher, "verify_dummy") as verify_dummy:
            with pytest.raises(InvalidCredentialsError):
                await auth_service.login("alice@example.com", "Wr0ng!Pass")

        verify_dummy.assert_not_called()

    @pytest.mark.asyncio
    async def test_login_user_without_password(self, auth_service, user_repository):
        """Users created by an admin have no password and cannot log in."""
        user_repository.create_user("Bob", "bob@example.com")

        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("bob@example.com", TEST_PASSWORD)


class TestRefreshToken:
    @pytest.mark.asyncio
    async def test_refresh(self, auth_service, make_user, jwt_manager):
        make_user("alice@example.com")
        login = await auth_service.login("alice@example.com", TEST_PASSWORD)

        result = await auth_service.refresh_token(login.refresh_token)

        claims = jwt_manager.validate_access(result.access_token)
        assert claims.email == "alice@example.com"
        assert result.expires_at > datetime.now(timezone.utc)

    @pytest.mark.asyncio
    async def test_refresh_rejects_access_token(self, auth_service, make_user):
        """An access token must not be accepted where a refresh token is expected."""
        make_user("alice@example.com")
        login = await auth_service.login("alice@example.com", TEST_PASSWORD)

        with pytest.raises(InvalidRefreshTokenError):
            await auth_service.refresh_token(login.access_token)

    @pytest.mark.asyncio
    async def test_refresh_rejects_garbage(self, auth_service):
        with pytest.raises(InvalidRefreshTokenError):
            await auth_service.refresh_token("garbage")


class TestGetProfile:
    @pytest.mark.asyncio
    async def test_get_profile(self, auth_service, make_user):
        user = make_user("alice@example.com", name="Alice")

        profile = await auth_service.get_profile(user.id)

        assert profile.name == "Alice"
        assert not hasattr(profile, "password_hash")

    @pytest.mark.asyncio
    async def test_get_profile_deleted_user(self, auth_service):
        with pytest.raises(UserNotFoundError):
            await auth_service.get_profile(999)


class TestVerifyEmail:
    @pytest.mark.asyncio
    async def test_register_verify_profile(self, auth_service, email_sender):
        """The full happy path: register, follow the emailed token, see the flag flip."""
        result = await auth_service.register("Alice", "alice@example.com", TEST_PASSWORD)
        assert result.user.email_verified is False

        token = _sent_token(email_sender.send_verification_email)
        await auth_service.verify_email(token)

        profile = await auth_service.get_profile(result.user.id)
        assert profile.email_verified is True

    @pytest.mark.asyncio
    async def test_verify_clears_token(self, auth_service, email_sender, user_repository):
        await auth_service.register("Alice", "alice@example.com", TEST_PASSWORD)
        token = _sent_token(email_sender.send_verification_email)

        await auth_service.verify_email(token)

        stored = user_repository.get_by_email("alice@example.com")
        assert stored.email_verification_token is None
        assert stored.email_verification_expires_at is None

    @pytest.mark.asyncio
    async def test_token_cannot_be_reused(self, auth_service, email_sender):
        await auth_service.register("Alice", "alice@example.com", TEST_PASSWORD)
        token = _sent_token(email_sender.send_verification_email)
        await auth_service.verify_email(token)

        with pytest.raises(InvalidVerificationTokenError):
            await auth_service.verify_email(token)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["", "short", "z" * 64])
    async def test_malformed_token(self, auth_service, token):
        with pytest.raises(InvalidVerificationTokenError):
            await auth_service.verify_email(token)

    @pytest.mark.asyncio
    async def test_unknown_token(self, auth_service):
        with pytest.raises(InvalidVerificationTokenError):
            await auth_service.verify_email("b" * 64)

    @pytest.mark.asyncio
    async def test_expired_token(self, auth_service, make_user, user_repository):
        user = make_user("alice@example.com", verified=False)
        user_repository.set_verification_token(user.id, "c" * 64, _past())

        with pytest.raises(InvalidVerificationTokenError) as exc_info:
            await auth_service.verify_email("c" * 64)

        assert exc_info.value.message == "Verification token has expired"
        assert user_repository.get_by_id(user.id).email_verified is False

    @pytest.mark.asyncio
    async def test_already_verified_holder(self, auth_service, make_user, user_repository):
        """A verified account that still holds a token reports already verified."""
        user = make_user("alice@example.com")
        user_repository.set_verification_token(
            user.id, "d" * 64, datetime.now(timezone.utc) + timedelta(hours=1)
        )

        with pytest.raises(EmailAlreadyVerifiedError):
            await auth_service.verify_email("d" * 64)

    @pytest.mark.asyncio
    async def test_concurrent_consumption(self, auth_service, make_user, user_repository):
        """Only one of two racing verifications should succeed."""
        user = make_user("alice@example.com", verified=False)
        token = user_repository.get_by_id(user.id).email_verification_token

        results = await asyncio.gather(
            auth_service.verify_email(token),
            auth_service.verify_email(token),
            return_exceptions=True,
        )

        assert results.count(None) == 1
        assert sum(isinstance(r, InvalidVerificationTokenError) for r in results) == 1


class TestResendVerification:
    @pytest.mark.asyncio
    async def test_resend_replaces_token(self, auth_service, email_sender, user_repository):
        await auth_service.register("Alice", "alice@example.com", TEST_PASSWORD)
        first = _sent_token(email_sender.send_verification_email)

        await auth_service.resend_verification_email("alice@example.com")

        second = _sent_token(email_sender.send_verification_email)
        assert second != first
        assert user_repository.get_by_email("alice@example.com").email_verification_token == second

        with pytest.raises(InvalidVerificationTokenError):
            await auth_service.verify_email(first)
        await auth_service.verify_email(second)

    @pytest.mark.asyncio
    async def test_resend_unknown_email(self, auth_service):
        with pytest.raises(UserNotFoundError):
            await auth_service.resend_verification_email("nobody@example.com")

    @pytest.mark.asyncio
    async def test_resend_verified(self, auth_service, make_user, email_sender):
        make_user("alice@example.com")

        with pytest.raises(EmailAlreadyVerifiedError):
            await auth_service.resend_verification_email("alice@example.com")

        email_sender.send_verification_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_resend_delivery_failure_is_raised(self, auth_service, make_user, email_sender):
        """Unlike registration, an explicit resend reports delivery failures."""
        make_user("alice@example.com", verified=False)
        email_sender.send_verification_email.side_effect = EmailDeliveryError(
            "alice@example.com", "timeout"
        )

        with pytest.raises(ExternalServiceError):
            await auth_service.resend_verification_email("alice@example.com")


class TestPasswordReset:
    @pytest.mark.asyncio
    async def test_forgot_password_sends_token(self, auth_service, make_user, email_sender, user_repository):
        user = make_user("alice@example.com", name="Alice")

        await auth_service.forgot_password("alice@example.com")

        to, name, token = email_sender.send_password_reset_email.call_args.args
        assert (to, name) == ("alice@example.com", "Alice")
        stored = user_repository.get_by_id(user.id)
        assert stored.password_reset_token == token
        assert stored.password_reset_expires_at > datetime.now(timezone.utc)

    @pytest.mark.asyncio
    async def test_forgot_password_unknown_email(self, auth_service, make_user, email_sender, user_repository):
        """Unknown emails succeed silently without sending or storing anything."""
        make_user("alice@example.com")
        before = [u.model_dump() for u in user_repository.list_all()]

        await auth_service.forgot_password("nobody@example.com")

        email_sender.send_password_reset_email.assert_not_called()
        assert [u.model_dump() for u in user_repository.list_all()] == before

    @pytest.mark.asyncio
    async def test_reset_password(self, auth_service, make_user, email_sender, user_repository):
        user = make_user("alice@example.com")
        await auth_service.forgot_password("alice@example.com")
        token = _sent_token(email_sender.send_password_reset_email)

        await auth_service.reset_password(token, "N3w!Passw0rd")

        result = await auth_service.login("alice@example.com", "N3w!Passw0rd")
        assert result.user.id == user.id
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login("alice@example.com", TEST_PASSWORD)

        stored = user_repository.get_by_id(user.id)
        assert stored.password_reset_token is None
        assert stored.password_reset_expires_at is None

    @pytest.mark.asyncio
    async def test_reset_token_single_use(self, auth_service, make_user, email_sender):
        make_user("alice@example.com")
        await auth_service.forgot_password("alice@example.com")
        token = _sent_token(email_sender.send_password_reset_email)
        await auth_service.reset_password(token, "N3w!Passw0rd")

        with pytest.raises(InvalidPasswordResetTokenError):
            await auth_service.reset_password(token, "An0ther!Pass")

    @pytest.mark.asyncio
    async def test_reset_with_expired_token(self, auth_service, make_user, user_repository):
        user = make_user("alice@example.com")
        user_repository.set_password_reset_token(user.id, "e" * 64, _past())

        with pytest.raises(InvalidPasswordResetTokenError) as exc_info:
            await auth_service.reset_password("e" * 64, "N3w!Passw0rd")

        assert exc_info.value.message == "Password reset token has expired"
        await auth_service.login("alice@example.com", TEST_PASSWORD)

    @pytest.mark.asyncio
    async def test_reset_with_unknown_token(self, auth_service):
        with pytest.raises(InvalidPasswordResetTokenError):
            await auth_service.reset_password("f" * 64, "N3w!Passw0rd")

    @pytest.mark.asyncio
    async def test_reset_with_malformed_token(self, auth_service):
        with pytest.raises(InvalidPasswordResetTokenError):
            await auth_service.reset_password("not-hex", "N3w!Passw0rd")

    def test_validate_reset_token(self, auth_service):
        auth_service.validate_reset_token("0" * 64)
        with pytest.raises(InvalidPasswordResetTokenError):
            auth_service.validate_reset_token("0" * 63)


class TestCollaboratorTimeouts:
    @pytest.mark.asyncio
    async def test_slow_store_times_out(self, jwt_manager, email_sender, hasher):
        """A hung user store should surface as an external service failure."""

        class SlowRepository(InMemoryUserRepository):
            def get_by_email_with_password(self, email):
                time.sleep(0.5)
                return None

        service = AuthService(
            users=SlowRepository(),
            jwt_manager=jwt_manager,
            email_sender=email_sender,
            hasher=hasher,
            timeout=0.05,
        )

        with pytest.raises(ExternalServiceError) as exc_info:
            await service.login("alice@example.com", TEST_PASSWORD)

        assert exc_info.value.code == "SERVICE_TIMEOUT"
