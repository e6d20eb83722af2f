import pytest

from shared.exceptions import AuthenticationError, AuthorizationError, BadRequestError
from modules.auth.exceptions import (
    MissingTokenError,
    InvalidTokenError,
    ExpiredTokenError,
    InvalidClaimsError,
    InvalidRefreshTokenError,
    InvalidCredentialsError,
    InsufficientPermissionsError,
    InvalidVerificationTokenError,
    EmailAlreadyVerifiedError,
    InvalidPasswordResetTokenError,
    InvalidTokenFormatError,
)


class TestAuthExceptions:
    @pytest.mark.parametrize(
        "error,code,message",
        [
            (MissingTokenError(), "MISSING_TOKEN", "Authorization header required"),
            (InvalidTokenError(), "INVALID_TOKEN", "Invalid token"),
            (ExpiredTokenError(), "TOKEN_EXPIRED", "Token has expired"),
            (InvalidClaimsError(), "INVALID_CLAIMS", "Invalid token claims"),
            (InvalidRefreshTokenError(), "INVALID_REFRESH_TOKEN", "Invalid refresh token"),
            (InvalidCredentialsError(), "INVALID_CREDENTIALS", "Invalid email or password"),
        ],
    )
    def test_authentication_errors(self, error, code, message):
        """Token and credential failures should map to 401."""
        assert isinstance(error, AuthenticationError)
        assert error.status_code == 401
        assert error.code == code
        assert error.message == message

    def test_insufficient_permissions(self):
        error = InsufficientPermissionsError(("admin", "moderator"), "user")
        assert isinstance(error, AuthorizationError)
        assert error.status_code == 403
        assert error.details == {"required_roles": ["admin", "moderator"], "user_role": "user"}

    @pytest.mark.parametrize(
        "error,code",
        [
            (InvalidVerificationTokenError(), "INVALID_VERIFICATION_TOKEN"),
            (EmailAlreadyVerifiedError(), "EMAIL_ALREADY_VERIFIED"),
            (InvalidPasswordResetTokenError(), "INVALID_PASSWORD_RESET_TOKEN"),
            (InvalidTokenFormatError("token cannot be empty"), "INVALID_TOKEN_FORMAT"),
        ],
    )
    def test_one_time_token_errors_are_bad_requests(self, error, code):
        assert isinstance(error, BadRequestError)
        assert error.status_code == 400
        assert error.code == code

    def test_custom_messages(self):
        assert InvalidVerificationTokenError("Verification token has expired").message == (
            "Verification token has expired"
        )
        assert InvalidPasswordResetTokenError("Password reset token has expired").message == (
            "Password reset token has expired"
        )
