"""
Authentication module interface.

Other modules should depend on IAuthService, not the concrete implementation.
This enables testing with mocks and future extraction to a microservice.
"""

from typing import Protocol, runtime_checkable

from modules.users.models import UserResponse
from .models import AuthResponse, TokenClaims, TokenResponse


@runtime_checkable
class IAuthService(Protocol):
    """
    Interface for authentication operations.

    This protocol defines the contract that the auth module exposes
    to other modules. Implementations must provide all these methods.
    """

    async def register(self, name: str, email: str, password: str) -> AuthResponse:
        """
        Create an account and log it in.

        The verification email is best effort: a delivery failure is logged
        and the registration still succeeds.

        Raises:
            UserAlreadyExistsError: If the email is already registered
        """
        ...

    async def login(self, email: str, password: str) -> AuthResponse:
        """
        Exchange credentials for a token pair.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        ...

    async def refresh_token(self, refresh_token: str) -> TokenResponse:
        """
        Raises:
            InvalidRefreshTokenError: If the refresh token is not valid
        """
        ...

    async def get_profile(self, user_id: int) -> UserResponse:
        """
        Raises:
            UserNotFoundError: If the user no longer exists
        """
        ...

    def validate_access_token(self, token: str) -> TokenClaims:
        """
        Validate an access token without touching the user store.

        Raises:
            ExpiredTokenError, InvalidTokenError, InvalidClaimsError
        """
        ...

    async def verify_email(self, token: str) -> None:
        """
        Consume an email verification token.

        Raises:
            InvalidVerificationTokenError: Malformed, unknown, or expired token
            EmailAlreadyVerifiedError: The account is already verified
        """
        ...

    async def resend_verification_email(self, email: str) -> None:
        """
        Replace the verification token and send a new email.

        Raises:
            UserNotFoundError: If no account uses the email
            EmailAlreadyVerifiedError: The account is already verified
            EmailDeliveryError: If the email could not be sent
        """
        ...

    async def forgot_password(self, email: str) -> None:
        """
        Start a password reset. Unknown emails succeed silently.

        Raises:
            EmailDeliveryError: If the email could not be sent
        """
        ...

    def validate_reset_token(self, token: str) -> None:
        """
        Check the shape of a reset token without consuming it.

        Raises:
            InvalidPasswordResetTokenError: If the token is malformed
        """
        ...

    async def reset_password(self, token: str, new_password: str) -> None:
        """
        Set a new password with a reset token. Each token works once.

        Raises:
            InvalidPasswordResetTokenError: Malformed, unknown, used, or expired token
        """
        ...
