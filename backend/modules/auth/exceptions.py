"""
Authentication module exceptions.

These exceptions are raised by the auth module and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from shared.exceptions import (
    PortcullisError,
    AuthenticationError,
    AuthorizationError,
    BadRequestError,
)


class MissingTokenError(AuthenticationError):
    """Raised when no authentication token is provided."""

    def __init__(self, message: str = "Authorization header required"):
        super().__init__(message, code="MISSING_TOKEN")


class InvalidTokenError(AuthenticationError):
    """Raised when a JWT token is invalid or malformed."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, code="INVALID_TOKEN")


class ExpiredTokenError(AuthenticationError):
    """Raised when a JWT token has expired."""

    def __init__(self, message: str = "Token has expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class InvalidClaimsError(AuthenticationError):
    """Raised when a JWT token is signed correctly but its claims are unusable."""

    def __init__(self, message: str = "Invalid token claims"):
        super().__init__(message, code="INVALID_CLAIMS")


class InvalidRefreshTokenError(AuthenticationError):
    """Raised when a refresh token cannot be exchanged for an access token."""

    def __init__(self, message: str = "Invalid refresh token"):
        super().__init__(message, code="INVALID_REFRESH_TOKEN")


class InvalidCredentialsError(AuthenticationError):
    """
    Raised on a failed login.

    Unknown email and wrong password produce the same error so the response
    does not reveal which accounts exist.
    """

    def __init__(self):
        super().__init__("Invalid email or password", code="INVALID_CREDENTIALS")


class InsufficientPermissionsError(AuthorizationError):
    """Raised when user lacks required permissions."""

    def __init__(self, required_roles: tuple[str, ...] = (), user_role: str = ""):
        super().__init__(
            "Insufficient permissions",
            code="INSUFFICIENT_PERMISSIONS",
            details={"required_roles": list(required_roles), "user_role": user_role},
        )


class InvalidVerificationTokenError(BadRequestError):
    """Raised when an email verification token is malformed, unknown, or expired."""

    def __init__(self, message: str = "Invalid or expired verification token"):
        super().__init__(
            message,
            code="INVALID_VERIFICATION_TOKEN",
        )


class EmailAlreadyVerifiedError(BadRequestError):
    """Raised when verification is requested for an already verified account."""

    def __init__(self):
        super().__init__("Email is already verified", code="EMAIL_ALREADY_VERIFIED")


class InvalidPasswordResetTokenError(BadRequestError):
    """Raised when a password reset token is malformed, unknown, used, or expired."""

    def __init__(self, message: str = "Invalid or expired password reset token"):
        super().__init__(
            message,
            code="INVALID_PASSWORD_RESET_TOKEN",
        )


class InvalidTokenFormatError(BadRequestError):
    """Raised when a one-time token does not have the expected shape."""

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid token format: {reason}",
            code="INVALID_TOKEN_FORMAT",
            details={"reason": reason},
        )


class TokenGenerationError(PortcullisError):
    """Raised when the system entropy source fails."""

    def __init__(self, message: str = "Failed to generate secure token"):
        super().__init__(message, code="TOKEN_GENERATION_FAILED")
