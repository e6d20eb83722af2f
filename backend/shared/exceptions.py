"""
Base exception classes for the Portcullis backend.

Each module should define its own exceptions that inherit from these bases.
This enables consistent error handling across the application: the API
layer maps every base class to an HTTP status code via ``status_code``.
"""

from typing import Optional, Any


class PortcullisError(Exception):
    """
    Base exception for all Portcullis errors.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class BadRequestError(PortcullisError):
    """The request is well-formed but cannot be processed as given."""

    status_code = 400


class NotFoundError(PortcullisError):
    """Resource not found."""

    status_code = 404


class ConflictError(PortcullisError):
    """Resource already exists or conflicts with current state."""

    status_code = 409


class ValidationError(PortcullisError):
    """Input validation failed."""

    status_code = 422


class AuthenticationError(PortcullisError):
    """Authentication failed (invalid or missing credentials)."""

    status_code = 401


class AuthorizationError(PortcullisError):
    """Authorization failed (insufficient permissions)."""

    status_code = 403


class RateLimitExceededError(PortcullisError):
    """Client exceeded the allowed request rate."""

    status_code = 429

    def __init__(self, retry_after: int):
        super().__init__(
            "Rate limit exceeded. Please try again later.",
            code="RATE_LIMIT_EXCEEDED",
            details={"retry_after": retry_after},
        )
        self.retry_after = retry_after


class ExternalServiceError(PortcullisError):
    """Error communicating with an external service."""

    status_code = 500

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service


class ServiceTimeoutError(ExternalServiceError):
    """An external service did not answer within the configured timeout."""

    def __init__(self, service: str, operation: str, timeout: float):
        super().__init__(
            f"{service} call '{operation}' timed out after {timeout}s",
            service=service,
            code="SERVICE_TIMEOUT",
            details={"operation": operation, "timeout": timeout},
        )
