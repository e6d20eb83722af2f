"""
Authentication module.

Handles registration and login, JWT issuance and validation, email
verification and password reset.

Public API:
- IAuthService: Interface for auth operations
- JWTManager: Access/refresh token issuance and validation
- PasswordHasher: bcrypt password hashing
- TokenClaims, TokenPair, AuthResponse: Token models
- Auth exceptions: InvalidTokenError, ExpiredTokenError, etc.
"""

from .interfaces import IAuthService
from .passwords import PasswordHasher
from .tokens import JWTManager
from .models import AuthResponse, TokenClaims, TokenPair, TokenResponse
from .exceptions import (
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
    TokenGenerationError,
)

__all__ = [
    # Interface
    "IAuthService",
    # Components
    "PasswordHasher",
    "JWTManager",
    # Models
    "AuthResponse",
    "TokenClaims",
    "TokenPair",
    "TokenResponse",
    # Exceptions
    "MissingTokenError",
    "InvalidTokenError",
    "ExpiredTokenError",
    "InvalidClaimsError",
    "InvalidRefreshTokenError",
    "InvalidCredentialsError",
    "InsufficientPermissionsError",
    "InvalidVerificationTokenError",
    "EmailAlreadyVerifiedError",
    "InvalidPasswordResetTokenError",
    "InvalidTokenFormatError",
    "TokenGenerationError",
]
