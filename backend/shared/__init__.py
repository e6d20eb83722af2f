"""
Shared infrastructure for Portcullis backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes
- concurrency: Bounded calls into blocking collaborators
- log_config: Root logging setup

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import get_supabase_client, reset_client_cache
from .exceptions import (
    PortcullisError,
    BadRequestError,
    NotFoundError,
    ConflictError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    RateLimitExceededError,
    ExternalServiceError,
    ServiceTimeoutError,
)
from .models import AuthenticatedUser

__all__ = [
    "Settings",
    "get_settings",
    "get_supabase_client",
    "reset_client_cache",
    "PortcullisError",
    "BadRequestError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "RateLimitExceededError",
    "ExternalServiceError",
    "ServiceTimeoutError",
    "AuthenticatedUser",
]
