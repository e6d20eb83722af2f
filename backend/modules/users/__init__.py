"""
Users module.

Owns the user record and its storage, and provides admin/moderator
user management.

Public API:
- IUserRepository: Interface for the user store
- IUserService: Interface for user management
- User, UserRole, UserResponse: User models
- UserNotFoundError, UserAlreadyExistsError
"""

from .interfaces import IUserRepository, IUserService
from .models import (
    User,
    UserRole,
    UserResponse,
    CreateUserRequest,
    UpdateUserRequest,
)
from .exceptions import UserNotFoundError, UserAlreadyExistsError

__all__ = [
    # Interfaces
    "IUserRepository",
    "IUserService",
    # Models
    "User",
    "UserRole",
    "UserResponse",
    "CreateUserRequest",
    "UpdateUserRequest",
    # Exceptions
    "UserNotFoundError",
    "UserAlreadyExistsError",
]
