"""
JWT Authentication and role-based access control.

Everything here is a FastAPI dependency:

- get_current_user / get_optional_user: Bearer token authentication
- require_role / require_any_role / require_owner_or_role: RBAC guards
- email_verification_status: soft email verification gate
"""

import logging
from typing import Optional

from fastapi import Depends, Header, Request, Response

from modules.auth.exceptions import (
    ExpiredTokenError,
    InsufficientPermissionsError,
    InvalidTokenError,
    MissingTokenError,
)
from modules.auth.interfaces import IAuthService
from modules.users.interfaces import IUserService
from modules.users.models import UserResponse, UserRole
from shared.exceptions import AuthenticationError, BadRequestError, ExternalServiceError
from shared.models import AuthenticatedUser

from ..dependencies import get_auth_service, get_user_service

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

EMAIL_STATUS_HEADER = "X-Email-Verification-Status"
EMAIL_WARNING_HEADER = "X-Email-Verification-Warning"
EMAIL_WARNING = "Please verify your email address to ensure full account security"


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an Authorization header value.

    Raises:
        MissingTokenError: Header absent or token empty
        InvalidTokenError: Header does not use the Bearer scheme
    """
    if not authorization:
        raise MissingTokenError("Authorization header required")
    if not authorization.startswith(BEARER_PREFIX):
        raise InvalidTokenError("Authorization header must start with 'Bearer '")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingTokenError("Token cannot be empty")
    return token


def authenticate(authorization: Optional[str], auth: IAuthService) -> AuthenticatedUser:
    token = extract_bearer_token(authorization)
    try:
        claims = auth.validate_access_token(token)
    except ExpiredTokenError:
        raise
    except AuthenticationError as e:
        logger.info(f"Access token rejected: {e.code}")
        raise InvalidTokenError("Invalid token")
    return AuthenticatedUser(id=claims.user_id, email=claims.email)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    auth: IAuthService = Depends(get_auth_service),
) -> AuthenticatedUser:
    """
    Dependency that requires authentication.

    Use this for endpoints that require a logged-in user.

    Usage:
        @router.get("/protected")
        async def protected_route(user: AuthenticatedUser = Depends(get_current_user)):
            return {"user_id": user.id}
    """
    user = authenticate(authorization, auth)
    request.state.user_id = user.id
    request.state.user_email = user.email
    return user


async def get_optional_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    auth: IAuthService = Depends(get_auth_service),
) -> Optional[AuthenticatedUser]:
    """
    Dependency that optionally extracts user if authenticated.

    Use this for endpoints that work with or without authentication.
    Any token problem is treated as anonymous.
    """
    try:
        user = authenticate(authorization, auth)
    except AuthenticationError:
        return None
    request.state.user_id = user.id
    request.state.user_email = user.email
    return user


# -----------------------------------------------------------------------------
# Role-based access control
# -----------------------------------------------------------------------------


async def _load_current_record(user: AuthenticatedUser, users: IUserService) -> UserResponse:
    # Roles are read fresh on every request so changes apply immediately.
    record = await users.find_user(user.id)
    if record is None:
        logger.warning(f"RBAC check failed: user {user.id} not found")
        raise AuthenticationError("User not found", code="USER_NOT_FOUND")
    return record


def require_any_role(*roles: UserRole):
    """
    Build a dependency that admits users holding any of ``roles``.

    Usage:
        @router.get("", dependencies=[Depends(require_any_role(UserRole.ADMIN))])
    """
    allowed = tuple(roles)

    async def dependency(
        request: Request,
        user: AuthenticatedUser = Depends(get_current_user),
        users: IUserService = Depends(get_user_service),
    ) -> UserResponse:
        record = await _load_current_record(user, users)
        if record.role not in allowed:
            logger.warning(
                f"RBAC check failed: user {user.id} has role '{record.role.value}', "
                f"needs one of {[r.value for r in allowed]}"
            )
            raise InsufficientPermissionsError(
                tuple(r.value for r in allowed), record.role.value
            )
        request.state.user_role = record.role
        return record

    return dependency


def require_role(role: UserRole):
    """Build a dependency that admits only users holding ``role``."""
    return require_any_role(role)


def require_owner_or_role(param: str, *roles: UserRole):
    """
    Build a dependency that admits the owner of a resource or users holding ``roles``.

    The owning user ID is read from the path parameter ``param``.
    """
    allowed = tuple(roles)

    async def dependency(
        request: Request,
        user: AuthenticatedUser = Depends(get_current_user),
        users: IUserService = Depends(get_user_service),
    ) -> UserResponse:
        raw = request.path_params.get(param)
        try:
            resource_user_id = int(raw)
        except (TypeError, ValueError):
            raise BadRequestError(
                "Invalid resource ID",
                code="INVALID_RESOURCE_ID",
                details={"param": param},
            )

        record = await _load_current_record(user, users)
        request.state.user_role = record.role
        if record.id == resource_user_id:
            return record

        if record.role not in allowed:
            logger.warning(
                f"RBAC check failed: user {user.id} is not owner of {param}={resource_user_id} "
                f"and has role '{record.role.value}'"
            )
            raise InsufficientPermissionsError(
                tuple(r.value for r in allowed), record.role.value
            )
        return record

    return dependency


require_admin = require_role(UserRole.ADMIN)
require_moderator_or_admin = require_any_role(UserRole.MODERATOR, UserRole.ADMIN)
require_self_or_admin = require_owner_or_role("user_id", UserRole.ADMIN)


# -----------------------------------------------------------------------------
# Email verification (soft gate)
# -----------------------------------------------------------------------------


async def email_verification_status(
    request: Request,
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    users: IUserService = Depends(get_user_service),
) -> Optional[bool]:
    """
    Flag unverified accounts without blocking them.

    Sets ``request.state.email_verified`` and, for unverified users, adds
    warning headers to the response. A failed lookup skips the check.
    """
    try:
        record = await users.find_user(user.id)
    except ExternalServiceError as e:
        logger.warning(f"Email verification check skipped for user {user.id}: {e.message}")
        return None

    if record is None:
        return None

    request.state.email_verified = record.email_verified
    if not record.email_verified:
        response.headers[EMAIL_STATUS_HEADER] = "unverified"
        response.headers[EMAIL_WARNING_HEADER] = EMAIL_WARNING
        logger.debug(f"Unverified user {user.id} accessing {request.url.path}")
    return record.email_verified


# Type aliases for cleaner route definitions
RequireAuth = Depends(get_current_user)
OptionalAuth = Depends(get_optional_user)
