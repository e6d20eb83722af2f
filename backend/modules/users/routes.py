"""
User management API endpoints.

Creation and deletion are admin only, listing is open to moderators and
admins, and a user may read or rename their own record.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_user_service
from api.middleware.auth import (
    require_admin,
    require_moderator_or_admin,
    require_self_or_admin,
)
from api.models.responses import APIResponse, ok

from .interfaces import IUserService
from .models import CreateUserRequest, UpdateUserRequest, UserResponse

router = APIRouter()


@router.post(
    "",
    response_model=APIResponse[UserResponse],
    response_model_exclude_none=True,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
async def create_user(
    request: CreateUserRequest,
    service: IUserService = Depends(get_user_service),
):
    """Create a user without credentials (admin only)."""
    user = await service.create_user(request)
    return ok("User created successfully", user)


@router.get(
    "",
    response_model=APIResponse[list[UserResponse]],
    response_model_exclude_none=True,
    dependencies=[Depends(require_moderator_or_admin)],
)
async def list_users(
    service: IUserService = Depends(get_user_service),
):
    """List all users, newest first (moderator or admin)."""
    users = await service.list_users()
    return ok("Users retrieved successfully", users)


@router.get(
    "/{user_id}",
    response_model=APIResponse[UserResponse],
    response_model_exclude_none=True,
    dependencies=[Depends(require_self_or_admin)],
)
async def get_user(
    user_id: int,
    service: IUserService = Depends(get_user_service),
):
    """Get a user (self or admin)."""
    user = await service.get_user(user_id)
    return ok("User retrieved successfully", user)


@router.put(
    "/{user_id}",
    response_model=APIResponse[UserResponse],
    response_model_exclude_none=True,
    dependencies=[Depends(require_self_or_admin)],
)
async def update_user(
    user_id: int,
    request: UpdateUserRequest,
    service: IUserService = Depends(get_user_service),
):
    """Update a user's name (self or admin)."""
    user = await service.update_user(user_id, request)
    return ok("User updated successfully", user)


@router.delete(
    "/{user_id}",
    response_model=APIResponse[None],
    response_model_exclude_none=True,
    dependencies=[Depends(require_admin)],
)
async def delete_user(
    user_id: int,
    service: IUserService = Depends(get_user_service),
):
    """Delete a user (admin only)."""
    await service.delete_user(user_id)
    return ok("User deleted successfully")
