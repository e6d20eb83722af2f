"""
User management service implementation.

Admin and moderator CRUD over user records. Route guards decide who may
call what; this service only enforces data rules.
"""

import logging
from typing import Optional

from shared.concurrency import call_with_timeout

from .exceptions import UserNotFoundError
from .interfaces import IUserRepository, IUserService
from .models import UserResponse, CreateUserRequest, UpdateUserRequest

logger = logging.getLogger(__name__)

SERVICE_NAME = "user_store"


class UserService(IUserService):
    """
    Implementation of the user management service.

    All store calls run in a worker thread with a bounded timeout.
    """

    def __init__(self, repository: IUserRepository, timeout: float = 5.0):
        self._repository = repository
        self._timeout = timeout

    async def _call(self, func, *args):
        return await call_with_timeout(
            func, *args, service=SERVICE_NAME, timeout=self._timeout
        )

    async def create_user(self, request: CreateUserRequest) -> UserResponse:
        user = await self._call(self._repository.create_user, request.name, request.email)
        logger.info(f"Created user {user.id} ({user.email})")
        return user.to_response()

    async def get_user(self, user_id: int) -> UserResponse:
        user = await self._call(self._repository.get_by_id, user_id)
        if user is None:
            raise UserNotFoundError(user_id=user_id)
        return user.to_response()

    async def find_user(self, user_id: int) -> Optional[UserResponse]:
        user = await self._call(self._repository.get_by_id, user_id)
        return user.to_response() if user else None

    async def update_user(self, user_id: int, request: UpdateUserRequest) -> UserResponse:
        """
        Update a user's display name.

        An empty update returns the current record unchanged.
        """
        if request.name is None:
            return await self.get_user(user_id)

        user = await self._call(self._repository.update_name, user_id, request.name)
        if user is None:
            raise UserNotFoundError(user_id=user_id)
        logger.info(f"Updated user {user_id}")
        return user.to_response()

    async def delete_user(self, user_id: int) -> None:
        deleted = await self._call(self._repository.delete, user_id)
        if not deleted:
            raise UserNotFoundError(user_id=user_id)
        logger.info(f"Deleted user {user_id}")

    async def list_users(self) -> list[UserResponse]:
        users = await self._call(self._repository.list_all)
        return [u.to_response() for u in users]
