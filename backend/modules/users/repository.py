"""
User store implementations.

- SupabaseUserRepository: production store backed by the ``users`` table.
- InMemoryUserRepository: lock-protected store for development and testing.

Both satisfy IUserRepository. Neither performs authorization checks;
the service layer is responsible for that.
"""

import threading
from datetime import datetime, timezone
from typing import Optional, Any

from supabase import PostgrestAPIError

from shared.repository import BaseRepository
from .exceptions import UserAlreadyExistsError
from .models import User, UserRole

USERS_TABLE = "users"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SupabaseUserRepository(BaseRepository[User]):
    """
    Repository for user records stored in Supabase.

    All methods return Pydantic models mapped from database rows. The
    service-role client is required because credential and token columns
    are not exposed through row-level security.
    """

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    def create_user(self, name: str, email: str) -> User:
        return self._insert({"name": name, "email": email})

    def create_user_with_credentials(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole,
        verification_token: str,
        verification_expires_at: datetime,
    ) -> User:
        return self._insert(
            {
                "name": name,
                "email": email,
                "password_hash": password_hash,
                "role": role.value,
                "email_verified": False,
                "email_verification_token": verification_token,
                "email_verification_expires_at": verification_expires_at.isoformat(),
            }
        )

    def _insert(self, data: dict[str, Any]) -> User:
        try:
            result = self._db.table(USERS_TABLE).insert(data).execute()
        except PostgrestAPIError as e:
            if self._is_unique_violation(e):
                raise UserAlreadyExistsError(data["email"]) from e
            raise
        return self._map_to_user(self._first(result))

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._get_one("id", user_id)

    def get_by_email(self, email: str) -> Optional[User]:
        return self._get_one("email", email)

    def get_by_email_with_password(self, email: str) -> Optional[User]:
        # Rows are always fetched with every column, hash included.
        return self._get_one("email", email)

    def get_by_verification_token(self, token: str) -> Optional[User]:
        return self._get_one("email_verification_token", token)

    def get_by_password_reset_token(self, token: str) -> Optional[User]:
        return self._get_one("password_reset_token", token)

    def list_all(self) -> list[User]:
        result = (
            self._db.table(USERS_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        return [self._map_to_user(row) for row in self._rows(result)]

    def ping(self) -> None:
        self._db.table(USERS_TABLE).select("id").limit(1).execute()

    def _get_one(self, column: str, value: Any) -> Optional[User]:
        result = (
            self._db.table(USERS_TABLE)
            .select("*")
            .eq(column, value)
            .limit(1)
            .execute()
        )
        row = self._first(result)
        return self._map_to_user(row) if row else None

    # -------------------------------------------------------------------------
    # Updates
    # -------------------------------------------------------------------------

    def update_name(self, user_id: int, name: str) -> Optional[User]:
        rows = self._update("id", user_id, {"name": name})
        return self._map_to_user(rows[0]) if rows else None

    def set_verified(self, token: str) -> bool:
        rows = self._update(
            "email_verification_token",
            token,
            {
                "email_verified": True,
                "email_verification_token": None,
                "email_verification_expires_at": None,
            },
        )
        return bool(rows)

    def set_verification_token(
        self, user_id: int, token: str, expires_at: datetime
    ) -> bool:
        rows = self._update(
            "id",
            user_id,
            {
                "email_verification_token": token,
                "email_verification_expires_at": expires_at.isoformat(),
            },
        )
        return bool(rows)

    def set_password_reset_token(
        self, user_id: int, token: str, expires_at: datetime
    ) -> bool:
        rows = self._update(
            "id",
            user_id,
            {
                "password_reset_token": token,
                "password_reset_expires_at": expires_at.isoformat(),
            },
        )
        return bool(rows)

    def reset_password(self, token: str, password_hash: str) -> bool:
        # Filtering on the token makes a second use of the same token a no-op.
        rows = self._update(
            "password_reset_token",
            token,
            {
                "password_hash": password_hash,
                "password_reset_token": None,
                "password_reset_expires_at": None,
            },
        )
        return bool(rows)

    def delete(self, user_id: int) -> bool:
        result = self._db.table(USERS_TABLE).delete().eq("id", user_id).execute()
        return bool(self._rows(result))

    def _update(self, column: str, value: Any, data: dict[str, Any]) -> list[dict]:
        data["updated_at"] = _now().isoformat()
        result = self._db.table(USERS_TABLE).update(data).eq(column, value).execute()
        return self._rows(result)

    # -------------------------------------------------------------------------
    # Mapping
    # -------------------------------------------------------------------------

    def _map_to_user(self, data: dict[str, Any]) -> User:
        """Map a database row to a User model."""
        return User(
            id=data["id"],
            name=data["name"],
            email=data["email"],
            password_hash=data.get("password_hash") or None,
            role=UserRole(data.get("role") or UserRole.USER.value),
            email_verified=bool(data.get("email_verified", False)),
            email_verification_token=data.get("email_verification_token"),
            email_verification_expires_at=data.get("email_verification_expires_at"),
            password_reset_token=data.get("password_reset_token"),
            password_reset_expires_at=data.get("password_reset_expires_at"),
            created_at=data.get("created_at") or _now(),
            updated_at=data.get("updated_at") or _now(),
        )


class InMemoryUserRepository:
    """
    In-memory user store for development and testing.

    Every operation holds a single lock, so compound updates (such as the
    conditional password reset) are atomic with respect to each other.
    Records are copied on the way in and out; callers never share state
    with the store.
    """

    def __init__(self) -> None:
        self._users: dict[int, User] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create_user(self, name: str, email: str) -> User:
        return self._insert(User(id=0, name=name, email=email))

    def create_user_with_credentials(
        self,
        name: str,
        email: str,
        password_hash: str,
        role: UserRole,
        verification_token: str,
        verification_expires_at: datetime,
    ) -> User:
        return self._insert(
            User(
                id=0,
                name=name,
                email=email,
                password_hash=password_hash,
                role=role,
                email_verification_token=verification_token,
                email_verification_expires_at=verification_expires_at,
            )
        )

    def _insert(self, user: User) -> User:
        with self._lock:
            if any(u.email == user.email for u in self._users.values()):
                raise UserAlreadyExistsError(user.email)
            now = _now()
            stored = user.model_copy(
                update={"id": self._next_id, "created_at": now, "updated_at": now}
            )
            self._users[stored.id] = stored
            self._next_id += 1
            return stored.model_copy()

    def get_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def get_by_email(self, email: str) -> Optional[User]:
        return self._find(lambda u: u.email == email)

    def get_by_email_with_password(self, email: str) -> Optional[User]:
        return self._find(lambda u: u.email == email)

    def get_by_verification_token(self, token: str) -> Optional[User]:
        return self._find(lambda u: u.email_verification_token == token)

    def get_by_password_reset_token(self, token: str) -> Optional[User]:
        return self._find(lambda u: u.password_reset_token == token)

    def list_all(self) -> list[User]:
        with self._lock:
            users = sorted(self._users.values(), key=lambda u: u.id, reverse=True)
            return [u.model_copy() for u in users]

    def ping(self) -> None:
        pass

    def update_name(self, user_id: int, name: str) -> Optional[User]:
        with self._lock:
            if user_id not in self._users:
                return None
            return self._apply(user_id, {"name": name})

    def set_verified(self, token: str) -> bool:
        with self._lock:
            user = self._find_unlocked(lambda u: u.email_verification_token == token)
            if user is None:
                return False
            self._apply(
                user.id,
                {
                    "email_verified": True,
                    "email_verification_token": None,
                    "email_verification_expires_at": None,
                },
            )
            return True

    def set_verification_token(
        self, user_id: int, token: str, expires_at: datetime
    ) -> bool:
        with self._lock:
            if user_id not in self._users:
                return False
            self._apply(
                user_id,
                {
                    "email_verification_token": token,
                    "email_verification_expires_at": expires_at,
                },
            )
            return True

    def set_password_reset_token(
        self, user_id: int, token: str, expires_at: datetime
    ) -> bool:
        with self._lock:
            if user_id not in self._users:
                return False
            self._apply(
                user_id,
                {
                    "password_reset_token": token,
                    "password_reset_expires_at": expires_at,
                },
            )
            return True

    def reset_password(self, token: str, password_hash: str) -> bool:
        with self._lock:
            user = self._find_unlocked(lambda u: u.password_reset_token == token)
            if user is None:
                return False
            self._apply(
                user.id,
                {
                    "password_hash": password_hash,
                    "password_reset_token": None,
                    "password_reset_expires_at": None,
                },
            )
            return True

    def delete(self, user_id: int) -> bool:
        with self._lock:
            return self._users.pop(user_id, None) is not None

    def _find(self, predicate) -> Optional[User]:
        with self._lock:
            user = self._find_unlocked(predicate)
            return user.model_copy() if user else None

    def _find_unlocked(self, predicate) -> Optional[User]:
        return next((u for u in self._users.values() if predicate(u)), None)

    def _apply(self, user_id: int, changes: dict[str, Any]) -> User:
        changes["updated_at"] = _now()
        updated = self._users[user_id].model_copy(update=changes)
        self._users[user_id] = updated
        return updated.model_copy()

