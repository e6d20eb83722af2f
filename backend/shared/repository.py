"""
Base class for Supabase-backed repositories.

Holds the client and the small helpers every table adapter needs:
unwrapping PostgREST results and recognising constraint violations.
"""

from typing import Any, Generic, Optional, TypeVar
from supabase import Client


T = TypeVar("T")

# Postgres SQLSTATE for unique constraint violations
UNIQUE_VIOLATION = "23505"


class BaseRepository(Generic[T]):
    """
    Supabase repository base.

    Subclasses query ``self._db`` and map rows to their model type ``T``;
    rows never leave the repository as dicts.

    Example:
        class UserRepository(BaseRepository[User]):
            def get_by_id(self, user_id: int) -> Optional[User]:
                row = self._first(
                    self._db.table("users").select("*").eq("id", user_id).execute()
                )
                return self._map_to_user(row) if row else None
    """

    def __init__(self, db: Client) -> None:
        self._db = db

    @staticmethod
    def _rows(result: Any) -> list[dict[str, Any]]:
        """Rows of a PostgREST response (empty when nothing matched)."""
        return result.data or []

    @classmethod
    def _first(cls, result: Any) -> Optional[dict[str, Any]]:
        rows = cls._rows(result)
        return rows[0] if rows else None

    @staticmethod
    def _is_unique_violation(error: Exception) -> bool:
        """Check whether a PostgREST error reports a unique constraint violation."""
        return getattr(error, "code", None) == UNIQUE_VIOLATION
