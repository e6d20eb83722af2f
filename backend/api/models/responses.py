"""
Response envelope models.

Every endpoint answers with the same envelope:

    {"success": bool, "message": str, "data": ..., "error": ...}

``data`` is present on success, ``error`` on failure.
"""

from typing import Any, Generic, Optional, TypeVar, Union
from pydantic import BaseModel

T = TypeVar("T")


class ErrorDetail(BaseModel):
    """Machine-readable error information."""

    code: str
    details: Optional[dict[str, Any]] = None


class FieldError(BaseModel):
    """A single request validation failure."""

    field: str
    message: str


class APIResponse(BaseModel, Generic[T]):
    """Standard response envelope."""

    success: bool
    message: str
    data: Optional[T] = None
    error: Optional[Union[ErrorDetail, list[FieldError]]] = None


def ok(message: str, data: Any = None) -> dict[str, Any]:
    """Build a success envelope."""
    return {"success": True, "message": message, "data": data}


def fail(
    message: str,
    error: Optional[Union[ErrorDetail, list[FieldError]]] = None,
) -> dict[str, Any]:
    """Build a JSON-ready failure envelope."""
    return APIResponse[Any](success=False, message=message, error=error).model_dump(
        mode="json", exclude_none=True
    )
