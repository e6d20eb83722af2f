"""API models package."""

from .responses import APIResponse, ErrorDetail, FieldError, ok, fail

__all__ = [
    "APIResponse",
    "ErrorDetail",
    "FieldError",
    "ok",
    "fail",
]
