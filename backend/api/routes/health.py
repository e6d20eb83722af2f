"""
Health check endpoints.

Provides endpoints for monitoring application health and the reachability
of the user store.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from shared.concurrency import call_with_timeout
from shared.exceptions import PortcullisError
from shared.models import AuthenticatedUser

from ..dependencies import ServiceContainer, get_request_container
from ..middleware.auth import get_optional_user
from ..models.responses import APIResponse, ok

logger = logging.getLogger(__name__)

router = APIRouter()

STORE_UP = "up"
STORE_DOWN = "down"


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    timestamp: datetime
    authenticated: bool
    store: str


async def check_store(container: ServiceContainer) -> str:
    """Ping the user store; failures are reported, never raised."""
    try:
        await call_with_timeout(
            container.user_repository.ping,
            service="user_store",
            timeout=container.settings.collaborator_timeout_seconds,
        )
    except (PortcullisError, RuntimeError) as e:
        logger.warning(f"User store health check failed: {e}")
        return STORE_DOWN
    return STORE_UP


@router.get(
    "/health",
    response_model=APIResponse[HealthResponse],
    response_model_exclude_none=True,
)
async def health_check(
    request: Request,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
):
    """
    Basic health check endpoint.

    Always returns 200 while the API is running. ``status`` is ``degraded``
    when the user store cannot be reached. A valid bearer token is optional;
    ``authenticated`` reports whether one was presented.
    """
    container = get_request_container(request)
    store = await check_store(container)
    healthy = store == STORE_UP

    health = HealthResponse(
        status="healthy" if healthy else "degraded",
        version=container.settings.app_version,
        timestamp=datetime.now(timezone.utc),
        authenticated=user is not None,
        store=store,
    )
    return ok("Service is healthy" if healthy else "Service is degraded", health)
