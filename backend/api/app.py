"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.exceptions import AuthenticationError, ExternalServiceError, PortcullisError
from shared.log_config import configure_logging

from .dependencies import ServiceContainer, get_container
from .middleware.rate_limit import RateLimitMiddleware, run_sweeper
from .middleware.request_logging import RequestLoggingMiddleware
from .models.responses import ErrorDetail, FieldError, fail
from .routes import health
from modules.auth.routes import router as auth_router
from modules.users.routes import router as users_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    container: ServiceContainer = app.state.container
    settings = container.settings
    configure_logging(settings.log_level)
    sweeper = asyncio.create_task(run_sweeper(container.rate_limiter))
    logger.info(f"Starting {settings.app_name} on {settings.host}:{settings.port}")
    yield
    # Shutdown
    sweeper.cancel()
    with suppress(asyncio.CancelledError):
        await sweeper
    logger.info(f"Shutting down {settings.app_name}")


# -----------------------------------------------------------------------------
# Exception handlers
# -----------------------------------------------------------------------------


async def handle_portcullis_error(request: Request, exc: PortcullisError) -> JSONResponse:
    """Render a domain error in the response envelope."""
    if isinstance(exc, ExternalServiceError):
        # Collaborator failures are logged in full but never shown to clients.
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.message} "
            f"(service={exc.service}, code={exc.code})"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=fail("Internal server error", ErrorDetail(code="INTERNAL_ERROR")),
        )

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} ({exc.code})")
        return JSONResponse(
            status_code=exc.status_code,
            content=fail("Internal server error", ErrorDetail(code="INTERNAL_ERROR")),
        )

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content=fail(exc.message, ErrorDetail(code=exc.code, details=exc.details or None)),
        headers=headers,
    )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as one entry per field."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        message = err.get("msg", "is invalid")
        # "Value error, <reason>" comes from field validators
        message = message.removeprefix("Value error, ")
        errors.append(FieldError(field=".".join(loc) or "request", message=message))

    logger.info(f"Validation failed on {request.method} {request.url.path}: {len(errors)} error(s)")
    return JSONResponse(status_code=422, content=fail("Validation failed", errors))


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Service container to use; the process-wide one by default

    Returns:
        Configured FastAPI instance
    """
    container = container or get_container()
    settings = container.settings

    app = FastAPI(
        title=settings.app_name,
        description="User management and authentication API",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )
    app.state.container = container

    app.add_exception_handler(PortcullisError, handle_portcullis_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    # Middleware added last runs first: CORS, then rate limiting, then logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware, limiter=container.rate_limiter)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Register routes
    app.include_router(health.router, prefix=API_PREFIX, tags=["health"])
    app.include_router(auth_router, prefix=f"{API_PREFIX}/auth", tags=["auth"])
    app.include_router(users_router, prefix=f"{API_PREFIX}/users", tags=["users"])

    return app


# Application instance for uvicorn
app = create_app()
