"""
Bounded calls into blocking collaborators.

The user store and the SMTP sender are synchronous clients. Services call
them through ``call_with_timeout`` so a slow collaborator can never block a
request indefinitely: the call runs in a worker thread and is abandoned once
the timeout elapses. Nothing here retries.
"""

import asyncio
import logging
from typing import Any, Callable, TypeVar

from .exceptions import PortcullisError, ExternalServiceError, ServiceTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_with_timeout(
    func: Callable[..., T],
    *args: Any,
    service: str,
    timeout: float,
    **kwargs: Any,
) -> T:
    """
    Run a blocking callable in a worker thread with a bounded timeout.

    Args:
        func: The blocking callable (usually a bound repository/sender method)
        *args: Positional arguments for ``func``
        service: Name of the collaborator, used in errors and logs
        timeout: Seconds to wait before giving up
        **kwargs: Keyword arguments for ``func``

    Returns:
        Whatever ``func`` returns

    Raises:
        ServiceTimeoutError: If the call did not finish in time
        PortcullisError: Domain errors raised by ``func`` are re-raised as-is
        ExternalServiceError: Any other failure, with the original chained
    """
    operation = getattr(func, "__name__", repr(func))
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(func, *args, **kwargs),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        logger.error(f"{service}.{operation} timed out after {timeout}s")
        raise ServiceTimeoutError(service, operation, timeout) from e
    except PortcullisError:
        raise
    except Exception as e:
        logger.error(f"{service}.{operation} failed: {e!r}", exc_info=True)
        raise ExternalServiceError(
            f"{service} call '{operation}' failed",
            service=service,
            details={"operation": operation},
        ) from e
