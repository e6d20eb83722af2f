"""
Rate Limiter Module

Per-client sliding window rate limiting for the whole API. The limiter is
an ordinary object built by the service container and handed to the
middleware; expired buckets are dropped by a periodic sweep task started
in the application lifespan.
"""

import asyncio
import logging
import math
import threading
import time
from collections import deque
from typing import Callable, Optional

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.exceptions import RateLimitExceededError
from ..models.responses import ErrorDetail, fail

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """
    Allow at most ``limit`` requests per client in any ``window`` seconds.

    Each client has a deque of request timestamps. The bucket map is
    guarded by one lock; ``sweep`` takes it once per bucket so a request
    never waits for more than a single bucket to be scanned.

    Examples:
        limiter = SlidingWindowRateLimiter(limit=100, window=60)
        allowed, retry_after = limiter.allow("203.0.113.7")
    """

    def __init__(
        self,
        limit: int,
        window: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limit = limit
        self.window = window
        self._clock = clock
        self._buckets: dict[str, deque[float]] = {}
        self._lock = threading.Lock()

    def allow(self, key: str) -> tuple[bool, int]:
        """
        Record a request for ``key`` if it is under the limit.

        Returns:
            Tuple of (is_allowed, retry_after)
            - retry_after: Seconds until a slot frees up (0 if allowed)
        """
        now = self._clock()
        with self._lock:
            bucket = self._buckets.setdefault(key, deque())
            self._prune(bucket, now)
            if len(bucket) >= self.limit:
                retry_after = max(1, math.ceil(bucket[0] + self.window - now))
                return False, retry_after
            bucket.append(now)
            return True, 0

    def sweep(self) -> int:
        """
        Drop buckets with no requests inside the window.

        Returns:
            Number of buckets removed
        """
        with self._lock:
            keys = list(self._buckets)

        removed = 0
        for key in keys:
            with self._lock:
                bucket = self._buckets.get(key)
                if bucket is None:
                    continue
                self._prune(bucket, self._clock())
                if not bucket:
                    del self._buckets[key]
                    removed += 1
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _prune(self, bucket: deque[float], now: float) -> None:
        cutoff = now - self.window
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()


async def run_sweeper(limiter: SlidingWindowRateLimiter, interval: Optional[float] = None) -> None:
    """Sweep ``limiter`` every ``interval`` seconds (its window by default) until cancelled."""
    interval = interval or limiter.window
    while True:
        await asyncio.sleep(interval)
        removed = limiter.sweep()
        if removed:
            logger.debug(f"Rate limiter sweep removed {removed} idle client(s)")


def get_client_ip(request: Request) -> str:
    """Extract client IP from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject requests over the limit with a 429 envelope and Retry-After."""

    def __init__(self, app, limiter: SlidingWindowRateLimiter):
        super().__init__(app)
        self._limiter = limiter

    async def dispatch(self, request: Request, call_next) -> Response:
        key = get_client_ip(request)
        allowed, retry_after = self._limiter.allow(key)

        if not allowed:
            logger.warning(f"Rate limit exceeded for {key} on {request.method} {request.url.path}")
            error = RateLimitExceededError(retry_after)
            return JSONResponse(
                status_code=error.status_code,
                content=fail(
                    error.message,
                    ErrorDetail(code=error.code, details=error.details),
                ),
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(self._limiter.limit),
                },
            )

        return await call_next(request)
