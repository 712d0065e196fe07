"""Redis-backed rate limiting for the credential endpoints."""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Callable, Iterable, Protocol, runtime_checkable

from fastapi import status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.types import ASGIApp

from core import settings

logger = logging.getLogger(__name__)


@runtime_checkable
class SupportsRateLimitClient(Protocol):
    async def incr(self, key: str) -> int: ...

    async def expire(self, key: str, ttl: int) -> None: ...


def default_client_identifier(request: Request) -> str:
    """Resolve the client address used as the rate-limit bucket key."""
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        {"statusCode": status_code, "message": message, "success": False, "errors": []},
        status_code=status_code,
    )


class RateLimiter:
    """Simple fixed-window rate limiter backed by Redis."""

    def __init__(
        self,
        redis_client: SupportsRateLimitClient,
        limit: int,
        window_seconds: int,
        prefix: str = "rate-limit",
    ) -> None:
        self.redis = redis_client
        self.limit = max(limit, 0)
        self.window_seconds = max(window_seconds, 0)
        self.prefix = prefix

    async def allow(self, key: str) -> bool:
        """Return True when the request should be allowed, False if limited."""
        if self.limit == 0 or self.window_seconds == 0:
            return True

        bucket = int(time.time()) // self.window_seconds
        redis_key = f"{self.prefix}:{key}:{bucket}"

        count = await self.redis.incr(redis_key)
        if count == 1:
            await self.redis.expire(redis_key, self.window_seconds)
        return count <= self.limit


@lru_cache
def get_redis_client() -> SupportsRateLimitClient:
    """Return a cached async Redis client."""
    return Redis.from_url(settings.redis_url, decode_responses=False)


_cached_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Singleton accessor for the shared rate limiter."""
    global _cached_rate_limiter
    if _cached_rate_limiter is None:
        _cached_rate_limiter = RateLimiter(
            redis_client=get_redis_client(),
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    return _cached_rate_limiter


def set_rate_limiter(limiter: RateLimiter | None) -> None:
    """Override the cached rate limiter (primarily for tests)."""
    global _cached_rate_limiter
    _cached_rate_limiter = limiter


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Enforce the rate limit on the listed paths only; other paths pass through."""

    def __init__(
        self,
        app: ASGIApp,
        limiter_factory: Callable[[], RateLimiter],
        limited_paths: Iterable[str],
        client_identifier: Callable[[Request], str] | None = None,
    ) -> None:
        super().__init__(app)
        self.limiter_factory = limiter_factory
        self.limited_paths = frozenset(path.rstrip("/") for path in limited_paths)
        self.client_identifier = client_identifier or default_client_identifier

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        path = request.url.path.rstrip("/")
        if path not in self.limited_paths:
            return await call_next(request)

        try:
            limiter = self.limiter_factory()
            is_allowed = await limiter.allow(f"{path}:{self.client_identifier(request)}")
        except Exception:
            # Credential endpoints fail closed when Redis is unreachable.
            logger.exception("Rate limiter unavailable", extra={"path": path})
            return _error_response(
                status.HTTP_503_SERVICE_UNAVAILABLE, "Service unavailable"
            )

        if not is_allowed:
            return _error_response(status.HTTP_429_TOO_MANY_REQUESTS, "Too Many Requests")

        return await call_next(request)
