"""
Rate Limiting Module

Sliding-window rate limiting for API endpoints using Redis sorted sets.
Falls back to in-memory storage if Redis is unavailable.

The whole API router is limited per client IP (60 requests per minute by
default). Sensitive endpoints such as forgot-password add a stricter
per-endpoint limit through ``rate_limiter``.
"""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request

from enrollment_api.core.config import settings
from enrollment_api.core.exceptions import RateLimitExceededError
from enrollment_api.core.redis import get_redis

logger = logging.getLogger(__name__)

# In-memory rate limit storage (fallback when Redis unavailable)
# Format: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}


async def _check_rate_limit_redis(
    client,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using Redis.

    Args:
        client: Redis client
        key: Rate limit key (e.g., "rate_limit:api:10.0.0.1")
        limit: Maximum requests allowed
        window_seconds: Time window in seconds

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    now = time.time()
    window_start = now - window_seconds

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, window_start)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)

    results = await pipe.execute()
    current_count = results[1]

    return current_count < limit


def _check_rate_limit_memory(
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check rate limit using in-memory storage.

    Note: counts are per process, so limits are not shared across workers.
    """
    now = time.time()
    window_start = now - window_seconds

    hits = [ts for ts in _memory_store.get(key, []) if ts > window_start]

    if len(hits) >= limit:
        _memory_store[key] = hits
        return False

    hits.append(now)
    _memory_store[key] = hits
    return True


async def check_rate_limit(
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Check if a request is within rate limits.

    Tries Redis first, falls back to in-memory storage.

    Returns:
        True if request is allowed, False if rate limit exceeded
    """
    client = get_redis()

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def rate_limiter(
    scope: str,
    limit: int,
    window_seconds: int,
) -> Callable[[Request], Awaitable[None]]:
    """
    Build a FastAPI dependency enforcing ``limit`` requests per window per client IP.

    Usage:
        @router.post("/forgot-password", dependencies=[Depends(rate_limiter("forgot", 5, 900))])

    Raises:
        RateLimitExceededError: When the limit is exceeded (HTTP 429)
    """

    async def dependency(request: Request) -> None:
        key = f"rate_limit:{scope}:{_client_ip(request)}"
        allowed = await check_rate_limit(key, limit, window_seconds)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {key}: {limit}/{window_seconds}s")
            raise RateLimitExceededError(limit, window_seconds)

    return dependency


async def api_rate_limit(request: Request) -> None:
    """Router-wide limit applied to every /api endpoint."""
    await rate_limiter(
        "api",
        settings.api_rate_limit,
        settings.api_rate_limit_window_seconds,
    )(request)


__all__ = [
    "api_rate_limit",
    "check_rate_limit",
    "rate_limiter",
]
