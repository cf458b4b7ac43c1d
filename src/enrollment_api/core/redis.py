"""
Redis Configuration

Async Redis client backing the API rate limiter. Redis is optional: when it
is not reachable the limiter falls back to per-process memory.
"""

import logging

from redis.asyncio import Redis, from_url

from enrollment_api.core.config import settings

logger = logging.getLogger(__name__)

# Redis client instance, set by init_redis() during application startup
redis_client: Redis | None = None


async def init_redis() -> Redis:
    """
    Initialize the Redis connection and verify it with a PING.

    Call this on application startup.
    """
    global redis_client
    client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await client.ping()
    redis_client = client
    return client


def get_redis() -> Redis | None:
    """Return the Redis client, or None if Redis is not available."""
    return redis_client


async def close_redis() -> None:
    """Close the Redis connection."""
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection closed")
