"""Redis connection pool — shared counters for the rate limiter.

Learn: Redis is optional. The pool is opened in the app lifespan; if
Redis is down the app still starts, get_redis() raises, and the rate
limiter simply lets requests through. Realtime delivery never touches
Redis — the connection registry is in-process.
"""

from typing import Optional

import redis.asyncio as aioredis

from leap.config import settings

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    """Initialize the Redis connection pool."""
    global _redis
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Verify connection before exposing it
    await client.ping()
    _redis = client
    return _redis


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis
