"""Redis connection pool — shared by presence, rate limiting and health.

Learn: Redis is optional. With JOBRELAY_PRESENCE_BACKEND=memory the app
runs fine without it; rate limiting is then skipped too. The pool is
initialized in the FastAPI lifespan and closed on shutdown.
"""

from typing import Optional

import redis.asyncio as aioredis

from jobrelay.config import settings

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    """Initialize the Redis connection pool."""
    global _redis
    _redis = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Verify connection
    await _redis.ping()
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
