"""
Shared Redis client for the realtime fan-out.

One connection pool per worker process, created on first use and closed by
the application lifespan. Only the ``redis`` realtime backend touches it.
"""

import logging
from typing import Optional

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from tennismate.core.config import settings

logger = logging.getLogger(__name__)

_pool: Optional[ConnectionPool] = None


def _get_pool() -> ConnectionPool:
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            settings.redis_url,
            max_connections=settings.redis_pool_size,
            decode_responses=True,
        )
        logger.info("Redis pool opened for realtime fan-out: %s", settings.redis_url)
    return _pool


async def get_redis() -> Redis:
    """Client bound to the shared pool; cheap to create per call."""
    return Redis(connection_pool=_get_pool())


async def ping_redis() -> bool:
    """Reachability check reported by /healthz when the redis backend is active."""
    try:
        redis = await get_redis()
        return bool(await redis.ping())
    except (RedisError, OSError) as e:
        logger.warning(f"Redis ping failed: {e}")
        return False


async def close_redis_pool() -> None:
    global _pool
    if _pool is None:
        return
    await _pool.aclose()
    _pool = None
    logger.info("Redis pool closed")
