"""
Redis client initialization and connection management.

The report cache is the only consumer; every call it makes goes through
the cache circuit breaker, so the client itself stays thin.
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from fleet_backend.app.core.config import settings

logger = logging.getLogger("fleet.cache")

redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
    socket_timeout=settings.redis_socket_timeout,
    socket_connect_timeout=settings.redis_socket_timeout,
)


async def get_redis():
    """FastAPI dependency returning the shared client."""
    return redis_client


async def ping_redis() -> bool:
    """
    Probe Redis for /health.

    Returns:
        True when the server answers, False when it is unreachable
    """
    try:
        return bool(await redis_client.ping())
    except (RedisError, OSError) as e:
        logger.warning("Redis ping failed: %s", e)
        return False
