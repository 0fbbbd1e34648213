"""
Redis Client Lifecycle

Owns the async Redis client backing RedisResponseStore. The application
lifespan opens it on startup and closes it on shutdown when
RESPONSE_STORE_TYPE is "redis".
"""

import logging
from typing import Optional
from urllib.parse import urlparse

from redis.asyncio import Redis

from responses_gateway.config import get_settings

logger = logging.getLogger(__name__)

LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")

_redis_client: Optional[Redis] = None


def _redacted(redis_url: str) -> str:
    parsed = urlparse(redis_url)
    if not parsed.password:
        return redis_url
    return redis_url.replace(f":{parsed.password}@", ":***@", 1)


async def init_redis(redis_url: Optional[str] = None) -> Redis:
    """
    Connect to Redis

    Args:
        redis_url: Overrides REDIS_URL

    Returns:
        Redis: The shared client, after a successful PING
    """
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    url = redis_url or get_settings().REDIS_URL
    parsed = urlparse(url)
    if not parsed.password and parsed.hostname not in LOCAL_HOSTS:
        # Stored responses hold whole conversations
        logger.warning("Response store Redis at %s has no password", parsed.hostname)

    client = Redis.from_url(url, decode_responses=True)
    await client.ping()
    _redis_client = client
    logger.info("Response store connected to %s", _redacted(url))
    return client


async def close_redis() -> None:
    global _redis_client

    if _redis_client is None:
        return
    await _redis_client.aclose()
    _redis_client = None
    logger.info("Response store Redis connection closed")


def get_redis() -> Redis:
    """
    Raises:
        RuntimeError: init_redis() has not run
    """
    if _redis_client is None:
        raise RuntimeError('Redis is not connected; RESPONSE_STORE_TYPE="redis" requires init_redis() at startup')
    return _redis_client
