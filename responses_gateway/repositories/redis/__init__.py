"""
Redis Repository Implementation Module Initialization
"""

from responses_gateway.repositories.redis.response_store import RedisResponseStore

__all__ = [
    "RedisResponseStore",
]
