"""
Storage Connection Module Initialization
"""

from responses_gateway.db.redis import close_redis, get_redis, init_redis

__all__ = [
    "init_redis",
    "close_redis",
    "get_redis",
]
