"""
Infrastructure Module

Adapters for external systems (Redis).
"""

from .cache import RedisClient, close_redis, get_redis_client, init_redis

__all__ = [
    "RedisClient",
    "get_redis_client",
    "init_redis",
    "close_redis",
]
