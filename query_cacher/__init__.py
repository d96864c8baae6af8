"""
Query Cacher

Read-through caching for data-source queries, backed by Redis.

Usage:
------
```python
from query_cacher import Cacher, Op, init_redis, setup_logging

setup_logging()
redis_client = await init_redis()
cacher = Cacher(data_source, redis_client)

result = await cacher.model("users").find_all({"where": {"age": {Op.gt: 18}}})
```
"""

from query_cacher.caching import (
    Cacher,
    CacheResult,
    FetchOrchestrator,
    InvalidationManager,
    KeyDeriver,
    Op,
    Operator,
    QueryDescriptor,
    RawQueryDescriptor,
)
from query_cacher.core.config import Settings, get_settings, reload_settings
from query_cacher.core.exceptions import (
    CacheConnectionError,
    CacherError,
    ConfigurationError,
    DeserializationError,
    InvalidMethodError,
    ModelNotSetError,
    SerializationError,
    SourceError,
    StoreError,
)
from query_cacher.core.logging import get_logger, setup_logging
from query_cacher.infrastructure import RedisClient, close_redis, get_redis_client, init_redis

__version__ = "1.0.0"

__all__ = [
    "Cacher",
    "CacheResult",
    "FetchOrchestrator",
    "InvalidationManager",
    "KeyDeriver",
    "Op",
    "Operator",
    "QueryDescriptor",
    "RawQueryDescriptor",
    "RedisClient",
    "get_redis_client",
    "init_redis",
    "close_redis",
    "Settings",
    "get_settings",
    "reload_settings",
    "setup_logging",
    "get_logger",
    "CacherError",
    "ConfigurationError",
    "StoreError",
    "CacheConnectionError",
    "SerializationError",
    "DeserializationError",
    "SourceError",
    "InvalidMethodError",
    "ModelNotSetError",
]
