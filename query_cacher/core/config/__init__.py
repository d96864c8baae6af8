"""
Configuration Module

- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Retrieval methods, key layout and stage identifiers

Usage:
------
```python
from query_cacher.core.config import get_settings

settings = get_settings()
prefix = settings.cache.CACHE_PREFIX
```
"""

from query_cacher.core.config.constants import RETRIEVAL_METHODS, Stage
from query_cacher.core.config.settings import (
    CacheSettings,
    LoggingSettings,
    RedisSettings,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "RETRIEVAL_METHODS",
    "Stage",
    "Settings",
    "RedisSettings",
    "CacheSettings",
    "LoggingSettings",
    "get_settings",
    "reload_settings",
]
