"""
Exception Module

Structured exception hierarchy for the query cacher, organized by theme.

Module Structure:
-----------------
- **base.py**: CacherError base class + ConfigurationError
- **cache.py**: Cache store and payload codec exceptions
- **source.py**: Data source and precondition exceptions

Usage:
------
```python
from query_cacher.core.exceptions import StoreError, ModelNotSetError
```
"""

from query_cacher.core.exceptions.base import CacherError, ConfigurationError
from query_cacher.core.exceptions.cache import (
    CacheConnectionError,
    CodecError,
    DeserializationError,
    SerializationError,
    StoreError,
)
from query_cacher.core.exceptions.source import (
    InvalidMethodError,
    ModelNotSetError,
    PreconditionError,
    SourceError,
)

__all__ = [
    # Base
    "CacherError",
    "ConfigurationError",
    # Cache store
    "StoreError",
    "CacheConnectionError",
    "CodecError",
    "SerializationError",
    "DeserializationError",
    # Source
    "SourceError",
    "PreconditionError",
    "InvalidMethodError",
    "ModelNotSetError",
]
