"""
Interfaces Module

Protocols for the two external collaborators of the cacher.
"""

from query_cacher.core.interfaces.cache import CacheStore
from query_cacher.core.interfaces.source import (
    CollectionHandle,
    DataSource,
    PlainConvertible,
)

__all__ = [
    "CacheStore",
    "CollectionHandle",
    "DataSource",
    "PlainConvertible",
]
