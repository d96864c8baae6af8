"""
Caching Module

Cache-aside layer between a data source and a cache store.

Module Structure:
-----------------
- **facade.py**: Cacher, the chainable public surface
- **orchestrator.py**: Cache-aside fetch protocol and fetch coalescing
- **invalidation.py**: Pattern invalidation over cursor-based SCAN
- **key_deriver.py**: Deterministic key derivation
- **serialization.py**: Result normalization and payload codec
- **operators.py**: Relational operator placeholders
- **descriptors.py**: Immutable query descriptors and call results
"""

from query_cacher.caching.descriptors import CacheResult, QueryDescriptor, RawQueryDescriptor
from query_cacher.caching.facade import Cacher
from query_cacher.caching.invalidation import InvalidationManager
from query_cacher.caching.key_deriver import KeyDeriver
from query_cacher.caching.operators import Op, Operator
from query_cacher.caching.orchestrator import CacheObserver, FetchOrchestrator

__all__ = [
    "Cacher",
    "FetchOrchestrator",
    "CacheObserver",
    "InvalidationManager",
    "KeyDeriver",
    "Op",
    "Operator",
    "QueryDescriptor",
    "RawQueryDescriptor",
    "CacheResult",
]
