"""
Test Fixtures Package

Shared test doubles for the cache store and the data source.
"""

from .cache_factory import InMemoryRedis
from .source_factory import POSTS, USERS, FakeCollection, FakeDataSource, UserRecord

__all__ = ["InMemoryRedis", "FakeCollection", "FakeDataSource", "UserRecord", "USERS", "POSTS"]
