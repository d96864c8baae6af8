"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys
from unittest.mock import AsyncMock

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from query_cacher.core.config.settings import Settings  # noqa: E402
from tests.test_fixtures import FakeDataSource, InMemoryRedis  # noqa: E402


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def test_settings():
    """
    Settings with explicit cache defaults, independent of the environment.
    """
    return Settings(
        CACHE_PREFIX="cacher",
        CACHE_TTL=30,
        CACHE_SCAN_COUNT=100,
        CACHE_COALESCE_FETCHES=True,
        CACHE_EVICT_ON_CORRUPT=False,
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="console",
    )


# ============================================================================
# Environment-Based Integration Toggles
# ============================================================================


@pytest.fixture(scope="session")
def use_real_redis():
    """Check if real Redis should be used for integration tests."""
    return os.getenv("USE_REAL_REDIS", "0").lower() in ("1", "true", "yes")


# ============================================================================
# Cache Store Fixtures
# ============================================================================


@pytest.fixture
def in_memory_redis_client():
    """
    In-memory Redis client stub for testing.

    Mimics Redis operations using in-memory storage.
    """
    return InMemoryRedis()


@pytest.fixture
def mock_store():
    """
    Mock cache store for isolated testing.

    Provides async mock methods for every CacheStore operation.
    """
    store = AsyncMock()
    store.get = AsyncMock(return_value=None)
    store.set = AsyncMock(return_value=True)
    store.scan = AsyncMock(return_value=(0, []))
    store.delete = AsyncMock(return_value=1)
    store.unlink = AsyncMock(return_value=0)
    return store


@pytest.fixture
async def real_or_mock_redis(use_real_redis, in_memory_redis_client):
    """
    Return real Redis client if enabled, otherwise in-memory stub.
    """
    if use_real_redis:
        from query_cacher.infrastructure.cache.redis_client import RedisClient

        client = RedisClient()
        await client.connect()
        yield client
        await client.disconnect()
    else:
        yield in_memory_redis_client


# ============================================================================
# Data Source Fixtures
# ============================================================================


@pytest.fixture
def data_source():
    """Fake data source with a ``users`` collection."""
    return FakeDataSource()


@pytest.fixture
def users(data_source):
    """The ``users`` collection handle of the fake data source."""
    return data_source.collections["users"]
