"""
Cacher Facade

Builder-style configuration surface over the orchestrator and the
invalidation manager.

Usage:
    cacher = Cacher(source, redis_client)

    result = await cacher.model("users").ttl(60).find_all({"where": {"active": True}})
    result.value       # rows
    result.cache_hit   # this call only

    await cacher.query("SELECT * FROM users WHERE id = :id", {"replacements": {"id": 1}})
    cacher.invalidate("users")

Setters mutate the facade and return it for chaining. Operations are plain
methods that snapshot the configuration into an immutable descriptor and
return the awaitable bound to it, so calls created back to back, e.g. for
``asyncio.gather``, each keep the collection and TTL set before them.
Precondition errors such as ModelNotSetError raise at call time.
"""

import asyncio
from collections.abc import Awaitable, Sequence
from typing import Any

from query_cacher.caching.descriptors import CacheResult, QueryDescriptor, RawQueryDescriptor
from query_cacher.caching.invalidation import InvalidationManager
from query_cacher.caching.key_deriver import KeyDeriver
from query_cacher.caching.orchestrator import FetchOrchestrator
from query_cacher.core.config.constants import DEFAULT_METHOD, RETRIEVAL_METHODS, Stage
from query_cacher.core.config.settings import Settings, get_settings
from query_cacher.core.exceptions import ConfigurationError, InvalidMethodError, ModelNotSetError
from query_cacher.core.interfaces.cache import CacheStore
from query_cacher.core.interfaces.source import DataSource
from query_cacher.core.logging.logger import get_logger

logger = get_logger(__name__)

ExtraKeys = Sequence[str] | str | None


class Cacher:
    """
    Cache-aside facade for one data source and one cache store.

    Args:
        source: Data source resolving collections and raw queries
        store: Cache store (RedisClient in production)
        settings: Settings to read defaults from (default: global settings)
        key_deriver: Custom key deriver, e.g. one with a flatten hook
    """

    def __init__(
        self,
        source: DataSource,
        store: CacheStore,
        settings: Settings | None = None,
        key_deriver: KeyDeriver | None = None,
    ):
        if not isinstance(store, CacheStore):
            raise ConfigurationError(
                "Cache store must implement get/set/scan/delete/unlink",
                details={"store_type": type(store).__qualname__},
            )
        if not isinstance(source, DataSource):
            raise ConfigurationError(
                "Data source must expose model() and query()",
                details={"source_type": type(source).__qualname__},
            )

        cache_settings = (settings or get_settings()).cache

        self._store = store
        self._collection: str | None = None
        self._method = DEFAULT_METHOD
        self._prefix = cache_settings.CACHE_PREFIX
        self._ttl: int | None = cache_settings.CACHE_TTL

        self._orchestrator = FetchOrchestrator(
            store,
            source,
            key_deriver or KeyDeriver(),
            coalesce=cache_settings.CACHE_COALESCE_FETCHES,
            evict_on_corrupt=cache_settings.CACHE_EVICT_ON_CORRUPT,
        )
        self._invalidation = InvalidationManager(store, scan_count=cache_settings.CACHE_SCAN_COUNT)

        logger.info(
            "Cacher initialized",
            stage=Stage.INITIALIZATION.value,
            prefix=self._prefix,
            ttl=self._ttl,
            coalesce=cache_settings.CACHE_COALESCE_FETCHES,
        )

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def model(self, name: str) -> "Cacher":
        """Set the target collection."""
        if not isinstance(name, str) or not name:
            raise ConfigurationError("Collection name must be a non-empty string")
        self._collection = name
        return self

    def prefix(self, value: str) -> "Cacher":
        """Set the cache key prefix."""
        if not isinstance(value, str) or not value:
            raise ConfigurationError("Cache prefix must be a non-empty string")
        self._prefix = value
        return self

    def ttl(self, seconds: int | None) -> "Cacher":
        """Set the entry TTL in seconds; None stores entries without expiry."""
        if seconds is not None and (isinstance(seconds, bool) or not isinstance(seconds, int) or seconds <= 0):
            raise ConfigurationError(
                "TTL must be a positive number of seconds", details={"ttl": seconds}
            )
        self._ttl = seconds
        return self

    def method(self, name: str) -> "Cacher":
        """
        Set the active retrieval method.

        Raises:
            InvalidMethodError: Name outside the supported retrieval methods
        """
        if name not in RETRIEVAL_METHODS:
            raise InvalidMethodError(
                message=f"Invalid method - {name}",
                details={"method": name, "supported_methods": list(RETRIEVAL_METHODS)},
            )
        self._method = name
        return self

    @property
    def collection_name(self) -> str | None:
        return self._collection

    @property
    def method_name(self) -> str:
        return self._method

    @property
    def cache_prefix(self) -> str:
        return self._prefix

    @property
    def ttl_seconds(self) -> int | None:
        return self._ttl

    def describe(self, options: Any = None, keys: ExtraKeys = None) -> QueryDescriptor:
        """
        Snapshot the current configuration into a descriptor.

        Raises:
            ModelNotSetError: No target collection configured
        """
        if self._collection is None:
            raise ModelNotSetError("Model not set", details={"method": self._method})
        return QueryDescriptor(
            method_name=self._method,
            collection_name=self._collection,
            options=options,
            extra_keys=keys,
            prefix=self._prefix,
            ttl=self._ttl,
        )

    def derive_key(self, options: Any = None, keys: ExtraKeys = None) -> str:
        """Key the active method would read and write for these options."""
        return self._orchestrator.deriver.derive_key(self.describe(options, keys))

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def run(self, options: Any = None, keys: ExtraKeys = None) -> Awaitable[CacheResult]:
        """
        Execute the active retrieval method through the cache.

        The descriptor is built before this returns, so the awaitable is
        bound to the configuration at call time.
        """
        return self._orchestrator.fetch(self.describe(options, keys))

    def _execute(self, method_name: str, options: Any, keys: ExtraKeys) -> Awaitable[CacheResult]:
        if self._collection is None:
            raise ModelNotSetError("Model not set", details={"method": method_name})
        self._method = method_name
        return self.run(options, keys)

    def find(self, options: Any = None, keys: ExtraKeys = None) -> Awaitable[CacheResult]:
        return self._execute("find", options, keys)

    def find_one(self, options: Any = None, keys: ExtraKeys = None) -> Awaitable[CacheResult]:
        return self._execute("find_one", options, keys)

    def find_all(self, options: Any = None, keys: ExtraKeys = None) -> Awaitable[CacheResult]:
        return self._execute("find_all", options, keys)

    def find_and_count(self, options: Any = None, keys: ExtraKeys = None) -> Awaitable[CacheResult]:
        return self._execute("find_and_count", options, keys)

    def find_and_count_all(
        self, options: Any = None, keys: ExtraKeys = None
    ) -> Awaitable[CacheResult]:
        return self._execute("find_and_count_all", options, keys)

    def all(self, options: Any = None, keys: ExtraKeys = None) -> Awaitable[CacheResult]:
        return self._execute("all", options, keys)

    def min(self, options: Any = None, keys: ExtraKeys = None) -> Awaitable[CacheResult]:
        return self._execute("min", options, keys)

    def max(self, options: Any = None, keys: ExtraKeys = None) -> Awaitable[CacheResult]:
        return self._execute("max", options, keys)

    def sum(self, options: Any = None, keys: ExtraKeys = None) -> Awaitable[CacheResult]:
        return self._execute("sum", options, keys)

    def count(self, options: Any = None, keys: ExtraKeys = None) -> Awaitable[CacheResult]:
        return self._execute("count", options, keys)

    def query(self, sql: str, options: Any = None) -> Awaitable[CacheResult]:
        """Run a literal query through the cache."""
        descriptor = RawQueryDescriptor(sql=sql, options=options, prefix=self._prefix, ttl=self._ttl)
        return self._orchestrator.fetch_raw(descriptor)

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    def invalidate(self, pattern: str) -> asyncio.Task | None:
        """
        Remove every key matching ``prefix:*pattern*`` in the background.

        Returns:
            The sweep task, or None if the same pattern is already being swept
        """
        return self._invalidation.invalidate_pattern(pattern, self._prefix)

    def clear(self, options: Any = None, keys: ExtraKeys = None) -> Awaitable[int]:
        """Evict the entry the active method would use for these options."""
        return self._orchestrator.evict(self.describe(options, keys))

    def clear_query(self, sql: str, options: Any = None) -> Awaitable[int]:
        """Evict the entry of a raw query."""
        descriptor = RawQueryDescriptor(sql=sql, options=options, prefix=self._prefix, ttl=self._ttl)
        return self._orchestrator.evict(descriptor)

    async def drain(self) -> None:
        """Wait for background invalidations to finish."""
        await self._invalidation.drain()

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def stats(self) -> dict[str, Any]:
        return {**self._orchestrator.stats(), **self._invalidation.stats()}

    async def health_check(self) -> dict[str, Any]:
        """
        Report store health alongside cache counters.

        Stores without a ``health_check`` coroutine are reported as unknown.
        """
        store_check = getattr(self._store, "health_check", None)
        store_health = await store_check() if store_check is not None else {"status": "unknown"}

        return {
            "status": "healthy" if store_health.get("status") in ("healthy", "unknown") else "degraded",
            "store": store_health,
            "stats": self.stats(),
        }
