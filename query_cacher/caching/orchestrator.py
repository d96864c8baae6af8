"""
Cache-Aside Fetch Orchestrator

Architecture:
    FetchOrchestrator (Public API)
        ├── KeyDeriver (descriptor → key)
        ├── CacheStore (GET / SET / DELETE)
        ├── DataSource (named retrieval methods, raw queries)
        └── CacheObserver (metrics & logging)

Algorithm:
    1. Resolve the retrieval method (no store I/O; precondition failures surface here)
    2. Derive the key and GET it; StoreError propagates
    3. Hit  → decode and return with cache_hit=True
    4. Miss → invoke the source, normalize, encode, SET with TTL, return

Concurrent misses on the same key share one in-flight source fetch when
coalescing is enabled; the in-flight entry is dropped when the fetch
finishes, whatever the outcome.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

from query_cacher.caching.descriptors import CacheResult, QueryDescriptor, RawQueryDescriptor
from query_cacher.caching.key_deriver import KeyDeriver
from query_cacher.caching.serialization import decode_payload, encode_payload, normalize_result
from query_cacher.core.config.constants import RAW_QUERY_DEFAULT_OPTIONS, Stage
from query_cacher.core.exceptions import (
    CacherError,
    DeserializationError,
    InvalidMethodError,
    ModelNotSetError,
    SourceError,
)
from query_cacher.core.interfaces.cache import CacheStore
from query_cacher.core.interfaces.source import DataSource
from query_cacher.core.logging.logger import correlation_scope, get_logger, log_stage

logger = get_logger(__name__)

Loader = Callable[[], Awaitable[Any]]


# =============================================================================
# OBSERVABILITY
# =============================================================================


class CacheObserver:
    """
    Tracks cache performance counters and logs each operation.

    Counters are aggregate metrics only. Whether a given call was a hit is
    reported on that call's CacheResult.
    """

    def __init__(self, logger_instance=None):
        self._logger = logger_instance or logger

        self._hits = 0
        self._misses = 0
        self._source_fetches = 0
        self._coalesced = 0
        self._evictions = 0

    def record_hit(self, key: str) -> None:
        self._hits += 1
        log_stage(self._logger, Stage.CACHE_HIT, "Cache hit", level="debug", cache_key=key)

    def record_miss(self, key: str) -> None:
        self._misses += 1
        log_stage(self._logger, Stage.CACHE_MISS, "Cache miss", level="debug", cache_key=key)

    def record_source_fetch(self, key: str) -> None:
        self._source_fetches += 1
        log_stage(self._logger, Stage.SOURCE_FETCH, "Fetching from source", level="debug", cache_key=key)

    def record_coalesced(self, key: str) -> None:
        self._coalesced += 1
        log_stage(
            self._logger,
            Stage.SOURCE_COALESCED,
            "Joining in-flight source fetch",
            level="debug",
            cache_key=key,
        )

    def record_populate(self, key: str, ttl: int | None) -> None:
        log_stage(self._logger, Stage.CACHE_POPULATE, "Cache populated", level="debug", cache_key=key, ttl=ttl)

    def record_eviction(self, key: str, reason: str) -> None:
        self._evictions += 1
        log_stage(self._logger, Stage.CACHE_EVICT, "Cache entry evicted", cache_key=key, reason=reason)

    def get_stats(self) -> dict[str, Any]:
        """
        Get cache performance statistics.

        Returns:
            Dict with hit/miss counts, source fetches and hit rate
        """
        total = self._hits + self._misses
        hit_rate = self._hits / total if total > 0 else 0.0

        return {
            "hits": self._hits,
            "misses": self._misses,
            "total_requests": total,
            "hit_rate": round(hit_rate, 3),
            "source_fetches": self._source_fetches,
            "coalesced_fetches": self._coalesced,
            "evictions": self._evictions,
        }


# =============================================================================
# PUBLIC API
# =============================================================================


class FetchOrchestrator:
    """
    Cache-aside protocol between a cache store and a data source.

    Usage:
        orchestrator = FetchOrchestrator(store, source)
        result = await orchestrator.fetch(
            QueryDescriptor("find_all", "users", {"where": {"active": True}})
        )
        result.value, result.cache_hit
    """

    def __init__(
        self,
        store: CacheStore,
        source: DataSource,
        deriver: KeyDeriver | None = None,
        coalesce: bool = True,
        evict_on_corrupt: bool = False,
    ):
        """
        Args:
            store: Cache store (Redis in production)
            source: Data source resolving collections and raw queries
            deriver: Key deriver (default: no flatten hook)
            coalesce: Share one source fetch between concurrent misses
            evict_on_corrupt: Evict and refetch entries that fail to decode
                instead of raising DeserializationError
        """
        self._store = store
        self._source = source
        self._deriver = deriver or KeyDeriver()
        self._coalesce = coalesce
        self._evict_on_corrupt = evict_on_corrupt
        self._observer = CacheObserver()
        self._inflight: dict[str, asyncio.Task] = {}

    @property
    def deriver(self) -> KeyDeriver:
        return self._deriver

    # -------------------------------------------------------------------------
    # Fetch entry points
    # -------------------------------------------------------------------------

    async def fetch(self, descriptor: QueryDescriptor) -> CacheResult:
        """
        Fetch a structured query through the cache.

        Every log entry of the call carries one correlation ID (the caller's,
        when one is already bound).

        Raises:
            ModelNotSetError: Collection unknown to the data source
            InvalidMethodError: Method not callable on the collection
            StoreError: Cache store I/O failure
            SourceError: Data source failure (nothing cached)
            SerializationError / DeserializationError: Payload codec failure
        """
        with correlation_scope():
            method = await self._resolve_method(descriptor)
            key = self._deriver.derive_key(descriptor)
            log_stage(
                logger,
                Stage.KEY_DERIVATION,
                "Derived cache key",
                level="debug",
                cache_key=key,
                collection=descriptor.collection_name,
                method=descriptor.method_name,
            )

            async def load() -> Any:
                return await _call(method, descriptor.options)

            return await self._lookup(key, descriptor.ttl, load)

    async def fetch_raw(self, descriptor: RawQueryDescriptor) -> CacheResult:
        """
        Fetch a raw query through the cache.

        The key is derived from the caller's options; the source receives
        ``{"type": "SELECT"}`` when no options were given.
        """
        with correlation_scope():
            key = self._deriver.derive_raw_key(descriptor.sql, descriptor.options, descriptor.prefix)
            log_stage(
                logger, Stage.KEY_DERIVATION, "Derived raw query key", level="debug", cache_key=key
            )

            options = descriptor.options
            if options is None:
                options = dict(RAW_QUERY_DEFAULT_OPTIONS)

            async def load() -> Any:
                return await _call(self._source.query, descriptor.sql, options)

            return await self._lookup(key, descriptor.ttl, load)

    async def evict(self, descriptor: QueryDescriptor | RawQueryDescriptor) -> int:
        """
        Delete the entry of one descriptor.

        Returns:
            Number of keys deleted (0 or 1)
        """
        if isinstance(descriptor, RawQueryDescriptor):
            key = self._deriver.derive_raw_key(descriptor.sql, descriptor.options, descriptor.prefix)
        else:
            key = self._deriver.derive_key(descriptor)

        deleted = await self._store.delete(key)
        self._observer.record_eviction(key, reason="explicit")
        return deleted

    def stats(self) -> dict[str, Any]:
        """Aggregate counters plus the number of fetches currently in flight."""
        return {**self._observer.get_stats(), "inflight_fetches": len(self._inflight)}

    # -------------------------------------------------------------------------
    # Cache-aside steps
    # -------------------------------------------------------------------------

    async def _resolve_method(self, descriptor: QueryDescriptor) -> Callable[..., Any]:
        try:
            handle = await _call(self._source.model, descriptor.collection_name)
        except CacherError:
            raise
        except Exception as e:
            raise ModelNotSetError(
                message=f"Collection '{descriptor.collection_name}' is not known to the data source",
                details={"collection": descriptor.collection_name},
            ) from e

        if handle is None:
            raise ModelNotSetError(
                message=f"Collection '{descriptor.collection_name}' is not known to the data source",
                details={"collection": descriptor.collection_name},
            )

        method = getattr(handle, descriptor.method_name, None)
        if not callable(method):
            raise InvalidMethodError(
                message=f"Invalid method - {descriptor.method_name}",
                details={
                    "collection": descriptor.collection_name,
                    "method": descriptor.method_name,
                },
            )
        return method

    async def _lookup(self, key: str, ttl: int | None, load: Loader) -> CacheResult:
        payload = await self._store.get(key)

        if payload is None:
            self._observer.record_miss(key)
            value = await self._load(key, ttl, load)
            return CacheResult(value=value, cache_hit=False, key=key)

        self._observer.record_hit(key)
        try:
            value = decode_payload(payload)
        except DeserializationError as e:
            e.with_context(key=key)
            if not self._evict_on_corrupt:
                logger.warning(
                    "Cached payload could not be decoded",
                    stage=Stage.CACHE_HIT.value,
                    cache_key=key,
                    error=e.message,
                )
                raise
            await self._store.delete(key)
            self._observer.record_eviction(key, reason="corrupt")
            value = await self._load(key, ttl, load)
            return CacheResult(value=value, cache_hit=False, key=key)

        return CacheResult(value=value, cache_hit=True, key=key)

    async def _load(self, key: str, ttl: int | None, load: Loader) -> Any:
        if not self._coalesce:
            return await self._populate(key, ttl, load)

        task = self._inflight.get(key)
        if task is not None:
            self._observer.record_coalesced(key)
            return await asyncio.shield(task)

        task = asyncio.ensure_future(self._populate(key, ttl, load))
        self._inflight[key] = task
        task.add_done_callback(lambda done: self._forget_inflight(key, done))
        return await asyncio.shield(task)

    def _forget_inflight(self, key: str, task: asyncio.Task) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        # Mark the outcome as retrieved even if every waiter went away
        if not task.cancelled():
            task.exception()

    async def _populate(self, key: str, ttl: int | None, load: Loader) -> Any:
        self._observer.record_source_fetch(key)
        try:
            result = await load()
        except CacherError:
            raise
        except Exception as e:
            logger.error(
                "Source fetch failed",
                stage=Stage.SOURCE_FETCH.value,
                cache_key=key,
                error=str(e),
            )
            raise SourceError.from_exception(e, cache_key=key) from e

        value = normalize_result(result)
        payload = encode_payload(value)
        await self._store.set(key, payload, ttl)
        self._observer.record_populate(key, ttl)
        return value


async def _call(func: Callable[..., Any], *args: Any) -> Any:
    # Sources may be plain callables or coroutine functions
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
