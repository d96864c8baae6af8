"""
Pattern Invalidation Scanner

Removes every key matching ``prefix:*pattern*`` by walking the store's
cursor-based SCAN and unlinking what it collected.

State machine per pattern (keyed by the SHA-1 of the final pattern):

    Idle ──request──► Scanning ──cursor 0──► Deleting ──► Idle
      ▲                  │
      └────scan error────┘   (partial matches discarded, nothing deleted)

A request for a pattern that is already Scanning/Deleting is a no-op. The
pending entry is removed on every exit path.
"""

import asyncio
import hashlib
from typing import Any

from query_cacher.core.config.constants import (
    DEFAULT_CACHE_PREFIX,
    DEFAULT_SCAN_COUNT,
    DELETE_BATCH_SIZE,
    KEY_SEPARATOR,
    SCAN_START_CURSOR,
    SCAN_TERMINAL_CURSOR,
    Stage,
)
from query_cacher.core.exceptions import StoreError
from query_cacher.core.interfaces.cache import CacheStore
from query_cacher.core.logging.logger import correlation_scope, get_logger, log_stage

logger = get_logger(__name__)


class InvalidationManager:
    """
    Owns the in-flight invalidations of one cacher instance.

    Usage:
        manager = InvalidationManager(store)
        task = manager.invalidate_pattern("users")
        if task is not None:
            deleted = await task   # optional; invalidation is fire-and-forget
    """

    def __init__(
        self,
        store: CacheStore,
        scan_count: int = DEFAULT_SCAN_COUNT,
        delete_batch_size: int = DELETE_BATCH_SIZE,
    ):
        self._store = store
        self._scan_count = scan_count
        self._delete_batch_size = delete_batch_size
        self._pending: dict[str, list[str]] = {}
        self._tasks: set[asyncio.Task] = set()

    @staticmethod
    def build_pattern(pattern: str, prefix: str = DEFAULT_CACHE_PREFIX) -> str:
        return f"{prefix}{KEY_SEPARATOR}*{pattern}*"

    @staticmethod
    def pattern_hash(final_pattern: str) -> str:
        return hashlib.sha1(final_pattern.encode("utf-8")).hexdigest()

    @property
    def pending(self) -> dict[str, tuple[str, ...]]:
        """Snapshot of in-flight sweeps: pattern hash → keys collected so far."""
        return {pattern_hash: tuple(keys) for pattern_hash, keys in self._pending.items()}

    def is_pending(self, pattern: str, prefix: str = DEFAULT_CACHE_PREFIX) -> bool:
        return self.pattern_hash(self.build_pattern(pattern, prefix)) in self._pending

    def invalidate_pattern(
        self, pattern: str, prefix: str = DEFAULT_CACHE_PREFIX
    ) -> asyncio.Task | None:
        """
        Start a sweep for ``pattern`` in the background.

        Must be called from a running event loop.

        Returns:
            The sweep task, resolving to the number of keys unlinked, or None
            when a sweep for the same pattern is already in flight.
        """
        loop = asyncio.get_running_loop()
        final_pattern = self.build_pattern(pattern, prefix)
        pattern_hash = self.pattern_hash(final_pattern)

        if pattern_hash in self._pending:
            log_stage(
                logger,
                Stage.INVALIDATION_REQUEST,
                "Invalidation already in flight, request dropped",
                level="debug",
                pattern=final_pattern,
            )
            return None

        self._pending[pattern_hash] = []
        # The sweep task copies the context, so its entries share this ID
        with correlation_scope():
            log_stage(
                logger, Stage.INVALIDATION_REQUEST, "Invalidation started", pattern=final_pattern
            )
            task = loop.create_task(self._sweep(final_pattern, pattern_hash))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait for every sweep started so far (used on shutdown and in tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def stats(self) -> dict[str, Any]:
        return {"pending_invalidations": len(self._pending), "running_sweeps": len(self._tasks)}

    # -------------------------------------------------------------------------
    # Sweep
    # -------------------------------------------------------------------------

    async def _sweep(self, final_pattern: str, pattern_hash: str) -> int:
        # Failures never leave the task: callers fire and forget
        try:
            try:
                await self._scan(final_pattern, pattern_hash)
            except Exception as e:
                logger.warning(
                    "Invalidation scan failed, discarding partial matches",
                    stage=Stage.INVALIDATION_SCAN.value,
                    pattern=final_pattern,
                    collected=len(self._pending.get(pattern_hash, ())),
                    error=_describe_error(e),
                    error_type=type(e).__name__,
                    exc_info=not isinstance(e, StoreError),
                )
                return 0

            try:
                return await self._delete(final_pattern, pattern_hash)
            except Exception as e:
                logger.warning(
                    "Invalidation delete failed",
                    stage=Stage.INVALIDATION_DELETE.value,
                    pattern=final_pattern,
                    error=_describe_error(e),
                    error_type=type(e).__name__,
                    exc_info=not isinstance(e, StoreError),
                )
                return 0
        finally:
            self._pending.pop(pattern_hash, None)

    async def _scan(self, final_pattern: str, pattern_hash: str) -> None:
        cursor = SCAN_START_CURSOR
        while True:
            cursor, keys = await self._store.scan(cursor, final_pattern, self._scan_count)
            self._pending[pattern_hash].extend(keys)
            log_stage(
                logger,
                Stage.INVALIDATION_SCAN,
                "Scan batch",
                level="debug",
                pattern=final_pattern,
                cursor=cursor,
                matched=len(keys),
            )
            if int(cursor) == SCAN_TERMINAL_CURSOR:
                return

    async def _delete(self, final_pattern: str, pattern_hash: str) -> int:
        keys = self._pending.get(pattern_hash) or []
        if not keys:
            return 0

        unlinked = 0
        for start in range(0, len(keys), self._delete_batch_size):
            unlinked += await self._store.unlink(*keys[start:start + self._delete_batch_size])

        log_stage(
            logger,
            Stage.INVALIDATION_DELETE,
            "Invalidated keys",
            pattern=final_pattern,
            collected=len(keys),
            unlinked=unlinked,
        )
        return unlinked


def _describe_error(error: Exception) -> str:
    return error.message if isinstance(error, StoreError) else str(error)
