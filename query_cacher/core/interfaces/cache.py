"""
Cache Store Protocol

Abstract capability the orchestrator and the invalidation scanner depend on:
GET, SET with expiry, cursor SCAN and DELETE/UNLINK.

Architectural Decision: Protocol-based abstraction
- The Redis adapter is the production implementation
- Tests plug in an in-memory stub without subclassing anything
- Runtime checkable, so the facade can validate what it is handed
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class CacheStore(Protocol):
    """
    Protocol defining the key-value cache store.

    Implementations:
    - RedisClient: Production Redis-backed store
    - In-memory stub used by the test suite

    All methods raise StoreError on I/O failure.
    """

    async def get(self, key: str) -> str | None:
        """
        Get value from the store.

        Returns:
            Stored payload or None if absent
        """
        ...

    async def set(self, key: str, value: str, ttl: int | None = None) -> bool:
        """
        Set value, expiring after ``ttl`` seconds when given.

        Returns:
            True if set successfully
        """
        ...

    async def scan(self, cursor: int, match: str, count: int) -> tuple[int, list[str]]:
        """
        One step of a cursor-based key scan.

        Args:
            cursor: Cursor returned by the previous step (0 to start)
            match: Glob-style key pattern
            count: Batch size hint

        Returns:
            (next_cursor, matched_keys); next_cursor 0 ends the sweep
        """
        ...

    async def delete(self, *keys: str) -> int:
        """
        Delete keys (blocking variant).

        Returns:
            Number of keys deleted
        """
        ...

    async def unlink(self, *keys: str) -> int:
        """
        Delete keys without blocking the store (reclaimed in the background).

        Returns:
            Number of keys unlinked
        """
        ...
