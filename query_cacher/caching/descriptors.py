"""
Query Descriptors and Call Results

Immutable values passed from the facade into the orchestrator. Building a
descriptor snapshots the facade configuration synchronously, before the first
await, so concurrent calls on one facade never see each other's settings.
"""

from dataclasses import dataclass, field
from typing import Any

from query_cacher.core.config.constants import DEFAULT_CACHE_PREFIX, DEFAULT_TTL_SECONDS


def _as_key_tuple(keys: Any) -> tuple[str, ...]:
    if not keys:
        return ()
    if isinstance(keys, str):
        return (keys,)
    return tuple(str(key) for key in keys)


@dataclass(frozen=True)
class QueryDescriptor:
    """
    A structured retrieval against one collection.

    Attributes:
        method_name: Retrieval method looked up on the collection handle
        collection_name: Target collection/model name
        options: Arbitrary nested options structure handed to the method
        extra_keys: Caller-chosen cache partition, appended in order
        prefix: First segment of the cache key
        ttl: Entry expiry in seconds (None stores without expiry)
    """

    method_name: str
    collection_name: str
    options: Any = None
    extra_keys: tuple[str, ...] = field(default=())
    prefix: str = DEFAULT_CACHE_PREFIX
    ttl: int | None = DEFAULT_TTL_SECONDS

    def __post_init__(self):
        object.__setattr__(self, "extra_keys", _as_key_tuple(self.extra_keys))


@dataclass(frozen=True)
class RawQueryDescriptor:
    """A literal query string plus optional execution options."""

    sql: str
    options: Any = None
    prefix: str = DEFAULT_CACHE_PREFIX
    ttl: int | None = DEFAULT_TTL_SECONDS


@dataclass(frozen=True)
class CacheResult:
    """
    Outcome of one cached call.

    ``cache_hit`` belongs to this call only; it is never kept on the facade.
    """

    value: Any
    cache_hit: bool
    key: str
