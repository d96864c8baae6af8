"""
Cache Store Exceptions

All exceptions raised by the cache store adapter and the payload codec.
"""

from query_cacher.core.exceptions.base import CacherError


class StoreError(CacherError):
    """
    Raised when an I/O operation against the cache store fails.

    Covers GET, SET, SCAN and DELETE/UNLINK. The failing key(s) are recorded
    in ``details``.
    """
    pass


class CacheConnectionError(StoreError):
    """
    Raised when unable to connect to the cache store (Redis).

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect host/port configuration
    - Authentication failure
    """
    pass


class CodecError(CacherError):
    """Base exception for payload encoding/decoding errors."""
    pass


class SerializationError(CodecError):
    """Raised when a source result cannot be encoded before caching."""
    pass


class DeserializationError(CodecError):
    """
    Raised when a cached payload is not valid serialized data.

    The offending entry is left in the store unless eviction on corrupt
    entries is enabled.
    """
    pass
