"""
Data Source Exceptions

Failures coming from the data source and precondition failures detected
before any I/O is attempted.
"""

from query_cacher.core.exceptions.base import CacherError


class SourceError(CacherError):
    """
    Raised when the data source's retrieval call fails.

    The original exception is chained as ``__cause__``; nothing is cached.
    """
    pass


class PreconditionError(CacherError):
    """Base exception for failures detected before any I/O."""
    pass


class InvalidMethodError(PreconditionError):
    """
    Raised when a retrieval method name is not resolvable.

    Either the name is outside the enumerated retrieval methods, or the target
    collection does not expose a callable with that name.
    """
    pass


class ModelNotSetError(PreconditionError):
    """Raised when a retrieval method runs before a target collection is configured."""
    pass
