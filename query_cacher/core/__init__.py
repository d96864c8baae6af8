"""
Core Module

Foundational components: configuration, exceptions, logging and protocols.
"""

from .exceptions import (
    CacheConnectionError,
    CacherError,
    ConfigurationError,
    DeserializationError,
    InvalidMethodError,
    ModelNotSetError,
    SerializationError,
    SourceError,
    StoreError,
)
from .logging import (
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    get_logger,
    log_stage,
    set_correlation_id,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "log_stage",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    "correlation_scope",
    "CacherError",
    "ConfigurationError",
    "StoreError",
    "CacheConnectionError",
    "SerializationError",
    "DeserializationError",
    "SourceError",
    "InvalidMethodError",
    "ModelNotSetError",
]
