"""
Centralized Configuration Module using Pydantic Settings

Type-safe, environment-based configuration for the query cacher. Every
tunable (Redis connection, key prefix, TTL, scan batch size, logging) is
declared here so that the facade, the orchestrator and the Redis adapter read
the same values.

Architectural Decision: Pydantic Settings for type safety and validation
- Environment variable loading with .env support
- Type validation at startup (fail fast on misconfiguration)
- Easy testing with reload_settings()
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from query_cacher.core.config.constants import (
    DEFAULT_CACHE_PREFIX,
    DEFAULT_SCAN_COUNT,
    DEFAULT_TTL_SECONDS,
)


class RedisSettings(BaseSettings):
    """
    Redis configuration for the cache store.

    STAGE-0.1: Redis connection configuration
    """

    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class CacheSettings(BaseSettings):
    """
    Cache-aside behaviour.

    STAGE-2: Key prefix, TTL and invalidation scan configuration
    """

    CACHE_PREFIX: str = Field(default=DEFAULT_CACHE_PREFIX, description="Prefix of every cache key")
    CACHE_TTL: int = Field(default=DEFAULT_TTL_SECONDS, description="Entry TTL in seconds")
    CACHE_SCAN_COUNT: int = Field(default=DEFAULT_SCAN_COUNT, description="SCAN COUNT hint per batch")
    CACHE_COALESCE_FETCHES: bool = Field(
        default=True, description="Share one source fetch between concurrent misses on a key"
    )
    CACHE_EVICT_ON_CORRUPT: bool = Field(
        default=False, description="Evict and refetch entries that fail to deserialize"
    )

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class LoggingSettings(BaseSettings):
    """
    Logging configuration for structured logging.

    STAGE-L: Logging configuration
    """

    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=True)


class Settings(BaseSettings):
    """
    Main settings class that aggregates all configuration sections.

    STAGE-0: Centralized configuration initialization

    Usage:
        from query_cacher.core.config import get_settings

        settings = get_settings()
        redis_host = settings.redis.REDIS_HOST
        ttl = settings.cache.CACHE_TTL
    """

    # Redis settings
    REDIS_HOST: str = Field(default="localhost", description="Redis server host")
    REDIS_PORT: int = Field(default=6379, description="Redis server port")
    REDIS_DB: int = Field(default=0, description="Redis database number")
    REDIS_PASSWORD: str | None = Field(default=None, description="Redis password (if required)")
    REDIS_MAX_CONNECTIONS: int = Field(default=50, description="Maximum total connections")
    REDIS_SOCKET_TIMEOUT: int = Field(default=5, description="Socket timeout in seconds")
    REDIS_SOCKET_CONNECT_TIMEOUT: int = Field(default=5, description="Connection timeout in seconds")
    REDIS_HEALTH_CHECK_INTERVAL: int = Field(default=30, description="Health check interval in seconds")

    # Cache settings
    CACHE_PREFIX: str = Field(default=DEFAULT_CACHE_PREFIX, description="Prefix of every cache key")
    CACHE_TTL: int = Field(default=DEFAULT_TTL_SECONDS, description="Entry TTL in seconds")
    CACHE_SCAN_COUNT: int = Field(default=DEFAULT_SCAN_COUNT, description="SCAN COUNT hint per batch")
    CACHE_COALESCE_FETCHES: bool = Field(
        default=True, description="Share one source fetch between concurrent misses on a key"
    )
    CACHE_EVICT_ON_CORRUPT: bool = Field(
        default=False, description="Evict and refetch entries that fail to deserialize"
    )

    # Logging settings
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: Literal["json", "console"] = Field(default="json", description="Log output format")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v.upper()

    @field_validator("CACHE_TTL", "CACHE_SCAN_COUNT")
    @classmethod
    def validate_positive(cls, v, info):
        """TTL and scan batch size must be positive."""
        if v <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return v

    @field_validator("CACHE_PREFIX")
    @classmethod
    def validate_prefix(cls, v):
        """Prefix is the first key segment, so it cannot be empty."""
        if not v:
            raise ValueError("CACHE_PREFIX must not be empty")
        return v

    # Nested configuration views
    @property
    def redis(self) -> RedisSettings:
        """Get Redis settings."""
        return RedisSettings(
            REDIS_HOST=self.REDIS_HOST,
            REDIS_PORT=self.REDIS_PORT,
            REDIS_DB=self.REDIS_DB,
            REDIS_PASSWORD=self.REDIS_PASSWORD,
            REDIS_MAX_CONNECTIONS=self.REDIS_MAX_CONNECTIONS,
            REDIS_SOCKET_TIMEOUT=self.REDIS_SOCKET_TIMEOUT,
            REDIS_SOCKET_CONNECT_TIMEOUT=self.REDIS_SOCKET_CONNECT_TIMEOUT,
            REDIS_HEALTH_CHECK_INTERVAL=self.REDIS_HEALTH_CHECK_INTERVAL,
        )

    @property
    def cache(self) -> CacheSettings:
        """Get cache settings."""
        return CacheSettings(
            CACHE_PREFIX=self.CACHE_PREFIX,
            CACHE_TTL=self.CACHE_TTL,
            CACHE_SCAN_COUNT=self.CACHE_SCAN_COUNT,
            CACHE_COALESCE_FETCHES=self.CACHE_COALESCE_FETCHES,
            CACHE_EVICT_ON_CORRUPT=self.CACHE_EVICT_ON_CORRUPT,
        )

    @property
    def logging(self) -> LoggingSettings:
        """Get logging settings."""
        return LoggingSettings(LOG_LEVEL=self.LOG_LEVEL, LOG_FORMAT=self.LOG_FORMAT)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance (singleton pattern)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings instance (singleton).

    STAGE-0.3: Settings initialization

    Returns:
        Settings: Global settings instance
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reload_settings() -> Settings:
    """
    Reload settings (useful for testing).

    Returns:
        Settings: New settings instance
    """
    global _settings
    _settings = Settings()
    return _settings
