"""
Unit Tests for Logging Module

Tests logger configuration, correlation context, and logging utilities.
"""

from unittest.mock import MagicMock

import pytest

from query_cacher.core.config.constants import Stage
from query_cacher.core.logging.logger import (
    add_correlation_id,
    add_log_level_name,
    add_timestamp,
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    get_logger,
    log_stage,
    set_correlation_id,
    setup_logging,
)


@pytest.mark.unit
class TestLoggerCreation:
    """Test logger creation and configuration."""

    def test_get_logger_returns_logger_instance(self):
        logger = get_logger(__name__)
        # structlog logger is not a standard logging.Logger
        assert hasattr(logger, "info")
        assert hasattr(logger, "debug")

    @pytest.mark.parametrize("log_format", ["json", "console"])
    def test_setup_logging_accepts_both_formats(self, log_format):
        setup_logging(log_level="DEBUG", log_format=log_format)
        get_logger("query_cacher.tests").info("configured", format=log_format)


@pytest.mark.unit
class TestCorrelationContext:
    """Test correlation ID context management."""

    def test_set_and_get(self):
        set_correlation_id("req-123")
        try:
            assert get_correlation_id() == "req-123"
        finally:
            clear_correlation_id()

    def test_clear(self):
        set_correlation_id("req-123")
        clear_correlation_id()
        assert get_correlation_id() is None

    def test_scope_generates_and_restores(self):
        clear_correlation_id()

        with correlation_scope() as correlation_id:
            assert correlation_id
            assert get_correlation_id() == correlation_id

        assert get_correlation_id() is None

    def test_scope_keeps_caller_id(self):
        set_correlation_id("req-77")
        try:
            with correlation_scope() as correlation_id:
                assert correlation_id == "req-77"
            assert get_correlation_id() == "req-77"
        finally:
            clear_correlation_id()

    def test_scope_with_explicit_id(self):
        with correlation_scope("sweep-1"):
            assert get_correlation_id() == "sweep-1"

    def test_scope_restores_on_error(self):
        clear_correlation_id()
        with pytest.raises(RuntimeError):
            with correlation_scope():
                raise RuntimeError("boom")

        assert get_correlation_id() is None


@pytest.mark.unit
class TestProcessors:
    """Test the custom structlog processors."""

    def test_add_correlation_id_when_set(self):
        set_correlation_id("req-9")
        try:
            event = add_correlation_id(None, "info", {"event": "x"})
        finally:
            clear_correlation_id()

        assert event["correlation_id"] == "req-9"

    def test_add_correlation_id_when_unset(self):
        clear_correlation_id()
        event = add_correlation_id(None, "info", {"event": "x"})
        assert "correlation_id" not in event

    def test_add_timestamp_is_utc_iso(self):
        event = add_timestamp(None, "info", {"event": "x"})
        assert event["timestamp"].endswith("Z")
        assert "T" in event["timestamp"]

    def test_add_log_level_name_upper_cases(self):
        assert add_log_level_name(None, "info", {"level": "warning"})["level"] == "WARNING"
        assert add_log_level_name(None, "info", {}) == {}


@pytest.mark.unit
class TestLogStage:
    """log_stage forwards the stage identifier as a plain string."""

    def test_log_stage_with_enum(self):
        logger = MagicMock()
        log_stage(logger, Stage.CACHE_HIT, "Cache hit", cache_key="k")

        logger.info.assert_called_once_with("Cache hit", stage="2.1_CACHE_HIT", cache_key="k")

    def test_log_stage_with_level(self):
        logger = MagicMock()
        log_stage(logger, "REDIS.2", "Connecting", level="debug")

        logger.debug.assert_called_once_with("Connecting", stage="REDIS.2")
        logger.info.assert_not_called()
