"""
Tests for shared configuration, errors, logging and metrics.
"""

import pytest

from shared.config import CacheSyncSettings, DEFAULT_VERSION_KEY, get_settings
from shared.errors import (
    CacheSyncException,
    ConfigurationError,
    ErrorResponse,
    PropagationError,
    StorageError,
)
from shared.logging import (
    add_cache_context,
    cache_name_var,
    clear_context,
    configure_logging,
    get_logger,
    operation_var,
    set_cache_context,
)
from shared.metrics import MetricsCollector


def test_settings_defaults():
    """Test that settings initialize with expected defaults."""
    settings = CacheSyncSettings()

    assert settings.redis_url == "redis://localhost:6379/0"
    assert settings.version_key == DEFAULT_VERSION_KEY
    assert settings.storage_key_prefix == "enchanted:"
    assert settings.log_cache_writes is False


def test_settings_with_env_vars(monkeypatch):
    """Test that settings load from environment variables."""
    monkeypatch.setenv("CACHE_SYNC_REDIS_URL", "redis://remote:6380/3")
    monkeypatch.setenv("CACHE_SYNC_LOG_CACHE_WRITES", "true")
    monkeypatch.setenv("CACHE_SYNC_VERSION_KEY", "__version__")

    settings = CacheSyncSettings()

    assert settings.redis_url == "redis://remote:6380/3"
    assert settings.log_cache_writes is True
    assert settings.version_key == "__version__"


def test_get_settings_singleton():
    """Test that get_settings returns the same instance each time."""
    assert get_settings() is get_settings()


def test_error_taxonomy():
    """Test error codes and response conversion."""
    errors = [
        ConfigurationError("No version"),
        StorageError("Redis down", {"key": "profile"}),
        PropagationError("GetProfile", "never written"),
    ]

    assert [error.code for error in errors] == ["CONFIGURATION_ERROR", "STORAGE_ERROR", "PROPAGATION_ERROR"]
    assert all(isinstance(error, CacheSyncException) for error in errors)
    assert errors[2].message == "GetProfile: never written"

    response = errors[1].to_response()
    assert isinstance(response, ErrorResponse)
    assert response.details == {"key": "profile"}


def test_logging_context():
    """Test cache context variables and logger creation."""
    configure_logging("enchanted_cache", "debug")
    set_cache_context(cache_name="main", operation="restore")

    assert cache_name_var.get() == "main"
    assert operation_var.get() == "restore"
    get_logger("enchanted_cache.test").info("Context set")

    clear_context()
    assert cache_name_var.get() is None


def test_cache_context_processor():
    """Test that log events carry the configured service and cache context."""
    configure_logging("orders-app")
    set_cache_context(cache_name="main", operation="persist")

    event = add_cache_context(None, "info", {"event": "Stored query", "logger": "enchanted_cache.sync"})

    assert event["service"] == "orders-app"
    assert event["cache_name"] == "main"
    assert event["operation"] == "persist"

    clear_context()
    event = add_cache_context(None, "info", {"event": "Stored query"})
    assert "cache_name" not in event
    assert "operation" not in event


class TestMetricsCollector:
    """Test cases for MetricsCollector."""

    @pytest.fixture
    def metrics(self):
        """Create a collector with its own registry."""
        return MetricsCollector("test")

    def test_counters(self, metrics):
        """Test labelled counters."""
        metrics.increment_counter("persist_operations_total", status="success")
        metrics.increment_counter("persist_operations_total", status="success")
        metrics.increment_counter("unknown_metric", status="success")

        assert metrics.sample_value("persist_operations_total", status="success") == 2.0
        assert metrics.sample_value("persist_operations_total", status="error") is None

    def test_time_operation(self, metrics):
        """Test timing into a histogram."""
        with metrics.time_operation("restore_duration_seconds"):
            pass

        assert metrics.sample_value("restore_duration_seconds_count") == 1.0

    def test_collectors_do_not_share_registries(self):
        """Test that two collectors can coexist."""
        first = MetricsCollector("a")
        second = MetricsCollector("b")
        first.increment_counter("version_checks_total", outcome="matched")

        assert second.sample_value("version_checks_total", outcome="matched") is None
