"""
Unit tests for the version gate.
"""

import pytest
from unittest.mock import AsyncMock, patch

from enchanted_cache.storage import MemoryQueryStorage
from enchanted_cache.subscriptions import SubscribedQuery, SubscriptionRegistry
from enchanted_cache.sync.version_gate import GateOutcome, GateState, VersionGate, same_version
from shared.config import DEFAULT_VERSION_KEY
from shared.errors import StorageError
from shared.metrics import MetricsCollector


@pytest.fixture
def registry():
    """Registry with two persisted keys and a propagation rule."""
    return SubscriptionRegistry([
        SubscribedQuery.persist("GetProfile", None, "profile"),
        SubscribedQuery.propagate("UpdateProfile", None, "GetProfile"),
        SubscribedQuery.persist("GetSettings", None, "settings"),
    ])


@pytest.fixture
def storage():
    """Storage holding persisted values and an unrelated key."""
    return MemoryQueryStorage({
        "profile": {"id": 1},
        "settings": {"theme": "dark"},
        "unrelated": "keep-me",
    })


class TestVersionGate:
    """Test cases for VersionGate."""

    @pytest.mark.asyncio
    async def test_absent_version_invalidates(self, registry, storage):
        """Test that a missing token purges every registered key."""
        gate = VersionGate(storage, registry, "1.0")

        assert gate.start() is True
        outcome = await gate.wait()

        assert outcome is GateOutcome.INVALIDATED
        assert gate.state is GateState.RESOLVED
        assert storage.data == {"unrelated": "keep-me", DEFAULT_VERSION_KEY: "1.0"}

    @pytest.mark.asyncio
    async def test_matching_version_keeps_keys(self, registry, storage):
        """Test that a matching token removes nothing."""
        storage.data[DEFAULT_VERSION_KEY] = 3

        with patch.object(storage, "multi_remove", new_callable=AsyncMock) as mock_remove:
            gate = VersionGate(storage, registry, 3)
            outcome = await gate.wait()

        assert outcome is GateOutcome.MATCHED
        mock_remove.assert_not_called()
        assert storage.data["profile"] == {"id": 1}

    @pytest.mark.asyncio
    async def test_different_version_invalidates(self, registry, storage):
        """Test that a changed token purges and records the new one."""
        storage.data[DEFAULT_VERSION_KEY] = "1.0"

        with patch.object(storage, "multi_remove", wraps=storage.multi_remove) as mock_remove:
            gate = VersionGate(storage, registry, "2.0")
            await gate.wait()

        mock_remove.assert_called_once_with(["profile", "settings"])
        assert storage.data[DEFAULT_VERSION_KEY] == "2.0"
        assert "profile" not in storage.data

    @pytest.mark.asyncio
    async def test_custom_version_key(self, registry, storage):
        """Test that the reserved key is configurable."""
        gate = VersionGate(storage, registry, 7, version_key="__version__")
        await gate.wait()

        assert storage.data["__version__"] == 7

    @pytest.mark.asyncio
    async def test_storage_failure_rejects(self, registry, storage):
        """Test that a storage read failure rejects the gate."""
        metrics = MetricsCollector("test")

        with patch.object(storage, "get_query", new_callable=AsyncMock) as mock_get:
            mock_get.side_effect = ConnectionError("storage offline")
            gate = VersionGate(storage, registry, "1.0", metrics=metrics)

            with pytest.raises(StorageError) as exc_info:
                await gate.wait()

        assert gate.state is GateState.REJECTED
        assert exc_info.value.code == "STORAGE_ERROR"
        assert "storage offline" in exc_info.value.details["error"]
        assert storage.data["profile"] == {"id": 1}
        assert metrics.sample_value("version_checks_total", outcome="error") == 1.0

    @pytest.mark.asyncio
    async def test_check_runs_once(self, registry, storage):
        """Test that waiting repeatedly does not repeat the check."""
        with patch.object(storage, "get_query", wraps=storage.get_query) as mock_get:
            gate = VersionGate(storage, registry, "1.0")
            gate.start()
            gate.start()
            await gate.wait()
            await gate.wait()

        assert mock_get.call_count == 1

    def test_start_without_loop_is_deferred(self, registry, storage):
        """Test that construction outside an event loop defers the check."""
        gate = VersionGate(storage, registry, "1.0")

        assert gate.start() is False
        assert gate.started is False
        assert gate.is_pending


def test_same_version_is_strict():
    """Test strict version comparison."""
    assert same_version("1", "1")
    assert same_version(2, 2)
    assert not same_version("1", 1)
    assert not same_version(1, "1")
    assert not same_version(None, "1")
    assert not same_version("1.0", "1.1")


def test_same_version_booleans_are_not_integers():
    """Test that boolean tokens never match numeric ones."""
    assert same_version(True, True)
    assert not same_version(True, 1)
    assert not same_version(1, True)
    assert not same_version(False, 0)


@pytest.mark.asyncio
async def test_settle_does_not_raise_on_rejection(registry, storage):
    """Test that settle reports a rejected gate without raising."""
    with patch.object(storage, "get_query", new_callable=AsyncMock) as mock_get:
        mock_get.side_effect = ConnectionError("storage offline")
        gate = VersionGate(storage, registry, "1.0")

        state = await gate.settle()

    assert state is GateState.REJECTED
    assert gate.error.code == "STORAGE_ERROR"
