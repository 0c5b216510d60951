"""
One-shot version check that invalidates persisted queries on mismatch.
"""

import asyncio
from enum import Enum
from typing import Any, Optional, TYPE_CHECKING

from shared.config import DEFAULT_VERSION_KEY
from shared.errors import StorageError
from shared.logging import get_logger, set_cache_context
from ..subscriptions.models import VersionToken
from ..subscriptions.registry import SubscriptionRegistry

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector
    from ..storage.base import QueryStorage


class GateState(str, Enum):
    """Version gate states."""
    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class GateOutcome(str, Enum):
    """Result of a resolved version check."""
    MATCHED = "matched"
    INVALIDATED = "invalidated"


def same_version(stored: Any, current: VersionToken) -> bool:
    """Strict comparison: strings never equal numbers, booleans never equal integers."""
    if stored is None:
        return False
    if isinstance(stored, bool) or isinstance(current, bool):
        return isinstance(stored, bool) and isinstance(current, bool) and stored == current
    if isinstance(stored, str) or isinstance(current, str):
        return isinstance(stored, str) and isinstance(current, str) and stored == current
    return stored == current


class VersionGate:
    """
    Compares the configured version token against the one stored durably.

    The check runs once per enchanted cache. A missing or different token
    purges every registered persistence key and records the new token
    before the gate resolves. Storage failures reject the gate; the error
    is kept on the gate and re-raised to whoever waits on it.
    """

    def __init__(
        self,
        storage: "QueryStorage",
        registry: SubscriptionRegistry,
        version: VersionToken,
        *,
        version_key: str = DEFAULT_VERSION_KEY,
        metrics: Optional["MetricsCollector"] = None,
        cache_name: Optional[str] = None,
    ):
        self.storage = storage
        self.registry = registry
        self.version = version
        self.version_key = version_key
        self.metrics = metrics
        self.cache_name = cache_name
        self.logger = get_logger("enchanted_cache.sync.version_gate")

        self.state = GateState.PENDING
        self.outcome: Optional[GateOutcome] = None
        self.error: Optional[StorageError] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_pending(self) -> bool:
        return self.state is GateState.PENDING

    @property
    def started(self) -> bool:
        return self._task is not None

    def start(self) -> bool:
        """Schedule the check on the running loop; False when no loop is running."""
        if self._task is not None:
            return True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.logger.debug("No running event loop, version check deferred")
            return False
        self._task = loop.create_task(self._run())
        return True

    async def settle(self) -> GateState:
        """Wait for the check to finish without raising on rejection."""
        self.start()
        await asyncio.shield(self._task)
        return self.state

    async def wait(self) -> GateOutcome:
        """Wait for the check to settle, starting it if it was deferred."""
        if await self.settle() is GateState.REJECTED:
            raise self.error
        return self.outcome

    async def _run(self):
        set_cache_context(cache_name=self.cache_name, operation="version_check")
        try:
            stored_version = await self.storage.get_query(self.version_key)
            self.logger.info(
                "Version check",
                stored_version=stored_version,
                current_version=self.version
            )

            if same_version(stored_version, self.version):
                outcome = GateOutcome.MATCHED
            else:
                # No migrations: every registered key goes
                store_names = self.registry.store_names()
                await self.storage.multi_remove(store_names)
                await self.storage.save_query(self.version_key, self.version)
                outcome = GateOutcome.INVALIDATED
                self.logger.info(
                    "Persisted queries invalidated",
                    removed=store_names,
                    version=self.version
                )

        except Exception as e:
            self.error = e if isinstance(e, StorageError) else StorageError(
                "Version syncing failed", {"error": str(e)}
            )
            self.state = GateState.REJECTED
            self.logger.error("Version syncing error", error=str(e))
            if self.metrics:
                self.metrics.increment_counter("version_checks_total", outcome="error")
            return

        self.outcome = outcome
        self.state = GateState.RESOLVED
        if self.metrics:
            self.metrics.increment_counter("version_checks_total", outcome=outcome.value)
