"""
Rehydration of persisted query values into the cache.
"""

from typing import Any, List, Optional, TYPE_CHECKING

from shared.errors import StorageError
from shared.logging import get_logger
from ..documents import nest_by_path
from ..subscriptions.registry import SubscriptionRegistry
from .version_gate import GateState, VersionGate

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector
    from ..storage.base import QueryStorage
    from ..cache import EnchantedCache


class RestoreManager:
    """Bulk-reads persisted values and writes them back with fan-out suppressed."""

    def __init__(
        self,
        registry: SubscriptionRegistry,
        storage: "QueryStorage",
        gate: VersionGate,
        *,
        metrics: Optional["MetricsCollector"] = None,
    ):
        self.registry = registry
        self.storage = storage
        self.gate = gate
        self.metrics = metrics
        self.logger = get_logger("enchanted_cache.sync.restore")

    async def restore_all(self, cache: "EnchantedCache") -> List[str]:
        """
        Restore every persisted query once the version gate has settled.

        Returns the store names that were written back. A rejected gate
        abandons the restore so values from an unverified version never
        reach the cache.
        """
        if self.gate.is_pending:
            try:
                await self.gate.wait()
            except StorageError as e:
                self.logger.error("Restore abandoned, version check failed", error=e.message)
                return []

        if self.gate.state is GateState.REJECTED:
            self.logger.error("Restore abandoned, version check failed", error=self.gate.error.message)
            return []

        return await self._restore_pass(cache)

    async def _restore_pass(self, cache: "EnchantedCache") -> List[str]:
        rules = self.registry.persisted()
        store_names = [rule.store_name for rule in rules]

        def on_errors(errors: Optional[List[Exception]]):
            if errors:
                self.logger.warning(
                    "Restore from storage error",
                    errors=[str(error) for error in errors]
                )

        if self.metrics:
            with self.metrics.time_operation("restore_duration_seconds"):
                values = await self._read(store_names, on_errors)
        else:
            values = await self._read(store_names, on_errors)

        restored: List[str] = []
        for rule, value in zip(rules, values):
            if value is None:
                continue
            try:
                cache.write_query(
                    {"query": rule.query_node, "data": nest_by_path(rule.mode.nest, value)},
                    ignore=True,
                )
            except Exception as e:
                self.logger.warning("Restoring query error", store_name=rule.store_name, error=str(e))
                if self.metrics:
                    self.metrics.increment_counter("restore_operations_total", status="error")
                continue

            restored.append(rule.store_name)
            if self.metrics:
                self.metrics.increment_counter("restore_operations_total", status="success")

        self.logger.info("Restored queries", restored=restored, requested=len(store_names))
        return restored

    async def _read(self, store_names: List[str], on_errors) -> List[Any]:
        try:
            return await self.storage.multi_get(store_names, on_errors)
        except Exception as e:
            # Backends are expected to report through the callback instead
            on_errors([e])
            return [None] * len(store_names)
