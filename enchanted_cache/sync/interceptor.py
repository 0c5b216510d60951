"""
Write interception: persistence and propagation fan-out.
"""

import asyncio
from typing import Any, Mapping, Optional, Set, TYPE_CHECKING

from shared.errors import PropagationError, StorageError
from shared.logging import get_logger, set_cache_context
from ..documents import get_query_name
from ..subscriptions.models import PersistMode, PropagateMode, SubscribedQuery
from ..subscriptions.registry import SubscriptionRegistry
from .version_gate import VersionGate

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector
    from ..storage.base import QueryStorage
    from ..cache import EnchantedCache


class WriteInterceptor:
    """Evaluates the subscription registry against every non-ignored write."""

    def __init__(
        self,
        registry: SubscriptionRegistry,
        storage: "QueryStorage",
        *,
        gate: Optional[VersionGate] = None,
        metrics: Optional["MetricsCollector"] = None,
        log_cache_writes: bool = False,
        cache_name: Optional[str] = None,
    ):
        self.registry = registry
        self.storage = storage
        self.gate = gate
        self.metrics = metrics
        self.log_cache_writes = log_cache_writes
        self.cache_name = cache_name
        self.logger = get_logger("enchanted_cache.sync.interceptor")
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> Set[asyncio.Task]:
        """Persistence tasks that have not finished yet."""
        return set(self._pending)

    def on_write(self, cache: "EnchantedCache", payload: Mapping[str, Any], ignore: bool = False) -> None:
        """Fan a completed write out to every matching rule, in registry order."""
        query_name = get_query_name(payload.get("query"))
        result = payload.get("result")

        if self.log_cache_writes:
            self.logger.debug("onCacheWrite", query_name=query_name, result=result, ignore=ignore)
        if self.metrics:
            self.metrics.increment_counter("cache_writes_total", fanout="skipped" if ignore else "evaluated")
        if ignore:
            return

        for rule in self.registry.match(query_name):
            if isinstance(rule.mode, PersistMode):
                self._schedule_persist(rule, result)
            elif isinstance(rule.mode, PropagateMode):
                self._propagate(cache, rule, result)

    async def flush(self):
        """Wait for every persistence task spawned so far."""
        while self._pending:
            tasks = list(self._pending)
            await asyncio.gather(*tasks, return_exceptions=True)
            self._pending.difference_update(tasks)

    def _schedule_persist(self, rule: SubscribedQuery, result: Any):
        mode: PersistMode = rule.mode
        try:
            value = mode.extraction.extract(result)
            loop = asyncio.get_running_loop()
        except Exception as e:
            self._persist_failed(mode.store_name, e)
            return

        # Fire and forget; flush() drains these
        task = loop.create_task(self._persist(mode.store_name, value))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist(self, store_name: str, value: Any):
        set_cache_context(cache_name=self.cache_name, operation="persist")
        try:
            if self.gate is not None:
                # Saves never land before the version purge
                await self.gate.settle()
            await self.storage.save_query(store_name, value)
        except Exception as e:
            self._persist_failed(store_name, e)
            return

        self.logger.debug("Stored query", store_name=store_name)
        if self.metrics:
            self.metrics.increment_counter("persist_operations_total", status="success")

    def _persist_failed(self, store_name: str, error: Exception):
        if not isinstance(error, StorageError):
            error = StorageError(f"Storing query failed: {store_name}", {"store_name": store_name, "error": str(error)})
        self.logger.warning("Storing query error", store_name=store_name, error=error.message)
        if self.metrics:
            self.metrics.increment_counter("persist_operations_total", status="error")

    def _propagate(self, cache: "EnchantedCache", rule: SubscribedQuery, result: Any):
        mode: PropagateMode = rule.mode
        try:
            previous = cache.read_query({"query": rule.query_node})
            data = mode.extraction.extract(result, previous)
            cache.write_query({"query": rule.query_node, "data": data}, ignore=True)
        except Exception as e:
            error = PropagationError(mode.update_name, str(e), {"trigger": rule.name})
            self.logger.warning("Updating query error", update_name=mode.update_name, error=error.message)
            if self.metrics:
                self.metrics.increment_counter("propagate_operations_total", status="error")
            return

        if self.metrics:
            self.metrics.increment_counter("propagate_operations_total", status="success")
