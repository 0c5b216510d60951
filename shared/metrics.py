"""
Shared metrics configuration for the enchanted query cache.
"""

from prometheus_client import Counter, Histogram, CollectorRegistry
from typing import Dict, Any, Optional
import time
import threading
from contextlib import contextmanager


class MetricsCollector:
    """Centralized metrics collector for cache synchronization."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._lock = threading.Lock()
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up cache synchronization metrics."""

        self._metrics["cache_writes_total"] = Counter(
            "cache_writes_total",
            "Total intercepted cache writes",
            ["fanout"],
            registry=self.registry
        )

        self._metrics["persist_operations_total"] = Counter(
            "persist_operations_total",
            "Total persistence saves",
            ["status"],
            registry=self.registry
        )

        self._metrics["propagate_operations_total"] = Counter(
            "propagate_operations_total",
            "Total dependent query propagations",
            ["status"],
            registry=self.registry
        )

        self._metrics["restore_operations_total"] = Counter(
            "restore_operations_total",
            "Total restored queries",
            ["status"],
            registry=self.registry
        )

        self._metrics["version_checks_total"] = Counter(
            "version_checks_total",
            "Total version gate checks",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["restore_duration_seconds"] = Histogram(
            "restore_duration_seconds",
            "Restore pass duration in seconds",
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            self.observe_histogram(operation_name, duration, **labels)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        if metric_name in self._metrics:
            with self._lock:
                metric = self._metrics[metric_name]
                (metric.labels(**labels) if labels else metric).inc()

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        if metric_name in self._metrics:
            with self._lock:
                metric = self._metrics[metric_name]
                (metric.labels(**labels) if labels else metric).observe(value)

    def sample_value(self, metric_name: str, **labels) -> Optional[float]:
        """Read back a collected sample, mostly for diagnostics and tests."""
        return self.registry.get_sample_value(metric_name, labels or None)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
