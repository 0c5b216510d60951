"""
Enchanted cache: persistence and propagation layered over a query cache.
"""

from typing import Any, Dict, List, Mapping, Optional, Protocol, Union, TYPE_CHECKING

from shared.config import CacheSyncSettings, get_settings
from shared.errors import CacheSyncException, ConfigurationError
from shared.logging import get_logger
from shared.metrics import get_metrics_collector
from .documents import ROOT_QUERY
from .storage.redis_storage import RedisQueryStorage
from .subscriptions.models import EnchantedCacheConfig
from .subscriptions.registry import SubscriptionRegistry
from .sync.interceptor import WriteInterceptor
from .sync.restore import RestoreManager
from .sync.version_gate import VersionGate

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector
    from .storage.base import QueryStorage


class QueryCache(Protocol):
    def write(self, payload: Mapping[str, Any]) -> None: ...

    def write_query(self, options: Mapping[str, Any]) -> None: ...

    def read_query(self, options: Mapping[str, Any]) -> Any: ...

    def transform_document(self, query: Any) -> Any: ...


class EnchantedCache:
    """
    Wraps a query cache, intercepting writes to persist and propagate them.

    The wrapped cache is held by reference and never mutated: every
    attribute the wrapper does not define is delegated to it, so
    ``disenchant()`` simply hands the untouched original back.
    """

    def __init__(
        self,
        cache: QueryCache,
        config: Union[EnchantedCacheConfig, Mapping[str, Any], None],
        storage: Optional["QueryStorage"] = None,
        *,
        settings: Optional[CacheSyncSettings] = None,
        metrics: Optional["MetricsCollector"] = None,
        log_cache_writes: Optional[bool] = None,
    ):
        if config is None:
            raise ConfigurationError("No EnchantedCacheConfig provided")
        if not isinstance(config, EnchantedCacheConfig):
            config = EnchantedCacheConfig.from_mapping(config)

        settings = settings or get_settings()
        if metrics is None and settings.enable_metrics:
            metrics = get_metrics_collector("enchanted_cache")
        if log_cache_writes is None:
            log_cache_writes = settings.log_cache_writes

        self._cache = cache
        self._original_write = cache.write
        self._original_write_query = cache.write_query
        self._enchanted = True

        self.config = config
        self.metrics = metrics
        self.logger = get_logger("enchanted_cache.cache")
        self.registry = SubscriptionRegistry(config.subscribed_queries)
        self.storage = storage if storage is not None else RedisQueryStorage.from_settings(settings)

        self.version_gate = VersionGate(
            self.storage,
            self.registry,
            config.version,
            version_key=settings.version_key,
            metrics=metrics,
            cache_name=settings.cache_name,
        )
        self.interceptor = WriteInterceptor(
            self.registry,
            self.storage,
            gate=self.version_gate,
            metrics=metrics,
            log_cache_writes=log_cache_writes,
            cache_name=settings.cache_name,
        )
        self.restorer = RestoreManager(self.registry, self.storage, self.version_gate, metrics=metrics)

        self.version_gate.start()
        self.logger.info("Cache enchanted", **config.to_dict())

    def __getattr__(self, name: str) -> Any:
        if name == "_cache":
            raise AttributeError(name)
        return getattr(self._cache, name)

    @property
    def cache(self) -> QueryCache:
        """The wrapped, unmodified cache."""
        return self._cache

    @property
    def enchanted(self) -> bool:
        return self._enchanted

    def write(self, payload: Mapping[str, Any], ignore: bool = False) -> None:
        """Write into the cache, then fan out unless ``ignore`` is set."""
        self._original_write(payload)
        if not self._enchanted:
            return
        if not self.version_gate.started:
            self.version_gate.start()
        self.interceptor.on_write(self, payload, ignore)

    def write_query(self, options: Mapping[str, Any], ignore: bool = False) -> None:
        """Write ``options["data"]`` as the result of ``options["query"]`` on the root entry."""
        if not self._enchanted:
            self._original_write_query(options)
            return
        self.write(
            {
                "data_id": ROOT_QUERY,
                "result": options.get("data"),
                "query": self._cache.transform_document(options.get("query")),
                "variables": options.get("variables"),
            },
            ignore,
        )

    async def restore_all_queries(self) -> List[str]:
        """Write every persisted value back into the cache."""
        if not self._enchanted:
            raise CacheSyncException("CACHE_DISENCHANTED", "restore_all_queries is not available after disenchant")
        return await self.restorer.restore_all(self)

    async def flush(self):
        """Wait for outstanding persistence saves."""
        await self.interceptor.flush()

    def disenchant(self) -> QueryCache:
        """Stop intercepting and return the original cache."""
        if self._enchanted:
            self._enchanted = False
            self.logger.info("Cache disenchanted")
        return self._cache

    def describe(self) -> Dict[str, Any]:
        """Diagnostic snapshot of the decorator state."""
        snapshot = {
            "enchanted": self._enchanted,
            "version": self.config.version,
            "version_gate": self.version_gate.state.value,
            "rules": len(self.registry),
            "pending_persists": len(self.interceptor.pending),
        }
        if self.version_gate.error is not None:
            snapshot["version_gate_error"] = self.version_gate.error.to_response().model_dump()
        return snapshot


def enchant(
    cache: QueryCache,
    config: Union[EnchantedCacheConfig, Mapping[str, Any], None],
    storage: Optional["QueryStorage"] = None,
    *,
    settings: Optional[CacheSyncSettings] = None,
    metrics: Optional["MetricsCollector"] = None,
    log_cache_writes: Optional[bool] = None,
) -> EnchantedCache:
    """Decorate ``cache`` and start the background version check."""
    return EnchantedCache(
        cache,
        config,
        storage,
        settings=settings,
        metrics=metrics,
        log_cache_writes=log_cache_writes,
    )
