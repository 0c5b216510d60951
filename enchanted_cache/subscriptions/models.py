"""
Subscription rule models for the enchanted query cache.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union

from shared.errors import ConfigurationError
from ..documents import project_field


Retriever = Callable[[Any], Any]
Updater = Callable[[Any, Any], Any]
VersionToken = Union[str, int, float]


@dataclass(frozen=True)
class FieldExtraction:
    """Project a single field out of a write result."""
    field: Optional[str] = None

    def extract(self, result: Any, previous: Any = None) -> Any:
        return project_field(result, self.field)


@dataclass(frozen=True)
class FunctionExtraction:
    """Compute a value from a write result with a user callback."""
    fn: Callable[..., Any]
    merge: bool = False

    def extract(self, result: Any, previous: Any = None) -> Any:
        if self.merge:
            return self.fn(result, previous)
        return self.fn(result)


Extraction = Union[FieldExtraction, FunctionExtraction]


@dataclass(frozen=True)
class PersistMode:
    """Save extracted values under ``store_name`` in durable storage."""
    store_name: str
    extraction: Extraction = field(default_factory=FieldExtraction)
    nest: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PropagateMode:
    """Merge extracted values into the cached query named ``update_name``."""
    update_name: str
    extraction: Extraction = field(default_factory=FieldExtraction)


SubscriptionMode = Union[PersistMode, PropagateMode]


@dataclass(frozen=True)
class SubscribedQuery:
    """Declarative rule matched against the canonical name of written queries."""
    name: str
    query_node: Any = None
    mode: Optional[SubscriptionMode] = None

    @property
    def is_persisted(self) -> bool:
        return isinstance(self.mode, PersistMode)

    @property
    def is_propagated(self) -> bool:
        return isinstance(self.mode, PropagateMode)

    @property
    def store_name(self) -> Optional[str]:
        return self.mode.store_name if isinstance(self.mode, PersistMode) else None

    @classmethod
    def persist(
        cls,
        name: str,
        query_node: Any,
        store_name: str,
        *,
        nest: Optional[Sequence[str]] = None,
        retrieve_field: Optional[str] = None,
        retriever: Optional[Retriever] = None,
    ) -> "SubscribedQuery":
        extraction: Extraction = (
            FunctionExtraction(retriever) if retriever is not None else FieldExtraction(retrieve_field)
        )
        mode = PersistMode(store_name=store_name, extraction=extraction, nest=tuple(nest or ()))
        return cls(name=name, query_node=query_node, mode=mode)

    @classmethod
    def propagate(
        cls,
        name: str,
        query_node: Any,
        update_name: str,
        *,
        retrieve_field: Optional[str] = None,
        updater: Optional[Updater] = None,
    ) -> "SubscribedQuery":
        extraction: Extraction = (
            FunctionExtraction(updater, merge=True) if updater is not None else FieldExtraction(retrieve_field)
        )
        return cls(name=name, query_node=query_node, mode=PropagateMode(update_name=update_name, extraction=extraction))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SubscribedQuery":
        """Build a rule from the flat dict shape (camelCase or snake_case keys)."""
        def pick(*keys: str) -> Any:
            for key in keys:
                if data.get(key) is not None:
                    return data[key]
            return None

        name = pick("name")
        if not name:
            raise ConfigurationError("Subscribed query requires a name", {"rule": dict(data)})

        query_node = pick("queryNode", "query_node")
        retrieve_field = pick("retrieveField", "retrieve_field")
        store_name = pick("storeName", "store_name")
        update_name = pick("updateName", "update_name")

        # Persistence wins when both side effects are declared
        if store_name:
            return cls.persist(
                name,
                query_node,
                store_name,
                nest=pick("nest"),
                retrieve_field=retrieve_field,
                retriever=pick("retriever"),
            )
        if update_name:
            return cls.propagate(
                name,
                query_node,
                update_name,
                retrieve_field=retrieve_field,
                updater=pick("updater"),
            )
        return cls(name=name, query_node=query_node)


@dataclass(frozen=True)
class EnchantedCacheConfig:
    """Rules and version token supplied when enchanting a cache."""
    subscribed_queries: Tuple[SubscribedQuery, ...] = ()
    version: Optional[VersionToken] = None
    migrations: Optional[Tuple[Any, ...]] = None

    def __post_init__(self):
        if self.version is None:
            raise ConfigurationError("No version of EnchantedCacheConfig provided")
        rules = tuple(
            rule if isinstance(rule, SubscribedQuery) else SubscribedQuery.from_mapping(rule)
            for rule in self.subscribed_queries or ()
        )
        object.__setattr__(self, "subscribed_queries", rules)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "EnchantedCacheConfig":
        if data is None:
            raise ConfigurationError("No EnchantedCacheConfig provided")
        migrations = data.get("migrations")
        return cls(
            subscribed_queries=tuple(data.get("subscribedQueries", data.get("subscribed_queries")) or ()),
            version=data.get("version"),
            migrations=tuple(migrations) if migrations is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "subscribed_queries": [rule.name for rule in self.subscribed_queries],
        }
