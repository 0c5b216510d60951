"""
Enchanted query cache.

Adds durable persistence and cross-query propagation to an in-memory query
cache without changing its own read/write semantics:

- subscriptions: declarative persist/propagate rules
- storage: Redis and in-memory persistence backends
- sync: version gate, write interceptor, restore manager
- cache: the ``enchant``/``disenchant`` lifecycle
"""

from .cache import EnchantedCache, QueryCache, enchant
from .subscriptions import EnchantedCacheConfig, SubscribedQuery

__all__ = ["EnchantedCache", "EnchantedCacheConfig", "QueryCache", "SubscribedQuery", "enchant"]
