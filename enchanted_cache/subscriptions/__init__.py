"""
Subscription rules package.

Declares which named queries are persisted to durable storage and which
are propagated into dependent cached queries.
"""

from .models import (
    EnchantedCacheConfig,
    FieldExtraction,
    FunctionExtraction,
    PersistMode,
    PropagateMode,
    SubscribedQuery,
)
from .registry import SubscriptionRegistry

__all__ = [
    "EnchantedCacheConfig",
    "FieldExtraction",
    "FunctionExtraction",
    "PersistMode",
    "PropagateMode",
    "SubscribedQuery",
    "SubscriptionRegistry",
]
