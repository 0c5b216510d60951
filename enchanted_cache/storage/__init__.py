"""
Storage package for the enchanted query cache.

Provides the durable key-value backends that persisted query values and
the version token live in. Redis is the default; the in-memory backend
keeps the same contract for local runs.
"""

from .base import QueryStorage
from .memory import MemoryQueryStorage
from .redis_storage import RedisQueryStorage

__all__ = ["MemoryQueryStorage", "QueryStorage", "RedisQueryStorage"]
