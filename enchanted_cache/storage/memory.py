"""
In-process query storage, useful for local development and tests.
"""

import copy
from typing import Any, Dict, List, Optional, Sequence

from shared.logging import get_logger
from .base import ErrorCallback


class MemoryQueryStorage:
    """Dict-backed storage with the same contract as the Redis backend."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.logger = get_logger("enchanted_cache.storage.memory")
        self.data: Dict[str, Any] = dict(initial or {})

    async def get_query(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self.data.get(key))

    async def save_query(self, key: str, value: Any) -> None:
        self.data[key] = copy.deepcopy(value)

    async def multi_get(
        self, keys: Sequence[str], error_callback: Optional[ErrorCallback] = None
    ) -> List[Optional[Any]]:
        values = [copy.deepcopy(self.data.get(key)) for key in keys]
        if error_callback:
            error_callback(None)
        return values

    async def multi_remove(self, keys: Sequence[str]) -> None:
        for key in keys:
            self.data.pop(key, None)
