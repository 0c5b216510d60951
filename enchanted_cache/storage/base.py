"""
Durable key-value storage contract used for query persistence.
"""

from typing import Any, Callable, List, Optional, Protocol, Sequence


ErrorCallback = Callable[[Optional[List[Exception]]], None]


class QueryStorage(Protocol):
    async def get_query(self, key: str) -> Optional[Any]: ...

    async def save_query(self, key: str, value: Any) -> None: ...

    async def multi_get(
        self, keys: Sequence[str], error_callback: Optional[ErrorCallback] = None
    ) -> List[Optional[Any]]: ...

    async def multi_remove(self, keys: Sequence[str]) -> None: ...
