"""
Ordered, immutable registry of subscribed queries.
"""

from typing import Iterable, Iterator, List, Tuple

from .models import SubscribedQuery


class SubscriptionRegistry:
    """Static, ordered set of rules evaluated on every intercepted write."""

    def __init__(self, rules: Iterable[SubscribedQuery] = ()):
        self._rules: Tuple[SubscribedQuery, ...] = tuple(rules)

    def __iter__(self) -> Iterator[SubscribedQuery]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def match(self, query_name: str) -> List[SubscribedQuery]:
        """Return every rule whose name matches, in registry order."""
        if query_name is None:
            return []
        return [rule for rule in self._rules if rule.mode is not None and rule.name == query_name]

    def persisted(self) -> List[SubscribedQuery]:
        """Rules that save into durable storage."""
        return [rule for rule in self._rules if rule.is_persisted]

    def store_names(self) -> List[str]:
        """Every persistence key, in registry order."""
        return [rule.store_name for rule in self.persisted()]
