"""
Helpers for query documents handed to the underlying cache.

Documents are duck-typed: either parsed AST objects exposing
``definitions``/``kind``/``name.value`` attributes, or the equivalent
plain-dict shape.
"""

from typing import Any, Optional, Sequence


ROOT_QUERY = "ROOT_QUERY"

_OPERATION_DEFINITION = "OperationDefinition"


def _field(node: Any, name: str) -> Any:
    if isinstance(node, dict):
        return node.get(name)
    return getattr(node, name, None)


def get_query_name(query: Any) -> Optional[str]:
    """Return the canonical name of the first named operation in a document."""
    if query is None:
        return None
    if isinstance(query, str):
        return query

    for definition in _field(query, "definitions") or ():
        if _field(definition, "kind") != _OPERATION_DEFINITION:
            continue
        name = _field(definition, "name")
        if name is None:
            continue
        value = _field(name, "value")
        if value is not None:
            return value
        if isinstance(name, str):
            return name
    return None


def nest_by_path(path: Optional[Sequence[str]], value: Any) -> Any:
    """Wrap ``value`` so it sits at ``path``, e.g. ``["user"]`` -> ``{"user": value}``."""
    nested = value
    for key in reversed(list(path or ())):
        nested = {key: nested}
    return nested


def project_field(result: Any, field: Optional[str]) -> Any:
    """Single-field projection; a missing field projects to ``None``."""
    if field is None or result is None:
        return None
    if isinstance(result, dict):
        return result.get(field)
    return getattr(result, field, None)
