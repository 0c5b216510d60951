"""
Tests for query document helpers.
"""

from types import SimpleNamespace

from enchanted_cache.documents import get_query_name, nest_by_path, project_field
from shared.test_helpers import make_query_document


def test_query_name_from_dict_document():
    """Test canonical name extraction from a dict document."""
    assert get_query_name(make_query_document("GetProfile")) == "GetProfile"


def test_query_name_skips_fragments_and_anonymous_operations():
    """Test that only named operation definitions count."""
    document = {
        "kind": "Document",
        "definitions": [
            {"kind": "FragmentDefinition", "name": {"value": "UserFields"}},
            {"kind": "OperationDefinition", "name": None},
            {"kind": "OperationDefinition", "name": {"value": "GetUser"}},
        ],
    }
    assert get_query_name(document) == "GetUser"


def test_query_name_from_ast_objects():
    """Test canonical name extraction from attribute-style AST nodes."""
    definition = SimpleNamespace(kind="OperationDefinition", name=SimpleNamespace(value="ListItems"))
    document = SimpleNamespace(kind="Document", definitions=[definition])

    assert get_query_name(document) == "ListItems"


def test_query_name_missing():
    """Test documents without a name."""
    assert get_query_name(None) is None
    assert get_query_name({"kind": "Document", "definitions": []}) is None


def test_nest_by_path():
    """Test nested shape reconstruction."""
    assert nest_by_path(["user"], {"id": 1}) == {"user": {"id": 1}}
    assert nest_by_path(["a", "b", "c"], 5) == {"a": {"b": {"c": 5}}}
    assert nest_by_path([], {"id": 1}) == {"id": 1}
    assert nest_by_path(None, "flat") == "flat"


def test_project_field():
    """Test single-field projection."""
    assert project_field({"user": {"id": 1}}, "user") == {"id": 1}
    assert project_field({"user": {"id": 1}}, "missing") is None
    assert project_field({"user": 1}, None) is None
    assert project_field(SimpleNamespace(total=3), "total") == 3
