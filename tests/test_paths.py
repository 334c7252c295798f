"""Tests for dotted path expansion and flattening."""

import sys
from collections import OrderedDict
from pathlib import Path

import pytest

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from toon_codec.errors import EncodeError
from toon_codec.paths import (
    assign_field,
    expand_path,
    flatten_mapping,
    is_expandable_key,
    value_type,
)
from toon_codec.types import EncodeOptions


class TestExpandPath:
    """Test decode-side path expansion."""

    def test_creates_intermediate_objects(self):
        target = {}
        assert expand_path(target, ["a", "b", "c"], 1, strict=True).ok
        assert target == {"a": {"b": {"c": 1}}}

    def test_merges_into_existing_object(self):
        target = {"a": {"x": 0}}
        assert expand_path(target, ["a", "y"], 1, strict=True).ok
        assert target == {"a": {"x": 0, "y": 1}}

    def test_intermediate_conflict(self):
        target = {"a": 5}
        result = expand_path(target, ["a", "b"], 1, strict=True)
        assert not result.ok
        assert result.path == "a"
        assert "number" in result.reason
        assert target == {"a": 5}

    def test_intermediate_overwrite_lenient(self):
        target = {"a": 5}
        assert expand_path(target, ["a", "b"], 1, strict=False).ok
        assert target == {"a": {"b": 1}}

    def test_final_conflict_reports_full_path(self):
        target = {"a": {"b": {"c": 1}}}
        result = expand_path(target, ["a", "b"], "x", strict=True)
        assert not result.ok
        assert result.path == "a.b"

    def test_scalar_last_write_wins(self):
        target = {"a": 1}
        assert assign_field(target, "a", 2, strict=True).ok
        assert target == {"a": 2}

    def test_deep_merge_conflict(self):
        target = {"a": {"b": 1}}
        result = assign_field(target, "a", {"b": {"c": 2}}, strict=True)
        assert not result.ok
        assert result.path == "a.b"

    def test_expandable_key(self):
        assert is_expandable_key("a.b", was_quoted=False)
        assert not is_expandable_key("a.b", was_quoted=True)
        assert not is_expandable_key("ab", was_quoted=False)

    def test_value_type(self):
        assert value_type(None) == "null"
        assert value_type(True) == "boolean"
        assert value_type(1.5) == "number"
        assert value_type("s") == "string"
        assert value_type([]) == "array"
        assert value_type({}) == "object"


class TestFlattenMapping:
    """Test encode-side path flattening."""

    def test_flatten_nested(self):
        result = flatten_mapping({"a": {"b": {"c": 1}, "d": 2}}, EncodeOptions())
        assert result == {"a.b.c": 1, "a.d": 2}

    def test_depth_limit(self):
        result = flatten_mapping({"a": {"b": {"c": {"d": 1}}}}, EncodeOptions(flatten_depth=3))
        assert result == {"a.b.c": {"d": 1}}

    def test_depth_one_keeps_nesting(self):
        data = {"a": {"b": 1}}
        assert flatten_mapping(data, EncodeOptions(flatten_depth=1)) == data

    def test_unsafe_key_not_folded(self):
        data = {"a-b": {"c": 1}}
        assert flatten_mapping(data, EncodeOptions()) == data

    def test_trailing_newline_key_not_folded(self):
        data = {"a\n": {"c": 1}, "b": {"d\n": 2}}
        assert flatten_mapping(data, EncodeOptions()) == data

    def test_nested_collision_left_nested(self):
        data = {"x": {"a.b": 1, "a": {"b": 2}}}
        assert flatten_mapping(data, EncodeOptions()) == {"x": {"a.b": 1, "a": {"b": 2}}}

    def test_nested_collision_strict(self):
        data = {"x": {"a.b": 1, "a": {"b": 2}}}
        with pytest.raises(EncodeError, match="key collision"):
            flatten_mapping(data, EncodeOptions(strict=True))

    def test_ordered_input_keeps_order(self):
        data = OrderedDict([("z", OrderedDict([("y", 1)])), ("a", 2)])
        result = flatten_mapping(data, EncodeOptions())
        assert list(result) == ["z.y", "a"]
