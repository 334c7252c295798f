"""Dotted key paths: expansion on decode, flattening on encode."""

import logging
from collections import OrderedDict
from collections.abc import Mapping
from typing import Any, NamedTuple

from .errors import EncodeError
from .string_utils import is_safe_key, is_valid_dotted_path
from .types import EncodeOptions, JsonValue

logger = logging.getLogger(__name__)


class ExpandResult(NamedTuple):
    """Outcome of a path expansion step."""

    ok: bool
    path: str = ""
    reason: str = ""


EXPAND_OK = ExpandResult(True)


def is_expandable_key(key: str, was_quoted: bool) -> bool:
    """Check if a decoded key should be expanded into nested objects."""
    return not was_quoted and is_valid_dotted_path(key)


def expand_path(
    target: dict, segments: list[str], value: JsonValue, strict: bool, prefix: str = ""
) -> ExpandResult:
    """
    Set ``value`` at a nested path, creating intermediate objects.

    ``a.b.c: 1`` arrives here as ``["a", "b", "c"]`` and yields
    ``{"a": {"b": {"c": 1}}}``.

    Args:
        target: The object being built.
        segments: Remaining path segments.
        value: The decoded value.
        strict: Report conflicts instead of overwriting.
        prefix: Path consumed so far (for messages).

    Returns:
        EXPAND_OK, or an ExpandResult describing the conflict.
    """
    head = segments[0]
    path = f"{prefix}.{head}" if prefix else head

    if len(segments) == 1:
        return assign_field(target, head, value, strict, path)

    if head not in target:
        target[head] = {}
    elif not isinstance(target[head], dict):
        if strict:
            return ExpandResult(
                False,
                path,
                f"key {path!r} has type {value_type(target[head])}, cannot expand as object",
            )
        logger.debug("path expansion overwrote non-object at %r", path)
        target[head] = {}

    return expand_path(target[head], segments[1:], value, strict, path)


def assign_field(
    target: dict, key: str, value: JsonValue, strict: bool, path: str | None = None
) -> ExpandResult:
    """
    Assign a field while building an object with path expansion enabled.

    Two objects merge. An object colliding with a non-object is a conflict
    in strict mode and last-write-wins otherwise.
    """
    path = path or key
    if key not in target:
        target[key] = value
        return EXPAND_OK

    existing = target[key]
    if isinstance(existing, dict) and isinstance(value, dict):
        for sub_key, sub_value in value.items():
            result = assign_field(existing, sub_key, sub_value, strict, f"{path}.{sub_key}")
            if not result.ok:
                return result
        return EXPAND_OK

    if isinstance(existing, dict) or isinstance(value, dict):
        if strict:
            return ExpandResult(
                False,
                path,
                f"key {path!r} already holds {value_type(existing)}, "
                f"cannot assign {value_type(value)}",
            )
        logger.debug("path expansion conflict at %r resolved last-write-wins", path)

    target[key] = value
    return EXPAND_OK


def value_type(value: Any) -> str:
    """Describe a decoded value's type for error messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def flatten_mapping(obj: Mapping, opts: EncodeOptions) -> Mapping:
    """
    Fold nested mappings into dotted keys.

    ``{"a": {"b": 1}}`` becomes ``{"a.b": 1}``. Folding stops at
    ``opts.flatten_depth`` segments, at keys that are not bare-safe and at
    subtrees holding keys that need quoting.

    Raises:
        EncodeError: On key collisions when ``opts.strict`` is set.
    """
    return _flatten(obj, "", opts)


def _flatten(obj: Mapping, prefix: str, opts: EncodeOptions) -> Mapping:
    if _has_literal_collision(obj):
        if opts.strict:
            raise EncodeError(
                "key collision: flattened path would conflict with existing literal key",
                prefix or None,
            )
        logger.debug("flatten collision under %r, leaving subtree nested", prefix or "<root>")
        return {prefix: obj} if prefix else obj

    result: dict = OrderedDict() if isinstance(obj, OrderedDict) else {}
    for key in _iter_keys(obj, opts):
        value = obj[key]
        path = f"{prefix}.{key}" if prefix else key

        if not _should_flatten(key, value, path, opts):
            _add(result, path, value, opts)
        elif not value:
            # Empty object stays at the folded path
            _add(result, path, value, opts)
        else:
            for sub_path, sub_value in _flatten(value, path, opts).items():
                _add(result, sub_path, sub_value, opts)

    return result


def _iter_keys(obj: Mapping, opts: EncodeOptions) -> list[str]:
    if isinstance(obj, OrderedDict) or not opts.sort_keys:
        return list(obj.keys())
    return sorted(obj.keys())


def _should_flatten(key: str, value: Any, path: str, opts: EncodeOptions) -> bool:
    if not isinstance(value, Mapping):
        return False
    if not is_safe_key(key):
        return False
    if opts.flatten_depth and len(path.split(".")) >= opts.flatten_depth:
        return False
    return not _contains_quoted_keys(value)


def _contains_quoted_keys(obj: Mapping) -> bool:
    for key, value in obj.items():
        if not is_safe_key(key):
            return True
        if isinstance(value, Mapping) and _contains_quoted_keys(value):
            return True
    return False


def _collect_paths(obj: Mapping, prefix: str, paths: set[str]) -> None:
    for key, value in obj.items():
        path = f"{prefix}.{key}"
        paths.add(path)
        if isinstance(value, Mapping):
            _collect_paths(value, path, paths)


def _has_literal_collision(obj: Mapping) -> bool:
    """Check whether any prospective folded path equals a literal key."""
    literal_keys = set(obj.keys())
    for key, value in obj.items():
        if not isinstance(value, Mapping):
            continue
        paths: set[str] = set()
        _collect_paths(value, key, paths)
        if paths & literal_keys:
            return True
    return False


def _add(result: dict, path: str, value: Any, opts: EncodeOptions) -> None:
    if path in result:
        if opts.strict:
            raise EncodeError(f"key collision: {path!r}", result[path])
        logger.debug("flatten collision on %r, keeping last value", path)
    result[path] = value
