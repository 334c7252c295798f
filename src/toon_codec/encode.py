"""TOON encoder implementation."""

import logging
from collections import OrderedDict
from collections.abc import Generator, Mapping
from typing import IO, Any

from .normalize import normalize
from .paths import flatten_mapping
from .primitives import encode_key, encode_primitive, format_array_header, format_length
from .types import ArrayFormat, EncodeOptions, JsonValue
from .writer import LineWriter

logger = logging.getLogger(__name__)

LIST_ITEM_PREFIX = "- "


def encode(value: Any, options: EncodeOptions | None = None) -> str:
    """
    Encode a Python value to TOON format.

    Args:
        value: The value to encode (dict, list, or primitive).
        options: Encoding options.

    Returns:
        The TOON-formatted string.

    Raises:
        EncodeError: For invalid options or flatten collisions in strict mode.
    """
    return _write(value, options).to_string()


def encode_lines(
    value: Any, options: EncodeOptions | None = None
) -> Generator[str, None, None]:
    """
    Encode a Python value to TOON format, yielding lines.

    Args:
        value: The value to encode.
        options: Encoding options.

    Yields:
        Lines of TOON output, without trailing newlines.
    """
    yield from _write(value, options).lines


def _write(value: Any, options: EncodeOptions | None) -> LineWriter:
    opts = (options or EncodeOptions()).resolve()
    normalized = normalize(value)
    writer = LineWriter(opts.indent)

    # Root form detection
    if isinstance(normalized, Mapping):
        if opts.flatten_paths:
            normalized = flatten_mapping(normalized, opts)
        _encode_object(writer, normalized, 0, opts)
    elif isinstance(normalized, list):
        _encode_array(writer, "", normalized, 0, opts)
    else:
        writer.push(0, encode_primitive(normalized, opts.delimiter))

    logger.debug("encoded %s root into %d lines", type(normalized).__name__, len(writer))
    return writer


def dump(value: Any, fp: IO[str], options: EncodeOptions | None = None) -> None:
    """Encode a value and write the TOON text to a file object."""
    fp.write(encode(value, options))


def detect_array_format(arr: list) -> ArrayFormat:
    """
    Choose the encoding shape for a sequence.

    - Empty: no elements
    - Inline: all elements are primitives
    - Tabular: all elements are objects with one shared, non-empty key set
      and only primitive values
    - List: everything else
    """
    if not arr:
        return ArrayFormat.EMPTY
    if all(_is_primitive(v) for v in arr):
        return ArrayFormat.INLINE
    if _is_tabular_array(arr):
        return ArrayFormat.TABULAR
    return ArrayFormat.LIST


def _encode_object(writer: LineWriter, obj: Mapping, depth: int, opts: EncodeOptions) -> None:
    """Encode an object's key-value pairs."""
    for key in _object_keys(obj, opts):
        _encode_field(writer, key, obj[key], depth, opts)


def _encode_field(
    writer: LineWriter,
    key: str,
    value: JsonValue,
    depth: int,
    opts: EncodeOptions,
    marker: str = "",
    child_depth: int | None = None,
) -> None:
    """
    Encode one ``key: value`` pair.

    ``marker`` prefixes the line (the list item hyphen) and ``child_depth``
    places nested content when the field sits on a hyphen line.
    """
    if child_depth is None:
        child_depth = depth + 1
    encoded_key = encode_key(key)

    if isinstance(value, Mapping):
        writer.push(depth, f"{marker}{encoded_key}:")
        if value:
            _encode_object(writer, value, child_depth, opts)
    elif isinstance(value, list):
        _encode_array(writer, encoded_key, value, depth, opts, marker, child_depth)
    else:
        writer.push(depth, f"{marker}{encoded_key}: {encode_primitive(value, opts.delimiter)}")


def _encode_array(
    writer: LineWriter,
    encoded_key: str,
    arr: list,
    depth: int,
    opts: EncodeOptions,
    marker: str = "",
    body_depth: int | None = None,
) -> None:
    """Encode an array with the best format."""
    if body_depth is None:
        body_depth = depth + 1
    prefix = marker + encoded_key
    delimiter = opts.delimiter
    array_format = detect_array_format(arr)

    if array_format is ArrayFormat.EMPTY:
        writer.push(depth, f"{prefix}{format_length(0, opts.length_marker)}:")

    elif array_format is ArrayFormat.INLINE:
        bracket = format_length(len(arr), opts.length_marker, delimiter)
        values = delimiter.join(encode_primitive(v, delimiter) for v in arr)
        writer.push(depth, f"{prefix}{bracket}: {values}")

    elif array_format is ArrayFormat.TABULAR:
        fields = _tabular_fields(arr, opts)
        header = format_array_header(len(arr), None, fields, delimiter, opts.length_marker)
        writer.push(depth, prefix + header)
        for row in arr:
            writer.push(body_depth, delimiter.join(encode_primitive(row[f], delimiter) for f in fields))

    else:
        bracket = format_length(len(arr), opts.length_marker, delimiter)
        writer.push(depth, f"{prefix}{bracket}:")
        for item in arr:
            _encode_list_item(writer, item, body_depth, opts)


def _encode_list_item(writer: LineWriter, item: JsonValue, depth: int, opts: EncodeOptions) -> None:
    """Encode a list item (after the - marker)."""
    if isinstance(item, Mapping):
        if not item:
            # Empty object as list item
            writer.push(depth, "-")
        else:
            _encode_object_list_item(writer, item, depth, opts)
    elif isinstance(item, list):
        # Nested array as list item
        _encode_array(writer, "", item, depth, opts, LIST_ITEM_PREFIX)
    else:
        writer.push(depth, LIST_ITEM_PREFIX + encode_primitive(item, opts.delimiter))


def _encode_object_list_item(writer: LineWriter, obj: Mapping, depth: int, opts: EncodeOptions) -> None:
    """
    Encode an object as a list item with first field on hyphen line.

    Remaining fields sit one level deeper than the hyphen; content nested
    under the first field sits two levels deeper.
    """
    keys = _list_item_keys(obj, opts)
    first = keys[0]
    _encode_field(writer, first, obj[first], depth, opts, LIST_ITEM_PREFIX, depth + 2)
    for key in keys[1:]:
        _encode_field(writer, key, obj[key], depth + 1, opts)


def _object_keys(obj: Mapping, opts: EncodeOptions) -> list[str]:
    """Keys in encoding order: declared for OrderedDict, sorted otherwise."""
    if isinstance(obj, OrderedDict) or not opts.sort_keys:
        return list(obj.keys())
    return sorted(obj.keys())


def _list_item_keys(obj: Mapping, opts: EncodeOptions) -> list[str]:
    """Keys for an object list item; sorted plain dicts put arrays first."""
    if isinstance(obj, OrderedDict) or not opts.sort_keys:
        return list(obj.keys())
    return sorted(obj.keys(), key=lambda k: (not isinstance(obj[k], list), k))


def _tabular_fields(arr: list, opts: EncodeOptions) -> list[str]:
    """Header fields for a tabular array, taken from the first row."""
    return _object_keys(arr[0], opts)


def _is_tabular_array(arr: list) -> bool:
    """Check if array can use tabular format."""
    # All elements must be objects
    if not all(isinstance(v, Mapping) for v in arr):
        return False

    # All objects must have same keys
    first_keys = set(arr[0].keys())
    if not first_keys:
        return False

    for item in arr[1:]:
        if set(item.keys()) != first_keys:
            return False

    # All values must be primitives
    return all(_is_primitive(v) for item in arr for v in item.values())


def _is_primitive(value: JsonValue) -> bool:
    """Check if value is a primitive (not dict or list)."""
    return not isinstance(value, (Mapping, list))
