"""Primitive value encoding and parsing for TOON."""

import math
from decimal import Decimal
from typing import TYPE_CHECKING

from .errors import DecodeError, EncodeError
from .string_utils import (
    NUMBER_PATTERN,
    escape_string,
    has_leading_zero,
    is_safe_key,
    needs_quoting,
    unescape_string,
)

if TYPE_CHECKING:
    from .types import Delimiter, JsonPrimitive

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


def encode_primitive(value: "JsonPrimitive", delimiter: "Delimiter" = ",") -> str:
    """
    Encode a primitive value to TOON format.

    Args:
        value: The primitive value (str, int, float, bool, or None).
        delimiter: The active delimiter for quoting checks.

    Returns:
        The encoded string representation.

    Raises:
        EncodeError: If the value is not a primitive.
    """
    if value is None:
        return "null"

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, int):
        return str(value)

    if isinstance(value, float):
        return encode_float(value)

    if isinstance(value, str):
        return encode_string_literal(value, delimiter)

    raise EncodeError("unsupported primitive type", value)


def encode_float(value: float) -> str:
    """
    Encode a float without exponent notation.

    Whole values inside the int64 range render as integers and trailing
    fractional zeros are trimmed. NaN and infinities render as null.
    """
    if math.isnan(value) or math.isinf(value):
        return "null"
    # Covers -0.0 as well
    if value == 0.0:
        return "0"
    if value.is_integer() and INT64_MIN <= value < 2**63:
        return str(int(value))

    # Shortest round-tripping digits, laid out positionally
    s = format(Decimal(repr(value)), "f")
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s


def encode_string_literal(value: str, delimiter: "Delimiter" = ",") -> str:
    """
    Encode a string value, with or without quotes.

    Args:
        value: The string to encode.
        delimiter: The active delimiter for quoting checks.

    Returns:
        The encoded string (quoted if necessary).
    """
    if needs_quoting(value, delimiter):
        return f'"{escape_string(value)}"'
    return value


def encode_key(key: str) -> str:
    """
    Encode an object key for TOON format.

    Keys follow stricter rules than values: only ``[A-Za-z_][A-Za-z0-9_.]*``
    is written bare, everything else is quoted.

    Args:
        key: The key string.

    Returns:
        The encoded key (quoted if necessary).
    """
    if is_safe_key(key):
        return key
    return f'"{escape_string(key)}"'


def parse_primitive(token: str) -> "JsonPrimitive":
    """
    Parse a primitive token to a Python value.

    Handles, in order: null/true/false, quoted strings, integers, floats and
    unquoted strings.

    Args:
        token: The token string.

    Returns:
        The parsed Python value.

    Raises:
        DecodeError: For malformed quoted strings.
    """
    token = token.strip(" ")

    # Empty token is empty string
    if not token:
        return ""

    # Literals
    if token == "null":
        return None
    if token == "true":
        return True
    if token == "false":
        return False

    # Quoted string
    if token.startswith('"'):
        return parse_string_literal(token)

    # Try to parse as number
    number = _try_parse_number(token)
    if number is not None:
        return number

    # Unquoted string
    return token


def parse_string_literal(token: str) -> str:
    """
    Parse a quoted string literal.

    Args:
        token: The token starting with '"'.

    Returns:
        The unescaped string content.

    Raises:
        DecodeError: If the string is malformed.
    """
    end = find_closing_quote(token, 0)
    if end == -1:
        raise DecodeError("unterminated string: missing closing quote", token=token)
    if end != len(token) - 1:
        raise DecodeError("unexpected characters after closing quote", token=token)

    try:
        return unescape_string(token[1:end])
    except DecodeError as exc:
        raise DecodeError(exc.message, token=token) from exc


def find_closing_quote(s: str, start: int) -> int:
    """
    Find the closing quote in a string.

    Args:
        s: The string to search.
        start: The position of the opening quote.

    Returns:
        Index of the closing quote, or -1 if not found.
    """
    i = start + 1
    while i < len(s):
        char = s[i]
        if char == "\\":
            # Skip escape sequence
            i += 2
            continue
        elif char == '"':
            return i
        i += 1
    return -1


def _try_parse_number(token: str) -> int | float | None:
    """
    Try to parse a token as a number.

    Returns None if it's not a valid number. Integers outside the int64
    range become floats; floats that overflow to infinity stay strings.
    """
    # Strings with leading zeros ("007") are strings, not numbers
    if has_leading_zero(token):
        return None

    if not NUMBER_PATTERN.match(token):
        return None

    if "." not in token and "e" not in token.lower():
        value = int(token)
        if INT64_MIN <= value <= INT64_MAX:
            return value
        return float(value)

    number = float(token)
    if math.isinf(number):
        return None
    # Normalize -0.0 to 0
    if number == 0.0:
        return 0
    return number


def format_length(length: int, length_marker: str = "", delimiter: "Delimiter" = ",") -> str:
    """
    Format the bracket portion of an array header.

    Args:
        length: The array length.
        length_marker: Optional prefix before the length.
        delimiter: The delimiter (included in bracket if not comma).

    Returns:
        The bracket string, e.g. ``[3]``, ``[#3]`` or ``[3|]``.
    """
    if delimiter == ",":
        return f"[{length_marker}{length}]"
    return f"[{length_marker}{length}{delimiter}]"


def format_array_header(
    length: int,
    key: str | None = None,
    fields: list[str] | None = None,
    delimiter: "Delimiter" = ",",
    length_marker: str = "",
) -> str:
    """
    Format an array header line.

    Args:
        length: The array length.
        key: Optional already-encoded key (None for root arrays or list items).
        fields: Optional field names for tabular format.
        delimiter: The delimiter (included in bracket if not comma).
        length_marker: Optional prefix before the length.

    Returns:
        The formatted header string.
    """
    bracket = format_length(length, length_marker, delimiter)

    fields_part = ""
    if fields:
        fields_part = "{" + delimiter.join(encode_key(f) for f in fields) + "}"

    return f"{key or ''}{bracket}{fields_part}:"
