"""String utilities for TOON encoding/decoding."""

import re
from typing import TYPE_CHECKING

from .errors import DecodeError

if TYPE_CHECKING:
    from .types import Delimiter

# Escapes written by the encoder. Backslash must be replaced first.
ESCAPE_SEQUENCE = (
    ("\\", "\\\\"),
    ('"', '\\"'),
    ("\t", "\\t"),
    ("\n", "\\n"),
    ("\r", "\\r"),
)

UNESCAPE_MAP = {
    "\\": "\\",
    '"': '"',
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

# Reserved literals that can't be unquoted strings
RESERVED_LITERALS = frozenset({"true", "false", "null"})

# Structural characters that require quoting
STRUCTURAL_CHARS = frozenset(':[]{}()"\\')

# Control characters that require quoting
CONTROL_CHARS = frozenset("\n\r\t\b\f")

# Numeric literal accepted by the decoder (sign, digits, fraction, exponent)
NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?\Z")

# Keys that may be written without quotes
SAFE_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*\Z")

# Pattern for valid identifier segments (used in key folding/path expansion)
IDENTIFIER_SEGMENT_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*\Z")


def escape_string(value: str) -> str:
    """
    Escape a string for use in TOON quoted strings.

    Backslashes are escaped first so the escapes added for quotes and
    control characters are not doubled.

    Args:
        value: The string to escape.

    Returns:
        The escaped string (without surrounding quotes).
    """
    for char, escaped in ESCAPE_SEQUENCE:
        value = value.replace(char, escaped)
    return value


def unescape_string(value: str) -> str:
    """
    Unescape a TOON string that was inside quotes.

    Processes the 5 valid escape sequences:
    - \\\\ → backslash
    - \\" → double quote
    - \\n → newline
    - \\r → carriage return
    - \\t → tab

    Args:
        value: The string content (without surrounding quotes).

    Returns:
        The unescaped string.

    Raises:
        DecodeError: If an invalid escape sequence is found or backslash at end.
    """
    result = []
    i = 0
    while i < len(value):
        char = value[i]
        if char == "\\":
            if i + 1 >= len(value):
                raise DecodeError("unterminated string: unexpected end in escape sequence")
            next_char = value[i + 1]
            if next_char not in UNESCAPE_MAP:
                raise DecodeError(
                    f"invalid escape sequence: \\{next_char}", token=f"\\{next_char}"
                )
            result.append(UNESCAPE_MAP[next_char])
            i += 2
        else:
            result.append(char)
            i += 1
    return "".join(result)


def needs_quoting(value: str, delimiter: "Delimiter" = ",") -> bool:
    """
    Check if a string value needs to be quoted.

    A string needs quotes when it is:
    - empty
    - padded with leading/trailing spaces
    - a reserved literal (true, false, null)
    - number-like, including leading-zero forms such as "007"
    - holding structural characters (: [ ] { } ( ) " \\)
    - holding the active delimiter
    - holding control characters (newline, carriage return, tab, \\b, \\f)
    - starting with '-' (list marker)

    Args:
        value: The string to check.
        delimiter: The active delimiter character.

    Returns:
        True if the string needs quotes.
    """
    if not value:
        return True
    if value[0] == " " or value[-1] == " ":
        return True
    if value in RESERVED_LITERALS:
        return True
    if looks_like_number(value):
        return True
    if any(c in STRUCTURAL_CHARS for c in value):
        return True
    if delimiter in value:
        return True
    if any(c in CONTROL_CHARS for c in value):
        return True
    return value.startswith("-")


def looks_like_number(value: str) -> bool:
    """Check if a string would read back as (or be mistaken for) a number."""
    if has_leading_zero(value):
        return True
    if NUMBER_PATTERN.match(value):
        return True
    try:
        float(value)
    except ValueError:
        return False
    return True


def has_leading_zero(token: str) -> bool:
    """Check for a leading zero followed by a digit, e.g. "007" or "-01"."""
    s = token[1:] if token[:1] in ("-", "+") else token
    return len(s) > 1 and s[0] == "0" and s[1].isdigit()


def is_safe_key(key: str) -> bool:
    """Check if a key can be written without quotes."""
    return bool(SAFE_KEY_PATTERN.match(key))


def is_valid_identifier_segment(segment: str) -> bool:
    """
    Check if a string is a valid identifier segment for path expansion.

    Valid segments:
    - Start with letter or underscore
    - Only letters, digits, underscores

    Args:
        segment: The segment to check.

    Returns:
        True if valid identifier segment.
    """
    return bool(IDENTIFIER_SEGMENT_PATTERN.match(segment))


def is_valid_dotted_path(key: str) -> bool:
    """
    Check if a key is a valid dotted path for folding/expansion.

    Args:
        key: The key to check (may contain dots).

    Returns:
        True if the key has dots and all segments are valid identifiers.
    """
    if not key or "." not in key:
        return False
    return all(is_valid_identifier_segment(seg) for seg in key.split("."))


def find_unquoted(line: str, target: str) -> int:
    """
    Find the position of the first unquoted occurrence of a character.

    Args:
        line: The line to search.
        target: The character to look for.

    Returns:
        Index of the character, or -1 if not found.
    """
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == "\\" and in_quotes and i + 1 < len(line):
            # Skip escape sequence
            i += 2
            continue
        elif char == '"':
            in_quotes = not in_quotes
        elif char == target and not in_quotes:
            return i
        i += 1
    return -1


def has_field_colon(line: str) -> bool:
    """
    Check for an unquoted colon followed by a space or the end of the line.

    That shape marks a ``key: value`` / ``key:`` field rather than a data row.
    """
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == "\\" and in_quotes:
            i += 2
            continue
        if char == '"':
            in_quotes = not in_quotes
        elif char == ":" and not in_quotes:
            if i + 1 >= len(line) or line[i + 1] == " ":
                return True
        i += 1
    return False


def split_by_delimiter(value: str, delimiter: "Delimiter") -> list[str]:
    """
    Split a string by delimiter, respecting quoted sections.

    Args:
        value: The string to split.
        delimiter: The delimiter character.

    Returns:
        List of stripped values (still containing quotes if originally quoted).
    """
    result = []
    current = []
    in_quotes = False
    i = 0

    while i < len(value):
        char = value[i]
        if char == "\\" and in_quotes and i + 1 < len(value):
            # Keep escape sequence intact
            current.append(char)
            current.append(value[i + 1])
            i += 2
            continue
        elif char == '"':
            in_quotes = not in_quotes
            current.append(char)
        elif char == delimiter and not in_quotes:
            result.append("".join(current).strip(" "))
            current = []
        else:
            current.append(char)
        i += 1

    # Add the last segment
    result.append("".join(current).strip(" "))
    return result
