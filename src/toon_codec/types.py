"""Type definitions for the TOON encoder/decoder."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from .errors import DecodeError, EncodeError

# JSON type aliases
JsonPrimitive = str | int | float | bool | None
JsonArray = list["JsonValue"]
JsonObject = dict[str, "JsonValue"]
JsonValue = JsonPrimitive | JsonArray | JsonObject

# Delimiter options
Delimiter = Literal[",", "\t", "|"]
VALID_DELIMITERS: tuple[str, ...] = (",", "\t", "|")

DEFAULT_INDENT = 2


@dataclass(frozen=True)
class EncodeOptions:
    """Options for TOON encoding."""

    indent: int = DEFAULT_INDENT
    """Number of spaces per indentation level (0 resolves to the default)."""

    delimiter: Delimiter = ","
    """Delimiter for inline arrays and tabular rows."""

    length_marker: str = ""
    """Prefix written before array lengths, e.g. "#" gives ``[#3]``."""

    flatten_paths: bool = False
    """Fold nested root mappings into dotted keys."""

    flatten_depth: int = 0
    """Maximum number of segments in a folded key. 0 means unlimited."""

    strict: bool = False
    """Raise on flatten collisions instead of keeping the last value."""

    sort_keys: bool = True
    """Sort plain dict keys. OrderedDict values always keep their order."""

    def resolve(self) -> "EncodeOptions":
        """Validate the options and return a copy with defaults applied."""
        if self.indent < 0:
            raise EncodeError("indent must be non-negative", self.indent)
        if self.delimiter not in VALID_DELIMITERS:
            raise EncodeError(
                f"invalid delimiter {self.delimiter!r}, must be one of: ',', '\\t', '|'",
                self.delimiter,
            )
        if any(c.isdigit() or c in "[]{}: " or c in VALID_DELIMITERS for c in self.length_marker):
            raise EncodeError("invalid length marker", self.length_marker)
        if self.flatten_depth < 0:
            raise EncodeError("flatten_depth must be non-negative", self.flatten_depth)
        if self.indent == 0:
            return EncodeOptions(
                indent=DEFAULT_INDENT,
                delimiter=self.delimiter,
                length_marker=self.length_marker,
                flatten_paths=self.flatten_paths,
                flatten_depth=self.flatten_depth,
                strict=self.strict,
                sort_keys=self.sort_keys,
            )
        return self


@dataclass(frozen=True)
class DecodeOptions:
    """Options for TOON decoding."""

    strict: bool = True
    """Enable strict validation (count mismatches, blank lines, indentation)."""

    indent: int = DEFAULT_INDENT
    """Expected indentation size."""

    expand_paths: Literal["off", "safe"] = "off"
    """Expand dotted keys into nested objects."""

    def resolve(self) -> "DecodeOptions":
        """Validate the options."""
        if self.indent < 1:
            raise DecodeError("indent must be positive")
        if self.expand_paths not in ("off", "safe"):
            raise DecodeError(f"invalid expand_paths mode {self.expand_paths!r}")
        return self


@dataclass(frozen=True)
class ParsedLine:
    """A parsed line with indentation info."""

    raw: str
    """Original line content."""

    content: str
    """Content after stripping indentation."""

    indent: int
    """Indentation width (tabs count as 4)."""

    line_number: int
    """1-based line number."""

    is_blank: bool = False
    """Whether the line holds only whitespace."""


@dataclass
class ArrayHeader:
    """Parsed array header information."""

    length: int | None
    """Declared array length (None when the header carries no digits)."""

    delimiter: Delimiter = ","
    """Delimiter for this array's values."""

    fields: list[str] = field(default_factory=list)
    """Field names for tabular format (empty for non-tabular)."""

    tabular: bool = False
    """Whether a ``{fields}`` block was present."""

    rest: str = ""
    """Content after the closing colon, stripped."""


class ArrayFormat(Enum):
    """Encoding shape chosen for a sequence."""

    EMPTY = "empty"
    INLINE = "inline"
    TABULAR = "tabular"
    LIST = "list"
