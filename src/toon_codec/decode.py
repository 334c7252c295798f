"""TOON decoder implementation."""

import logging
import re
from collections.abc import Iterable
from typing import IO, Any

from .errors import DecodeError
from .lines import parse_lines, split_lines, validate_indentation
from .normalize import assign_into
from .paths import assign_field, expand_path, is_expandable_key
from .primitives import parse_primitive
from .scanner import Scanner
from .string_utils import find_unquoted, has_field_colon, split_by_delimiter
from .types import ArrayHeader, DecodeOptions, JsonValue, ParsedLine

logger = logging.getLogger(__name__)

# Deepest nesting of objects and arrays accepted by the decoder
MAX_DEPTH = 100

# An array header appearing after "key: ", e.g. "key: [2]: a,b"
INLINE_HEADER_PATTERN = re.compile(r"^\[[^\]]*\](?:\{[^}]*\})?:")


def decode(text: str, options: DecodeOptions | None = None) -> JsonValue:
    """
    Decode TOON text to a Python value.

    Args:
        text: The TOON-formatted string.
        options: Decoding options.

    Returns:
        The decoded Python value. Empty input decodes to ``{}``.

    Raises:
        DecodeError: For malformed input and strict mode violations.
    """
    opts = (options or DecodeOptions()).resolve()
    return _decode_parsed(split_lines(text), opts)


def decode_lines(lines: Iterable[str], options: DecodeOptions | None = None) -> JsonValue:
    """
    Decode TOON from pre-split lines.

    Args:
        lines: Iterable of line strings (trailing newlines are dropped).
        options: Decoding options.

    Returns:
        The decoded Python value.
    """
    opts = (options or DecodeOptions()).resolve()
    return _decode_parsed(parse_lines(line.rstrip("\n") for line in lines), opts)


def load(fp: IO[str], options: DecodeOptions | None = None) -> JsonValue:
    """Decode TOON read from a file object."""
    return decode(fp.read(), options)


def decode_into(text: str, target: Any, options: DecodeOptions | None = None) -> Any:
    """
    Decode TOON text into a caller-provided dict or list.

    Returns:
        The filled target.

    Raises:
        DecodeError: If decoding fails or the decoded shape does not fit.
    """
    return assign_into(decode(text, options), target)


def _decode_parsed(lines: list[ParsedLine], opts: DecodeOptions) -> JsonValue:
    logger.debug(
        "decoding %d lines (strict=%s, indent=%d, expand_paths=%s)",
        len(lines),
        opts.strict,
        opts.indent,
        opts.expand_paths,
    )
    if opts.strict:
        validate_indentation(lines, opts.indent)
    return _Decoder(lines, opts).decode_root()


def _is_list_item(content: str) -> bool:
    return content == "-" or content.startswith("- ")


def _looks_like_field(content: str) -> bool:
    """Check whether a lone root line is a ``key: value`` pair or a header."""
    return find_unquoted(content, ":") != -1


class _Decoder:
    """Recursive-descent decoder over a list of parsed lines."""

    def __init__(self, lines: list[ParsedLine], options: DecodeOptions):
        self.lines = lines
        self.options = options
        # Index of the next unconsumed line
        self.pos = 0
        self.depth = 0
        # Number of list bodies being parsed
        self.array_depth = 0

    # Cursor

    def peek(self) -> ParsedLine | None:
        """Look at the next non-blank line without consuming it."""
        i = self.pos
        while i < len(self.lines):
            if not self.lines[i].is_blank:
                return self.lines[i]
            i += 1
        return None

    def consume(self, line: ParsedLine) -> None:
        """Move the cursor past ``line``."""
        self.pos = line.line_number

    def consume_array_line(self, line: ParsedLine) -> None:
        """Consume a row or list item, checking for blank lines before it."""
        if line.line_number - 1 > self.pos:
            blank = self.lines[self.pos]
            if self.options.strict:
                raise DecodeError(
                    "blank lines are not allowed inside arrays (strict mode)",
                    line=blank.line_number,
                    context=blank.raw,
                )
            logger.debug("skipping blank line %d inside array", blank.line_number)
        self.consume(line)

    def skip_orphan(self, line: ParsedLine) -> None:
        """Handle a more-indented line that no value claimed."""
        if self.options.strict:
            raise DecodeError(
                "unexpected indentation",
                line=line.line_number,
                column=line.indent + 1,
                token=line.content,
                context=line.raw,
            )
        logger.debug("skipping orphan line %d: %r", line.line_number, line.content)
        self.consume(line)

    def enter(self, line: ParsedLine) -> None:
        self.depth += 1
        if self.depth > MAX_DEPTH:
            raise DecodeError(
                f"maximum nesting depth of {MAX_DEPTH} exceeded",
                line=line.line_number,
                column=line.indent + 1,
                context=line.raw,
            )

    def leave(self) -> None:
        self.depth -= 1

    def expect_end(self) -> None:
        line = self.peek()
        if line is not None:
            raise DecodeError(
                "unexpected content after root value",
                line=line.line_number,
                column=line.indent + 1,
                token=line.content,
                context=line.raw,
            )

    # Root

    def decode_root(self) -> JsonValue:
        """Detect the root form and decode it."""
        first = self.peek()
        if first is None:
            return {}

        # Root array
        if first.content.startswith("["):
            self.consume(first)
            scanner = Scanner(first.content, first)
            header = scanner.parse_array_header()
            value = self.parse_array_body(first, scanner, header, first.indent)
            self.expect_end()
            return value

        # Single primitive
        content_lines = sum(1 for line in self.lines if not line.is_blank)
        if content_lines == 1 and not _looks_like_field(first.content):
            self.consume(first)
            return self.parse_value(Scanner(first.content, first))

        # Root object
        value = self.parse_object(first.indent, first)
        self.expect_end()
        return value

    # Objects

    def parse_object(self, indent: int, opener: ParsedLine) -> dict:
        """Decode the fields found at exactly ``indent`` columns."""
        self.enter(opener)
        result: dict = {}

        while True:
            line = self.peek()
            if line is None or line.indent < indent:
                break
            if line.indent > indent:
                self.skip_orphan(line)
                continue

            if self.array_depth:
                self.consume_array_line(line)
            else:
                self.consume(line)
            self.parse_field(line, Scanner(line.content, line), indent, result)

        self.leave()
        return result

    def parse_field(
        self,
        line: ParsedLine,
        scanner: Scanner,
        field_indent: int,
        result: dict,
        on_hyphen: bool = False,
    ) -> None:
        """
        Decode one ``key: value`` or ``key[N]...:`` field into ``result``.

        Args:
            line: The line holding the field.
            scanner: Scanner positioned at the key.
            field_indent: Column the field is aligned to. Nested values
                must be indented past it.
            result: The object being built.
            on_hyphen: Whether the field follows a list item hyphen.
        """
        key_column = scanner.pos
        key, was_quoted = scanner.parse_key()
        scanner.skip_whitespace()

        if scanner.peek() == "[":
            header = scanner.parse_array_header()
            value = self.parse_array_body(line, scanner, header, field_indent, on_hyphen)
        else:
            scanner.expect(":")
            scanner.skip_whitespace()
            rest = scanner.rest()
            if INLINE_HEADER_PATTERN.match(rest):
                header = scanner.parse_array_header()
                value = self.parse_array_body(line, scanner, header, field_indent, on_hyphen)
            elif rest:
                value = self.parse_value(scanner)
            else:
                # Nested object, or empty object when nothing deeper follows
                nxt = self.peek()
                if nxt is not None and nxt.indent > field_indent:
                    value = self.parse_object(nxt.indent, line)
                else:
                    value = {}

        self.assign(line, scanner, key_column, result, key, was_quoted, value)

    def assign(
        self,
        line: ParsedLine,
        scanner: Scanner,
        key_column: int,
        result: dict,
        key: str,
        was_quoted: bool,
        value: JsonValue,
    ) -> None:
        """Store a decoded field, expanding dotted keys when enabled."""
        if self.options.expand_paths != "safe":
            result[key] = value
            return

        strict = self.options.strict
        if is_expandable_key(key, was_quoted):
            outcome = expand_path(result, key.split("."), value, strict)
        else:
            outcome = assign_field(result, key, value, strict)

        if not outcome.ok:
            raise scanner.error(
                f"path expansion conflict: {outcome.reason}",
                token=outcome.path,
                column=key_column,
            )

    def parse_value(self, scanner: Scanner) -> JsonValue:
        """Decode the primitive in the rest of the scanner's line."""
        scanner.skip_whitespace()
        token = scanner.rest()
        try:
            return parse_primitive(token)
        except DecodeError as exc:
            raise scanner.error(exc.message, token=exc.token) from exc

    # Arrays

    def parse_array_body(
        self,
        line: ParsedLine,
        scanner: Scanner,
        header: ArrayHeader,
        field_indent: int,
        on_hyphen: bool = False,
    ) -> list:
        """Dispatch to the inline, tabular or list array parser."""
        if header.tabular and header.rest:
            raise scanner.error(
                "unexpected content after tabular array header",
                token=header.rest,
            )
        if header.rest:
            return self.parse_inline(line, header)
        if header.tabular:
            return self.parse_tabular(line, header, field_indent, on_hyphen)
        return self.parse_list(line, header, field_indent, on_hyphen)

    def check_length(self, line: ParsedLine, header: ArrayHeader, actual: int) -> None:
        if header.length is None or header.length == actual:
            return
        if self.options.strict:
            raise DecodeError(
                f"array length mismatch: expected {header.length}, got {actual}",
                line=line.line_number,
                column=line.indent + 1,
                token=line.content,
                context=line.raw,
            )
        logger.debug(
            "array at line %d declares %d elements, found %d",
            line.line_number,
            header.length,
            actual,
        )

    def parse_inline(self, line: ParsedLine, header: ArrayHeader) -> list:
        """Decode ``key[N]: a,b,c``."""
        result = [
            self.parse_token(line, token)
            for token in split_by_delimiter(header.rest, header.delimiter)
        ]
        self.check_length(line, header, len(result))
        return result

    def parse_tabular(
        self, line: ParsedLine, header: ArrayHeader, field_indent: int, on_hyphen: bool
    ) -> list[dict]:
        """
        Decode the rows under a ``key[N]{f1,f2}:`` header.

        Rows sit deeper than the header's field column. After a list item
        hyphen they may also sit at that column; a row that reads as a field
        (``key: value`` or ``key:``) ends the table.
        """
        self.enter(line)
        rows: list[dict] = []
        row_indent = None

        while True:
            nxt = self.peek()
            if nxt is None:
                break
            if row_indent is None:
                if nxt.indent > field_indent or (on_hyphen and nxt.indent == field_indent):
                    row_indent = nxt.indent
                else:
                    break
            if nxt.indent < row_indent:
                break
            if nxt.indent > row_indent:
                self.skip_orphan(nxt)
                continue
            if has_field_colon(nxt.content):
                break

            self.consume_array_line(nxt)
            rows.append(self.parse_row(nxt, header))

        self.check_length(line, header, len(rows))
        self.leave()
        return rows

    def parse_row(self, line: ParsedLine, header: ArrayHeader) -> dict:
        """Map one delimited row onto the header fields."""
        fields = header.fields
        values = [
            self.parse_token(line, token)
            for token in split_by_delimiter(line.content, header.delimiter)
        ]

        if len(values) != len(fields):
            if self.options.strict:
                raise DecodeError(
                    f"tabular row has {len(values)} values, expected {len(fields)}",
                    line=line.line_number,
                    column=line.indent + 1,
                    token=line.content,
                    context=line.raw,
                )
            logger.debug(
                "tabular row at line %d has %d values, expected %d",
                line.line_number,
                len(values),
                len(fields),
            )
            # Pad or truncate
            values.extend([None] * (len(fields) - len(values)))
            values = values[: len(fields)]

        return dict(zip(fields, values))

    def parse_token(self, line: ParsedLine, token: str) -> JsonValue:
        try:
            return parse_primitive(token)
        except DecodeError as exc:
            raise DecodeError(
                exc.message,
                line=line.line_number,
                column=line.indent + max(line.content.find(token), 0) + 1,
                token=exc.token,
                context=line.raw,
            ) from exc

    def parse_list(
        self, line: ParsedLine, header: ArrayHeader, field_indent: int, on_hyphen: bool
    ) -> list:
        """
        Decode the ``- `` items under a ``key[N]:`` header.

        Items sit deeper than the header's field column. After a list item
        hyphen they may also sit at that column, where a non-hyphen line is
        the next sibling field.
        """
        self.enter(line)
        self.array_depth += 1
        items: list = []
        item_indent = None

        while True:
            nxt = self.peek()
            if nxt is None:
                break
            if item_indent is None:
                if nxt.indent > field_indent or (
                    on_hyphen and nxt.indent == field_indent and _is_list_item(nxt.content)
                ):
                    item_indent = nxt.indent
                else:
                    break
            if nxt.indent < item_indent:
                break
            if nxt.indent > item_indent:
                self.skip_orphan(nxt)
                continue
            if not _is_list_item(nxt.content):
                if item_indent == field_indent:
                    break
                raise DecodeError(
                    "expected list item",
                    line=nxt.line_number,
                    column=nxt.indent + 1,
                    token=nxt.content,
                    context=nxt.raw,
                )

            self.consume_array_line(nxt)
            items.append(self.parse_list_item(nxt))

        self.check_length(line, header, len(items))
        self.array_depth -= 1
        self.leave()
        return items

    def parse_list_item(self, line: ParsedLine) -> JsonValue:
        """Decode one list element starting at a hyphen line."""
        if line.content == "-":
            # Bare hyphen: empty object unless fields follow below it
            nxt = self.peek()
            if nxt is not None and nxt.indent > line.indent and not _is_list_item(nxt.content):
                return self.parse_object(nxt.indent, line)
            return {}

        text = line.content[1:]
        item = text.lstrip(" ")
        scanner = Scanner(item, line, offset=1 + len(text) - len(item))

        # Nested array as list item
        if item.startswith("["):
            header = scanner.parse_array_header()
            return self.parse_array_body(line, scanner, header, line.indent)

        # Primitive value
        if find_unquoted(item, ":") == -1:
            return self.parse_value(scanner)

        return self.parse_list_item_object(line, item, scanner)

    def parse_list_item_object(self, line: ParsedLine, item: str, scanner: Scanner) -> dict:
        """Decode an object whose first field sits on the hyphen line."""
        self.enter(line)
        sibling_indent = line.indent + self.options.indent
        result: dict = {}
        self.parse_field(line, scanner, sibling_indent, result, on_hyphen=True)

        first_is_header = "[" in item and "]" in item and item.endswith(":")
        while True:
            nxt = self.peek()
            if not self._item_continues(line, first_is_header, nxt):
                break
            if nxt.indent != sibling_indent or _is_list_item(nxt.content):
                self.skip_orphan(nxt)
                continue
            self.consume_array_line(nxt)
            self.parse_field(nxt, Scanner(nxt.content, nxt), sibling_indent, result)

        self.leave()
        return result

    def _item_continues(
        self, item_line: ParsedLine, first_is_header: bool, nxt: ParsedLine | None
    ) -> bool:
        """
        Decide whether ``nxt`` still belongs to the list item at ``item_line``.

        Deeper plain lines continue the item. A deeper hyphen line continues
        it only when the item's first line is an array header; otherwise it
        belongs to whatever encloses the item.
        """
        if nxt is None or nxt.indent <= item_line.indent:
            return False
        if _is_list_item(nxt.content):
            return first_is_header
        return True
