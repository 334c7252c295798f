"""Single-line token scanner used by the structural decoder."""

from .errors import DecodeError
from .primitives import parse_string_literal
from .string_utils import split_by_delimiter, unescape_string
from .types import ArrayHeader, ParsedLine

# Characters that end an unquoted key
KEY_TERMINATORS = frozenset(":[ \t")

# Delimiter characters allowed inside the length brackets
HEADER_DELIMITERS = frozenset(",\t|")

DIGITS = frozenset("0123456789")


class Scanner:
    """Character cursor over the content of one line."""

    def __init__(self, text: str, line: ParsedLine | None = None, offset: int = 0):
        self.text = text
        self.pos = 0
        self.line = line
        # Column of text[0] within the raw line, minus one
        self.offset = offset if line is None else offset + line.indent

    def peek(self) -> str:
        """Return the current character, or "" at the end."""
        if self.pos < len(self.text):
            return self.text[self.pos]
        return ""

    def advance(self) -> str:
        """Consume and return the current character."""
        char = self.peek()
        if char:
            self.pos += 1
        return char

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def skip_whitespace(self) -> None:
        while self.peek() in (" ", "\t") and not self.at_end():
            self.pos += 1

    def rest(self) -> str:
        """Return the unconsumed text, stripped of surrounding spaces."""
        return self.text[self.pos :].strip(" ")

    def expect(self, char: str) -> None:
        """Consume ``char`` after optional whitespace, or raise."""
        self.skip_whitespace()
        if self.peek() != char:
            found = self.peek() or "end of line"
            raise self.error(f"expected '{char}', got '{found}'", token=self.peek())
        self.pos += 1

    def error(self, message: str, token: str = "", column: int | None = None) -> DecodeError:
        """Build a DecodeError positioned at the cursor."""
        if column is None:
            column = self.pos
        if self.line is None:
            return DecodeError(message, column=self.offset + column + 1, token=token)
        return DecodeError(
            message,
            line=self.line.line_number,
            column=self.offset + column + 1,
            token=token,
            context=self.line.raw,
        )

    def parse_quoted(self) -> str:
        """Parse a quoted string at the cursor and return its unescaped value."""
        start = self.pos
        if self.peek() != '"':
            raise self.error("expected opening quote", token=self.peek())
        self.pos += 1
        while not self.at_end():
            char = self.text[self.pos]
            if char == "\\":
                self.pos += 2
                continue
            if char == '"':
                self.pos += 1
                raw = self.text[start + 1 : self.pos - 1]
                try:
                    return unescape_string(raw)
                except DecodeError as exc:
                    raise self.error(exc.message, token=exc.token, column=start) from exc
            self.pos += 1
        raise self.error(
            "unterminated string: missing closing quote",
            token=self.text[start:],
            column=start,
        )

    def parse_key(self) -> tuple[str, bool]:
        """
        Parse a quoted or bare key.

        Bare keys run up to ':', '[' or whitespace.

        Returns:
            ``(key, was_quoted)``.
        """
        self.skip_whitespace()
        if self.peek() == '"':
            return self.parse_quoted(), True

        start = self.pos
        while not self.at_end() and self.text[self.pos] not in KEY_TERMINATORS:
            self.pos += 1
        key = self.text[start : self.pos]
        if not key:
            raise self.error("expected key", token=self.peek())
        return key, False

    def parse_array_header(self) -> ArrayHeader:
        """
        Parse ``[marker? digits? delim?]{fields}?:`` at the cursor.

        The cursor must sit on the opening bracket. On return it sits at
        the end of the line and ``ArrayHeader.rest`` holds the content after
        the colon.
        """
        bracket = self.pos
        self.expect("[")

        # Optional non-numeric length marker, e.g. "#"
        while (
            not self.at_end()
            and self.peek() != "]"
            and self.peek() not in DIGITS
            and self.peek() not in HEADER_DELIMITERS
        ):
            self.pos += 1

        digits_start = self.pos
        while not self.at_end() and self.peek() in DIGITS:
            self.pos += 1
        digits = self.text[digits_start : self.pos]
        length = int(digits) if digits else None

        delimiter = ","
        if self.peek() in HEADER_DELIMITERS and not self.at_end():
            delimiter = self.advance()

        if self.peek() != "]":
            raise self.error(
                "malformed array header",
                token=self.text[bracket : self.pos + 1],
                column=bracket,
            )
        self.pos += 1

        fields: list[str] = []
        tabular = False
        if self.peek() == "{":
            tabular = True
            fields = self._parse_fields(delimiter)

        self.expect(":")
        header = ArrayHeader(
            length=length,
            delimiter=delimiter,
            fields=fields,
            tabular=tabular,
            rest=self.rest(),
        )
        self.pos = len(self.text)
        return header

    def _parse_fields(self, delimiter: str) -> list[str]:
        """Parse a ``{a,b,"c d"}`` field list at the cursor."""
        brace = self.pos
        self.pos += 1
        in_quotes = False
        while not self.at_end():
            char = self.text[self.pos]
            if char == "\\" and in_quotes:
                self.pos += 2
                continue
            if char == '"':
                in_quotes = not in_quotes
            elif char == "}" and not in_quotes:
                break
            self.pos += 1
        if self.at_end():
            raise self.error("unterminated field list in array header", column=brace)

        body = self.text[brace + 1 : self.pos]
        self.pos += 1

        fields = []
        for raw in split_by_delimiter(body, delimiter):
            if not raw:
                raise self.error("empty field name in array header", token=body, column=brace)
            if raw.startswith('"'):
                try:
                    fields.append(parse_string_literal(raw))
                except DecodeError as exc:
                    raise self.error(exc.message, token=raw, column=brace) from exc
            else:
                fields.append(raw)
        return fields
