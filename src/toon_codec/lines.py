"""Line preprocessing: raw text to indentation-tagged lines."""

from collections.abc import Iterable

from .errors import DecodeError
from .types import ParsedLine

TAB_WIDTH = 4


def measure_indent(raw: str) -> tuple[int, int]:
    """
    Measure the leading whitespace of a line.

    Returns:
        ``(width, chars)``: the indentation width, with tabs counted as
        TAB_WIDTH columns, and the number of leading whitespace characters.
    """
    width = 0
    chars = 0
    for char in raw:
        if char == " ":
            width += 1
        elif char == "\t":
            width += TAB_WIDTH
        else:
            break
        chars += 1
    return width, chars


def parse_lines(lines: Iterable[str]) -> list[ParsedLine]:
    """
    Parse raw lines into ParsedLine objects.

    Trailing carriage returns are dropped and trailing blank lines are
    removed from the result.
    """
    parsed = []
    for number, raw in enumerate(lines, start=1):
        if raw.endswith("\r"):
            raw = raw[:-1]
        width, chars = measure_indent(raw)
        content = raw[chars:].rstrip(" ")
        parsed.append(
            ParsedLine(
                raw=raw,
                content=content,
                indent=width,
                line_number=number,
                is_blank=not content,
            )
        )

    while parsed and parsed[-1].is_blank:
        parsed.pop()

    return parsed


def split_lines(text: str) -> list[ParsedLine]:
    """Split text on newlines and parse the result."""
    return parse_lines(text.split("\n"))


def validate_indentation(lines: list[ParsedLine], indent_size: int) -> None:
    """
    Check strict-mode indentation rules.

    Raises:
        DecodeError: If an indentation contains a tab, or a non-zero
            indentation is not a multiple of ``indent_size``.
    """
    for line in lines:
        if line.is_blank:
            continue

        _, chars = measure_indent(line.raw)
        if "\t" in line.raw[:chars]:
            raise DecodeError(
                "tab characters not allowed in indentation (strict mode)",
                line=line.line_number,
                column=line.raw.index("\t") + 1,
                context=line.raw,
            )

        if line.indent % indent_size != 0:
            raise DecodeError(
                f"indentation {line.indent} is not a multiple of {indent_size} (strict mode)",
                line=line.line_number,
                column=line.indent + 1,
                context=line.raw,
            )
