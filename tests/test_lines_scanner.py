"""Tests for line preprocessing and the single-line scanner."""

import sys
from pathlib import Path

import pytest

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from toon_codec.errors import DecodeError
from toon_codec.lines import measure_indent, parse_lines, split_lines, validate_indentation
from toon_codec.scanner import Scanner
from toon_codec.writer import LineWriter


class TestLines:
    """Test line splitting and indentation measurement."""

    def test_measure_indent(self):
        assert measure_indent("    a") == (4, 4)
        assert measure_indent("\ta") == (4, 1)
        assert measure_indent("a") == (0, 0)

    def test_parse_lines(self):
        lines = parse_lines(["a:", "  b: 1  ", "", "   "])
        assert len(lines) == 2
        assert lines[0].content == "a:"
        assert lines[1].content == "b: 1"
        assert lines[1].indent == 2
        assert lines[1].line_number == 2

    def test_blank_lines_kept_inside(self):
        lines = split_lines("a: 1\n\nb: 2")
        assert [line.is_blank for line in lines] == [False, True, False]

    def test_carriage_returns_dropped(self):
        lines = split_lines("a: 1\r\nb: 2\r")
        assert [line.raw for line in lines] == ["a: 1", "b: 2"]

    def test_validate_tabs(self):
        with pytest.raises(DecodeError) as exc_info:
            validate_indentation(split_lines("a:\n  \tb: 1"), 2)
        assert exc_info.value.line == 2
        assert exc_info.value.column == 3

    def test_validate_multiple(self):
        with pytest.raises(DecodeError, match="not a multiple of 4"):
            validate_indentation(split_lines("a:\n  b: 1"), 4)

    def test_validate_ignores_blank_lines(self):
        validate_indentation(split_lines("a:\n   \n  b: 1"), 2)


class TestScanner:
    """Test key and array header scanning."""

    def test_bare_key(self):
        scanner = Scanner("name: Alice")
        assert scanner.parse_key() == ("name", False)
        assert scanner.peek() == ":"

    def test_quoted_key(self):
        scanner = Scanner('"a b\\"c": 1')
        assert scanner.parse_key() == ('a b"c', True)

    def test_key_stops_at_bracket(self):
        scanner = Scanner("items[2]: a,b")
        assert scanner.parse_key() == ("items", False)
        assert scanner.peek() == "["

    def test_missing_key(self):
        with pytest.raises(DecodeError, match="expected key"):
            Scanner(": 1").parse_key()

    def test_inline_header(self):
        scanner = Scanner("[3]: a,b,c")
        header = scanner.parse_array_header()
        assert header.length == 3
        assert header.delimiter == ","
        assert header.fields == []
        assert not header.tabular
        assert header.rest == "a,b,c"
        assert scanner.at_end()

    def test_tabular_header(self):
        header = Scanner("[2|]{id|name}:").parse_array_header()
        assert header.length == 2
        assert header.delimiter == "|"
        assert header.fields == ["id", "name"]
        assert header.tabular
        assert header.rest == ""

    def test_marker_and_tab(self):
        header = Scanner("[#4\t]: a\tb").parse_array_header()
        assert header.length == 4
        assert header.delimiter == "\t"

    def test_explicit_comma(self):
        header = Scanner("[2,]: a,b").parse_array_header()
        assert header.delimiter == ","

    def test_malformed_header(self):
        with pytest.raises(DecodeError, match="malformed array header"):
            Scanner("[2x]: a").parse_array_header()

    def test_missing_colon(self):
        with pytest.raises(DecodeError, match="expected ':'"):
            Scanner("[2] a").parse_array_header()

    def test_unterminated_fields(self):
        with pytest.raises(DecodeError, match="unterminated field list"):
            Scanner("[2]{a,b:").parse_array_header()

    def test_error_column_includes_indentation(self):
        line = split_lines("a:\n    [2x]: 1")[1]
        with pytest.raises(DecodeError) as exc_info:
            Scanner(line.content, line).parse_array_header()
        assert exc_info.value.line == 2
        assert exc_info.value.column == 5
        assert exc_info.value.context == "    [2x]: 1"


class TestLineWriter:
    """Test the output accumulator."""

    def test_push(self):
        writer = LineWriter(2)
        writer.push(0, "a:")
        writer.push(1, "b: 1")
        assert writer.to_string() == "a:\n  b: 1"
        assert len(writer) == 2
