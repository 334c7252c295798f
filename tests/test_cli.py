"""Tests for the toon-codec command line."""

import io
import json
import sys
from pathlib import Path

# Add src to path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from toon_codec.cli import main


class TestEncodeCommand:
    """Test JSON to TOON conversion."""

    def test_encode_file_keeps_key_order(self, tmp_path, capsys):
        source = tmp_path / "in.json"
        source.write_text('{"name": "Alice", "age": 30}', encoding="utf-8")
        assert main(["encode", str(source)]) == 0
        assert capsys.readouterr().out == "name: Alice\nage: 30\n"

    def test_encode_sorted(self, tmp_path, capsys):
        source = tmp_path / "in.json"
        source.write_text('{"name": "Alice", "age": 30}', encoding="utf-8")
        assert main(["encode", str(source), "--sort-keys"]) == 0
        assert capsys.readouterr().out == "age: 30\nname: Alice\n"

    def test_encode_stdin_to_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO('{"tags": ["a", "b"]}'))
        target = tmp_path / "out.toon"
        assert main(["encode", "-o", str(target), "--delimiter", "pipe"]) == 0
        assert target.read_text(encoding="utf-8") == "tags[2|]: a|b\n"

    def test_encode_options(self, tmp_path, capsys):
        source = tmp_path / "in.json"
        source.write_text('{"a": {"b": {"c": [1]}}}', encoding="utf-8")
        assert main(["encode", str(source), "--flatten", "--length-marker", "#"]) == 0
        assert capsys.readouterr().out == "a.b.c[#1]: 1\n"

    def test_invalid_json(self, tmp_path, capsys):
        source = tmp_path / "in.json"
        source.write_text("{not json", encoding="utf-8")
        assert main(["encode", str(source)]) == 1
        assert "invalid JSON input" in capsys.readouterr().err

    def test_strict_collision(self, tmp_path, capsys):
        source = tmp_path / "in.json"
        source.write_text('{"a.b": 1, "a": {"b": 2}}', encoding="utf-8")
        assert main(["encode", str(source), "--flatten", "--strict-collisions"]) == 1
        assert "key collision" in capsys.readouterr().err


class TestDecodeCommand:
    """Test TOON to JSON conversion."""

    def test_decode_file(self, tmp_path, capsys):
        source = tmp_path / "in.toon"
        source.write_text("users[2]{age,name}:\n  30,Alice\n  25,Bob\n", encoding="utf-8")
        assert main(["decode", str(source), "--json-indent", "0"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data == {"users": [{"age": 30, "name": "Alice"}, {"age": 25, "name": "Bob"}]}

    def test_decode_expand_paths(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO("a.b.c: 1"))
        assert main(["decode", "--expand-paths"]) == 0
        assert json.loads(capsys.readouterr().out) == {"a": {"b": {"c": 1}}}

    def test_decode_error_exit_status(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO("items[3]: 1,2"))
        assert main(["decode"]) == 1
        assert "length mismatch" in capsys.readouterr().err

    def test_decode_lenient(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "stdin", io.StringIO("items[3]: 1,2"))
        assert main(["decode", "--lenient"]) == 0
        assert json.loads(capsys.readouterr().out) == {"items": [1, 2]}

    def test_missing_file(self, tmp_path, capsys):
        assert main(["decode", str(tmp_path / "missing.toon")]) == 1
        assert "error:" in capsys.readouterr().err
