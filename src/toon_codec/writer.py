"""Indentation-aware line accumulator used by the encoder."""


class LineWriter:
    """Collects output lines, indenting each by ``depth`` levels."""

    def __init__(self, indent: int = 2):
        self.indent = indent
        self.lines: list[str] = []

    def push(self, depth: int, content: str) -> None:
        """Append a line at the given depth."""
        self.lines.append(" " * (self.indent * depth) + content)

    def to_string(self) -> str:
        return "\n".join(self.lines)

    def __len__(self) -> int:
        return len(self.lines)
