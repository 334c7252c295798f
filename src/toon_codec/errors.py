"""Exceptions raised by the TOON encoder and decoder."""

from typing import Any


class ToonError(ValueError):
    """Base class for all TOON codec errors."""


class EncodeError(ToonError):
    """Raised when a value cannot be encoded.

    Covers unsupported types, invalid numbers, invalid options and key
    collisions found while flattening paths.
    """

    def __init__(self, message: str, value: Any = None):
        self.message = message
        self.value = value
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.message}: {self.value!r}"
        return self.message


class DecodeError(ToonError):
    """Raised when TOON text cannot be decoded.

    Attributes:
        message: Human readable description.
        line: 1-based line number (0 when unknown).
        column: 1-based column (0 when unknown).
        token: The offending token, if any.
        context: The surrounding source line(s), if any.
    """

    def __init__(
        self,
        message: str,
        line: int = 0,
        column: int = 0,
        token: str = "",
        context: str = "",
    ):
        self.message = message
        self.line = line
        self.column = column
        self.token = token
        self.context = context
        super().__init__(str(self))

    def __str__(self) -> str:
        msg = self.message
        if self.line > 0 and self.column > 0:
            msg = f"{msg} at line {self.line}, column {self.column}"
        elif self.line > 0:
            msg = f"{msg} at line {self.line}"
        elif self.column > 0:
            msg = f"{msg} at column {self.column}"
        if self.token:
            msg = f"{msg} (token: '{self.token}')"
        if self.context:
            msg = f"{msg}\n\nContext:\n{self.context}"
        return msg
