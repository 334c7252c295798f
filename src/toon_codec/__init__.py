"""
TOON (Token-Oriented Object Notation) codec - Python Implementation

A compact, indentation-based text format covering the JSON data model.
Arrays of uniform objects collapse into tables, primitive arrays into one
delimited line.

Usage:
    import toon_codec

    # Encode Python data to TOON
    data = {"name": "Alice", "age": 30}
    encoded = toon_codec.encode(data)

    # Decode TOON to Python data
    decoded = toon_codec.decode(encoded)

    # With options
    from toon_codec import EncodeOptions, DecodeOptions

    encoded = toon_codec.encode(data, EncodeOptions(indent=4, delimiter="|"))
    decoded = toon_codec.decode(text, DecodeOptions(strict=False, expand_paths="safe"))
"""

import logging

__version__ = "1.1.0"

from .decode import decode, decode_into, decode_lines, load
from .encode import dump, encode, encode_lines
from .errors import DecodeError, EncodeError, ToonError
from .normalize import normalize
from .types import DecodeOptions, EncodeOptions, JsonValue

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Version
    "__version__",
    # Main API
    "encode",
    "encode_lines",
    "dump",
    "decode",
    "decode_lines",
    "decode_into",
    "load",
    "normalize",
    # Options
    "EncodeOptions",
    "DecodeOptions",
    # Errors
    "ToonError",
    "EncodeError",
    "DecodeError",
    # Types
    "JsonValue",
]
