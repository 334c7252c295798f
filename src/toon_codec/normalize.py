"""Conversion between host Python values and the TOON value model."""

import dataclasses
import math
import numbers
from collections import OrderedDict
from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from .errors import DecodeError
from .primitives import INT64_MAX, INT64_MIN
from .types import JsonValue


def normalize(value: Any) -> JsonValue:
    """
    Normalize a value for JSON compatibility.

    Converts:
    - Integers outside the int64 range to floats
    - NaN and infinities to None, -0.0 to 0, whole floats to ints
    - Mappings to dicts with string keys (OrderedDict stays ordered)
    - Lists, tuples and sets to lists (sets sorted by string form)
    - Dataclass instances to dicts
    - Date/time objects to ISO strings
    - Anything else to None

    Args:
        value: The value to normalize.

    Returns:
        A JSON-compatible value.
    """
    if value is None:
        return None

    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        return value

    if isinstance(value, numbers.Integral):
        value = int(value)
        if INT64_MIN <= value <= INT64_MAX:
            return value
        try:
            return normalize_float(float(value))
        except OverflowError:
            return None

    if isinstance(value, (numbers.Real, Decimal)):
        return normalize_float(float(value))

    if isinstance(value, OrderedDict):
        return OrderedDict((str(k), normalize(v)) for k, v in value.items())

    if isinstance(value, Mapping):
        return {str(k): normalize(v) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        return [normalize(v) for v in value]

    if isinstance(value, (set, frozenset)):
        return [normalize(v) for v in sorted(value, key=str)]

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: normalize(getattr(value, f.name)) for f in dataclasses.fields(value)}

    # Date, time and datetime objects
    if hasattr(value, "isoformat"):
        return value.isoformat()

    return None


def normalize_float(value: float) -> int | float | None:
    """Map NaN/infinity to None and whole floats in int64 range to int."""
    if math.isnan(value) or math.isinf(value):
        return None
    # Covers -0.0 as well
    if value == 0.0:
        return 0
    if value.is_integer() and INT64_MIN <= value < 2**63:
        return int(value)
    return value


def assign_into(result: JsonValue, target: Any) -> Any:
    """
    Copy a decoded value into a caller-provided container.

    A dict target is cleared and updated from a decoded object; a list
    target is replaced slice-wise by a decoded array.

    Raises:
        DecodeError: If the decoded shape does not fit the target.
    """
    if isinstance(target, dict):
        if not isinstance(result, dict):
            raise DecodeError("cannot assign non-object to object target")
        target.clear()
        target.update(result)
        return target

    if isinstance(target, list):
        if not isinstance(result, list):
            raise DecodeError("cannot assign non-array to array target")
        target[:] = result
        return target

    raise DecodeError(f"unsupported target type {type(target).__name__}")
