"""Conversion of point values to the three supported point types."""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INTEGER = re.compile(r"[+-]?[0-9]+")


class ConversionError(ValueError):
    """Raised when a value cannot be converted to the requested type."""


def _wrap_int64(value: int) -> int:
    value &= (1 << 64) - 1
    return value - (1 << 64) if value > _INT64_MAX else value


def convert_point_type(value: Any, value_type: str) -> int | float | str:
    """Convert a value to the point type named ``int``, ``float`` or ``string``."""
    if value_type == "int":
        return to_int64(value)
    if value_type == "float":
        return to_float64(value)
    if value_type == "string":
        return to_string(value)
    raise ConversionError("point value type must one of (int、float、string)")


def to_int64(value: Any) -> int:
    """Convert a value to a 64-bit signed integer."""
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, int):
        return _wrap_int64(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise ConversionError(f"cannot convert {value!r} to int64")
        return _wrap_int64(int(value))
    if isinstance(value, str):
        if not _INTEGER.fullmatch(value):
            raise ConversionError(f"parsing {value!r}: invalid syntax")
        result = int(value)
        if not _INT64_MIN <= result <= _INT64_MAX:
            raise ConversionError(f"parsing {value!r}: value out of range")
        return result
    raise ConversionError(f"{type(value).__name__} convert to int64 error")


def _parse_float(text: str) -> float:
    if not text or any(ch.isspace() or ch == "_" for ch in text):
        raise ConversionError(f"parsing {text!r}: invalid syntax")
    body = text.lstrip("+-").lower()
    try:
        if body.startswith("0x"):
            result = float.fromhex(text)
        else:
            result = float(text)
    except ValueError as exc:
        raise ConversionError(f"parsing {text!r}: invalid syntax") from exc
    if math.isinf(result) and "inf" not in body:
        raise ConversionError(f"parsing {text!r}: value out of range")
    return result


def to_float64(value: Any) -> float:
    """Convert a value to a 64-bit float."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return _parse_float(value)
    raise ConversionError(f"{type(value).__name__} convert to float64 error")


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return format(Decimal(repr(value)).normalize(), "f")


def to_string(value: Any) -> str:
    """Convert a value to its string form; floats never use exponent notation."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        return value
    raise ConversionError(f"{type(value).__name__} convert to string error")