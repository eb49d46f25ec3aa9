"""Numeric helpers for prices and sizes sent to and read from the exchange."""

from __future__ import annotations

import math

__all__ = ["round_to_decimals", "parse_float", "format_float", "float_to_wire"]

_WIRE_DECIMALS = 8
_WIRE_TOLERANCE = 1e-12


def _round_half_away(value: float) -> float:
    """Round to the nearest integer, halves away from zero, keeping the sign."""
    if not math.isfinite(value):
        return value
    whole = float(math.trunc(value))
    if abs(value - whole) >= 0.5:
        whole += math.copysign(1.0, value)
    return math.copysign(whole, value)


def _fixed(value: float, places: int) -> str:
    """Render ``value`` with a fixed number of decimals, naming non-finite values."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return f"{value:.{places}f}"


def _strict_float(text: str) -> float:
    """Parse a decimal literal strictly, raising ValueError on anything else."""
    if not isinstance(text, str) or not text or text != text.strip() or "_" in text:
        raise ValueError(f"invalid float literal: {text!r}")
    lowered = text.lower()
    try:
        result = float(text)
    except ValueError:
        if "0x" in lowered and "p" in lowered:
            try:
                result = float.fromhex(text)
            except (ValueError, OverflowError):
                raise ValueError(f"invalid float literal: {text!r}") from None
        else:
            raise ValueError(f"invalid float literal: {text!r}") from None
    if math.isinf(result) and "inf" not in lowered:
        raise ValueError(f"float literal out of range: {text!r}")
    return result


def round_to_decimals(value: float, decimals: int) -> float:
    """Round ``value`` to ``decimals`` places, halves away from zero."""
    scale = math.pow(10, decimals)
    return _round_half_away(value * scale) / scale


def parse_float(text: str) -> float:
    """Parse ``text`` as a float, returning 0.0 when it is not a valid number."""
    try:
        return _strict_float(text)
    except ValueError:
        return 0.0


def format_float(value: float) -> str:
    """Format ``value`` with six decimal places."""
    return _fixed(value, 6)


def float_to_wire(value: float) -> str:
    """Render ``value`` in the exchange's compact decimal form.

    Raises ValueError when eight decimals cannot represent the value exactly enough.
    """
    rounded = _fixed(value, _WIRE_DECIMALS)
    parsed = float(rounded)
    if abs(parsed - value) >= _WIRE_TOLERANCE:
        raise ValueError(f"float_to_wire causes rounding: {_fixed(value, 6)}")
    if rounded == "-0." + "0" * _WIRE_DECIMALS:
        rounded = "0." + "0" * _WIRE_DECIMALS
    return rounded.rstrip("0").rstrip(".")