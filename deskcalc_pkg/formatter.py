"""Number formatting and display-text parsing.

This module handles:
- Canonical rendering of numeric results for the main display
- Percent-marked display text
- Reading display text back into numbers (percent-aware)
"""

from __future__ import annotations

import math

from .config import (
    FIXED_FRACTION_DIGITS,
    INTEGER_SNAP_TOLERANCE,
    PERCENT_MARKER,
    SCIENTIFIC_FRACTION_DIGITS,
    SCIENTIFIC_LOWER_BOUND,
    SCIENTIFIC_UPPER_BOUND,
)
from .types import InvalidDomainError, NumericParseError


def _strip_fraction_zeros(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _format_scientific(value: float) -> str:
    mantissa, exponent = f"{value:.{SCIENTIFIC_FRACTION_DIGITS}E}".split("E")
    return f"{_strip_fraction_zeros(mantissa)}E{int(exponent)}"


def _format_fixed(value: float) -> str:
    text = _strip_fraction_zeros(f"{value:.{FIXED_FRACTION_DIGITS}f}")
    return "0" if text == "-0" else text


def format_number(value: float) -> str:
    """Format a numeric value as canonical display text.

    Rules, first match wins:
    1. Values within INTEGER_SNAP_TOLERANCE of an integer render as that
       integer ("2" for 2.0000000000004).
    2. Magnitudes below SCIENTIFIC_LOWER_BOUND or above
       SCIENTIFIC_UPPER_BOUND render in scientific notation ("1.5E8").
    3. Everything else renders in fixed notation with trailing zeros trimmed.

    Args:
        value: Finite number to format

    Returns:
        Display string

    Raises:
        InvalidDomainError: If value is NaN or infinite
    """
    value = float(value)
    if not math.isfinite(value):
        raise InvalidDomainError(f"Cannot display non-finite value {value!r}", "NOT_FINITE")

    nearest = round(value)
    if abs(value - nearest) <= INTEGER_SNAP_TOLERANCE:
        return str(int(nearest))

    magnitude = abs(value)
    if magnitude < SCIENTIFIC_LOWER_BOUND or magnitude > SCIENTIFIC_UPPER_BOUND:
        return _format_scientific(value)
    return _format_fixed(value)


def format_percent(value: float) -> str:
    """Format a value followed by the percent marker ("50%", "12.5%")."""
    return format_number(value) + PERCENT_MARKER


def is_percent_text(text: str) -> bool:
    return text.rstrip().endswith(PERCENT_MARKER)


def parse_number(text: str) -> float:
    """Parse plain display text (no percent marker) into a float.

    Raises:
        NumericParseError: If text is empty, not numeric, or not finite
    """
    stripped = text.strip() if text else ""
    try:
        value = float(stripped)
    except ValueError:
        raise NumericParseError(f"Not a number: {text!r}") from None
    if not math.isfinite(value):
        raise NumericParseError(f"Not a finite number: {text!r}")
    return value


def parse_display_value(text: str) -> float:
    """Parse display text, reading a trailing percent marker as /100.

    Args:
        text: Display text such as "12.5", "50%" or "1.5E8"

    Returns:
        Numeric value ("50%" -> 0.5)

    Raises:
        NumericParseError: If the numeric part cannot be parsed
    """
    if is_percent_text(text):
        return parse_number(text.rstrip()[: -len(PERCENT_MARKER)]) / 100
    return parse_number(text)
