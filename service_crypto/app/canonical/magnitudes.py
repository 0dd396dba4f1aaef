"""
Conversions between scraped financial text and numeric values.

Upstream pages render figures inconsistently ("$1.23 billion", "1.23B",
"+4.56%", "$43,250.12"). Everything here is a pure function: no state, no
I/O, and no exceptions for malformed input. Unparsable text comes back as
NaN so callers can decide whether to null the field or drop the record.
"""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Optional, Tuple

TRILLION = 1_000_000_000_000
BILLION = 1_000_000_000
MILLION = 1_000_000

# First match wins. Words and single-letter suffixes both match
# case-insensitively, as substrings anywhere in the text.
_SCALE_INDICATORS: Tuple[Tuple[str, str, int], ...] = (
    ("trillion", "T", TRILLION),
    ("billion", "B", BILLION),
    ("million", "M", MILLION),
)

_SCALE_WORDS: Tuple[Tuple[int, str], ...] = (
    (TRILLION, "trillion"),
    (BILLION, "billion"),
    (MILLION, "million"),
)

_NON_NUMERIC = re.compile(r"[^\d.\-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")


def is_unparsable(value: Optional[float]) -> bool:
    """Return True for the NaN sentinel (or a missing value)."""
    return value is None or (isinstance(value, float) and math.isnan(value))


def detect_scale(text: str) -> int:
    """Return the multiplier implied by a scale word or suffix in ``text``."""
    lowered = text.lower()
    for word, letter, multiplier in _SCALE_INDICATORS:
        if word in lowered or letter.lower() in lowered:
            return multiplier
    return 1


def parse_decimal(text: Optional[str]) -> float:
    """Parse a plain figure such as ``"$43,250.12"`` or ``"-4.56%"``.

    Only digits, decimal points and minus signs survive cleaning; the longest
    leading number of what remains is used. Returns NaN when nothing numeric
    is left.
    """
    if text is None:
        return math.nan

    cleaned = _NON_NUMERIC.sub("", str(text))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return math.nan
    return float(match.group(0))


def text_to_number(text: Optional[str]) -> float:
    """Convert magnitude text like ``"$1.23 billion"`` or ``"4.5M"`` to a float."""
    if text is None:
        return math.nan

    text = str(text)
    multiplier = detect_scale(text)
    value = parse_decimal(text)
    if math.isnan(value):
        return value
    return value * multiplier


def number_to_text(value: Optional[float], currency: str = "$") -> Optional[str]:
    """Render a magnitude with a scale word and at most two decimals.

    Tier boundaries are inclusive at their lower bound, so exactly one
    billion renders as ``"$1.00 billion"``. Values below a million are
    grouped with thousands separators instead.
    """
    if is_unparsable(value):
        return None

    for threshold, word in _SCALE_WORDS:
        if value >= threshold:
            return f"{currency}{value / threshold:.2f} {word}"

    grouped = f"{value:,.2f}"
    if "." in grouped:
        grouped = grouped.rstrip("0").rstrip(".")
    return f"{currency}{grouped}"


def format_signed_percent(value: Optional[float]) -> Optional[str]:
    """``4.561 -> "+4.56%"``, ``-1.2 -> "-1.20%"``."""
    if is_unparsable(value):
        return None
    if value >= 0:
        return f"+{value:.2f}%"
    return f"{value:.2f}%"


def format_percent(value: Optional[float]) -> Optional[str]:
    """Unsigned percentage with two decimals, e.g. BTC dominance."""
    if is_unparsable(value):
        return None
    return f"{value:.2f}%"


def format_price(value: Optional[float], decimals: Optional[int] = None) -> Optional[str]:
    """Prefix a price with ``$``.

    Without ``decimals`` the shortest exact representation is kept so that
    sub-cent prices (``0.00001234``) are not rounded away.
    """
    if is_unparsable(value):
        return None
    if decimals is not None:
        return f"${value:.{decimals}f}"
    if float(value).is_integer():
        return f"${int(value)}"
    return f"${format(Decimal(repr(float(value))), 'f')}"
