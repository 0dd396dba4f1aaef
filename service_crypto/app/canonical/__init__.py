"""
Numeric canonicalization for scraped market figures.

Producers use these helpers to turn display text into numbers and back;
the response cache never touches them directly.
"""

from .magnitudes import (
    BILLION,
    MILLION,
    TRILLION,
    detect_scale,
    format_percent,
    format_price,
    format_signed_percent,
    is_unparsable,
    number_to_text,
    parse_decimal,
    text_to_number,
)

__all__ = [
    "BILLION",
    "MILLION",
    "TRILLION",
    "detect_scale",
    "format_percent",
    "format_price",
    "format_signed_percent",
    "is_unparsable",
    "number_to_text",
    "parse_decimal",
    "text_to_number",
]
