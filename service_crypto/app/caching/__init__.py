"""
Response caching package.

Holds the last successful payload per logical resource key, serves it
while fresh, keeps it as a fallback after it goes stale, and reclaims it
once it is older than twice the freshness window.
"""

from .envelope import Envelope, format_iso, serialize_payload, utc_now_iso
from .response_cache import CacheEntry, CacheEntryStatus, ResponseCache, resource_label
from .sweeper import CacheSweeper

__all__ = [
    "CacheEntry",
    "CacheEntryStatus",
    "CacheSweeper",
    "Envelope",
    "ResponseCache",
    "format_iso",
    "resource_label",
    "serialize_payload",
    "utc_now_iso",
]
