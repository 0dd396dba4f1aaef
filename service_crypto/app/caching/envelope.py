"""
Response envelopes stored by the cache and returned to API consumers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def format_iso(dt: datetime) -> str:
    """Format datetime as ISO-8601 with millisecond precision."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_now_iso() -> str:
    return format_iso(datetime.now(timezone.utc))


def serialize_payload(value: Any) -> Any:
    """Convert records (anything with ``to_dict``) into JSON-friendly data."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [serialize_payload(item) for item in value]
    if isinstance(value, dict):
        return {key: serialize_payload(item) for key, item in value.items()}
    return value


@dataclass(frozen=True)
class Envelope:
    """A successful producer result plus the moment it was generated."""

    data: Any
    generated_at: datetime
    status: str = "success"

    @property
    def count(self) -> Optional[int]:
        """Number of records for list-shaped data, otherwise None."""
        if isinstance(self.data, (list, tuple)):
            return len(self.data)
        return None

    @property
    def timestamp(self) -> str:
        return format_iso(self.generated_at)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "status": self.status,
            "timestamp": self.timestamp,
            "data": serialize_payload(self.data),
        }
        if self.count is not None:
            payload["count"] = self.count
        return payload
