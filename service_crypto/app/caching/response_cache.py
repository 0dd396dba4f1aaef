"""
In-memory response cache with freshness windows and last-known-good retention.
"""

from __future__ import annotations

import asyncio
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, TYPE_CHECKING

from shared.errors import ProducerFailure
from shared.logging import get_logger

from .envelope import Envelope

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_FRESHNESS_SECONDS = 300.0
SWEEP_AGE_FACTOR = 2

Producer = Callable[[], Awaitable[Any]]
Clock = Callable[[], float]


def resource_label(key: str) -> str:
    """Metric label for a cache key: the resource family before any ``:`` arguments."""
    return key.split(":", 1)[0]


@dataclass(frozen=True)
class CacheEntry:
    """Last successful envelope for a key and when it was stored."""

    key: str
    payload: Envelope
    stored_at: float

    def age(self, now: float) -> float:
        return now - self.stored_at


@dataclass(frozen=True)
class CacheEntryStatus:
    """Read-only view of one entry, as reported by ``ResponseCache.inspect``."""

    key: str
    age_seconds: int
    remaining_fresh_seconds: int
    is_expired: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "ageSeconds": self.age_seconds,
            "remainingFreshSeconds": self.remaining_fresh_seconds,
            "expired": self.is_expired,
        }


class ResponseCache:
    """Memoizes producer results per key.

    A stored envelope is returned unchanged while it is younger than the
    freshness window. Past that, the producer is awaited again; a failed
    refresh raises ``ProducerFailure`` and leaves the previous entry in place
    so callers can still fall back to it via ``get_stale``. Entries are only
    removed by ``invalidate_all`` or ``sweep``.

    Concurrent misses on the same key each call the producer unless
    ``single_flight`` is enabled, in which case they share one in-flight call.
    """

    def __init__(
        self,
        freshness_seconds: float = DEFAULT_FRESHNESS_SECONDS,
        *,
        clock: Clock = time.time,
        metrics: Optional["MetricsCollector"] = None,
        single_flight: bool = False,
    ) -> None:
        if freshness_seconds <= 0:
            raise ValueError("freshness_seconds must be positive")
        self.freshness_seconds = freshness_seconds
        self.single_flight = single_flight
        self.metrics = metrics
        self.logger = get_logger("crypto.cache")
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, "asyncio.Future[Envelope]"] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def now(self) -> float:
        return self._clock()

    async def get_or_refresh(
        self,
        key: str,
        producer: Producer,
        freshness_seconds: Optional[float] = None,
    ) -> Envelope:
        """Return a fresh envelope for ``key``, calling ``producer`` on a miss."""
        window = self.freshness_seconds if freshness_seconds is None else freshness_seconds
        entry = self._entries.get(key)

        if entry is not None and entry.age(self._clock()) < window:
            self._count("cache_hits_total", resource=resource_label(key))
            self.logger.debug("Cache hit", key=key)
            return entry.payload

        self._count("cache_misses_total", resource=resource_label(key))
        self.logger.debug("Cache miss", key=key, has_stale=entry is not None)

        if not self.single_flight:
            return await self._refresh(key, producer)

        pending = self._inflight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._refresh(key, producer))
            self._inflight[key] = pending
            pending.add_done_callback(lambda done, key=key: self._release_inflight(key, done))
        else:
            self.logger.debug("Joining in-flight refresh", key=key)
        return await asyncio.shield(pending)

    def get_stale(self, key: str) -> Optional[Envelope]:
        """Return the stored envelope for ``key`` regardless of its age."""
        entry = self._entries.get(key)
        return entry.payload if entry is not None else None

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def invalidate_all(self) -> int:
        """Drop every entry and return how many were removed."""
        entries, self._entries = self._entries, {}
        removed = len(entries)
        self._set_size_gauge()
        self.logger.info("Cache cleared", removed=removed)
        return removed

    def inspect(self) -> List[CacheEntryStatus]:
        """Snapshot of every entry's age; never refreshes or mutates."""
        now = self._clock()
        window = self.freshness_seconds
        statuses = []
        for key, entry in list(self._entries.items()):
            age = entry.age(now)
            age_seconds = max(0, math.floor(age))
            statuses.append(
                CacheEntryStatus(
                    key=key,
                    age_seconds=age_seconds,
                    remaining_fresh_seconds=max(0, math.floor(window) - age_seconds),
                    is_expired=age >= window,
                )
            )
        return statuses

    def sweep(self, max_age_seconds: Optional[float] = None) -> int:
        """Remove entries older than ``max_age_seconds`` (twice the window by default).

        This also removes the last-known-good payload for those keys, so a
        later refresh failure for them surfaces as a cold failure.
        """
        threshold = SWEEP_AGE_FACTOR * self.freshness_seconds if max_age_seconds is None else max_age_seconds
        now = self._clock()
        expired = [key for key, entry in list(self._entries.items()) if entry.age(now) > threshold]
        for key in expired:
            self._entries.pop(key, None)

        removed = len(expired)
        if removed:
            self._count("cache_swept_total", amount=removed)
            self._set_size_gauge()
            self.logger.info("Cache cleanup removed expired entries", removed=removed, keys=expired)
        return removed

    async def _refresh(self, key: str, producer: Producer) -> Envelope:
        """Call the producer and store its result; never touches the entry on failure."""
        started = time.perf_counter()
        try:
            data = await producer()
        except Exception as exc:
            self._count("cache_refresh_failures_total", resource=resource_label(key))
            self.logger.warning(
                "Cache refresh failed",
                key=key,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise ProducerFailure(key, exc) from exc
        finally:
            self._observe_producer(key, time.perf_counter() - started)

        stored_at = self._clock()
        envelope = Envelope(data=data, generated_at=datetime.fromtimestamp(stored_at, tz=timezone.utc))
        self._entries[key] = CacheEntry(key=key, payload=envelope, stored_at=stored_at)
        self._set_size_gauge()
        self.logger.info("Cache refreshed", key=key, records=envelope.count)
        return envelope

    def _release_inflight(self, key: str, done: "asyncio.Future[Envelope]") -> None:
        if self._inflight.get(key) is done:
            del self._inflight[key]
        # Mark the outcome as retrieved even if every waiter was cancelled
        if not done.cancelled():
            done.exception()

    def _count(self, metric_name: str, amount: float = 1, **labels) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.increment_counter(metric_name, amount, **labels)
        except Exception as exc:  # pragma: no cover - metrics failures should never break caching
            self.logger.debug("Failed to record cache metric", metric=metric_name, error=str(exc))

    def _observe_producer(self, key: str, duration: float) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.observe_histogram("producer_duration_seconds", duration, resource=resource_label(key))
        except Exception as exc:  # pragma: no cover
            self.logger.debug("Failed to record producer duration", error=str(exc))

    def _set_size_gauge(self) -> None:
        if not self.metrics:
            return
        try:
            self.metrics.set_gauge("cache_entries", len(self._entries))
        except Exception as exc:  # pragma: no cover
            self.logger.debug("Failed to record cache size", error=str(exc))
