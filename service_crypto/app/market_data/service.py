"""
Market data service: cached producers plus the stale-on-error fallback policy.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from shared.errors import EmptyResult, ProducerFailure
from shared.logging import get_logger, set_cache_key

from service_crypto.app.caching import CacheEntryStatus, Envelope, ResponseCache
from service_crypto.app.caching.response_cache import Producer, resource_label

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from service_crypto.app.adapters import CoinrankingClient, LiveCoinWatchClient
    from shared.metrics import MetricsCollector


STALE_FALLBACK_MESSAGE = "Serving cached data due to fetch error"


def payload_is_empty(data: Any) -> bool:
    """True for an empty list or a record that reports itself empty."""
    if data is None:
        return True
    if isinstance(data, (list, tuple)):
        return len(data) == 0
    return bool(getattr(data, "is_empty", False))


@dataclass(frozen=True)
class ServedResult:
    """An envelope plus whether it came from the stale-fallback path."""

    envelope: Envelope
    stale: bool = False
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return payload_is_empty(self.envelope.data)

    def to_dict(self) -> Dict[str, Any]:
        body = self.envelope.to_dict()
        if self.stale:
            body["message"] = STALE_FALLBACK_MESSAGE
        return body


class MarketDataService:
    """Serves scraped market data through the response cache.

    A refresh failure is absorbed whenever the cache still holds any entry
    for the key, no matter how old: the old envelope is served with the
    stale marker. Only a key with no entry at all lets the failure through.
    """

    def __init__(
        self,
        cache: ResponseCache,
        coinranking: "CoinrankingClient",
        livecoinwatch: "LiveCoinWatchClient",
        *,
        metrics: Optional["MetricsCollector"] = None,
    ) -> None:
        self.cache = cache
        self.coinranking = coinranking
        self.livecoinwatch = livecoinwatch
        self.metrics = metrics
        self.logger = get_logger("crypto.market_data")

    async def fetch(self, key: str, producer: Producer) -> ServedResult:
        """Return fresh or cached data for ``key``, falling back to stale data on failure."""
        set_cache_key(key)
        try:
            envelope = await self.cache.get_or_refresh(key, producer)
            return ServedResult(envelope=envelope)
        except ProducerFailure as exc:
            stale = self.cache.get_stale(key)
            if stale is None:
                self.logger.error("Producer failed with no cached fallback", key=key, error=exc.message)
                raise

            entry = self.cache.get_entry(key)
            self.logger.warning(
                "Serving stale cache entry after refresh failure",
                key=key,
                error=exc.message,
                age_seconds=round(entry.age(self.cache.now()), 3) if entry else None,
            )
            if self.metrics:
                self.metrics.increment_counter("cache_stale_served_total", resource=resource_label(key))
            return ServedResult(envelope=stale, stale=True, error=exc.message)
        finally:
            set_cache_key(None)

    async def fetch_non_empty(self, key: str, producer: Producer, not_found_message: str) -> ServedResult:
        result = await self.fetch(key, producer)
        if result.is_empty and not result.stale:
            self.logger.info("Producer returned no data", key=key)
            raise EmptyResult(not_found_message, details={"key": key})
        return result

    async def trending_coins(self) -> ServedResult:
        return await self.fetch_non_empty(
            "trending-coins", self.coinranking.fetch_trending_coins, "No trending coins found"
        )

    async def trending_categories(self) -> ServedResult:
        return await self.fetch_non_empty(
            "trending-categories", self.coinranking.fetch_trending_categories, "No trending categories found"
        )

    async def top_gainers(self) -> ServedResult:
        return await self.fetch_non_empty(
            "top-gainers", self.coinranking.fetch_top_gainers, "No top gainers found"
        )

    async def top_losers(self) -> ServedResult:
        return await self.fetch_non_empty(
            "top-losers", self.coinranking.fetch_top_losers, "No top losers found"
        )

    async def all_time_highs(self) -> ServedResult:
        return await self.fetch_non_empty(
            "all-time-highs", self.coinranking.fetch_all_time_highs, "No all-time highs data found"
        )

    async def btc_dominance(self) -> ServedResult:
        return await self.fetch_non_empty(
            "btc-dominance", self.coinranking.fetch_btc_dominance, "No BTC dominance data found"
        )

    async def coin_details(self, name: str, symbol: str) -> ServedResult:
        key = f"coin-details:{name.strip().lower()}:{symbol.strip().lower()}"
        producer = functools.partial(self.livecoinwatch.fetch_coin_details, name, symbol)
        return await self.fetch_non_empty(key, producer, f"No details found for {name} ({symbol})")

    def cache_status(self) -> List[CacheEntryStatus]:
        return self.cache.inspect()

    def clear_cache(self) -> int:
        return self.cache.invalidate_all()
