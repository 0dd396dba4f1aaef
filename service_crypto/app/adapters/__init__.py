"""
Upstream page adapters.

Each ``fetch_*`` coroutine is a cache producer: it downloads one page,
parses it into normalized records, and raises on transport, status, or
layout failures.
"""

from .coinranking_client import CoinrankingClient
from .livecoinwatch_client import LiveCoinWatchClient
from .page_fetcher import PageFetcher

__all__ = ["CoinrankingClient", "LiveCoinWatchClient", "PageFetcher"]
