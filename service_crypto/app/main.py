"""
Crypto Market API service.
"""

from typing import Awaitable, Callable, Dict, Optional

from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import EmptyResult, ProducerFailure
from shared.retry import RetryConfig

from service_crypto.app.adapters import CoinrankingClient, LiveCoinWatchClient, PageFetcher
from service_crypto.app.caching import CacheSweeper, ResponseCache, utc_now_iso
from service_crypto.app.caching.response_cache import Clock
from service_crypto.app.market_data import MarketDataService, ServedResult


WELCOME_MESSAGE = "Welcome to the Crypto API."


class CryptoService(BaseService):
    """Crypto market data service implementation."""

    def __init__(self, config: Optional[ServiceConfig] = None, *, clock: Optional[Clock] = None):
        super().__init__("crypto", 8000, config)

        self.fetcher = PageFetcher(
            user_agent=self.config.scraper_user_agent,
            timeout_seconds=self.config.scraper_timeout_seconds,
            retry_config=RetryConfig(
                max_attempts=self.config.scraper_max_attempts,
                base_delay=self.config.scraper_retry_base_delay,
                max_delay=5.0,
            ),
        )
        self.coinranking = CoinrankingClient(self.fetcher, self.config.coinranking_url)
        self.livecoinwatch = LiveCoinWatchClient(self.fetcher, self.config.livecoinwatch_url)

        cache_kwargs = {"clock": clock} if clock is not None else {}
        self.cache = ResponseCache(
            self.config.cache_freshness_seconds,
            metrics=self.metrics,
            single_flight=self.config.cache_single_flight,
            **cache_kwargs,
        )
        self.sweeper = CacheSweeper(self.cache, self.config.cache_sweep_interval_seconds)
        self.market_data = MarketDataService(
            self.cache,
            self.coinranking,
            self.livecoinwatch,
            metrics=self.metrics,
        )

        @self.app.on_event("startup")
        async def _startup():
            await self.sweeper.start()

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.sweeper.stop()

        self._setup_crypto_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.crypto_service = self

    async def _respond(
        self,
        fetch: Callable[[], Awaitable[ServedResult]],
        error_message: str,
    ) -> JSONResponse:
        """Run a market data lookup and shape the outcome as an API envelope."""
        try:
            result = await fetch()
        except EmptyResult as exc:
            return JSONResponse(
                status_code=404,
                content={
                    "status": "error",
                    "message": exc.message,
                    "timestamp": utc_now_iso(),
                },
            )
        except ProducerFailure as exc:
            self.metrics.record_error(exc.code)
            return JSONResponse(
                status_code=500,
                content={
                    "status": "error",
                    "message": error_message,
                    "timestamp": utc_now_iso(),
                    "error": exc.message,
                },
            )

        return JSONResponse(content=result.to_dict())

    def _setup_crypto_routes(self):
        """Set up market data and cache management routes."""

        @self.app.get("/crypto")
        async def welcome():
            return WELCOME_MESSAGE

        @self.app.get("/trending-coins")
        async def get_trending_coins():
            return await self._respond(
                self.market_data.trending_coins,
                "Error fetching trending cryptocurrency data",
            )

        @self.app.get("/trending-categories")
        async def get_trending_categories():
            return await self._respond(
                self.market_data.trending_categories,
                "Error fetching trending categories data",
            )

        @self.app.get("/top-gainers")
        async def get_top_gainers():
            return await self._respond(
                self.market_data.top_gainers,
                "Error fetching top gainers data",
            )

        @self.app.get("/top-losers")
        async def get_top_losers():
            return await self._respond(
                self.market_data.top_losers,
                "Error fetching top losers data",
            )

        @self.app.get("/all-time-highs")
        async def get_all_time_highs():
            return await self._respond(
                self.market_data.all_time_highs,
                "Error fetching all-time highs data",
            )

        @self.app.get("/btc-dominance")
        async def get_btc_dominance():
            return await self._respond(
                self.market_data.btc_dominance,
                "Error fetching BTC dominance data",
            )

        @self.app.get("/coins/{name}/{symbol}")
        async def get_coin_details(name: str, symbol: str):
            return await self._respond(
                lambda: self.market_data.coin_details(name, symbol),
                f"Error fetching details for {name} ({symbol})",
            )

        @self.app.get("/cache-status")
        async def get_cache_status():
            """Report the age of every cached response."""
            entries = self.market_data.cache_status()
            return {
                "status": "success",
                "timestamp": utc_now_iso(),
                "cacheDurationSeconds": self.cache.freshness_seconds,
                "totalCacheEntries": len(entries),
                "cacheEntries": [entry.to_dict() for entry in entries],
            }

        @self.app.delete("/cache")
        async def clear_cache():
            """Drop every cached response."""
            cleared = self.market_data.clear_cache()
            return {
                "status": "success",
                "message": f"Cleared {cleared} cache entries",
                "timestamp": utc_now_iso(),
                "cleared": cleared,
            }

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check crypto service dependencies."""
        return {
            "cache": "ok",
            "cache_entries": str(len(self.cache)),
            "sweeper": "ok" if self.sweeper.running else "stopped",
        }


def create_app():
    """Create FastAPI application."""
    service = CryptoService()
    return service.app


if __name__ == "__main__":
    service = CryptoService()
    service.run()
