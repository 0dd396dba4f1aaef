"""
Periodic reclamation of abandoned response cache entries.
"""

import asyncio
from typing import Optional

from shared.logging import get_logger

from .response_cache import ResponseCache


DEFAULT_SWEEP_INTERVAL_SECONDS = 600.0


class CacheSweeper:
    """Runs ``ResponseCache.sweep`` on a fixed interval."""

    def __init__(self, cache: ResponseCache, interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.cache = cache
        self.interval_seconds = interval_seconds
        self.logger = get_logger("crypto.sweeper")

        self.sweep_task: Optional[asyncio.Task] = None
        self.running = False
        self.last_removed = 0

    async def start(self):
        """Start the sweeper."""
        if self.running:
            return
        self.running = True
        self.sweep_task = asyncio.create_task(self._sweep_loop())
        self.logger.info("Cache sweeper started", interval_seconds=self.interval_seconds)

    async def stop(self):
        """Stop the sweeper."""
        self.running = False
        if self.sweep_task:
            self.sweep_task.cancel()
            try:
                await self.sweep_task
            except asyncio.CancelledError:
                pass
            self.sweep_task = None

        self.logger.info("Cache sweeper stopped")

    def sweep_once(self) -> int:
        """Run a single sweep pass and return the number of entries removed."""
        self.last_removed = self.cache.sweep()
        return self.last_removed

    async def _sweep_loop(self):
        """Main sweep loop."""
        while self.running:
            try:
                await asyncio.sleep(self.interval_seconds)
                self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.logger.error("Error in cache sweep loop", error=str(e))
