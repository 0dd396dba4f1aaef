"""
Unit tests for the periodic cache sweeper.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_crypto.app.caching import CacheSweeper, ResponseCache


class FakeClock:
    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class TestCacheSweeper:
    """Test cases for CacheSweeper."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return ResponseCache(10, clock=clock)

    def test_rejects_non_positive_interval(self, cache):
        """The loop interval must be positive."""
        with pytest.raises(ValueError):
            CacheSweeper(cache, interval_seconds=0)

    @pytest.mark.asyncio
    async def test_sweep_once(self, cache, clock):
        """A single pass removes entries older than twice the window."""
        await cache.get_or_refresh("trending-coins", AsyncMock(return_value=["btc"]))
        sweeper = CacheSweeper(cache)

        assert sweeper.sweep_once() == 0
        clock.now += 21
        assert sweeper.sweep_once() == 1
        assert sweeper.last_removed == 1
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_background_loop_sweeps(self, cache, clock):
        """The started loop sweeps on its interval until stopped."""
        await cache.get_or_refresh("top-gainers", AsyncMock(return_value=["x"]))
        clock.now += 100
        sweeper = CacheSweeper(cache, interval_seconds=0.01)

        await sweeper.start()
        try:
            for _ in range(50):
                if "top-gainers" not in cache:
                    break
                await asyncio.sleep(0.01)
        finally:
            await sweeper.stop()

        assert "top-gainers" not in cache
        assert sweeper.running is False
        assert sweeper.sweep_task is None

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, cache):
        """Starting twice keeps a single task."""
        sweeper = CacheSweeper(cache, interval_seconds=60)

        await sweeper.start()
        task = sweeper.sweep_task
        await sweeper.start()

        assert sweeper.sweep_task is task
        await sweeper.stop()
        assert task.cancelled() or task.done()

    @pytest.mark.asyncio
    async def test_loop_survives_sweep_errors(self, cache, monkeypatch):
        """An exception inside a pass is logged and the loop keeps going."""
        calls = []

        def failing_sweep(max_age_seconds=None):
            calls.append(1)
            raise RuntimeError("sweep failed")

        monkeypatch.setattr(cache, "sweep", failing_sweep)
        sweeper = CacheSweeper(cache, interval_seconds=0.01)

        await sweeper.start()
        await asyncio.sleep(0.05)
        await sweeper.stop()

        assert len(calls) >= 2
