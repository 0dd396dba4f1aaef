"""
Unit tests for shared config, errors, metrics and retry helpers.
"""

import pytest
from prometheus_client import CollectorRegistry
from pydantic import ValidationError

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from shared.config import get_config
from shared.errors import EmptyResult, ExternalServiceError, ProducerFailure
from shared.logging import clear_context, set_request_id
from shared.metrics import MetricsCollector, get_metrics_collector
from shared.retry import RetryConfig, RetryError, _calculate_delay, retry_on_exception


class TestConfig:
    """Test cases for the settings classes."""

    def test_defaults(self):
        config = get_config("crypto", 8000)

        assert config.service_name == "crypto"
        assert config.cache_freshness_seconds == 300
        assert config.cache_sweep_interval_seconds == 600
        assert config.cache_single_flight is False
        assert config.coinranking_url == "https://coinranking.com"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("CRYPTO_CACHE_FRESHNESS_SECONDS", "60")
        monkeypatch.setenv("CRYPTO_CACHE_SINGLE_FLIGHT", "true")

        config = get_config("crypto", 8000)

        assert config.cache_freshness_seconds == 60
        assert config.cache_single_flight is True

    def test_rejects_non_positive_window(self):
        with pytest.raises(ValidationError):
            get_config("crypto", 8000, cache_freshness_seconds=0)


class TestErrors:
    """Test cases for the error hierarchy."""

    def test_producer_failure_wraps_cause(self):
        cause = ExternalServiceError("coinranking.com", "Unexpected status 503")
        failure = ProducerFailure("top-gainers", cause)

        assert failure.code == "PRODUCER_FAILURE"
        assert failure.cause is cause
        assert failure.message == "coinranking.com: Unexpected status 503"
        assert failure.details == {"key": "top-gainers", "cause": "ExternalServiceError"}

    def test_response_carries_request_id(self):
        set_request_id("req-42")
        try:
            response = EmptyResult("No top losers found").to_response()
        finally:
            clear_context()

        assert response.model_dump() == {
            "request_id": "req-42",
            "code": "EMPTY_RESULT",
            "message": "No top losers found",
            "details": {},
        }


class TestMetricsCollector:
    """Test cases for MetricsCollector."""

    @pytest.fixture
    def registry(self):
        return CollectorRegistry()

    @pytest.fixture
    def collector(self, registry):
        return MetricsCollector("crypto", registry)

    def test_cache_counters(self, collector, registry):
        collector.increment_counter("cache_hits_total", resource="trending-coins")
        collector.increment_counter("cache_hits_total", resource="trending-coins")
        collector.increment_counter("cache_swept_total", 3)

        assert registry.get_sample_value("cache_hits_total", {"resource": "trending-coins"}) == 2
        assert registry.get_sample_value("cache_swept_total") == 3

    def test_gauge_and_histogram(self, collector, registry):
        collector.set_gauge("cache_entries", 4)
        collector.observe_histogram("producer_duration_seconds", 0.25, resource="btc-dominance")

        assert registry.get_sample_value("cache_entries") == 4
        assert registry.get_sample_value("producer_duration_seconds_count", {"resource": "btc-dominance"}) == 1

    def test_unknown_metric_is_ignored(self, collector):
        collector.increment_counter("does_not_exist", resource="x")
        collector.set_gauge("does_not_exist", 1)

    def test_default_registry_collectors_are_memoized(self):
        assert get_metrics_collector("crypto") is get_metrics_collector("crypto")


class TestRetry:
    """Test cases for retry_on_exception."""

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self):
        attempts = []

        @retry_on_exception((ConnectionError,), RetryConfig(max_attempts=3, base_delay=0, jitter=False))
        async def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise ConnectionError("reset")
            return "ok"

        assert await flaky() == "ok"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_gives_up_with_retry_error(self):
        @retry_on_exception((ConnectionError,), RetryConfig(max_attempts=2, base_delay=0, jitter=False))
        async def broken():
            raise ConnectionError("reset")

        with pytest.raises(RetryError) as exc_info:
            await broken()

        assert exc_info.value.attempts == 2
        assert isinstance(exc_info.value.last_exception, ConnectionError)

    @pytest.mark.asyncio
    async def test_other_exceptions_are_not_retried(self):
        attempts = []

        @retry_on_exception((ConnectionError,), RetryConfig(max_attempts=3, base_delay=0, jitter=False))
        async def invalid():
            attempts.append(1)
            raise ValueError("bad")

        with pytest.raises(ValueError):
            await invalid()
        assert len(attempts) == 1

    def test_backoff_strategies(self):
        exponential = RetryConfig(base_delay=1, max_delay=5, jitter=False)
        linear = RetryConfig(base_delay=1, jitter=False, backoff_strategy="linear")
        fixed = RetryConfig(base_delay=1, jitter=False, backoff_strategy="fixed")

        assert [_calculate_delay(n, exponential) for n in (1, 2, 3, 4)] == [1, 2, 4, 5]
        assert _calculate_delay(3, linear) == 3
        assert _calculate_delay(3, fixed) == 1
