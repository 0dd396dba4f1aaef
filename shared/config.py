"""
Shared configuration management for the Crypto Market API.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="CRYPTO_",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Response cache
    cache_freshness_seconds: float = Field(default=300.0, gt=0)
    cache_sweep_interval_seconds: float = Field(default=600.0, gt=0)
    cache_single_flight: bool = False

    # Upstream pages
    coinranking_url: str = "https://coinranking.com"
    livecoinwatch_url: str = "https://www.livecoinwatch.com"
    scraper_user_agent: str = DEFAULT_USER_AGENT
    scraper_timeout_seconds: float = Field(default=10.0, gt=0)
    scraper_max_attempts: int = Field(default=3, ge=1)
    scraper_retry_base_delay: float = Field(default=0.5, ge=0)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
