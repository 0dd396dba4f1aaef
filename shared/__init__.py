"""
Shared utilities for the Crypto Market API.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request and cache-key correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Retry decorator for upstream fetches
- base_service: FastAPI application scaffolding

Do not import from service_* packages into shared/.
"""
