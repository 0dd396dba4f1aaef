"""
Shared error handling for the Crypto Market API.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field

from shared.logging import request_id_var


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class MarketApiException(Exception):
    """Base exception for Crypto Market API components."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id_var.get(),
            code=self.code,
            message=self.message,
            details=self.details
        )


class ProducerFailure(MarketApiException):
    """A cache producer raised while refreshing an entry."""

    def __init__(self, key: str, cause: BaseException, details: Optional[Dict[str, Any]] = None):
        self.key = key
        self.cause = cause
        merged = {"key": key, "cause": type(cause).__name__}
        merged.update(details or {})
        super().__init__("PRODUCER_FAILURE", str(cause) or type(cause).__name__, merged)


class EmptyResult(MarketApiException):
    """A producer succeeded but returned nothing usable."""

    status_code = 404

    def __init__(self, message: str = "No data found", details: Optional[Dict[str, Any]] = None):
        super().__init__("EMPTY_RESULT", message, details)


class ScrapeError(MarketApiException):
    """Upstream markup did not contain the expected elements."""

    status_code = 502

    def __init__(self, message: str = "Unexpected page layout", details: Optional[Dict[str, Any]] = None):
        super().__init__("SCRAPE_ERROR", message, details)


class ExternalServiceError(MarketApiException):
    """External service errors."""

    status_code = 502

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)
