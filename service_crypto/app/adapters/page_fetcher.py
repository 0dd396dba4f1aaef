"""
HTTP page fetching for the scraping producers.
"""

from typing import Optional

import httpx

from shared.errors import ExternalServiceError
from shared.logging import get_logger
from shared.retry import RetryConfig, RetryError, retry_on_exception


class PageFetcher:
    """Fetches raw HTML with a browser user agent and transport-level retries."""

    def __init__(
        self,
        *,
        user_agent: str,
        timeout_seconds: float = 10.0,
        retry_config: Optional[RetryConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        self.retry_config = retry_config or RetryConfig(max_attempts=3, base_delay=0.5, max_delay=5.0)
        self.logger = get_logger("crypto.page_fetcher")
        self._transport = transport

    async def fetch(self, url: str) -> str:
        """Return the body of ``url``; raise ``ExternalServiceError`` on any failure."""
        fetch_with_retry = retry_on_exception(
            (httpx.TransportError,),
            config=self.retry_config,
        )(self._fetch_once)

        try:
            return await fetch_with_retry(url)
        except RetryError as exc:
            raise ExternalServiceError(
                service=self._service_name(url),
                message=str(exc.last_exception) or type(exc.last_exception).__name__,
                details={"url": url, "attempts": exc.attempts},
            ) from exc

    async def _fetch_once(self, url: str) -> str:
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            headers={"User-Agent": self.user_agent},
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            response = await client.get(url)

        if response.status_code == 200:
            self.logger.debug("Page retrieved", url=url, size=len(response.text))
            return response.text

        self.logger.error(
            "Page request failed",
            url=url,
            status_code=response.status_code,
        )
        raise ExternalServiceError(
            service=self._service_name(url),
            message=f"Unexpected status {response.status_code}",
            details={"url": url, "status_code": response.status_code},
        )

    @staticmethod
    def _service_name(url: str) -> str:
        return httpx.URL(url).host or url
