"""
Synchronous HTTP client shared by the fetch cycles, resolvers and discovery.

Every request carries the configured timeout and user agent. httpx failures
are logged and re-raised as ``FetchError`` so callers deal with one exception
type. Requests are never retried here; a failed source waits for the next
cycle.
"""

from typing import Any

import httpx

from radar.core.errors import FetchError
from radar.core.logging import get_logger
from radar.core.settings import get_settings
from radar.utils.error_logger import log_http_error

logger = get_logger(__name__)


class HttpService:
    """Thin wrapper around ``httpx.Client`` with consistent error translation."""

    def __init__(
        self,
        timeout: float | None = None,
        user_agent: str | None = None,
        client: httpx.Client | None = None,
    ):
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.headers = {
            "User-Agent": user_agent or settings.user_agent,
            "Accept": "*/*",
        }
        self._client = client

    def _get_client(self) -> httpx.Client:
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers=self.headers,
                timeout=self.timeout,
                follow_redirects=True,
            )
        return self._client

    def fetch(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        GET a URL and return the response.

        Args:
            url: URL to fetch
            params: Query parameters
            headers: Additional headers merged over the defaults

        Returns:
            httpx.Response with a 2xx status

        Raises:
            FetchError: timeout, transport failure or non-2xx status
        """
        request_headers = self.headers.copy()
        if headers:
            request_headers.update(headers)

        logger.debug(f"Fetching URL: {url}")
        try:
            response = self._get_client().get(url, params=params, headers=request_headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            log_http_error(
                "http_service",
                url=url,
                response=e.response,
                error=e,
                operation="http_fetch",
                context={"status_code": status_code},
            )
            raise FetchError(
                f"HTTP {status_code} for {url}", url=url, status_code=status_code
            ) from e
        except httpx.TimeoutException as e:
            log_http_error(
                "http_service",
                url=url,
                error=e,
                operation="http_fetch",
                context={"error_type": "timeout", "timeout": self.timeout},
            )
            raise FetchError(f"Timed out after {self.timeout}s fetching {url}", url=url) from e
        except httpx.HTTPError as e:
            log_http_error(
                "http_service",
                url=url,
                error=e,
                operation="http_fetch",
                context={"error_type": "transport_error"},
            )
            raise FetchError(f"Request failed for {url}: {e}", url=url) from e
        except httpx.InvalidURL as e:
            log_http_error(
                "http_service",
                url=url,
                error=e,
                operation="http_fetch",
                context={"error_type": "invalid_url"},
            )
            raise FetchError(f"Invalid URL {url}: {e}", url=url) from e

        logger.debug(f"Successfully fetched {url}: {response.status_code}")
        return response

    def fetch_text(self, url: str, **kwargs: Any) -> tuple[str, str]:
        """Fetch a URL and return ``(body_text, content_type)``."""
        response = self.fetch(url, **kwargs)
        return response.text, response.headers.get("content-type", "").lower()

    def fetch_json(self, url: str, **kwargs: Any) -> Any:
        """Fetch a URL and decode its JSON body."""
        response = self.fetch(url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise FetchError(f"Invalid JSON from {url}: {e}", url=url) from e

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


# Global instance
_http_service: HttpService | None = None


def get_http_service() -> HttpService:
    """Get the global HTTP service instance."""
    global _http_service
    if _http_service is None:
        _http_service = HttpService()
    return _http_service
