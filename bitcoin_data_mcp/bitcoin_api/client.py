"""
Thin HTTP client for public Bitcoin block explorer APIs.

The client only performs GET requests and returns the raw response body. HTTP
and transport failures are mapped to internal exceptions with short, safe
messages that the dispatcher can surface to callers.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from bitcoin_data_mcp.config import BitcoinDataConfig, default_config

logger = logging.getLogger(__name__)


class BitcoinApiError(Exception):
    """Base exception for backend API errors."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendUnreachableError(BitcoinApiError):
    """Raised when the backend cannot be reached."""


class NotFoundError(BitcoinApiError):
    """Raised when the backend reports the resource does not exist."""


class UpstreamRateLimitedError(BitcoinApiError):
    """Raised when the backend throttles the request."""


class BitcoinApiClient:
    """Async client performing single GET requests against absolute URLs."""

    def __init__(
        self,
        config: BitcoinDataConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or default_config
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                headers={"User-Agent": self.config.user_agent},
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _error_detail(self, response: httpx.Response) -> str:
        try:
            body = response.text.strip()
        except (UnicodeDecodeError, httpx.ResponseNotRead):
            return ""
        limit = self.config.max_error_body_chars
        if len(body) > limit:
            body = body[:limit] + "..."
        return body

    def _map_error(self, response: httpx.Response) -> BitcoinApiError:
        status_code = response.status_code
        detail = self._error_detail(response)
        suffix = f": {detail}" if detail else ""
        if status_code == 404:
            return NotFoundError(f"Resource not found{suffix}", status_code=status_code)
        if status_code == 429:
            return UpstreamRateLimitedError("Upstream rate limit exceeded", status_code=status_code)
        if status_code >= 500:
            return BitcoinApiError(f"Upstream server error (HTTP {status_code})", status_code=status_code)
        return BitcoinApiError(f"Upstream request rejected (HTTP {status_code}){suffix}", status_code=status_code)

    async def fetch(self, url: str) -> str:
        """
        GET ``url`` and return the body as text.

        Raises:
            BackendUnreachableError: the request could not be sent or timed out.
            BitcoinApiError: the backend answered with an HTTP error status.
        """
        client = await self._get_client()
        try:
            response = await client.get(url)
        except httpx.RequestError as exc:
            logger.warning("Backend unreachable for url %s", url)
            raise BackendUnreachableError("Backend unreachable") from exc

        if response.status_code >= 400:
            logger.debug("Backend returned status=%s for url %s", response.status_code, url)
            raise self._map_error(response)
        return response.text


default_client = BitcoinApiClient()
