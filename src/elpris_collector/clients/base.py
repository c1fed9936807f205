"""Base client class for market data APIs.

Provides common functionality:
- Async HTTP client with connection pooling and a request timeout
- Mapping of transport, status and decode failures onto FetchError
- Request logging for audit trail

Requests are never retried here. A caller that wants another attempt
schedules one.
"""

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class FetchErrorKind(str, Enum):
    """Why a fetch failed."""

    NETWORK = "network"
    NON_2XX = "non2xx"
    MALFORMED = "malformed"


class FetchError(Exception):
    """Raised when market data cannot be fetched or decoded."""

    def __init__(
        self,
        message: str,
        kind: FetchErrorKind,
        status_code: int | None = None,
        response: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.response = response


class BaseClient(ABC):
    """Base class for market data API clients.

    Provides:
    - Async HTTP client with connection pooling
    - Request timeout on every call
    - Request logging for audit trail
    - Common error handling
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the base client.

        Args:
            base_url: Base URL for the API
            timeout: Request timeout in seconds
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "BaseClient":
        """Enter async context manager."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                headers=self._get_default_headers(),
                transport=self._transport,
            )
        return self._client

    def _get_default_headers(self) -> dict[str, str]:
        """Get default headers for requests."""
        return {
            "Accept": "application/json",
            "User-Agent": "elpris-collector/0.1.0",
        }

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Make a single HTTP request and decode the JSON body.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            params: Query parameters
            **kwargs: Additional arguments passed to httpx

        Returns:
            Decoded JSON body

        Raises:
            FetchError: If the request fails, returns an error status, or
                the body is not JSON
        """
        client = await self._ensure_client()
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        # Log request for audit trail
        request_time = datetime.now(UTC)
        logger.info(f"API Request: {method} {url} params={params}")

        try:
            response = await client.request(method, endpoint, params=params, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"Request timeout: {url}")
            raise FetchError(f"Request timeout: {e}", FetchErrorKind.NETWORK) from e
        except httpx.DecodingError as e:
            logger.error(f"Undecodable response body: {url} - {e}")
            raise FetchError(f"Undecodable response body: {e}", FetchErrorKind.MALFORMED) from e
        except httpx.RequestError as e:
            # Transport failures, redirect loops and other request-level errors
            logger.error(f"Network error: {url} - {e}")
            raise FetchError(f"Network error: {e}", FetchErrorKind.NETWORK) from e

        # Log response
        logger.info(
            f"API Response: {response.status_code} in "
            f"{(datetime.now(UTC) - request_time).total_seconds():.2f}s"
        )

        if not response.is_success:
            raise FetchError(
                f"API error: {response.status_code}",
                FetchErrorKind.NON_2XX,
                status_code=response.status_code,
                response=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise FetchError(
                f"Invalid JSON from {url}: {e}",
                FetchErrorKind.MALFORMED,
                status_code=response.status_code,
                response=response.text[:500],
            ) from e

    async def get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Make a GET request.

        Args:
            endpoint: API endpoint path
            params: Query parameters
            **kwargs: Additional arguments

        Returns:
            Decoded JSON body
        """
        return await self._request("GET", endpoint, params=params, **kwargs)

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the API is healthy and accessible.

        Returns:
            True if API is accessible, False otherwise
        """
        pass
