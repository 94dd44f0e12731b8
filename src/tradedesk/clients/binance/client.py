"""HTTP client for the Binance public market-data API."""

import logging
from typing import Any

import httpx

from tradedesk.clients.binance.exceptions import BinanceAPIError, BinanceError
from tradedesk.core.config import get_config

logger = logging.getLogger(__name__)

_HTTP_BAD_REQUEST = 400


class BinanceClient:
    """Async HTTP client for Binance public endpoints such as ``/api/v3/klines``.

    No authentication is required. Transport failures and timeouts are
    raised as ``BinanceError`` so callers only deal with ``DataFetchError``.
    """

    BASE_URL = "https://api.binance.com"

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the Binance client.

        Args:
            base_url: Base URL for the Binance API.
            timeout: Request timeout in seconds.

        """
        self.base_url = base_url.rstrip("/")
        self._http_client = httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_config(cls) -> "BinanceClient":
        """Build a client from the ``data.binance`` config section."""
        section = get_config().get_section("data.binance")
        return cls(
            base_url=str(section.get("base_url", cls.BASE_URL)),
            timeout=float(section.get("timeout", 30.0)),
        )

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Send a GET request and return parsed JSON.

        Args:
            path: Request path relative to base_url.
            params: Query parameters.

        Returns:
            Parsed JSON response (list or dict).

        Raises:
            BinanceAPIError: When the API returns an error response.
            BinanceError: When the request times out, the connection fails,
                or the body is not valid JSON.

        """
        if not path.startswith("/"):
            path = f"/{path}"

        url = f"{self.base_url}{path}"
        logger.debug("GET %s params=%s", url, params)
        try:
            response = await self._http_client.request("GET", url, params=params)
        except httpx.TimeoutException as exc:
            msg = f"Binance request timed out: {url}"
            raise BinanceError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Binance request failed: {exc}"
            raise BinanceError(msg) from exc

        if response.status_code >= _HTTP_BAD_REQUEST:
            self._handle_error(response)

        try:
            return response.json()
        except ValueError as exc:
            msg = f"Binance returned invalid JSON: {url}"
            raise BinanceError(msg) from exc

    async def klines(
        self,
        symbol: str,
        interval: str,
        start_ms: int,
        end_ms: int,
        limit: int,
    ) -> list[list[Any]]:
        """Return raw kline arrays for ``symbol`` between two millisecond timestamps."""
        params: dict[str, Any] = {
            "symbol": symbol,
            "interval": interval,
            "startTime": start_ms,
            "endTime": end_ms,
            "limit": limit,
        }
        result: list[list[Any]] = await self.get("/api/v3/klines", params=params)
        return result

    @staticmethod
    def _handle_error(response: httpx.Response) -> None:
        """Raise a BinanceAPIError built from an error response body."""
        try:
            data = response.json()
            code: int = data.get("code", response.status_code)
            msg: str = data.get("msg", f"HTTP {response.status_code}")
        except (ValueError, AttributeError):
            code = response.status_code
            msg = f"HTTP {response.status_code}"
        raise BinanceAPIError(code=code, msg=msg)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http_client.aclose()

    async def __aenter__(self) -> "BinanceClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()
