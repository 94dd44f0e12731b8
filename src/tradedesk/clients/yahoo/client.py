"""HTTP client for the Yahoo Finance v8 chart endpoint."""

import logging
from typing import Any, cast

import httpx

from tradedesk.clients.yahoo.exceptions import YahooFinanceError
from tradedesk.core.config import get_config

logger = logging.getLogger(__name__)

_HTTP_BAD_REQUEST = 400
_HTTP_NOT_FOUND = 404

# Yahoo rejects requests that do not look like they come from a browser.
_DEFAULT_HEADERS = {"User-Agent": "Mozilla/5.0 (compatible; tradedesk/0.1)"}


class YahooFinanceClient:
    """Async client for ``/v8/finance/chart/{symbol}``.

    Return the first ``chart.result`` entry as a dict, or ``None`` when
    Yahoo reports that the symbol has no data. Any other failure is
    raised as ``YahooFinanceError``.
    """

    BASE_URL = "https://query1.finance.yahoo.com"

    def __init__(self, base_url: str = BASE_URL, timeout: float = 10.0) -> None:
        """Initialize the Yahoo Finance client.

        Args:
            base_url: Base URL of the Yahoo Finance query host.
            timeout: Request timeout in seconds.

        """
        self.base_url = base_url.rstrip("/")
        self._http_client = httpx.AsyncClient(timeout=timeout, headers=_DEFAULT_HEADERS)

    @classmethod
    def from_config(cls) -> "YahooFinanceClient":
        """Build a client from the ``data.yahoo`` config section."""
        section = get_config().get_section("data.yahoo")
        return cls(
            base_url=str(section.get("base_url", cls.BASE_URL)),
            timeout=float(section.get("timeout", 10.0)),
        )

    async def get_chart(
        self,
        symbol: str,
        interval: str,
        period1: int,
        period2: int,
    ) -> dict[str, Any] | None:
        """Fetch chart data for ``symbol`` between two Unix timestamps.

        Args:
            symbol: Yahoo ticker (``AAPL``, ``BTC-USD``, ``EURUSD=X``).
            interval: Yahoo interval string (``1d``, ``1h``, ``1wk``...).
            period1: Start Unix timestamp in seconds.
            period2: End Unix timestamp in seconds.

        Returns:
            The chart result mapping, or ``None`` when no data exists.

        Raises:
            YahooFinanceError: On timeouts, transport errors, or error responses.

        """
        url = f"{self.base_url}/v8/finance/chart/{symbol}"
        params: dict[str, Any] = {
            "interval": interval,
            "period1": period1,
            "period2": period2,
            "includePrePost": "false",
        }
        logger.debug("GET %s params=%s", url, params)
        try:
            response = await self._http_client.request("GET", url, params=params)
        except httpx.TimeoutException as exc:
            msg = f"Yahoo Finance request timed out for {symbol}"
            raise YahooFinanceError(msg) from exc
        except httpx.HTTPError as exc:
            msg = f"Yahoo Finance request failed for {symbol}: {exc}"
            raise YahooFinanceError(msg) from exc

        if response.status_code == _HTTP_NOT_FOUND:
            logger.info("Yahoo Finance has no data for %s", symbol)
            return None
        if response.status_code >= _HTTP_BAD_REQUEST:
            msg = f"Yahoo Finance returned HTTP {response.status_code} for {symbol}"
            raise YahooFinanceError(msg, status_code=response.status_code)

        try:
            payload = cast("dict[str, Any]", response.json())
        except ValueError as exc:
            msg = f"Yahoo Finance returned invalid JSON for {symbol}"
            raise YahooFinanceError(msg, status_code=response.status_code) from exc

        chart = cast("dict[str, Any]", payload.get("chart") or {})
        error = chart.get("error")
        if error:
            msg = f"Yahoo Finance error for {symbol}: {error}"
            raise YahooFinanceError(msg, status_code=response.status_code)

        results = cast("list[dict[str, Any]]", chart.get("result") or [])
        if not results:
            return None
        return results[0]

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http_client.aclose()

    async def __aenter__(self) -> "YahooFinanceClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.close()
