"""Yahoo Finance candle data provider.

Fetch daily or intraday OHLCV bars for stocks, crypto and forex from
the Yahoo Finance chart endpoint. The response holds parallel arrays
(``timestamp`` plus ``indicators.quote[0].open/high/low/close/volume``);
rows where any OHLC value is null are skipped and a null volume is
treated as zero.
"""

import logging
from decimal import Decimal
from typing import Any

from tradedesk.clients.yahoo.client import YahooFinanceClient
from tradedesk.core.models import ZERO, Candle, Interval
from tradedesk.data.validation import normalize_candles

logger = logging.getLogger(__name__)

_INTERVAL_TO_YAHOO: dict[Interval, str] = {
    Interval.M1: "1m",
    Interval.M5: "5m",
    Interval.M15: "15m",
    Interval.H1: "1h",
    Interval.D1: "1d",
    Interval.W1: "1wk",
}


def _symbol_to_yahoo(symbol: str) -> str:
    """Convert a user-facing symbol to a Yahoo ticker.

    Forex pairs written as ``EUR/USD`` become ``EURUSD=X``; stocks and
    crypto pairs (``AAPL``, ``BTC-USD``) are passed through unchanged.
    """
    if "/" in symbol:
        return symbol.replace("/", "").upper() + "=X"
    return symbol.upper()


def _to_decimal(value: Any) -> Decimal:
    return Decimal(str(value))


class YahooCandleProvider:
    """Fetch candle data from Yahoo Finance.

    Implement the ``CandleProvider`` protocol. Four-hour candles are not
    offered by Yahoo and raise ``ValueError``.
    """

    def __init__(self, client: YahooFinanceClient) -> None:
        """Initialize the provider with a Yahoo Finance client."""
        self._client = client

    async def get_candles(
        self,
        symbol: str,
        interval: Interval,
        start_ts: int,
        end_ts: int,
    ) -> list[Candle]:
        """Fetch candles for ``symbol`` between ``start_ts`` and ``end_ts``.

        Raises:
            ValueError: If the interval is not supported by Yahoo Finance.
            YahooFinanceError: If the request fails.

        """
        if interval not in _INTERVAL_TO_YAHOO:
            msg = f"Interval {interval.value} is not supported by Yahoo Finance"
            raise ValueError(msg)

        chart = await self._client.get_chart(
            _symbol_to_yahoo(symbol), _INTERVAL_TO_YAHOO[interval], start_ts, end_ts
        )
        if chart is None:
            return []

        candles = self._parse_chart(chart, symbol, interval)
        logger.debug(
            "Fetched %d %s candles for %s from Yahoo", len(candles), interval.value, symbol
        )
        return normalize_candles(c for c in candles if start_ts <= c.timestamp <= end_ts)

    @staticmethod
    def _parse_chart(chart: dict[str, Any], symbol: str, interval: Interval) -> list[Candle]:
        """Turn Yahoo's parallel arrays into ``Candle`` objects."""
        timestamps: list[int] = chart.get("timestamp") or []
        indicators = chart.get("indicators") or {}
        quotes_list: list[dict[str, list[Any]]] = indicators.get("quote") or [{}]
        quote = quotes_list[0]
        opens = quote.get("open") or []
        highs = quote.get("high") or []
        lows = quote.get("low") or []
        closes = quote.get("close") or []
        volumes = quote.get("volume") or []

        candles: list[Candle] = []
        for i, ts in enumerate(timestamps):
            row = [
                series[i] if i < len(series) else None for series in (opens, highs, lows, closes)
            ]
            if any(v is None for v in row):
                continue
            volume = volumes[i] if i < len(volumes) else None
            candles.append(
                Candle(
                    symbol=symbol,
                    timestamp=int(ts),
                    open=_to_decimal(row[0]),
                    high=_to_decimal(row[1]),
                    low=_to_decimal(row[2]),
                    close=_to_decimal(row[3]),
                    volume=_to_decimal(volume) if volume is not None else ZERO,
                    interval=interval,
                )
            )
        return candles
