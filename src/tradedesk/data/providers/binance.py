"""Binance candle data provider.

Fetch OHLCV candle data from the public Binance klines REST API. The
API returns at most 1 000 candles per request, so this provider
paginates automatically by advancing the start time past the last
returned candle until the full requested range is covered.
"""

import logging
from decimal import Decimal
from typing import Any

from tradedesk.clients.binance.client import BinanceClient
from tradedesk.core.models import Candle, Interval
from tradedesk.data.validation import normalize_candles

logger = logging.getLogger(__name__)

_MAX_CANDLES_PER_REQUEST = 1000
_MAX_PAGES = 10_000
_MS_PER_SECOND = 1000

_INTERVAL_TO_BINANCE: dict[Interval, str] = {
    Interval.M1: "1m",
    Interval.M5: "5m",
    Interval.M15: "15m",
    Interval.H1: "1h",
    Interval.H4: "4h",
    Interval.D1: "1d",
    Interval.W1: "1w",
}

# Kline array indices
_IDX_OPEN_TIME = 0
_IDX_OPEN = 1
_IDX_HIGH = 2
_IDX_LOW = 3
_IDX_CLOSE = 4
_IDX_VOLUME = 5


def _symbol_to_binance(symbol: str) -> str:
    """Convert a user-facing symbol to Binance format.

    ``BTC-USD`` and ``BTC/USD`` become ``BTCUSDT``: strip the separator and
    replace a trailing ``USD`` with ``USDT``.
    """
    raw = symbol.replace("-", "").replace("/", "").upper()
    if raw.endswith("USD") and not raw.endswith("USDT"):
        raw = f"{raw}T"
    return raw


class BinanceCandleProvider:
    """Fetch crypto candle data from the Binance klines endpoint.

    Implement the ``CandleProvider`` protocol. The API uses millisecond
    timestamps and returns kline arrays, which are parsed into ``Candle``
    objects carrying the caller's symbol.
    """

    def __init__(self, client: BinanceClient) -> None:
        """Initialize the provider with a Binance HTTP client."""
        self._client = client

    async def get_candles(
        self,
        symbol: str,
        interval: Interval,
        start_ts: int,
        end_ts: int,
    ) -> list[Candle]:
        """Fetch candles for the given range, paginating in chunks of 1 000.

        Args:
            symbol: Trading pair (e.g. ``BTC-USD``), auto-converted to ``BTCUSDT``.
            interval: Candle time interval.
            start_ts: Start Unix timestamp in seconds.
            end_ts: End Unix timestamp in seconds.

        Returns:
            List of ``Candle`` objects sorted by timestamp.

        Raises:
            BinanceError: When a page request fails.

        """
        binance_symbol = _symbol_to_binance(symbol)
        binance_interval = _INTERVAL_TO_BINANCE[interval]
        start_ms = start_ts * _MS_PER_SECOND
        end_ms = end_ts * _MS_PER_SECOND

        collected: list[Candle] = []
        for _ in range(_MAX_PAGES):
            if start_ms >= end_ms:
                break

            raw_list = await self._client.klines(
                binance_symbol,
                binance_interval,
                start_ms,
                end_ms,
                _MAX_CANDLES_PER_REQUEST,
            )
            if not raw_list:
                break

            collected.extend(self._parse_candle(raw, symbol, interval) for raw in raw_list)
            if len(raw_list) < _MAX_CANDLES_PER_REQUEST:
                break

            next_start = int(raw_list[-1][_IDX_OPEN_TIME]) + 1
            if next_start <= start_ms:
                break
            start_ms = next_start

        logger.debug(
            "Fetched %d %s candles for %s from Binance", len(collected), interval.value, symbol
        )
        return normalize_candles(collected)

    @staticmethod
    def _parse_candle(raw: list[Any], symbol: str, interval: Interval) -> Candle:
        """Parse a raw Binance kline array into a ``Candle``."""
        return Candle(
            symbol=symbol,
            timestamp=int(raw[_IDX_OPEN_TIME]) // _MS_PER_SECOND,
            open=Decimal(str(raw[_IDX_OPEN])),
            high=Decimal(str(raw[_IDX_HIGH])),
            low=Decimal(str(raw[_IDX_LOW])),
            close=Decimal(str(raw[_IDX_CLOSE])),
            volume=Decimal(str(raw[_IDX_VOLUME])),
            interval=interval,
        )
