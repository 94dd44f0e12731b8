"""Structural protocol for pluggable market-data sources.

Define the ``CandleProvider`` interface that decouples the backtest
engine from concrete data sources. Any class whose shape matches the
protocol can be used without explicit inheritance (structural subtyping).
"""

from typing import Protocol, runtime_checkable

from tradedesk.core.models import Candle, Interval


@runtime_checkable
class CandleProvider(Protocol):
    """Async provider of OHLCV candle data.

    Implementors fetch candles from a specific data source (CSV file,
    Yahoo Finance, Binance, simulated data, etc.) and return them sorted
    ascending and deduplicated by timestamp. Transport failures are
    raised as ``DataFetchError``.
    """

    async def get_candles(
        self,
        symbol: str,
        interval: Interval,
        start_ts: int,
        end_ts: int,
    ) -> list[Candle]:
        """Return candles for the given symbol, interval, and time range."""
        ...
