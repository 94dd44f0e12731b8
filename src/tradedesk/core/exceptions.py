"""Exception hierarchy for the backtester and its data sources."""


class TradedeskError(Exception):
    """Base exception for every error a backtest run can surface."""


class DataFetchError(TradedeskError):
    """Network, timeout, or provider failure while fetching candles."""


class NoDataError(TradedeskError):
    """The data source returned no candles at all for the symbol."""

    def __init__(self, symbol: str) -> None:
        """Initialize with the symbol that produced no data.

        Args:
            symbol: The requested trading symbol.

        """
        super().__init__(f"No historical data available for {symbol}")
        self.symbol = symbol


class InsufficientDataError(TradedeskError):
    """Too few candles fall inside the requested date range.

    The caller may widen the range and retry.
    """

    def __init__(self, count: int, required: int) -> None:
        """Initialize with the available and required candle counts.

        Args:
            count: Number of candles inside the date range.
            required: Minimum number of candles the engine needs.

        """
        super().__init__(
            f"Insufficient data for backtesting: need at least {required} candles, got {count}"
        )
        self.count = count
        self.required = required


class DataIntegrityError(TradedeskError):
    """Malformed candle data rejected at ingestion."""
