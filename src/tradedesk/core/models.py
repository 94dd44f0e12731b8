"""Core data models shared across the tradedesk application.

Define the immutable value objects (Candle, StrategyConfig, Trade,
PerformanceMetrics, BacktestResult) and mutable state (Position) that
flow between the data providers, the backtest engine, and the metrics
calculator. All percentages are expressed in the 0-100 range.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

ZERO = Decimal(0)
ONE = Decimal(1)
TWO = Decimal(2)
HUNDRED = Decimal(100)


class Side(Enum):
    """Direction of a trade. The backtester only opens long (BUY) positions."""

    BUY = "BUY"
    SELL = "SELL"


class Interval(Enum):
    """Supported candle time intervals from 1-minute to 1-week."""

    M1 = "1m"
    M5 = "5m"
    M15 = "15m"
    H1 = "1h"
    H4 = "4h"
    D1 = "1d"
    W1 = "1w"


@dataclass(frozen=True)
class Candle:
    """Immutable OHLCV candle representing one time period of market data.

    Each candle captures the open, high, low, and close prices plus
    the trading volume for a single interval (e.g. one day) of a
    specific symbol. ``timestamp`` is the bucket's open time in Unix
    seconds.
    """

    symbol: str
    timestamp: int
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal
    interval: Interval


def _check_non_negative(name: str, value: Decimal | None) -> None:
    if value is not None and value < ZERO:
        msg = f"{name} must be >= 0, got {value}"
        raise ValueError(msg)


@dataclass(frozen=True)
class EntryRules:
    """Conditions that open a position, each one an independent trigger.

    ``rsi_oversold`` enters when RSI drops below the threshold,
    ``use_macd_crossover`` enters on a bullish MACD crossover and
    ``use_bollinger_bands`` enters when the close is below the lower
    band. ``rsi_overbought`` and the bearish MACD crossover are exit
    triggers but live here because they mirror the entry indicators.
    ``volume_threshold`` only annotates the entry reason.
    """

    rsi_oversold: Decimal | None = None
    rsi_overbought: Decimal | None = None
    use_macd_crossover: bool = False
    use_bollinger_bands: bool = False
    volume_threshold: Decimal | None = None

    def __post_init__(self) -> None:
        """Validate that thresholds are non-negative."""
        _check_non_negative("rsi_oversold", self.rsi_oversold)
        _check_non_negative("rsi_overbought", self.rsi_overbought)
        _check_non_negative("volume_threshold", self.volume_threshold)


@dataclass(frozen=True)
class ExitRules:
    """Percentage thresholds that close an open position.

    ``use_trailing_stop`` and ``trailing_stop_percent`` are carried for
    forward compatibility only; the engine does not evaluate them.
    """

    take_profit_percent: Decimal | None = None
    stop_loss_percent: Decimal | None = None
    use_trailing_stop: bool = False
    trailing_stop_percent: Decimal | None = None

    def __post_init__(self) -> None:
        """Validate that percentages are non-negative."""
        _check_non_negative("take_profit_percent", self.take_profit_percent)
        _check_non_negative("stop_loss_percent", self.stop_loss_percent)
        _check_non_negative("trailing_stop_percent", self.trailing_stop_percent)


@dataclass(frozen=True)
class StrategyConfig:
    """Immutable description of a parametrised trading strategy.

    Bundle the entry rules, exit rules, and the dollar amount committed
    per trade. The engine only reads a strategy; it never mutates one.
    """

    position_size: Decimal
    entry_rules: EntryRules = field(default_factory=EntryRules)
    exit_rules: ExitRules = field(default_factory=ExitRules)
    name: str = "Custom Strategy"

    def __post_init__(self) -> None:
        """Validate that the position size is strictly positive."""
        if self.position_size <= ZERO:
            msg = f"position_size must be > 0, got {self.position_size}"
            raise ValueError(msg)


@dataclass(frozen=True)
class Trade:
    """Immutable record of a completed round-trip long trade.

    Store the symbol, quantity, entry/exit prices and timestamps plus
    the reason the position was closed. Derived properties ``pnl`` and
    ``pnl_percent`` compute the absolute and percentage profit or loss.
    """

    symbol: str
    side: Side
    quantity: Decimal
    entry_price: Decimal
    entry_time: int
    exit_price: Decimal
    exit_time: int
    reason: str
    entry_reason: str = ""

    @property
    def pnl(self) -> Decimal:
        """Return the absolute profit or loss in quote currency."""
        return (self.exit_price - self.entry_price) * self.quantity

    @property
    def pnl_percent(self) -> Decimal:
        """Return the price change from entry to exit in percent (0-100 scale)."""
        return (self.exit_price - self.entry_price) / self.entry_price * HUNDRED


@dataclass
class Position:
    """Mutable representation of an open long position awaiting an exit.

    Call ``close()`` with an exit price, time, and reason to produce an
    immutable ``Trade`` record.
    """

    symbol: str
    quantity: Decimal
    entry_price: Decimal
    entry_time: int
    entry_reason: str = ""
    side: Side = Side.BUY

    def unrealized_pnl_percent(self, price: Decimal) -> Decimal:
        """Return the open profit or loss at ``price`` in percent of the entry price."""
        return (price - self.entry_price) / self.entry_price * HUNDRED

    def close(self, exit_price: Decimal, exit_time: int, reason: str) -> Trade:
        """Close this position and return the resulting ``Trade``.

        Args:
            exit_price: Price at which the position is closed.
            exit_time: Unix timestamp of the exit.
            reason: Human-readable description of the exit trigger.

        Returns:
            An immutable ``Trade`` recording the round-trip.

        """
        return Trade(
            symbol=self.symbol,
            side=self.side,
            quantity=self.quantity,
            entry_price=self.entry_price,
            entry_time=self.entry_time,
            exit_price=exit_price,
            exit_time=exit_time,
            reason=reason,
            entry_reason=self.entry_reason,
        )


@dataclass(frozen=True)
class PerformanceMetrics:
    """Aggregate statistics derived from a finished trade list."""

    total_return: Decimal = ZERO
    total_return_percent: Decimal = ZERO
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: Decimal = ZERO
    profit_factor: Decimal = ZERO
    max_drawdown: Decimal = ZERO
    max_drawdown_percent: Decimal = ZERO
    sharpe_ratio: Decimal = ZERO
    avg_win: Decimal = ZERO
    avg_loss: Decimal = ZERO
    largest_win: Decimal = ZERO
    largest_loss: Decimal = ZERO


@dataclass(frozen=True)
class BacktestResult:
    """Immutable summary of a completed backtest run.

    Bundle the strategy, symbol, interval, requested date range, balance
    figures, the full list of trades, and computed performance metrics
    into a single result object.
    """

    strategy: StrategyConfig
    symbol: str
    interval: Interval
    start_time: int
    end_time: int
    initial_balance: Decimal
    final_balance: Decimal
    trades: tuple[Trade, ...]
    metrics: PerformanceMetrics
