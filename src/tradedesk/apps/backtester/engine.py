"""Backtest engine that replays a parametrised strategy over historical candles.

Fetch candles from a ``CandleProvider``, validate and filter them to the
requested date range, precompute the indicator series once, then walk
the candles sequentially with a single long-only position. Return a
``BacktestResult`` containing the final balance, trade history, and
performance metrics.

The fetch is the only asynchronous step; ``BacktestEngine.simulate`` is
a plain blocking function over an in-memory candle list.
"""

import asyncio
import logging
from collections.abc import Sequence
from decimal import Decimal

from tradedesk.apps.backtester.metrics import calculate_metrics
from tradedesk.apps.backtester.portfolio import Portfolio
from tradedesk.apps.backtester.rules import IndicatorSet, entry_reason, exit_reason
from tradedesk.core.exceptions import DataFetchError, InsufficientDataError, NoDataError
from tradedesk.core.models import BacktestResult, Candle, Interval, StrategyConfig
from tradedesk.core.protocols import CandleProvider
from tradedesk.data.validation import validate_candles

logger = logging.getLogger(__name__)

MIN_CANDLES = 30
WARMUP_CANDLES = 30
END_OF_PERIOD_REASON = "End of backtest period"
DEFAULT_INITIAL_BALANCE = Decimal(100_000)


async def fetch_candles(  # noqa: PLR0913
    provider: CandleProvider,
    symbol: str,
    interval: Interval,
    start_ts: int,
    end_ts: int,
    *,
    timeout: float | None = None,
) -> list[Candle]:
    """Fetch candles from ``provider``, bounded by ``timeout`` seconds.

    Raises:
        DataFetchError: If the fetch takes longer than ``timeout``.

    """
    request = provider.get_candles(symbol, interval, start_ts, end_ts)
    try:
        if timeout is None:
            return await request
        return await asyncio.wait_for(request, timeout=timeout)
    except TimeoutError as exc:
        msg = f"Fetching candles for {symbol} timed out after {timeout}s"
        raise DataFetchError(msg) from exc


class BacktestEngine:
    """Run a ``StrategyConfig`` against historical candle data for one symbol.

    The engine keeps no state between runs; each call to ``run`` or
    ``simulate`` owns its own cash, position, and trade log, so several
    runs may execute concurrently.
    """

    def __init__(
        self,
        provider: CandleProvider,
        strategy: StrategyConfig,
        initial_balance: Decimal = DEFAULT_INITIAL_BALANCE,
        *,
        fetch_timeout: float | None = None,
    ) -> None:
        """Initialize the backtest engine.

        Args:
            provider: Data source that supplies historical candles.
            strategy: Entry/exit rules and position size to simulate.
            initial_balance: Starting cash in quote currency (must be > 0).
            fetch_timeout: Optional limit in seconds on the candle fetch.

        Raises:
            ValueError: If ``initial_balance`` is not positive.

        """
        if initial_balance <= 0:
            msg = f"initial_balance must be > 0, got {initial_balance}"
            raise ValueError(msg)
        self._provider = provider
        self._strategy = strategy
        self._initial_balance = initial_balance
        self._fetch_timeout = fetch_timeout

    @property
    def strategy(self) -> StrategyConfig:
        """Return the strategy this engine simulates."""
        return self._strategy

    async def run(
        self,
        symbol: str,
        interval: Interval,
        start_ts: int,
        end_ts: int,
    ) -> BacktestResult:
        """Fetch candles and execute the backtest.

        Args:
            symbol: Instrument to test (e.g. ``AAPL`` or ``BTC-USD``).
            interval: Candle time interval.
            start_ts: Start Unix timestamp in seconds (inclusive).
            end_ts: End Unix timestamp in seconds (inclusive).

        Returns:
            A ``BacktestResult`` with final balance, trades, and metrics.

        Raises:
            DataFetchError: If the fetch fails or exceeds ``fetch_timeout``.
            NoDataError: If the provider returns no candles.
            DataIntegrityError: If the candles fail ingestion validation.
            InsufficientDataError: If fewer than 30 candles fall in range.

        """
        candles = await fetch_candles(
            self._provider, symbol, interval, start_ts, end_ts, timeout=self._fetch_timeout
        )
        if not candles:
            raise NoDataError(symbol)
        validate_candles(candles)
        return self.simulate(symbol, interval, candles, start_ts, end_ts)

    def simulate(
        self,
        symbol: str,
        interval: Interval,
        candles: Sequence[Candle],
        start_ts: int,
        end_ts: int,
    ) -> BacktestResult:
        """Walk validated candles and return the backtest result.

        Only candles with ``start_ts <= timestamp <= end_ts`` are used.
        The walk starts after a 30-candle warm-up. At each candle the
        engine either looks for an entry (no open position) or for an
        exit (position open), never both. A position still open after
        the last candle is closed at that candle's close.

        Raises:
            InsufficientDataError: If fewer than 30 candles fall in range.

        """
        window = [c for c in candles if start_ts <= c.timestamp <= end_ts]
        if len(window) < MIN_CANDLES:
            raise InsufficientDataError(len(window), MIN_CANDLES)

        strategy = self._strategy
        indicators = IndicatorSet.from_candles(window)
        portfolio = Portfolio(self._initial_balance)

        for index in range(WARMUP_CANDLES, len(window)):
            candle = window[index]
            snapshot = indicators.snapshot(index)
            position = portfolio.position

            if position is None:
                reason = entry_reason(snapshot, strategy.entry_rules)
                if reason is not None:
                    portfolio.open_position(
                        symbol, strategy.position_size, candle.close, candle.timestamp, reason
                    )
            else:
                reason = exit_reason(snapshot, strategy, position)
                if reason is not None:
                    portfolio.close_position(candle.close, candle.timestamp, reason)

        last = window[-1]
        portfolio.close_position(last.close, last.timestamp, END_OF_PERIOD_REASON)

        trades = portfolio.trades
        metrics = calculate_metrics(trades, self._initial_balance, portfolio.cash)
        logger.info(
            "Backtest %s on %s: %d candles, %d trades, final balance %s",
            strategy.name,
            symbol,
            len(window),
            len(trades),
            portfolio.cash,
        )
        return BacktestResult(
            strategy=strategy,
            symbol=symbol,
            interval=interval,
            start_time=start_ts,
            end_time=end_ts,
            initial_balance=self._initial_balance,
            final_balance=portfolio.cash,
            trades=tuple(trades),
            metrics=metrics,
        )


async def run_backtest(  # noqa: PLR0913
    provider: CandleProvider,
    symbol: str,
    strategy: StrategyConfig,
    start_ts: int,
    end_ts: int,
    initial_balance: Decimal = DEFAULT_INITIAL_BALANCE,
    interval: Interval = Interval.D1,
    *,
    fetch_timeout: float | None = None,
) -> BacktestResult:
    """Run one backtest of ``strategy`` on ``symbol`` between two timestamps.

    Convenience wrapper around ``BacktestEngine`` for callers that do not
    need to reuse the engine.
    """
    engine = BacktestEngine(provider, strategy, initial_balance, fetch_timeout=fetch_timeout)
    return await engine.run(symbol, interval, start_ts, end_ts)
