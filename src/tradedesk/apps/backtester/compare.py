"""Strategy comparison utilities for the backtester.

Run every preset strategy against the same candle data and produce a
ranked summary table. Candles are fetched once and each preset is
simulated on the shared list, so all presets see identical data.
"""

import asyncio
from decimal import Decimal

from tradedesk.apps.backtester.engine import (
    DEFAULT_INITIAL_BALANCE,
    BacktestEngine,
    fetch_candles,
)
from tradedesk.apps.backtester.metrics import is_unbounded
from tradedesk.apps.backtester.strategy_presets import PRESET_NAMES, build_preset
from tradedesk.core.exceptions import NoDataError
from tradedesk.core.models import BacktestResult, Candle, Interval, StrategyConfig
from tradedesk.core.protocols import CandleProvider
from tradedesk.data.validation import validate_candles

SORT_METRICS = (
    "total_return",
    "win_rate",
    "profit_factor",
    "max_drawdown",
    "sharpe_ratio",
    "total_trades",
)

# Metrics where lower is better (sort ascending instead of descending).
_ASCENDING_METRICS = frozenset({"max_drawdown"})

# Return ranks by the percentage column the table prints.
_SORT_FIELDS = {"total_return": "total_return_percent"}


class _SharedCandles:
    """Provider that serves an already-fetched candle list."""

    def __init__(self, candles: list[Candle]) -> None:
        self._candles = candles

    async def get_candles(
        self,
        symbol: str,  # noqa: ARG002
        interval: Interval,  # noqa: ARG002
        start_ts: int,  # noqa: ARG002
        end_ts: int,  # noqa: ARG002
    ) -> list[Candle]:
        return self._candles


async def run_comparison(  # noqa: PLR0913
    *,
    provider: CandleProvider,
    symbol: str,
    interval: Interval,
    start: int,
    end: int,
    initial_balance: Decimal = DEFAULT_INITIAL_BALANCE,
    position_size: Decimal = Decimal(10_000),
    presets: tuple[str, ...] = PRESET_NAMES,
    fetch_timeout: float | None = None,
) -> list[BacktestResult]:
    """Run the given presets concurrently against the same candle data.

    Fetch candles once from ``provider``, then execute one
    ``BacktestEngine`` per preset with ``asyncio.gather``. Each engine
    owns its own ledger, so the runs share nothing but the candles.

    Args:
        provider: Data source for historical candles.
        symbol: Instrument to test (e.g. ``AAPL``).
        interval: Candle time interval.
        start: Start Unix timestamp in seconds.
        end: End Unix timestamp in seconds.
        initial_balance: Starting cash for every run.
        position_size: Dollar amount committed per entry.
        presets: Preset names to run, in result order.
        fetch_timeout: Optional limit in seconds on the candle fetch.

    Returns:
        A list of ``BacktestResult`` objects, one per preset.

    Raises:
        DataFetchError: If the fetch fails or exceeds ``fetch_timeout``.
        NoDataError: If the provider returns no candles.

    """
    candles = await fetch_candles(provider, symbol, interval, start, end, timeout=fetch_timeout)
    if not candles:
        raise NoDataError(symbol)
    validate_candles(candles)

    shared = _SharedCandles(candles)
    strategies: list[StrategyConfig] = [build_preset(name, position_size) for name in presets]
    engines = [BacktestEngine(shared, s, initial_balance) for s in strategies]
    results = await asyncio.gather(*(e.run(symbol, interval, start, end) for e in engines))
    return list(results)


def _metric(result: BacktestResult, name: str) -> Decimal:
    return Decimal(getattr(result.metrics, _SORT_FIELDS.get(name, name)))


def format_comparison_table(
    results: list[BacktestResult],
    sort_by: str = "total_return",
) -> str:
    """Format backtest results as a ranked comparison table.

    Args:
        results: List of ``BacktestResult`` objects to compare.
        sort_by: Metric name to rank by. ``total_return`` ranks by
            ``total_return_percent``. For ``max_drawdown`` lower values
            rank higher; all other metrics sort descending.

    Returns:
        A multi-line string containing the formatted table.

    Raises:
        ValueError: If ``sort_by`` is not a recognised metric name.

    """
    if sort_by not in SORT_METRICS:
        msg = f"Unknown sort metric: {sort_by}. Must be one of: {', '.join(SORT_METRICS)}"
        raise ValueError(msg)

    reverse = sort_by not in _ASCENDING_METRICS
    sorted_results = sorted(results, key=lambda r: _metric(r, sort_by), reverse=reverse)

    header = (
        f"{'Rank':<5} "
        f"{'Strategy':<22} "
        f"{'Return%':>9} "
        f"{'Trades':>7} "
        f"{'Win Rate':>9} "
        f"{'Profit F':>9} "
        f"{'Max DD%':>9} "
        f"{'Sharpe':>9}"
    )
    separator = "-" * len(header)
    lines = [separator, header, separator]

    for rank, result in enumerate(sorted_results, start=1):
        m = result.metrics
        pf_str = "Inf" if is_unbounded(m.profit_factor) else f"{m.profit_factor:.4f}"
        lines.append(
            f"{rank:<5} "
            f"{result.strategy.name:<22} "
            f"{m.total_return_percent:>8.2f}% "
            f"{m.total_trades:>7} "
            f"{m.win_rate:>8.2f}% "
            f"{pf_str:>9} "
            f"{m.max_drawdown_percent:>8.2f}% "
            f"{m.sharpe_ratio:>9.4f}"
        )

    lines.append(separator)
    return "\n".join(lines)
