"""Performance metrics for evaluating backtest results.

Provide standalone functions that each compute a single metric from a
list of ``Trade`` objects. The ``calculate_metrics`` convenience function
runs all of them and returns a ``PerformanceMetrics`` record. Percentages
use the 0-100 scale. Degenerate inputs (no trades, no losing trades,
zero variance) produce defined values rather than NaN.
"""

from collections.abc import Sequence
from decimal import Decimal

from tradedesk.core.models import HUNDRED, ZERO, PerformanceMetrics, Trade

INFINITE_PROFIT_FACTOR = Decimal("Infinity")
TRADING_PERIODS_PER_YEAR = 252


def is_unbounded(profit_factor_value: Decimal) -> bool:
    """Return whether a profit factor is the "no losing trades" sentinel."""
    return profit_factor_value == INFINITE_PROFIT_FACTOR


def total_return(initial_balance: Decimal, final_balance: Decimal) -> Decimal:
    """Return the absolute change in balance over the run."""
    return final_balance - initial_balance


def total_return_percent(initial_balance: Decimal, final_balance: Decimal) -> Decimal:
    """Return the change in balance as a percentage of the initial balance."""
    if initial_balance == ZERO:
        return ZERO
    return (final_balance - initial_balance) / initial_balance * HUNDRED


def win_rate(trades: Sequence[Trade]) -> Decimal:
    """Return the percentage of trades with positive PnL (0 when there are no trades).

    Break-even trades count toward the total but not the winners.
    """
    if not trades:
        return ZERO
    winners = sum(1 for t in trades if t.pnl > ZERO)
    return Decimal(winners) / Decimal(len(trades)) * HUNDRED


def avg_win(trades: Sequence[Trade]) -> Decimal:
    """Return the mean PnL of winning trades, or zero if there are none."""
    wins = [t.pnl for t in trades if t.pnl > ZERO]
    if not wins:
        return ZERO
    return sum(wins, ZERO) / Decimal(len(wins))


def avg_loss(trades: Sequence[Trade]) -> Decimal:
    """Return the mean absolute PnL of losing trades, or zero if there are none."""
    losses = [t.pnl for t in trades if t.pnl < ZERO]
    if not losses:
        return ZERO
    return abs(sum(losses, ZERO) / Decimal(len(losses)))


def profit_factor(trades: Sequence[Trade]) -> Decimal:
    """Return average win divided by average loss.

    Return ``INFINITE_PROFIT_FACTOR`` when there are winners but no
    losers, and zero when there are neither.
    """
    mean_win = avg_win(trades)
    mean_loss = avg_loss(trades)
    if mean_loss == ZERO:
        return INFINITE_PROFIT_FACTOR if mean_win > ZERO else ZERO
    return mean_win / mean_loss


def max_drawdown(trades: Sequence[Trade], initial_balance: Decimal) -> Decimal:
    """Return the largest peak-to-trough drop of the realised balance, in currency.

    Walk the balance trade-by-trade (``initial_balance`` plus cumulative
    PnL), tracking the running high-water mark.
    """
    balance = initial_balance
    peak = balance
    worst = ZERO
    for trade in trades:
        balance += trade.pnl
        peak = max(peak, balance)
        worst = max(worst, peak - balance)
    return worst


def max_drawdown_percent(trades: Sequence[Trade], initial_balance: Decimal) -> Decimal:
    """Return ``max_drawdown`` as a percentage of the initial balance."""
    if initial_balance == ZERO:
        return ZERO
    return max_drawdown(trades, initial_balance) / initial_balance * HUNDRED


def sharpe_ratio(trades: Sequence[Trade]) -> Decimal:
    """Return a per-trade Sharpe ratio annualised by sqrt(252).

    Treat each trade's ``pnl_percent`` as one period's return: divide the
    mean by the population standard deviation and scale by ``sqrt(252)``.
    Return zero when there are no trades or the deviation is zero.
    """
    if not trades:
        return ZERO
    returns = [t.pnl_percent for t in trades]
    count = Decimal(len(returns))
    mean = sum(returns, ZERO) / count
    variance = sum(((r - mean) ** 2 for r in returns), ZERO) / count
    if variance == ZERO:
        return ZERO
    return mean / variance.sqrt() * Decimal(TRADING_PERIODS_PER_YEAR).sqrt()


def largest_win(trades: Sequence[Trade]) -> Decimal:
    """Return the best single-trade PnL, or zero if no trade made money."""
    return max((t.pnl for t in trades), default=ZERO).max(ZERO)


def largest_loss(trades: Sequence[Trade]) -> Decimal:
    """Return the worst single-trade PnL, or zero if no trade lost money."""
    return min((t.pnl for t in trades), default=ZERO).min(ZERO)


def calculate_metrics(
    trades: Sequence[Trade],
    initial_balance: Decimal,
    final_balance: Decimal,
) -> PerformanceMetrics:
    """Calculate all performance metrics for a finished run."""
    return PerformanceMetrics(
        total_return=total_return(initial_balance, final_balance),
        total_return_percent=total_return_percent(initial_balance, final_balance),
        total_trades=len(trades),
        winning_trades=sum(1 for t in trades if t.pnl > ZERO),
        losing_trades=sum(1 for t in trades if t.pnl < ZERO),
        win_rate=win_rate(trades),
        profit_factor=profit_factor(trades),
        max_drawdown=max_drawdown(trades, initial_balance),
        max_drawdown_percent=max_drawdown_percent(trades, initial_balance),
        sharpe_ratio=sharpe_ratio(trades),
        avg_win=avg_win(trades),
        avg_loss=avg_loss(trades),
        largest_win=largest_win(trades),
        largest_loss=largest_loss(trades),
    )
