"""Terminal output formatters for the backtester CLI.

Centralise output logic (result summaries and trade tables) so that the
individual command modules remain focused on orchestration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer

from tradedesk.apps.backtester.metrics import is_unbounded
from tradedesk.core.timestamps import format_timestamp

if TYPE_CHECKING:
    from tradedesk.core.models import BacktestResult


def print_result(result: BacktestResult) -> None:
    """Print a formatted summary of the backtest result to the terminal."""
    m = result.metrics
    pf = "Inf" if is_unbounded(m.profit_factor) else f"{m.profit_factor:.4f}"
    period = f"{format_timestamp(result.start_time)} .. {format_timestamp(result.end_time)}"
    typer.echo(f"\n{'=' * 50}")
    typer.echo(f"Strategy:        {result.strategy.name}")
    typer.echo(f"Symbol:          {result.symbol}")
    typer.echo(f"Interval:        {result.interval.value}")
    typer.echo(f"Period:          {period}")
    typer.echo(f"Initial Balance: {result.initial_balance:.2f}")
    typer.echo(f"Final Balance:   {result.final_balance:.2f}")
    typer.echo(f"Trades:          {m.total_trades}")
    typer.echo(f"\n{'--- Metrics ---':^50}")
    typer.echo(f"  {'total_return':20s}: {m.total_return:.2f} ({m.total_return_percent:.2f}%)")
    typer.echo(f"  {'win_rate':20s}: {m.win_rate:.2f}%")
    typer.echo(f"  {'winning / losing':20s}: {m.winning_trades} / {m.losing_trades}")
    typer.echo(f"  {'profit_factor':20s}: {pf}")
    typer.echo(f"  {'max_drawdown':20s}: {m.max_drawdown:.2f} ({m.max_drawdown_percent:.2f}%)")
    typer.echo(f"  {'sharpe_ratio':20s}: {m.sharpe_ratio:.4f}")
    typer.echo(f"  {'avg_win':20s}: {m.avg_win:.2f}")
    typer.echo(f"  {'avg_loss':20s}: {m.avg_loss:.2f}")
    typer.echo(f"  {'largest_win':20s}: {m.largest_win:.2f}")
    typer.echo(f"  {'largest_loss':20s}: {m.largest_loss:.2f}")
    typer.echo(f"{'=' * 50}\n")


def print_trades(result: BacktestResult) -> None:
    """Print one line per completed trade."""
    if not result.trades:
        typer.echo("No trades.")
        return

    header = (
        f"{'Entry':<20} {'Exit':<20} {'Entry Px':>10} {'Exit Px':>10} "
        f"{'PnL':>10} {'PnL%':>8}  Reason"
    )
    typer.echo(header)
    typer.echo("-" * len(header))
    for t in result.trades:
        typer.echo(
            f"{format_timestamp(t.entry_time):<20} "
            f"{format_timestamp(t.exit_time):<20} "
            f"{t.entry_price:>10.2f} "
            f"{t.exit_price:>10.2f} "
            f"{t.pnl:>10.2f} "
            f"{t.pnl_percent:>7.2f}%  "
            f"{t.reason}"
        )
