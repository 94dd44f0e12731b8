"""CLI command and async helper for the ``compare`` command.

Run every strategy preset on the same candle data and print a ranked
comparison table.
"""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from tradedesk.apps.backtester.cli._helpers import (
    build_provider,
    close_clients,
    configure_logging,
    parse_ts_option,
    resolve_balance,
    resolve_fetch_timeout,
    resolve_interval,
    resolve_position_size,
    validate_source,
)
from tradedesk.apps.backtester.compare import SORT_METRICS, format_comparison_table, run_comparison
from tradedesk.core.exceptions import TradedeskError
from tradedesk.core.models import BacktestResult


def _validate_sort(value: str) -> str:
    if value not in SORT_METRICS:
        raise typer.BadParameter(f"Must be one of: {', '.join(SORT_METRICS)}")
    return value


def compare(  # noqa: PLR0913
    source: Annotated[
        str,
        typer.Option(
            help="Data source: auto, yahoo, binance, csv, or synthetic",
            callback=validate_source,
        ),
    ] = "auto",
    csv: Annotated[Path | None, typer.Option(help="Path to CSV candle data file")] = None,
    symbol: Annotated[str, typer.Option(help="Ticker or trading pair symbol")] = "AAPL",
    interval: Annotated[
        str | None, typer.Option(help="Candle interval (1m,5m,15m,1h,4h,1d,1w)")
    ] = None,
    start: Annotated[str, typer.Option(help="Start date (ISO 8601) or Unix timestamp")] = (
        "2023-01-01"
    ),
    end: Annotated[str, typer.Option(help="End date (ISO 8601) or Unix timestamp")] = (
        "2024-01-01"
    ),
    balance: Annotated[float | None, typer.Option(help="Initial balance")] = None,
    position_size: Annotated[
        float | None, typer.Option(help="Dollar amount committed per entry")
    ] = None,
    sort_by: Annotated[
        str, typer.Option(help="Metric to rank by", callback=_validate_sort)
    ] = "total_return",
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,  # noqa: FBT002
) -> None:
    """Compare every strategy preset on the same candle data."""
    configure_logging(verbose=verbose)
    start_ts = parse_ts_option(start, "--start")
    end_ts = parse_ts_option(end, "--end")
    if end_ts < start_ts:
        raise typer.BadParameter("--end must not be before --start", param_hint="'--end'")
    try:
        asyncio.run(
            run_compare(
                source=source,
                csv=csv,
                symbol=symbol,
                interval=interval,
                start=start_ts,
                end=end_ts,
                balance=balance,
                position_size=position_size,
                sort_by=sort_by,
            )
        )
    except (TradedeskError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc


async def run_compare(  # noqa: PLR0913
    *,
    source: str,
    csv: Path | None,
    symbol: str,
    interval: str | None,
    start: int,
    end: int,
    balance: float | None,
    position_size: float | None,
    sort_by: str,
) -> list[BacktestResult]:
    """Run all presets, print the ranked table, and close HTTP clients."""
    resolved_interval = resolve_interval(interval)
    resolved_balance = resolve_balance(balance)
    resolved_size = resolve_position_size(position_size)

    provider, clients = build_provider(source, csv)
    try:
        results = await run_comparison(
            provider=provider,
            symbol=symbol,
            interval=resolved_interval,
            start=start,
            end=end,
            initial_balance=resolved_balance,
            position_size=resolved_size,
            fetch_timeout=resolve_fetch_timeout(),
        )
    finally:
        await close_clients(clients)

    typer.echo(f"\nStrategy comparison: {symbol} ({resolved_interval.value})")
    typer.echo(format_comparison_table(results, sort_by=sort_by))
    return results
