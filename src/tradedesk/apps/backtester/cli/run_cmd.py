"""CLI command and async helper for the ``run`` backtest command.

Execute a single strategy backtest against historical candle data,
print the metrics and trade list, and optionally write the camelCase
JSON result to a file.
"""

import asyncio
from pathlib import Path
from typing import Annotated

import typer

from tradedesk.apps.backtester.cli._helpers import (
    RuleOverrides,
    build_provider,
    build_strategy,
    close_clients,
    configure_logging,
    parse_ts_option,
    resolve_balance,
    resolve_fetch_timeout,
    resolve_interval,
    validate_preset,
    validate_source,
)
from tradedesk.apps.backtester.cli._output import print_result, print_trades
from tradedesk.apps.backtester.engine import BacktestEngine
from tradedesk.apps.backtester.serialization import write_result
from tradedesk.core.exceptions import TradedeskError
from tradedesk.core.models import BacktestResult


def run(  # noqa: PLR0913
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
    preset: Annotated[
        str | None, typer.Option(help="Strategy preset name", callback=validate_preset)
    ] = None,
    strategy_file: Annotated[
        Path | None, typer.Option(help="Strategy JSON file (camelCase fields)")
    ] = None,
    rsi_oversold: Annotated[float | None, typer.Option(help="Enter when RSI < value")] = None,
    rsi_overbought: Annotated[float | None, typer.Option(help="Exit when RSI > value")] = None,
    macd: Annotated[
        bool | None, typer.Option("--macd/--no-macd", help="Use MACD crossovers")
    ] = None,
    bollinger: Annotated[
        bool | None,
        typer.Option("--bollinger/--no-bollinger", help="Enter below the lower Bollinger band"),
    ] = None,
    volume_threshold: Annotated[
        float | None, typer.Option(help="High-volume multiple of the 20-candle average")
    ] = None,
    take_profit: Annotated[float | None, typer.Option(help="Take-profit percent")] = None,
    stop_loss: Annotated[float | None, typer.Option(help="Stop-loss percent")] = None,
    position_size: Annotated[
        float | None, typer.Option(help="Dollar amount committed per entry")
    ] = None,
    json_output: Annotated[
        Path | None, typer.Option(help="Write the result as JSON to this file")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,  # noqa: FBT002
) -> None:
    """Run a backtest against historical candle data."""
    configure_logging(verbose=verbose)
    start_ts = parse_ts_option(start, "--start")
    end_ts = parse_ts_option(end, "--end")
    if end_ts < start_ts:
        raise typer.BadParameter("--end must not be before --start", param_hint="'--end'")

    overrides = RuleOverrides(
        rsi_oversold=rsi_oversold,
        rsi_overbought=rsi_overbought,
        macd=macd,
        bollinger=bollinger,
        volume_threshold=volume_threshold,
        take_profit=take_profit,
        stop_loss=stop_loss,
        position_size=position_size,
    )
    try:
        asyncio.run(
            run_backtest(
                source=source,
                csv=csv,
                symbol=symbol,
                interval=interval,
                start=start_ts,
                end=end_ts,
                balance=balance,
                preset=preset,
                strategy_file=strategy_file,
                overrides=overrides,
                json_output=json_output,
            )
        )
    except (TradedeskError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc


async def run_backtest(  # noqa: PLR0913
    *,
    source: str,
    csv: Path | None,
    symbol: str,
    interval: str | None,
    start: int,
    end: int,
    balance: float | None,
    preset: str | None,
    strategy_file: Path | None,
    overrides: RuleOverrides,
    json_output: Path | None,
) -> BacktestResult:
    """Orchestrate a single backtest run from resolved CLI parameters.

    Build the strategy and candle provider, execute the backtest engine,
    print the result, optionally write JSON, and close any HTTP client
    resources.
    """
    strategy = build_strategy(preset, strategy_file, overrides)
    resolved_interval = resolve_interval(interval)
    resolved_balance = resolve_balance(balance)

    provider, clients = build_provider(source, csv)
    try:
        engine = BacktestEngine(
            provider,
            strategy,
            resolved_balance,
            fetch_timeout=resolve_fetch_timeout(),
        )
        result = await engine.run(symbol, resolved_interval, start, end)
    finally:
        await close_clients(clients)

    print_result(result)
    print_trades(result)
    if json_output is not None:
        write_result(result, json_output)
        typer.echo(f"Result written to {json_output}")
    return result
