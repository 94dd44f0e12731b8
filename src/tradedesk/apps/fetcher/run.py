"""CLI entry point for the candle data fetcher.

Provide a Typer CLI command that fetches historical OHLCV candle data
from Yahoo Finance, Binance, or the synthetic generator and writes the
result to a CSV file compatible with the ``CsvCandleProvider``.
"""

import asyncio
import csv
import logging
import time
from pathlib import Path
from typing import Annotated

import typer

from tradedesk.clients.binance.client import BinanceClient
from tradedesk.clients.yahoo.client import YahooFinanceClient
from tradedesk.core.exceptions import TradedeskError
from tradedesk.core.models import Candle, Interval
from tradedesk.core.timestamps import parse_timestamp
from tradedesk.data.providers.binance import BinanceCandleProvider
from tradedesk.data.providers.csv_provider import CSV_COLUMNS
from tradedesk.data.providers.synthetic import SyntheticCandleProvider
from tradedesk.data.providers.yahoo import YahooCandleProvider

logger = logging.getLogger(__name__)

app = typer.Typer(help="Fetch candle data from market data APIs")

_VALID_SOURCES = ("yahoo", "binance", "synthetic")


def _validate_source(value: str) -> str:
    """Validate that the data source is one of the supported providers.

    Raise ``typer.BadParameter`` if the source is not recognised.
    """
    if value not in _VALID_SOURCES:
        raise typer.BadParameter(f"Must be one of: {', '.join(_VALID_SOURCES)}")
    return value


def _parse_ts_option(value: str) -> int:
    """Parse a CLI timestamp option, raising BadParameter on failure."""
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _write_csv(candles: list[Candle], output: Path) -> None:
    """Write candles to a CSV file in CsvCandleProvider format."""
    with output.open("w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_COLUMNS)
        for c in candles:
            writer.writerow(
                (
                    c.symbol,
                    c.timestamp,
                    c.open,
                    c.high,
                    c.low,
                    c.close,
                    c.volume,
                    c.interval.value,
                )
            )


@app.command()
def fetch(  # noqa: PLR0913
    symbol: Annotated[str, typer.Option(help="Ticker or trading pair symbol")] = "AAPL",
    interval: Annotated[
        str,
        typer.Option(
            help="Candle interval (1m,5m,15m,1h,4h,1d,1w)",
        ),
    ] = "1d",
    start: Annotated[str, typer.Option(help="Start date (ISO 8601) or Unix timestamp")] = "",
    end: Annotated[
        str,
        typer.Option(
            help="End date (ISO 8601) or Unix timestamp; defaults to now",
        ),
    ] = "",
    output: Annotated[Path, typer.Option(help="Output CSV file path")] = Path("candles.csv"),
    source: Annotated[
        str,
        typer.Option(
            help="Data source: yahoo, binance, or synthetic",
            callback=_validate_source,
        ),
    ] = "yahoo",
) -> None:
    """Fetch candle data and save to CSV."""
    if not start:
        raise typer.BadParameter("--start is required", param_hint="'--start'")

    start_ts = _parse_ts_option(start)
    end_ts = _parse_ts_option(end) if end else int(time.time())
    try:
        resolved_interval = Interval(interval)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="'--interval'") from exc

    try:
        asyncio.run(
            _fetch(
                symbol=symbol,
                interval=resolved_interval,
                start_ts=start_ts,
                end_ts=end_ts,
                output=output,
                source=source,
            )
        )
    except (TradedeskError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc


async def _fetch(  # noqa: PLR0913
    *,
    symbol: str,
    interval: Interval,
    start_ts: int,
    end_ts: int,
    output: Path,
    source: str,
) -> list[Candle]:
    """Fetch candles from the selected source and write them to CSV."""
    if source == "binance":
        async with BinanceClient.from_config() as client:
            candles = await BinanceCandleProvider(client).get_candles(
                symbol, interval, start_ts, end_ts
            )
    elif source == "yahoo":
        async with YahooFinanceClient.from_config() as yahoo:
            candles = await YahooCandleProvider(yahoo).get_candles(
                symbol, interval, start_ts, end_ts
            )
    else:
        candles = await SyntheticCandleProvider().get_candles(symbol, interval, start_ts, end_ts)

    logger.info(
        "Fetched %d %s candles for %s from %s", len(candles), interval.value, symbol, source
    )
    _write_csv(candles, output)
    typer.echo(f"Wrote {len(candles)} candles to {output}")
    return candles


def main() -> None:
    """Run the fetcher CLI application."""
    app()


if __name__ == "__main__":
    main()
