"""CSV-based candle data provider for offline and testing use.

Read OHLCV candle data from a local CSV file instead of a live market
data API. Files written by the ``tradedesk-fetch`` command use the
columns ``symbol,timestamp,open,high,low,close,volume,interval``.
"""

import csv
from decimal import Decimal, InvalidOperation
from pathlib import Path

from tradedesk.core.exceptions import DataFetchError, DataIntegrityError
from tradedesk.core.models import Candle, Interval
from tradedesk.data.validation import normalize_candles

CSV_COLUMNS = ("symbol", "timestamp", "open", "high", "low", "close", "volume", "interval")


class CsvCandleProvider:
    """Load candle data from a local CSV file.

    Implement the ``CandleProvider`` protocol. Rows are filtered by
    symbol, interval, and time range so a single CSV can hold mixed data
    for several symbols or intervals.
    """

    def __init__(self, file_path: Path) -> None:
        """Initialize the provider with the path to the CSV file."""
        self._file_path = file_path

    async def get_candles(
        self,
        symbol: str,
        interval: Interval,
        start_ts: int,
        end_ts: int,
    ) -> list[Candle]:
        """Return rows matching ``symbol`` and ``interval`` within ``[start_ts, end_ts]``.

        Raises:
            DataFetchError: If the file cannot be read.
            DataIntegrityError: If a required column is missing or a matching
                row is short or holds an unparseable number.

        """
        try:
            with self._file_path.open(newline="") as f:
                reader = csv.DictReader(f)
                rows = list(reader)
                columns = reader.fieldnames or ()
        except OSError as exc:
            msg = f"Cannot read candle file {self._file_path}: {exc}"
            raise DataFetchError(msg) from exc

        missing = [col for col in CSV_COLUMNS if col not in columns]
        if missing:
            msg = f"{self._file_path.name}: missing columns: {', '.join(missing)}"
            raise DataIntegrityError(msg)

        candles: list[Candle] = []
        for line_no, row in enumerate(rows, start=2):
            if row["symbol"] != symbol or row["interval"] != interval.value:
                continue
            try:
                candle = Candle(
                    symbol=symbol,
                    timestamp=int(row["timestamp"]),
                    open=Decimal(row["open"]),
                    high=Decimal(row["high"]),
                    low=Decimal(row["low"]),
                    close=Decimal(row["close"]),
                    volume=Decimal(row["volume"]),
                    interval=interval,
                )
            except (TypeError, ValueError, InvalidOperation) as exc:
                msg = f"{self._file_path.name}:{line_no}: malformed candle row"
                raise DataIntegrityError(msg) from exc
            if start_ts <= candle.timestamp <= end_ts:
                candles.append(candle)
        return normalize_candles(candles)
