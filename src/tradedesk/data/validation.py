"""Ingestion checks for candle sequences.

Providers call ``normalize_candles`` to hand back an ascending,
timestamp-unique sequence. The engine calls ``validate_candles`` before
it walks the data: non-finite prices and non-increasing timestamps are
rejected with ``DataIntegrityError``; OHLC envelope violations
(``low > min(open, close)`` or ``high < max(open, close)``) are logged
because real exchange feeds occasionally contain them.
"""

import logging
from collections.abc import Iterable, Sequence

from tradedesk.core.exceptions import DataIntegrityError
from tradedesk.core.models import ZERO, Candle

logger = logging.getLogger(__name__)


def normalize_candles(candles: Iterable[Candle]) -> list[Candle]:
    """Return candles sorted by timestamp with duplicates removed.

    When two candles share a timestamp the later one in the input wins,
    so a refreshed bar from a paginated API replaces the stale one.
    """
    by_ts: dict[int, Candle] = {}
    for candle in candles:
        by_ts[candle.timestamp] = candle
    return [by_ts[ts] for ts in sorted(by_ts)]


def validate_candles(candles: Sequence[Candle]) -> None:
    """Check a candle sequence before it reaches the engine.

    Args:
        candles: Candles in the order they will be replayed.

    Raises:
        DataIntegrityError: If a price or volume is not finite, a price is
            not positive, or timestamps are not strictly increasing.

    """
    prev_ts: int | None = None
    for index, candle in enumerate(candles):
        for field_name in ("open", "high", "low", "close", "volume"):
            value = getattr(candle, field_name)
            if not value.is_finite():
                msg = (
                    f"Candle {index} ({candle.symbol} @ {candle.timestamp}) "
                    f"has non-finite {field_name}: {value}"
                )
                raise DataIntegrityError(msg)
        if candle.close <= ZERO or candle.open <= ZERO:
            msg = f"Candle {index} ({candle.symbol} @ {candle.timestamp}) has a non-positive price"
            raise DataIntegrityError(msg)
        if prev_ts is not None and candle.timestamp <= prev_ts:
            msg = (
                f"Candle timestamps must be strictly increasing: "
                f"{candle.timestamp} follows {prev_ts} at index {index}"
            )
            raise DataIntegrityError(msg)
        if candle.low > min(candle.open, candle.close) or candle.high < max(
            candle.open, candle.close
        ):
            logger.warning(
                "Candle %s @ %d has an inconsistent OHLC envelope (o=%s h=%s l=%s c=%s)",
                candle.symbol,
                candle.timestamp,
                candle.open,
                candle.high,
                candle.low,
                candle.close,
            )
        prev_ts = candle.timestamp
