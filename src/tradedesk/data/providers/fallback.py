"""Fallback chain over several candle providers.

Ask each provider in turn and return the first non-empty answer. A
provider that raises ``DataFetchError`` (or rejects the interval with
``ValueError``) is logged and skipped. If every provider failed the
chain raises ``DataFetchError``; if at least one answered but all came
back empty the chain returns an empty list so the caller can report
``NoDataError``.
"""

import logging
from collections.abc import Sequence

from tradedesk.core.exceptions import DataFetchError
from tradedesk.core.models import Candle, Interval
from tradedesk.core.protocols import CandleProvider

logger = logging.getLogger(__name__)


class FallbackCandleProvider:
    """Try a sequence of ``CandleProvider`` objects until one returns data."""

    def __init__(self, providers: Sequence[tuple[str, CandleProvider]]) -> None:
        """Initialize the chain.

        Args:
            providers: ``(name, provider)`` pairs in priority order. Names
                are used in log messages and error reports.

        Raises:
            ValueError: If no providers are given.

        """
        if not providers:
            msg = "FallbackCandleProvider needs at least one provider"
            raise ValueError(msg)
        self._providers = list(providers)

    async def get_candles(
        self,
        symbol: str,
        interval: Interval,
        start_ts: int,
        end_ts: int,
    ) -> list[Candle]:
        """Return candles from the first provider that has any."""
        failures: list[str] = []
        answered = False
        for name, provider in self._providers:
            try:
                candles = await provider.get_candles(symbol, interval, start_ts, end_ts)
            except (DataFetchError, ValueError) as exc:
                logger.warning("Provider %s failed for %s: %s", name, symbol, exc)
                failures.append(f"{name}: {exc}")
                continue
            answered = True
            if candles:
                logger.info("Using %d candles for %s from %s", len(candles), symbol, name)
                return candles
            logger.info("Provider %s returned no candles for %s", name, symbol)

        if not answered:
            msg = f"All data providers failed for {symbol}: " + "; ".join(failures)
            raise DataFetchError(msg)
        return []
