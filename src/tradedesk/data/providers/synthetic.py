"""Simulated candle data provider.

Generate a reproducible random-walk price series when no live source
can serve a symbol. The walk is seeded from the configured seed and the
symbol name, so repeated requests return identical candles.
"""

import logging
import random
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_EVEN, Decimal

from tradedesk.core.models import ONE, Candle, Interval

logger = logging.getLogger(__name__)

INTERVAL_SECONDS: dict[Interval, int] = {
    Interval.M1: 60,
    Interval.M5: 300,
    Interval.M15: 900,
    Interval.H1: 3600,
    Interval.H4: 14_400,
    Interval.D1: 86_400,
    Interval.W1: 604_800,
}

_MAX_CANDLES = 5000
_CENT = Decimal("0.01")
_DAILY_VOLATILITY = 0.02
_SECONDS_PER_DAY = 86_400


class SyntheticCandleProvider:
    """Produce a seeded geometric random walk of OHLCV candles.

    Implement the ``CandleProvider`` protocol. Candles are aligned to
    interval boundaries inside ``[start_ts, end_ts]``; at most
    ``max_candles`` of the most recent buckets are generated.
    """

    def __init__(
        self,
        seed: int = 42,
        start_price: Decimal = Decimal(100),
        max_candles: int = _MAX_CANDLES,
    ) -> None:
        """Initialize the generator.

        Args:
            seed: Base seed combined with the symbol for reproducibility.
            start_price: Opening price of the first generated candle.
            max_candles: Upper bound on candles per request.

        """
        self._seed = seed
        self._start_price = start_price
        self._max_candles = max_candles

    async def get_candles(
        self,
        symbol: str,
        interval: Interval,
        start_ts: int,
        end_ts: int,
    ) -> list[Candle]:
        """Return simulated candles covering ``[start_ts, end_ts]``."""
        step = INTERVAL_SECONDS[interval]
        first = -(-start_ts // step) * step
        if first > end_ts:
            return []
        count = (end_ts - first) // step + 1
        if count > self._max_candles:
            first += (count - self._max_candles) * step
            count = self._max_candles

        rng = random.Random(f"{self._seed}:{symbol}:{interval.value}")  # noqa: S311
        volatility = _DAILY_VOLATILITY * (step / _SECONDS_PER_DAY) ** 0.5
        price = self._start_price
        candles: list[Candle] = []
        for i in range(count):
            open_ = price.quantize(_CENT, rounding=ROUND_HALF_EVEN)
            change = Decimal(str(rng.gauss(0.0, volatility)))
            close = max(open_ * (ONE + change), _CENT).quantize(_CENT, rounding=ROUND_HALF_EVEN)
            wick_up = Decimal(str(abs(rng.gauss(0.0, volatility / 2))))
            wick_down = Decimal(str(abs(rng.gauss(0.0, volatility / 2))))
            high = (max(open_, close) * (ONE + wick_up)).quantize(_CENT, rounding=ROUND_CEILING)
            low = max(min(open_, close) * (ONE - wick_down), _CENT).quantize(
                _CENT, rounding=ROUND_FLOOR
            )
            candles.append(
                Candle(
                    symbol=symbol,
                    timestamp=first + i * step,
                    open=open_,
                    high=high,
                    low=low,
                    close=close,
                    volume=Decimal(rng.randint(1_000, 100_000)),
                    interval=interval,
                )
            )
            price = close

        logger.info(
            "Generated %d simulated %s candles for %s", len(candles), interval.value, symbol
        )
        return candles
