"""Technical indicator series for the backtester.

Provide pure functions that compute indicator series from sequences of
``Decimal`` prices (or ``Candle`` objects for ATR). Every series has the
same length as its input and holds ``None`` at indices where there is
not yet enough history, so the engine can index all series by candle
position without offset arithmetic.

First defined index per series:

- ``sma`` / ``bollinger_bands``: ``period - 1``
- ``ema``: ``period - 1`` after the first defined input value
- ``rsi`` / ``atr``: ``period``
- ``macd`` line: ``slow - 1``; signal and histogram: ``slow + signal - 2``
- ``trailing_mean``: ``period``
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from tradedesk.core.models import HUNDRED, ONE, TWO, ZERO, Candle

Series = list[Decimal | None]


@dataclass(frozen=True)
class MacdSeries:
    """MACD line, signal line, and histogram aligned to the input prices."""

    macd: Series
    signal: Series
    histogram: Series


@dataclass(frozen=True)
class BollingerBands:
    """Upper, middle, and lower Bollinger bands aligned to the input prices."""

    upper: Series
    middle: Series
    lower: Series


def _check_period(period: int, name: str = "period") -> None:
    if period < 1:
        msg = f"{name} must be >= 1, got {period}"
        raise ValueError(msg)


def sma(values: Sequence[Decimal], period: int) -> Series:
    """Return the simple moving average of the trailing ``period`` values.

    Args:
        values: Price sequence, oldest first.
        period: Number of values to average over.

    Returns:
        A series the length of ``values``, defined from ``period - 1``.

    Raises:
        ValueError: If ``period`` is less than 1.

    """
    _check_period(period)
    dec_period = Decimal(period)
    result: Series = [None] * len(values)
    for i in range(period - 1, len(values)):
        result[i] = sum(values[i - period + 1 : i + 1], ZERO) / dec_period
    return result


def ema(values: Sequence[Decimal | None], period: int) -> Series:
    """Return the exponential moving average of ``values``.

    Leading ``None`` entries are skipped, which lets the MACD signal line
    be computed over the defined part of the MACD line. The EMA is seeded
    with the SMA of the first ``period`` defined values, then follows
    ``ema = (value - prev) * k + prev`` with ``k = 2 / (period + 1)``.

    Args:
        values: Value sequence, oldest first. May begin with ``None``.
        period: Lookback window for the EMA.

    Returns:
        A series the length of ``values``, defined from ``period - 1``
        places after the first defined input. All ``None`` when fewer
        than ``period`` values are defined.

    Raises:
        ValueError: If ``period`` is less than 1, or a ``None`` appears
            after the first defined value.

    """
    _check_period(period)
    result: Series = [None] * len(values)
    start = next((i for i, v in enumerate(values) if v is not None), len(values))
    defined: list[Decimal] = []
    for v in values[start:]:
        if v is None:
            msg = "EMA input may only contain None before its first defined value"
            raise ValueError(msg)
        defined.append(v)
    if len(defined) < period:
        return result

    multiplier = TWO / (Decimal(period) + ONE)
    current = sum(defined[:period], ZERO) / Decimal(period)
    seed_index = start + period - 1
    result[seed_index] = current
    for offset, value in enumerate(defined[period:], start=1):
        current = (value - current) * multiplier + current
        result[seed_index + offset] = current
    return result


def rsi(values: Sequence[Decimal], period: int = 14) -> Series:
    """Return the Relative Strength Index over the trailing ``period`` price changes.

    Average gain and average loss are plain means of the last ``period``
    gains and losses (no Wilder smoothing). RSI is 100 when the average
    loss is zero, otherwise ``100 - 100 / (1 + avg_gain / avg_loss)``.

    Args:
        values: Close prices, oldest first.
        period: Number of price changes to average.

    Returns:
        A series of values in ``[0, 100]``, defined from ``period``.

    Raises:
        ValueError: If ``period`` is less than 1.

    """
    _check_period(period)
    result: Series = [None] * len(values)
    deltas = [values[i] - values[i - 1] for i in range(1, len(values))]
    gains = [max(d, ZERO) for d in deltas]
    losses = [max(-d, ZERO) for d in deltas]
    dec_period = Decimal(period)

    for i in range(period, len(values)):
        avg_gain = sum(gains[i - period : i], ZERO) / dec_period
        avg_loss = sum(losses[i - period : i], ZERO) / dec_period
        if avg_loss == ZERO:
            result[i] = HUNDRED
        else:
            result[i] = HUNDRED - HUNDRED / (ONE + avg_gain / avg_loss)
    return result


def macd(
    values: Sequence[Decimal],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MacdSeries:
    """Return the MACD line, its signal line, and the histogram.

    The MACD line is ``EMA(fast) - EMA(slow)`` wherever both are defined,
    the signal line is ``EMA(signal)`` of the defined MACD values, and the
    histogram is the line minus the signal.

    Args:
        values: Close prices, oldest first.
        fast: Period of the fast EMA.
        slow: Period of the slow EMA.
        signal: Period of the EMA applied to the MACD line.

    Returns:
        A ``MacdSeries`` whose three series have the length of ``values``.
        The line is defined from ``slow - 1``, and the signal and
        histogram from ``slow + signal - 2``.

    Raises:
        ValueError: If any period is less than 1 or ``fast >= slow``.

    """
    _check_period(fast, "fast")
    _check_period(slow, "slow")
    _check_period(signal, "signal")
    if fast >= slow:
        msg = f"fast period ({fast}) must be shorter than slow period ({slow})"
        raise ValueError(msg)

    fast_ema = ema(values, fast)
    slow_ema = ema(values, slow)
    line: Series = [
        f - s if f is not None and s is not None else None
        for f, s in zip(fast_ema, slow_ema, strict=True)
    ]
    signal_line = ema(line, signal)
    histogram: Series = [
        m - s if m is not None and s is not None else None
        for m, s in zip(line, signal_line, strict=True)
    ]
    return MacdSeries(macd=line, signal=signal_line, histogram=histogram)


def bollinger_bands(
    values: Sequence[Decimal],
    period: int = 20,
    num_std: Decimal = TWO,
) -> BollingerBands:
    """Return Bollinger Bands at ``num_std`` population standard deviations.

    Args:
        values: Close prices, oldest first.
        period: Window for the middle SMA and the deviation.
        num_std: Band width in standard deviations.

    Returns:
        A ``BollingerBands`` whose bands are defined from ``period - 1``.

    Raises:
        ValueError: If ``period`` is less than 1 or ``num_std`` is negative.

    """
    if num_std < ZERO:
        msg = f"num_std must be >= 0, got {num_std}"
        raise ValueError(msg)
    middle = sma(values, period)
    upper: Series = [None] * len(values)
    lower: Series = [None] * len(values)
    dec_period = Decimal(period)

    for i, mean in enumerate(middle):
        if mean is None:
            continue
        window = values[i - period + 1 : i + 1]
        variance = sum(((v - mean) ** 2 for v in window), ZERO) / dec_period
        width = num_std * variance.sqrt()
        upper[i] = mean + width
        lower[i] = mean - width
    return BollingerBands(upper=upper, middle=middle, lower=lower)


def atr(candles: Sequence[Candle], period: int = 14) -> Series:
    """Return the Average True Range as the SMA of true ranges.

    True range is ``max(high - low, |high - prev_close|, |low - prev_close|)``,
    which needs a previous candle, so index 0 has no true range.

    Args:
        candles: Candles, oldest first.
        period: Number of true ranges to average.

    Returns:
        A series the length of ``candles``, defined from ``period``.

    Raises:
        ValueError: If ``period`` is less than 1.

    """
    _check_period(period)
    if not candles:
        return []
    true_ranges = [
        max(
            cur.high - cur.low,
            abs(cur.high - prev.close),
            abs(cur.low - prev.close),
        )
        for prev, cur in zip(candles, candles[1:], strict=False)
    ]
    return [None, *sma(true_ranges, period)]


def trailing_mean(values: Sequence[Decimal], period: int) -> Series:
    """Return the mean of the ``period`` values strictly before each index.

    Args:
        values: Value sequence, oldest first (e.g. volumes).
        period: Number of preceding values to average.

    Returns:
        A series the length of ``values``, defined from ``period``.

    Raises:
        ValueError: If ``period`` is less than 1.

    """
    _check_period(period)
    dec_period = Decimal(period)
    result: Series = [None] * len(values)
    for i in range(period, len(values)):
        result[i] = sum(values[i - period : i], ZERO) / dec_period
    return result


def is_oversold(rsi_value: Decimal, threshold: Decimal = Decimal(30)) -> bool:
    """Return whether RSI is strictly below the oversold threshold."""
    return rsi_value < threshold


def is_overbought(rsi_value: Decimal, threshold: Decimal = Decimal(70)) -> bool:
    """Return whether RSI is strictly above the overbought threshold."""
    return rsi_value > threshold


def is_macd_bullish_crossover(
    current_macd: Decimal,
    current_signal: Decimal,
    previous_macd: Decimal,
    previous_signal: Decimal,
) -> bool:
    """Return whether MACD crossed from below the signal line to above it."""
    return previous_macd < previous_signal and current_macd > current_signal


def is_macd_bearish_crossover(
    current_macd: Decimal,
    current_signal: Decimal,
    previous_macd: Decimal,
    previous_signal: Decimal,
) -> bool:
    """Return whether MACD crossed from above the signal line to below it."""
    return previous_macd > previous_signal and current_macd < current_signal
