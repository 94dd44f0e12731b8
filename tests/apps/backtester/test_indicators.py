"""Tests for the technical indicators module."""

from decimal import Decimal

import pytest

from tradedesk.apps.backtester.indicators import (
    atr,
    bollinger_bands,
    ema,
    is_macd_bearish_crossover,
    is_macd_bullish_crossover,
    is_overbought,
    is_oversold,
    macd,
    rsi,
    sma,
    trailing_mean,
)
from tradedesk.core.models import Candle, Interval

_ZERO = Decimal(0)
_HUNDRED = Decimal(100)
_TOLERANCE = Decimal("1e-20")


def _prices(*values: int | str) -> list[Decimal]:
    return [Decimal(v) for v in values]


def _candle(close: str, *, ts: int = 1000) -> Candle:
    """Build a candle whose high and low sit 5 above and below the close."""
    c = Decimal(close)
    return Candle(
        symbol="BTC-USD",
        timestamp=ts,
        open=c,
        high=c + Decimal(5),
        low=c - Decimal(5),
        close=c,
        volume=Decimal(100),
        interval=Interval.H1,
    )


class TestSma:
    """Tests for the simple moving average series."""

    def test_values_and_warmup(self) -> None:
        """Compute SMA of known values with None before the first full window."""
        assert sma(_prices(10, 20, 30, 40, 50), 3) == [
            None,
            None,
            Decimal(20),
            Decimal(30),
            Decimal(40),
        ]

    def test_shorter_than_period(self) -> None:
        """Return an all-None series when there is not enough data."""
        assert sma(_prices(10, 20), 3) == [None, None]

    def test_invalid_period_raises(self) -> None:
        """Raise ValueError for a period below 1."""
        with pytest.raises(ValueError, match="period must be >= 1"):
            sma(_prices(10, 20), 0)


class TestEma:
    """Tests for the exponential moving average series."""

    def test_seeded_with_sma(self) -> None:
        """Seed with the SMA of the first period, then smooth with k = 2 / (n + 1)."""
        assert ema(_prices(1, 2, 3, 4, 5), 3) == [
            None,
            None,
            Decimal(2),
            Decimal(3),
            Decimal(4),
        ]

    def test_constant_prices(self) -> None:
        """Return the constant price once defined."""
        result = ema(_prices(50, 50, 50, 50, 50), 2)
        assert result[0] is None
        assert all(v == Decimal(50) for v in result[1:])

    def test_skips_leading_none(self) -> None:
        """Leading None values shift the seed index."""
        result = ema([None, None, Decimal(1), Decimal(2), Decimal(3)], 2)
        assert result == [None, None, None, Decimal("1.5"), Decimal("2.5")]

    def test_none_after_defined_raises(self) -> None:
        """Reject gaps inside the defined part of the input."""
        with pytest.raises(ValueError, match="before its first defined value"):
            ema([Decimal(1), None, Decimal(2)], 2)


class TestRsi:
    """Tests for the Relative Strength Index series."""

    def test_all_gains_is_hundred(self) -> None:
        """Monotonically increasing prices give RSI 100."""
        result = rsi([Decimal(v) for v in range(1, 17)], 14)
        assert result[:14] == [None] * 14
        assert result[14] == _HUNDRED
        assert result[15] == _HUNDRED

    def test_all_losses_is_zero(self) -> None:
        """Monotonically decreasing prices give RSI 0."""
        result = rsi([Decimal(v) for v in range(16, 0, -1)], 14)
        assert result[14] == _ZERO

    def test_flat_prices_is_hundred(self) -> None:
        """No losses at all counts as RSI 100."""
        assert rsi(_prices(5, 5, 5, 5), 3)[3] == _HUNDRED

    def test_known_value(self) -> None:
        """Equal average gain and loss give RSI 50."""
        result = rsi(_prices(10, 11, 10, 11, 10), 4)
        assert result[4] == Decimal(50)

    def test_bounded(self) -> None:
        """Every defined value lies in [0, 100]."""
        prices = _prices(10, 12, 11, 15, 9, 14, 13, 8, 16, 12, 11, 10)
        for value in rsi(prices, 5):
            if value is not None:
                assert _ZERO <= value <= _HUNDRED


class TestMacd:
    """Tests for the MACD line, signal, and histogram."""

    def test_alignment(self) -> None:
        """The line starts at slow - 1 and the signal at slow + signal - 2."""
        result = macd([Decimal(100)] * 10, fast=3, slow=5, signal=2)

        assert result.macd[:4] == [None] * 4
        assert result.macd[4] == _ZERO
        assert result.signal[:5] == [None] * 5
        assert result.signal[5] == _ZERO
        assert result.histogram[5] == _ZERO
        assert len(result.macd) == len(result.signal) == len(result.histogram) == 10

    def test_histogram_is_line_minus_signal(self) -> None:
        """Histogram equals MACD minus signal wherever both are defined."""
        prices = [Decimal(100 + (i % 7) * 3 - i) for i in range(40)]
        result = macd(prices, fast=3, slow=6, signal=3)
        for line, sig, hist in zip(result.macd, result.signal, result.histogram, strict=True):
            if sig is None:
                assert hist is None
            else:
                assert line is not None
                assert hist == line - sig

    def test_v_shape_has_bullish_crossover(self) -> None:
        """An accelerating decline followed by a rally produces a bullish crossover."""
        prices = [Decimal(500 - i * i) for i in range(20)]
        prices += [Decimal(139 + 5 * i) for i in range(1, 21)]
        result = macd(prices, fast=3, slow=6, signal=3)

        crossovers = [
            i
            for i in range(1, len(prices))
            if None
            not in (result.macd[i], result.signal[i], result.macd[i - 1], result.signal[i - 1])
            and is_macd_bullish_crossover(
                result.macd[i],  # type: ignore[arg-type]
                result.signal[i],  # type: ignore[arg-type]
                result.macd[i - 1],  # type: ignore[arg-type]
                result.signal[i - 1],  # type: ignore[arg-type]
            )
        ]
        assert crossovers
        assert all(i >= 20 for i in crossovers)  # noqa: PLR2004

    def test_deterministic(self) -> None:
        """The same prices always give the same series."""
        prices = [Decimal(100 + (i * 7) % 11) for i in range(50)]
        assert macd(prices) == macd(prices)

    def test_fast_must_be_shorter(self) -> None:
        """Reject a fast period that is not shorter than the slow one."""
        with pytest.raises(ValueError, match="must be shorter"):
            macd(_prices(1, 2, 3), fast=5, slow=5)


class TestBollingerBands:
    """Tests for Bollinger Bands."""

    def test_constant_prices_collapse(self) -> None:
        """Zero variance puts all three bands on the price."""
        bands = bollinger_bands([Decimal(42)] * 5, period=3)
        assert bands.upper[2] == bands.middle[2] == bands.lower[2] == Decimal(42)
        assert bands.lower[:2] == [None, None]

    def test_symmetric_population_std(self) -> None:
        """Bands sit num_std population deviations either side of the SMA."""
        bands = bollinger_bands(_prices(1, 2, 3), period=3, num_std=Decimal(2))
        width = Decimal(2) * (Decimal(2) / Decimal(3)).sqrt()
        assert bands.middle[2] == Decimal(2)
        assert abs(bands.upper[2] - (Decimal(2) + width)) < _TOLERANCE  # type: ignore[operator]
        assert abs(bands.lower[2] - (Decimal(2) - width)) < _TOLERANCE  # type: ignore[operator]

    def test_negative_std_raises(self) -> None:
        """Reject a negative band width."""
        with pytest.raises(ValueError, match="num_std"):
            bollinger_bands(_prices(1, 2, 3), period=2, num_std=Decimal(-1))


class TestAtr:
    """Tests for the Average True Range."""

    def test_constant_range(self) -> None:
        """Candles with a fixed 10-point range give ATR 10 from index period."""
        candles = [_candle("100", ts=1000 + i) for i in range(5)]
        assert atr(candles, 3) == [None, None, None, Decimal(10), Decimal(10)]

    def test_gap_uses_previous_close(self) -> None:
        """A gap up widens the true range to the distance from the previous close."""
        candles = [_candle("100", ts=1000), _candle("120", ts=1001)]
        assert atr(candles, 1) == [None, Decimal(25)]

    def test_empty(self) -> None:
        """No candles give an empty series."""
        assert atr([], 3) == []


class TestTrailingMean:
    """Tests for the trailing mean excluding the current value."""

    def test_excludes_current(self) -> None:
        """Each value is the mean of the preceding period values."""
        assert trailing_mean(_prices(1, 2, 3, 4), 2) == [
            None,
            None,
            Decimal("1.5"),
            Decimal("2.5"),
        ]


class TestPredicates:
    """Tests for the threshold and crossover predicates."""

    def test_oversold_is_strict(self) -> None:
        """RSI must be strictly below the threshold."""
        assert is_oversold(Decimal("29.9"), Decimal(30))
        assert not is_oversold(Decimal(30), Decimal(30))

    def test_overbought_is_strict(self) -> None:
        """RSI must be strictly above the threshold."""
        assert is_overbought(Decimal("70.1"), Decimal(70))
        assert not is_overbought(Decimal(70), Decimal(70))

    def test_bullish_crossover(self) -> None:
        """MACD moving from below to above the signal is bullish."""
        assert is_macd_bullish_crossover(Decimal(1), _ZERO, Decimal(-1), _ZERO)
        assert not is_macd_bearish_crossover(Decimal(1), _ZERO, Decimal(-1), _ZERO)

    def test_bearish_crossover(self) -> None:
        """MACD moving from above to below the signal is bearish."""
        assert is_macd_bearish_crossover(Decimal(-1), _ZERO, Decimal(1), _ZERO)

    def test_touching_is_not_a_crossover(self) -> None:
        """Equality on either side does not count as crossing."""
        assert not is_macd_bullish_crossover(Decimal(1), _ZERO, _ZERO, _ZERO)
        assert not is_macd_bearish_crossover(_ZERO, _ZERO, Decimal(1), _ZERO)
