"""Tests for candle normalisation and ingestion validation."""

import logging
from decimal import Decimal

import pytest

from tradedesk.core.exceptions import DataIntegrityError
from tradedesk.core.models import Candle, Interval
from tradedesk.data.validation import normalize_candles, validate_candles


def _candle(
    ts: int,
    close: str = "100",
    open_: str = "100",
    high: str | None = None,
    low: str | None = None,
    volume: str = "10",
) -> Candle:
    c = Decimal(close)
    o = Decimal(open_)
    return Candle(
        symbol="AAPL",
        timestamp=ts,
        open=o,
        high=Decimal(high) if high is not None else max(o, c),
        low=Decimal(low) if low is not None else min(o, c),
        close=c,
        volume=Decimal(volume),
        interval=Interval.D1,
    )


class TestNormalizeCandles:
    """Tests for normalize_candles."""

    def test_sorts_ascending(self) -> None:
        """Test that candles come back ordered by timestamp."""
        result = normalize_candles([_candle(3), _candle(1), _candle(2)])
        assert [c.timestamp for c in result] == [1, 2, 3]

    def test_last_duplicate_wins(self) -> None:
        """Test that a later candle replaces an earlier one with the same timestamp."""
        result = normalize_candles([_candle(1, close="100"), _candle(1, close="101")])
        assert len(result) == 1
        assert result[0].close == Decimal(101)

    def test_empty(self) -> None:
        """Test that an empty input gives an empty list."""
        assert normalize_candles([]) == []


class TestValidateCandles:
    """Tests for validate_candles."""

    def test_accepts_clean_sequence(self) -> None:
        """Test that well-formed candles pass."""
        validate_candles([_candle(1), _candle(2, close="101")])

    @pytest.mark.parametrize("bad", ["NaN", "Infinity"])
    def test_rejects_non_finite(self, bad: str) -> None:
        """Test that NaN and infinite values are rejected."""
        with pytest.raises(DataIntegrityError, match="non-finite high"):
            validate_candles([_candle(1, high=bad)])

    def test_rejects_non_positive_close(self) -> None:
        """Test that a zero close is rejected."""
        with pytest.raises(DataIntegrityError, match="non-positive price"):
            validate_candles([_candle(1, close="0", low="0")])

    @pytest.mark.parametrize("timestamps", [[2, 1], [1, 1]])
    def test_rejects_non_increasing_timestamps(self, timestamps: list[int]) -> None:
        """Test that out-of-order and duplicate timestamps are rejected."""
        with pytest.raises(DataIntegrityError, match="strictly increasing"):
            validate_candles([_candle(ts) for ts in timestamps])

    def test_envelope_violation_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        """Test that a high below the close is logged but not rejected."""
        with caplog.at_level(logging.WARNING, logger="tradedesk.data.validation"):
            validate_candles([_candle(1, close="105", high="101")])
        assert "inconsistent OHLC envelope" in caplog.text
