"""Tests for strategy and result JSON transport."""

import json
from decimal import Decimal
from pathlib import Path

import pytest

from tradedesk.apps.backtester.metrics import INFINITE_PROFIT_FACTOR
from tradedesk.apps.backtester.serialization import (
    INFINITY_TOKEN,
    load_strategy,
    metrics_to_dict,
    result_to_dict,
    strategy_from_dict,
    strategy_to_dict,
    trade_to_dict,
    write_result,
)
from tradedesk.core.models import (
    BacktestResult,
    EntryRules,
    ExitRules,
    Interval,
    PerformanceMetrics,
    Side,
    StrategyConfig,
    Trade,
)

T0 = 1_700_006_400
DAY = 86_400

_PAYLOAD = {
    "name": "My Strategy",
    "entryRules": {
        "rsiOversold": 25,
        "rsiOverbought": 75,
        "useMACDCrossover": True,
        "useBollingerBands": False,
        "volumeThreshold": 1.5,
    },
    "exitRules": {
        "takeProfitPercent": 5,
        "stopLossPercent": 2.5,
        "useTrailingStop": False,
    },
    "positionSize": 10000,
}

_TRADE = Trade(
    symbol="AAPL",
    side=Side.BUY,
    quantity=Decimal(100),
    entry_price=Decimal(100),
    entry_time=T0,
    exit_price=Decimal(110),
    exit_time=T0 + DAY,
    reason="Take profit",
    entry_reason="RSI oversold (25.0)",
)


def _result(metrics: PerformanceMetrics | None = None) -> BacktestResult:
    return BacktestResult(
        strategy=StrategyConfig(position_size=Decimal(10_000)),
        symbol="AAPL",
        interval=Interval.D1,
        start_time=T0,
        end_time=T0 + 2 * DAY,
        initial_balance=Decimal(100_000),
        final_balance=Decimal(101_000),
        trades=(_TRADE,),
        metrics=metrics or PerformanceMetrics(total_trades=1),
    )


class TestStrategyFromDict:
    """Tests for reading camelCase strategies."""

    def test_full_payload(self) -> None:
        """Test every field maps onto the strategy."""
        strategy = strategy_from_dict(_PAYLOAD)

        assert strategy.name == "My Strategy"
        assert strategy.position_size == Decimal(10000)
        assert strategy.entry_rules == EntryRules(
            rsi_oversold=Decimal(25),
            rsi_overbought=Decimal(75),
            use_macd_crossover=True,
            volume_threshold=Decimal("1.5"),
        )
        assert strategy.exit_rules == ExitRules(
            take_profit_percent=Decimal(5),
            stop_loss_percent=Decimal("2.5"),
        )

    def test_minimal_payload(self) -> None:
        """Test missing rule groups give inactive rules and the default name."""
        strategy = strategy_from_dict({"positionSize": 500})
        assert strategy.name == "Custom Strategy"
        assert strategy.entry_rules == EntryRules()
        assert strategy.exit_rules == ExitRules()

    def test_missing_position_size(self) -> None:
        """Test positionSize is required."""
        with pytest.raises(ValueError, match="positionSize is required"):
            strategy_from_dict({"entryRules": {}})

    @pytest.mark.parametrize("bad", ["abc", True, "NaN", "Infinity"])
    def test_rejects_non_numbers(self, bad: object) -> None:
        """Test strings, booleans, and non-finite values are refused."""
        with pytest.raises(ValueError, match="rsiOversold"):
            strategy_from_dict({"positionSize": 1, "entryRules": {"rsiOversold": bad}})

    def test_rejects_non_positive_size(self) -> None:
        """Test model validation still applies."""
        with pytest.raises(ValueError, match="position_size"):
            strategy_from_dict({"positionSize": 0})

    def test_round_trip_through_dict(self) -> None:
        """Test writing a strategy and reading it back is lossless for these values."""
        strategy = strategy_from_dict(_PAYLOAD)
        assert strategy_from_dict(strategy_to_dict(strategy)) == strategy


class TestLoadStrategy:
    """Tests for strategy files."""

    def test_reads_file(self, tmp_path: Path) -> None:
        """Test a JSON file is parsed into a strategy."""
        path = tmp_path / "strategy.json"
        path.write_text(json.dumps(_PAYLOAD))
        assert load_strategy(path).name == "My Strategy"

    def test_rejects_non_object(self, tmp_path: Path) -> None:
        """Test a top-level list is refused."""
        path = tmp_path / "strategy.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            load_strategy(path)


class TestResultToDict:
    """Tests for result serialization."""

    def test_trade_fields(self) -> None:
        """Test trades use ISO dates and percent on the 0-100 scale."""
        data = trade_to_dict(_TRADE)
        assert data["entryDate"] == "2023-11-15T00:00:00Z"
        assert data["exitDate"] == "2023-11-16T00:00:00Z"
        assert data["type"] == "BUY"
        assert data["pnl"] == 1000.0  # noqa: PLR2004
        assert data["pnlPercent"] == 10.0  # noqa: PLR2004
        assert data["reason"] == "Take profit"
        assert data["entryReason"] == "RSI oversold (25.0)"

    def test_flat_layout(self) -> None:
        """Test metrics sit beside the run fields rather than nested."""
        data = result_to_dict(_result())
        assert data["symbol"] == "AAPL"
        assert data["interval"] == "1d"
        assert data["startDate"] == "2023-11-15T00:00:00Z"
        assert data["finalBalance"] == 101000.0  # noqa: PLR2004
        assert data["totalTrades"] == 1
        assert data["strategy"]["positionSize"] == 10000.0  # noqa: PLR2004
        assert len(data["trades"]) == 1

    def test_infinite_profit_factor(self) -> None:
        """Test the unbounded profit factor is written as a string token."""
        data = metrics_to_dict(PerformanceMetrics(profit_factor=INFINITE_PROFIT_FACTOR))
        assert data["profitFactor"] == INFINITY_TOKEN
        assert data["sharpeRatio"] == 0.0

    def test_write_result(self, tmp_path: Path) -> None:
        """Test the written file is valid JSON."""
        path = tmp_path / "result.json"
        write_result(_result(PerformanceMetrics(profit_factor=INFINITE_PROFIT_FACTOR)), path)
        loaded = json.loads(path.read_text())
        assert loaded["profitFactor"] == "Infinity"
        assert loaded["trades"][0]["symbol"] == "AAPL"
