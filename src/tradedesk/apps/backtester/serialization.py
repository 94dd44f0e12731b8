"""JSON transport for strategies and backtest results.

Convert ``StrategyConfig`` and ``BacktestResult`` to and from the
camelCase dictionaries used by the dashboard API (``entryRules``,
``takeProfitPercent``, ``pnlPercent``...). Numbers are rendered as JSON
floats, timestamps as ISO 8601 UTC strings, and percentages stay on the
0-100 scale. An unbounded profit factor is written as ``"Infinity"``.
"""

import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, cast

from tradedesk.apps.backtester.metrics import is_unbounded
from tradedesk.core.models import (
    BacktestResult,
    EntryRules,
    ExitRules,
    PerformanceMetrics,
    StrategyConfig,
    Trade,
)
from tradedesk.core.timestamps import format_timestamp

INFINITY_TOKEN = "Infinity"


def _decimal(raw: Any, field_name: str) -> Decimal | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        msg = f"{field_name} must be a number, got {raw!r}"
        raise ValueError(msg)
    try:
        value = Decimal(str(raw))
    except InvalidOperation as exc:
        msg = f"{field_name} must be a number, got {raw!r}"
        raise ValueError(msg) from exc
    if not value.is_finite():
        msg = f"{field_name} must be finite, got {raw!r}"
        raise ValueError(msg)
    return value


def _number(value: Decimal) -> float | str:
    if is_unbounded(value):
        return INFINITY_TOKEN
    return float(value)


def _optional_number(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def strategy_from_dict(data: dict[str, Any]) -> StrategyConfig:
    """Build a ``StrategyConfig`` from a camelCase mapping.

    Raises:
        ValueError: If ``positionSize`` is missing or any value is invalid.

    """
    entry = cast("dict[str, Any]", data.get("entryRules") or {})
    exit_ = cast("dict[str, Any]", data.get("exitRules") or {})
    position_size = _decimal(data.get("positionSize"), "positionSize")
    if position_size is None:
        msg = "positionSize is required"
        raise ValueError(msg)
    return StrategyConfig(
        name=str(data.get("name", "Custom Strategy")),
        position_size=position_size,
        entry_rules=EntryRules(
            rsi_oversold=_decimal(entry.get("rsiOversold"), "rsiOversold"),
            rsi_overbought=_decimal(entry.get("rsiOverbought"), "rsiOverbought"),
            use_macd_crossover=bool(entry.get("useMACDCrossover", False)),
            use_bollinger_bands=bool(entry.get("useBollingerBands", False)),
            volume_threshold=_decimal(entry.get("volumeThreshold"), "volumeThreshold"),
        ),
        exit_rules=ExitRules(
            take_profit_percent=_decimal(exit_.get("takeProfitPercent"), "takeProfitPercent"),
            stop_loss_percent=_decimal(exit_.get("stopLossPercent"), "stopLossPercent"),
            use_trailing_stop=bool(exit_.get("useTrailingStop", False)),
            trailing_stop_percent=_decimal(
                exit_.get("trailingStopPercent"), "trailingStopPercent"
            ),
        ),
    )


def load_strategy(path: Path) -> StrategyConfig:
    """Read a camelCase strategy JSON file."""
    with path.open() as f:
        data: Any = json.load(f)
    if not isinstance(data, dict):
        msg = f"{path.name} must contain a JSON object"
        raise ValueError(msg)
    return strategy_from_dict(cast("dict[str, Any]", data))


def strategy_to_dict(strategy: StrategyConfig) -> dict[str, Any]:
    """Return the camelCase mapping for ``strategy``."""
    entry = strategy.entry_rules
    exit_ = strategy.exit_rules
    return {
        "name": strategy.name,
        "entryRules": {
            "rsiOversold": _optional_number(entry.rsi_oversold),
            "rsiOverbought": _optional_number(entry.rsi_overbought),
            "useMACDCrossover": entry.use_macd_crossover,
            "useBollingerBands": entry.use_bollinger_bands,
            "volumeThreshold": _optional_number(entry.volume_threshold),
        },
        "exitRules": {
            "takeProfitPercent": _optional_number(exit_.take_profit_percent),
            "stopLossPercent": _optional_number(exit_.stop_loss_percent),
            "useTrailingStop": exit_.use_trailing_stop,
            "trailingStopPercent": _optional_number(exit_.trailing_stop_percent),
        },
        "positionSize": float(strategy.position_size),
    }


def trade_to_dict(trade: Trade) -> dict[str, Any]:
    """Return the camelCase mapping for a completed trade."""
    return {
        "entryDate": format_timestamp(trade.entry_time),
        "exitDate": format_timestamp(trade.exit_time),
        "symbol": trade.symbol,
        "type": trade.side.value,
        "entryPrice": float(trade.entry_price),
        "exitPrice": float(trade.exit_price),
        "quantity": float(trade.quantity),
        "pnl": float(trade.pnl),
        "pnlPercent": float(trade.pnl_percent),
        "reason": trade.reason,
        "entryReason": trade.entry_reason,
    }


def metrics_to_dict(metrics: PerformanceMetrics) -> dict[str, Any]:
    """Return the camelCase mapping for a metrics record."""
    return {
        "totalReturn": _number(metrics.total_return),
        "totalReturnPercent": _number(metrics.total_return_percent),
        "totalTrades": metrics.total_trades,
        "winningTrades": metrics.winning_trades,
        "losingTrades": metrics.losing_trades,
        "winRate": _number(metrics.win_rate),
        "profitFactor": _number(metrics.profit_factor),
        "maxDrawdown": _number(metrics.max_drawdown),
        "maxDrawdownPercent": _number(metrics.max_drawdown_percent),
        "sharpeRatio": _number(metrics.sharpe_ratio),
        "avgWin": _number(metrics.avg_win),
        "avgLoss": _number(metrics.avg_loss),
        "largestWin": _number(metrics.largest_win),
        "largestLoss": _number(metrics.largest_loss),
    }


def result_to_dict(result: BacktestResult) -> dict[str, Any]:
    """Return the flat camelCase mapping the dashboard expects for a result."""
    return {
        "strategy": strategy_to_dict(result.strategy),
        "symbol": result.symbol,
        "interval": result.interval.value,
        "startDate": format_timestamp(result.start_time),
        "endDate": format_timestamp(result.end_time),
        "initialBalance": float(result.initial_balance),
        "finalBalance": float(result.final_balance),
        **metrics_to_dict(result.metrics),
        "trades": [trade_to_dict(t) for t in result.trades],
    }


def write_result(result: BacktestResult, path: Path) -> None:
    """Write ``result`` to ``path`` as indented JSON."""
    with path.open("w") as f:
        json.dump(result_to_dict(result), f, indent=2)
        f.write("\n")
