"""Entry and exit rule evaluation for the backtest engine.

Indicator series are computed once per run into an ``IndicatorSet``;
the engine then takes an ``IndicatorSnapshot`` per candle and asks
``entry_reason`` / ``exit_reason`` whether anything fires. Entry rules
are OR-combined: any single configured rule opens a position. Exit
rules are checked in a fixed priority order and the first one that
fires closes the position.

A threshold that is unset or zero counts as not configured. An
indicator value still in its warm-up period never fires a rule.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from tradedesk.apps.backtester.indicators import (
    Series,
    bollinger_bands,
    is_macd_bearish_crossover,
    is_macd_bullish_crossover,
    is_overbought,
    is_oversold,
    macd,
    rsi,
    trailing_mean,
)
from tradedesk.core.models import TWO, Candle, EntryRules, Position, StrategyConfig

RSI_PERIOD = 14
MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
BOLLINGER_PERIOD = 20
BOLLINGER_STD = TWO
VOLUME_LOOKBACK = 20


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicator readings for one candle, plus the previous MACD pair."""

    close: Decimal
    volume: Decimal
    rsi: Decimal | None
    macd: Decimal | None
    signal: Decimal | None
    prev_macd: Decimal | None
    prev_signal: Decimal | None
    bb_lower: Decimal | None
    avg_volume: Decimal | None

    def _crossover_inputs(self) -> tuple[Decimal, Decimal, Decimal, Decimal] | None:
        if (
            self.macd is None
            or self.signal is None
            or self.prev_macd is None
            or self.prev_signal is None
        ):
            return None
        return self.macd, self.signal, self.prev_macd, self.prev_signal

    def macd_bullish(self) -> bool:
        """Return whether a bullish MACD crossover happened on this candle."""
        inputs = self._crossover_inputs()
        return inputs is not None and is_macd_bullish_crossover(*inputs)

    def macd_bearish(self) -> bool:
        """Return whether a bearish MACD crossover happened on this candle."""
        inputs = self._crossover_inputs()
        return inputs is not None and is_macd_bearish_crossover(*inputs)


@dataclass(frozen=True)
class IndicatorSet:
    """All indicator series the engine needs, aligned to the candle list."""

    closes: list[Decimal]
    volumes: list[Decimal]
    rsi: Series
    macd: Series
    signal: Series
    bb_lower: Series
    avg_volume: Series

    @classmethod
    def from_candles(cls, candles: Sequence[Candle]) -> "IndicatorSet":
        """Compute every series once over the full candle window."""
        closes = [c.close for c in candles]
        volumes = [c.volume for c in candles]
        macd_series = macd(closes, MACD_FAST, MACD_SLOW, MACD_SIGNAL)
        bands = bollinger_bands(closes, BOLLINGER_PERIOD, BOLLINGER_STD)
        return cls(
            closes=closes,
            volumes=volumes,
            rsi=rsi(closes, RSI_PERIOD),
            macd=macd_series.macd,
            signal=macd_series.signal,
            bb_lower=bands.lower,
            avg_volume=trailing_mean(volumes, VOLUME_LOOKBACK),
        )

    def snapshot(self, index: int) -> IndicatorSnapshot:
        """Return the readings at candle ``index`` (which must be >= 1)."""
        return IndicatorSnapshot(
            close=self.closes[index],
            volume=self.volumes[index],
            rsi=self.rsi[index],
            macd=self.macd[index],
            signal=self.signal[index],
            prev_macd=self.macd[index - 1],
            prev_signal=self.signal[index - 1],
            bb_lower=self.bb_lower[index],
            avg_volume=self.avg_volume[index],
        )


def entry_reason(snapshot: IndicatorSnapshot, rules: EntryRules) -> str | None:
    """Return a description of every entry rule that fired, or ``None``.

    High volume relative to the trailing average is appended as an
    annotation but never opens a position on its own.
    """
    reasons: list[str] = []
    if rules.rsi_oversold and snapshot.rsi is not None and is_oversold(
        snapshot.rsi, rules.rsi_oversold
    ):
        reasons.append(f"RSI oversold ({snapshot.rsi:.1f})")
    if rules.use_macd_crossover and snapshot.macd_bullish():
        reasons.append("MACD bullish crossover")
    if (
        rules.use_bollinger_bands
        and snapshot.bb_lower is not None
        and snapshot.close < snapshot.bb_lower
    ):
        reasons.append("Price below BB lower band")

    if not reasons:
        return None
    if (
        rules.volume_threshold
        and snapshot.avg_volume is not None
        and snapshot.volume > snapshot.avg_volume * rules.volume_threshold
    ):
        reasons.append("high volume")
    return ", ".join(reasons)


def exit_reason(
    snapshot: IndicatorSnapshot,
    strategy: StrategyConfig,
    position: Position,
) -> str | None:
    """Return the first exit rule that fires for ``position``, or ``None``.

    Priority: take profit, stop loss, RSI overbought, bearish MACD
    crossover. The trailing-stop fields are not evaluated.
    """
    exits = strategy.exit_rules
    entries = strategy.entry_rules
    pnl_percent = position.unrealized_pnl_percent(snapshot.close)

    if exits.take_profit_percent and pnl_percent >= exits.take_profit_percent:
        return "Take profit"
    if exits.stop_loss_percent and pnl_percent <= -exits.stop_loss_percent:
        return "Stop loss"
    if entries.rsi_overbought and snapshot.rsi is not None and is_overbought(
        snapshot.rsi, entries.rsi_overbought
    ):
        return f"RSI overbought ({snapshot.rsi:.1f})"
    if entries.use_macd_crossover and snapshot.macd_bearish():
        return "MACD bearish crossover"
    return None
