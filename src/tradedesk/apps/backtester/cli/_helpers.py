"""Shared helpers for the backtester CLI commands.

Provide validation, resolution, and builder functions used by both
CLI commands (run, compare). Keep these separate from the command
modules to avoid circular imports and duplication.
"""

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from pathlib import Path

import typer

from tradedesk.apps.backtester.serialization import load_strategy
from tradedesk.apps.backtester.strategy_presets import PRESET_NAMES, build_preset
from tradedesk.clients.binance.client import BinanceClient
from tradedesk.clients.yahoo.client import YahooFinanceClient
from tradedesk.core.config import get_config
from tradedesk.core.models import Interval, StrategyConfig
from tradedesk.core.protocols import CandleProvider
from tradedesk.core.timestamps import parse_timestamp
from tradedesk.data.providers.binance import BinanceCandleProvider
from tradedesk.data.providers.csv_provider import CsvCandleProvider
from tradedesk.data.providers.fallback import FallbackCandleProvider
from tradedesk.data.providers.synthetic import SyntheticCandleProvider
from tradedesk.data.providers.yahoo import YahooCandleProvider

VALID_SOURCES = ("auto", "yahoo", "binance", "csv", "synthetic")
DEFAULT_PRESET = "rsi_macd"

HttpClient = BinanceClient | YahooFinanceClient


@dataclass(frozen=True)
class RuleOverrides:
    """Per-field strategy overrides collected from CLI options.

    ``None`` means "keep the value from the preset or strategy file".
    """

    rsi_oversold: float | None = None
    rsi_overbought: float | None = None
    macd: bool | None = None
    bollinger: bool | None = None
    volume_threshold: float | None = None
    take_profit: float | None = None
    stop_loss: float | None = None
    position_size: float | None = None


def _pick(override: float | None, current: Decimal | None) -> Decimal | None:
    return Decimal(str(override)) if override is not None else current


def validate_source(value: str) -> str:
    """Validate that the data source is one of the supported providers.

    Raise ``typer.BadParameter`` if the source is not recognised.
    """
    if value not in VALID_SOURCES:
        raise typer.BadParameter(f"Must be one of: {', '.join(VALID_SOURCES)}")
    return value


def validate_preset(value: str | None) -> str | None:
    """Validate that the preset name, when given, is a known preset."""
    if value is not None and value not in PRESET_NAMES:
        raise typer.BadParameter(f"Must be one of: {', '.join(PRESET_NAMES)}")
    return value


def parse_ts_option(value: str, option: str) -> int:
    """Parse a CLI date option, raising ``BadParameter`` on failure."""
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint=f"'{option}'") from exc


def resolve_interval(raw: str | None) -> Interval:
    """Resolve the candle interval from the CLI option or YAML config default.

    Fall back to ``1d`` when neither the CLI option nor the config key
    ``backtester.default_interval`` is set.
    """
    value = raw or get_config().get("backtester.default_interval", "1d")
    try:
        return Interval(str(value))
    except ValueError as exc:
        choices = ", ".join(i.value for i in Interval)
        raise typer.BadParameter(f"Must be one of: {choices}", param_hint="'--interval'") from exc


def resolve_balance(balance: float | None) -> Decimal:
    """Resolve the initial balance from the CLI option or YAML config default.

    Fall back to ``100000`` when neither the CLI option nor the config key
    ``backtester.initial_balance`` is set.
    """
    if balance is None:
        raw: object = get_config().get("backtester.initial_balance", 100_000)
        resolved = Decimal(str(raw))
    else:
        resolved = Decimal(str(balance))
    if resolved <= 0:
        raise typer.BadParameter("balance must be > 0", param_hint="'--balance'")
    return resolved


def resolve_position_size(position_size: float | None) -> Decimal:
    """Resolve the per-trade dollar amount from the CLI option or config."""
    if position_size is not None:
        resolved = Decimal(str(position_size))
    else:
        raw: object = get_config().get("backtester.position_size", 10_000)
        resolved = Decimal(str(raw))
    if resolved <= 0:
        raise typer.BadParameter("position-size must be > 0", param_hint="'--position-size'")
    return resolved


def resolve_fetch_timeout() -> float | None:
    """Return the configured candle fetch timeout in seconds, if any."""
    raw = get_config().get("backtester.fetch_timeout")
    if raw in (None, "", 0, "0"):
        return None
    return float(raw)


def configure_logging(*, verbose: bool) -> None:
    """Configure root logging for a CLI invocation.

    ``--verbose`` selects DEBUG; otherwise the level comes from the config
    key ``logging.level`` (default ``WARNING``).
    """
    if verbose:
        level = logging.DEBUG
    else:
        name = str(get_config().get("logging.level", "WARNING")).upper()
        level = logging.getLevelNamesMapping().get(name, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def _synthetic_provider() -> SyntheticCandleProvider:
    section = get_config().get("data.synthetic", {}) or {}
    return SyntheticCandleProvider(
        seed=int(section.get("seed", 42)),
        start_price=Decimal(str(section.get("start_price", 100))),
    )


def build_provider(
    source: str,
    csv_path: Path | None,
) -> tuple[CandleProvider, list[HttpClient]]:
    """Build a candle provider based on the selected source.

    Return the provider and the HTTP clients that must be closed after use.
    The ``auto`` source chains Yahoo Finance, then Binance, then the
    synthetic generator.
    """
    if source == "csv":
        if csv_path is None:
            raise typer.BadParameter(
                "--csv is required when --source is csv", param_hint="'--csv'"
            )
        return CsvCandleProvider(csv_path), []

    if source == "synthetic":
        return _synthetic_provider(), []

    if source == "yahoo":
        yahoo = YahooFinanceClient.from_config()
        return YahooCandleProvider(yahoo), [yahoo]

    if source == "binance":
        binance = BinanceClient.from_config()
        return BinanceCandleProvider(binance), [binance]

    yahoo = YahooFinanceClient.from_config()
    binance = BinanceClient.from_config()
    chain = FallbackCandleProvider(
        [
            ("yahoo", YahooCandleProvider(yahoo)),
            ("binance", BinanceCandleProvider(binance)),
            ("synthetic", _synthetic_provider()),
        ]
    )
    return chain, [yahoo, binance]


async def close_clients(clients: list[HttpClient]) -> None:
    """Close every HTTP client opened by ``build_provider``."""
    for client in clients:
        await client.close()


def build_strategy(
    preset: str | None,
    strategy_file: Path | None,
    overrides: RuleOverrides,
) -> StrategyConfig:
    """Build the strategy to run from a preset or JSON file plus CLI overrides.

    Start from ``strategy_file`` or ``preset``; with neither, the
    ``rsi_macd`` preset is used. Each non-``None`` override replaces the
    matching field.

    Raises:
        typer.BadParameter: If both sources are given or the file is invalid.

    """
    if preset is not None and strategy_file is not None:
        raise typer.BadParameter(
            "--preset and --strategy-file are mutually exclusive", param_hint="'--preset'"
        )

    if strategy_file is not None:
        try:
            base = load_strategy(strategy_file)
        except (OSError, ValueError) as exc:
            raise typer.BadParameter(str(exc), param_hint="'--strategy-file'") from exc
    else:
        base = build_preset(preset or DEFAULT_PRESET, resolve_position_size(None))

    entry = base.entry_rules
    exit_ = base.exit_rules
    try:
        entry = replace(
            entry,
            rsi_oversold=_pick(overrides.rsi_oversold, entry.rsi_oversold),
            rsi_overbought=_pick(overrides.rsi_overbought, entry.rsi_overbought),
            use_macd_crossover=(
                entry.use_macd_crossover if overrides.macd is None else overrides.macd
            ),
            use_bollinger_bands=(
                entry.use_bollinger_bands if overrides.bollinger is None else overrides.bollinger
            ),
            volume_threshold=_pick(overrides.volume_threshold, entry.volume_threshold),
        )
        exit_ = replace(
            exit_,
            take_profit_percent=_pick(overrides.take_profit, exit_.take_profit_percent),
            stop_loss_percent=_pick(overrides.stop_loss, exit_.stop_loss_percent),
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    position_size = (
        resolve_position_size(overrides.position_size)
        if overrides.position_size is not None
        else base.position_size
    )
    return replace(base, entry_rules=entry, exit_rules=exit_, position_size=position_size)
