"""Named strategy presets for the backtester.

Provide a central list of preset names and a factory that builds a
``StrategyConfig`` for each one. The CLI ``run`` command uses a preset
as its starting point and the ``compare`` command runs all of them.
"""

from decimal import Decimal

from tradedesk.core.models import EntryRules, ExitRules, StrategyConfig

PRESET_NAMES = (
    "rsi_macd",
    "rsi_reversion",
    "macd_crossover",
    "bollinger_bounce",
)

_PRESETS: dict[str, tuple[str, EntryRules, ExitRules]] = {
    "rsi_macd": (
        "RSI + MACD Strategy",
        EntryRules(
            rsi_oversold=Decimal(30),
            rsi_overbought=Decimal(70),
            use_macd_crossover=True,
            volume_threshold=Decimal("1.5"),
        ),
        ExitRules(take_profit_percent=Decimal(5), stop_loss_percent=Decimal(2)),
    ),
    "rsi_reversion": (
        "RSI Reversion",
        EntryRules(rsi_oversold=Decimal(30), rsi_overbought=Decimal(70)),
        ExitRules(),
    ),
    "macd_crossover": (
        "MACD Crossover",
        EntryRules(use_macd_crossover=True),
        ExitRules(stop_loss_percent=Decimal(5)),
    ),
    "bollinger_bounce": (
        "Bollinger Bounce",
        EntryRules(use_bollinger_bands=True, rsi_overbought=Decimal(70)),
        ExitRules(take_profit_percent=Decimal(3), stop_loss_percent=Decimal(2)),
    ),
}


def build_preset(name: str, position_size: Decimal) -> StrategyConfig:
    """Build the preset strategy called ``name`` with the given position size.

    Raises:
        ValueError: If ``name`` is not one of ``PRESET_NAMES``.

    """
    if name not in _PRESETS:
        msg = f"Unknown preset: {name}. Must be one of: {', '.join(PRESET_NAMES)}"
        raise ValueError(msg)
    label, entry_rules, exit_rules = _PRESETS[name]
    return StrategyConfig(
        name=label,
        position_size=position_size,
        entry_rules=entry_rules,
        exit_rules=exit_rules,
    )
