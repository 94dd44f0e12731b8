"""Cash and position ledger for a single backtest run.

The ``Portfolio`` holds at most one open long position. Opening a
position debits a fixed dollar amount from cash; closing it credits the
proceeds at the exit price and appends an immutable ``Trade`` to the
log. Attempts to open while a position is already open are no-ops.
"""

import logging
from decimal import Decimal

from tradedesk.core.models import Position, Trade

logger = logging.getLogger(__name__)


class Portfolio:
    """Track cash, the open position, and completed trades during a backtest."""

    def __init__(self, initial_balance: Decimal) -> None:
        """Initialize the portfolio with the given starting cash.

        Args:
            initial_balance: Starting amount in quote currency.

        """
        self._cash = initial_balance
        self._position: Position | None = None
        self._trades: list[Trade] = []

    @property
    def cash(self) -> Decimal:
        """Return cash not committed to the open position."""
        return self._cash

    @property
    def position(self) -> Position | None:
        """Return the current open position, if any."""
        return self._position

    @property
    def trades(self) -> list[Trade]:
        """Return a copy of completed trades in chronological order."""
        return list(self._trades)

    def can_open(self, amount: Decimal) -> bool:
        """Return whether a new position of ``amount`` dollars may be opened."""
        return self._position is None and self._cash > amount

    def open_position(
        self,
        symbol: str,
        amount: Decimal,
        price: Decimal,
        timestamp: int,
        reason: str = "",
    ) -> Position | None:
        """Open a long position worth ``amount`` at ``price``.

        Args:
            symbol: Instrument being bought.
            amount: Dollar amount to commit.
            price: Entry price.
            timestamp: Unix timestamp of the entry candle.
            reason: Description of the entry trigger.

        Returns:
            The new ``Position``, or ``None`` if a position is already open
            or cash does not exceed ``amount``.

        """
        if not self.can_open(amount):
            return None
        self._position = Position(
            symbol=symbol,
            quantity=amount / price,
            entry_price=price,
            entry_time=timestamp,
            entry_reason=reason,
        )
        self._cash -= amount
        logger.debug("Opened %s at %s (%s): %s", symbol, price, timestamp, reason)
        return self._position

    def close_position(self, price: Decimal, timestamp: int, reason: str) -> Trade | None:
        """Close the open position at ``price`` and record the trade.

        Returns:
            The completed ``Trade``, or ``None`` if no position was open.

        """
        if self._position is None:
            return None
        trade = self._position.close(exit_price=price, exit_time=timestamp, reason=reason)
        self._cash += trade.quantity * price
        self._position = None
        self._trades.append(trade)
        logger.debug(
            "Closed %s at %s (%s): %s, pnl=%s", trade.symbol, price, timestamp, reason, trade.pnl
        )
        return trade
