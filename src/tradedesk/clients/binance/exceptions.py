"""Exceptions for the Binance market-data client."""

from tradedesk.core.exceptions import DataFetchError


class BinanceError(DataFetchError):
    """Transport or protocol failure talking to Binance."""


class BinanceAPIError(BinanceError):
    """API error carrying the Binance error code and message.

    Binance returns errors as ``{"code": -1121, "msg": "Invalid symbol."}``.
    """

    def __init__(self, code: int, msg: str) -> None:
        """Initialize Binance API error.

        Args:
            code: Binance-specific error code (negative integer) or HTTP status.
            msg: Human-readable error message from the API.

        """
        super().__init__(f"[{code}] {msg}")
        self.code = code
        self.msg = msg
