"""Binance public market-data client."""

from tradedesk.clients.binance.client import BinanceClient
from tradedesk.clients.binance.exceptions import BinanceAPIError, BinanceError

__all__ = [
    "BinanceAPIError",
    "BinanceClient",
    "BinanceError",
]
