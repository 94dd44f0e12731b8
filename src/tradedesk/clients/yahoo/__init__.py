"""Yahoo Finance chart API client."""

from tradedesk.clients.yahoo.client import YahooFinanceClient
from tradedesk.clients.yahoo.exceptions import YahooFinanceError

__all__ = [
    "YahooFinanceClient",
    "YahooFinanceError",
]
