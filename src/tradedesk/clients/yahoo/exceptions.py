"""Exceptions for the Yahoo Finance client."""

from tradedesk.core.exceptions import DataFetchError


class YahooFinanceError(DataFetchError):
    """Failure fetching or decoding a Yahoo Finance chart response."""

    def __init__(self, msg: str, status_code: int | None = None) -> None:
        """Initialize the error.

        Args:
            msg: Human-readable description of the failure.
            status_code: HTTP status code, when the server answered.

        """
        super().__init__(msg)
        self.status_code = status_code
