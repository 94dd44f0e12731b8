"""Timestamp parsing and formatting utilities for CLI and JSON output."""

from datetime import UTC, datetime

_FORMATS = ("%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: str) -> int:
    """Parse a date string or raw integer into a Unix timestamp.

    Accept ISO 8601 date strings (``2024-01-01``, ``2024-01-01T12:00:00``)
    or raw integer Unix timestamps. Dates without a zone are read as UTC.

    Args:
        value: Date string or integer timestamp.

    Returns:
        Unix timestamp in seconds.

    Raises:
        ValueError: If the value cannot be parsed.

    """
    stripped = value.strip()
    if stripped.lstrip("-").isdigit():
        return int(stripped)

    for fmt in _FORMATS:
        try:
            dt = datetime.strptime(stripped, fmt).replace(tzinfo=UTC)
            return int(dt.timestamp())
        except ValueError:
            continue

    msg = f"Cannot parse timestamp: {value!r}. Use ISO 8601 (YYYY-MM-DD) or a Unix timestamp."
    raise ValueError(msg)


def format_timestamp(ts: int) -> str:
    """Format a Unix timestamp as an ISO 8601 UTC string (``2024-01-01T00:00:00Z``)."""
    return datetime.fromtimestamp(ts, tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
