"""Shared test configuration and fixtures."""

from collections.abc import Iterator

import pytest

from tradedesk.core.config import reset_config


@pytest.fixture(autouse=True)
def _fresh_config() -> Iterator[None]:  # pyright: ignore[reportUnusedFunction]
    """Drop the cached config singleton around every test.

    Tests that patch environment variables or point ``ConfigLoader`` at a
    temporary directory would otherwise leak their settings into later
    tests through ``get_config()``.
    """
    reset_config()
    yield
    reset_config()
