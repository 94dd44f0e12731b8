"""Backtesting toolkit for parametrised indicator strategies."""

__version__ = "0.1.0"
