"""CLI subpackage for the backtester.

Create the Typer application and register the ``run`` and ``compare``
command modules.
"""

import typer

from tradedesk.apps.backtester.cli.compare_cmd import compare
from tradedesk.apps.backtester.cli.run_cmd import run

app = typer.Typer(help="Run a backtest")

app.command()(run)
app.command()(compare)

__all__ = ["app"]
