# ==============================================================================
# sitepulse CLI
# ==============================================================================
"""
Command-line interface for the sitepulse telemetry store.

Usage:
    sitepulse --help
    sitepulse analytics
    sitepulse analytics --days 7 --top 10 --json
    sitepulse config show
    sitepulse data reset -y
"""

import logging
import os

import typer

from sitepulse.utils.config import get_settings

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="sitepulse",
    help="Site telemetry and analytics CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def configure_logging() -> None:
    """Site telemetry and analytics CLI."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


data_app = typer.Typer(
    help="Data management operations",
    no_args_is_help=True,
)
app.add_typer(data_app, name="data")

# Register data commands from cli.data module
from sitepulse.cli.data import data_reset

data_app.command("reset")(data_reset)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

# Register config commands from cli.config module
from sitepulse.cli.config import config_show

config_app.command("show")(config_show)

# Analytics command is imported from sitepulse.cli.analytics
from sitepulse.cli.analytics import show_analytics

app.command("analytics")(show_analytics)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
