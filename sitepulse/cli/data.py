# ==============================================================================
# Data Commands
# ==============================================================================
"""
Data management commands for the sitepulse CLI.
"""

from typing import Annotated

import typer

from sitepulse.base.sinks import SinkError
from sitepulse.cli.shared import C, I, run_async
from sitepulse.utils.config import get_settings


async def _clear_sink() -> int:
    from sitepulse.infrastructure.sinks.valkey import ValkeyEventSink

    sink = ValkeyEventSink()
    try:
        return await sink.clear_all()
    finally:
        await sink.close()


def clear_telemetry() -> int:
    """Delete every telemetry key. Returns the number of keys removed."""
    return run_async(_clear_sink())


# ==============================================================================
# Commands
# ==============================================================================


def data_reset(
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Delete all telemetry records from Valkey.

    Removes every key under the configured prefix (VALKEY_KEY_PREFIX):
    sessions, page views, interactions, performance records, session
    summaries and their time indices.

    Examples:
        sitepulse data reset       # With confirmation prompt
        sitepulse data reset -y    # Skip confirmation
    """
    prefix = get_settings().valkey.key_prefix

    print()
    if not confirm:
        typer.confirm(
            f"This will DELETE all telemetry under '{prefix}:*'. Are you sure?",
            abort=True,
        )
        print()

    print(f"  Clearing telemetry keys '{C.WHITE}{prefix}:*{C.RESET}'...")
    try:
        deleted = clear_telemetry()
    except SinkError as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} Failed to clear telemetry: {e}{C.RESET}")
        raise typer.Exit(1)

    print(f"{C.BRIGHT_GREEN}{I.CHECK} Telemetry cleared ({C.WHITE}{deleted}{C.RESET} keys){C.RESET}")
    print()
