# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the sitepulse CLI.
"""

import json
from typing import Annotated

import typer

from sitepulse.cli.shared import C
from sitepulse.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()

    if json_output:
        config = {
            "telemetry": settings.telemetry.model_dump(),
            "session": settings.session.model_dump(),
            "valkey": {
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "db": settings.valkey.db,
                "ssl_enabled": settings.valkey.ssl,
                "password": settings.valkey.password,
                "key_prefix": settings.valkey.key_prefix,
            },
            "log_level": settings.log_level,
            "debug": settings.debug,
        }
        print(json.dumps(config, indent=2))
        return

    telemetry = settings.telemetry
    session = settings.session
    valkey = settings.valkey

    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    print(f"{C.CYAN}Telemetry{C.RESET}")
    status = "enabled" if telemetry.enabled else "disabled"
    print(f"  Status:     {C.WHITE}{status}{C.RESET}")
    print(f"  Queue:      {C.WHITE}{telemetry.queue_max_size} records{C.RESET}")
    print(f"  Retries:    {C.WHITE}{telemetry.write_retry_attempts} attempts{C.RESET}")
    print(f"  Flush:      {C.WHITE}{telemetry.flush_timeout_seconds}s timeout{C.RESET}")
    print(f"  Window:     {C.WHITE}{telemetry.window_days} days, top {telemetry.top_n}{C.RESET}")
    print(f"  Locale:     {C.WHITE}{telemetry.language} / {telemetry.timezone}{C.RESET}")
    print()

    print(f"{C.CYAN}Session{C.RESET}")
    print(f"  Timeout:    {C.WHITE}{session.session_timeout_minutes} minutes{C.RESET}")
    print(f"  Login:      {C.WHITE}{session.login_path}{C.RESET}")
    print()

    print(f"{C.CYAN}Valkey{C.RESET}")
    print(f"  Host:       {C.WHITE}{valkey.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{valkey.port}{C.RESET}")
    print(f"  Database:   {C.WHITE}{valkey.db}{C.RESET}")
    print(f"  SSL:        {C.WHITE}{'enabled' if valkey.ssl else 'disabled'}{C.RESET}")
    print(f"  Prefix:     {C.WHITE}{valkey.key_prefix}{C.RESET}")
    print()

    print(f"{C.CYAN}Logging{C.RESET}")
    print(f"  Level:      {C.WHITE}{settings.log_level}{C.RESET}")
    print()
