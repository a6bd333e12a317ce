# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for sitepulse.

Commands are organized into separate modules:
- shared.py: Colors, box drawing helpers and the async bridge
- formatting.py: Human-readable report values
- analytics.py: Dashboard report
- config.py: Configuration display
- data.py: Telemetry reset
"""
