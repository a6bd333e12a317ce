# ==============================================================================
# Telemetry Utilities
# ==============================================================================
"""
Shared utilities for the telemetry engine.

This module exports configuration for use throughout the package.
"""

from sitepulse.utils.config import (
    SessionSettings,
    Settings,
    TelemetrySettings,
    ValkeySettings,
    get_settings,
)

__all__ = [
    "SessionSettings",
    "Settings",
    "TelemetrySettings",
    "ValkeySettings",
    "get_settings",
]
