# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes for the collaborators the telemetry engine depends on.

The engine is written against these contracts only; concrete adapters are in
sitepulse.infrastructure.
"""

from sitepulse.base.client import ClientStorage, Navigator
from sitepulse.base.identity import IdentityProvider, User
from sitepulse.base.sinks import EventSink, SinkError, SinkUnavailableError

__all__ = [
    "ClientStorage",
    "EventSink",
    "IdentityProvider",
    "Navigator",
    "SinkError",
    "SinkUnavailableError",
    "User",
]
