# ==============================================================================
# Infrastructure Implementations
# ==============================================================================
"""
Concrete implementations of the base interfaces.

Provides:
- InMemoryEventSink / ValkeyEventSink: EventSink
- InMemoryIdentityProvider: IdentityProvider
- InMemoryClientStorage / RecordingNavigator: ClientStorage / Navigator
"""

from sitepulse.infrastructure.client import InMemoryClientStorage, RecordingNavigator
from sitepulse.infrastructure.identity import InMemoryIdentityProvider
from sitepulse.infrastructure.sinks import InMemoryEventSink, ValkeyEventSink

__all__ = [
    "InMemoryClientStorage",
    "InMemoryEventSink",
    "InMemoryIdentityProvider",
    "RecordingNavigator",
    "ValkeyEventSink",
]
