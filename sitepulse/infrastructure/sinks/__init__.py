"""Event sink implementations."""

from sitepulse.infrastructure.sinks.memory import InMemoryEventSink
from sitepulse.infrastructure.sinks.valkey import ValkeyEventSink

__all__ = ["InMemoryEventSink", "ValkeyEventSink"]
