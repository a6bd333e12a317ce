# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Telemetry, session and aggregation logic.

This module contains:
- Domain models (Session, PageViewEvent, InteractionEvent, AggregateReport)
- TelemetryCollector and SessionLifecycleManager (analytics session)
- IdleTimeoutGuard (authenticated session inactivity)
- Aggregation functions (pure, dashboard statistics)

Collaborators (event sink, identity, storage) are injected; nothing here
opens a connection.
"""

from sitepulse.core.aggregation import build_report
from sitepulse.core.collector import TelemetryCollector
from sitepulse.core.idle_guard import GuardState, IdleTimeoutGuard
from sitepulse.core.lifecycle import SessionLifecycleManager
from sitepulse.core.models import AggregateReport, Collection, EventBatch, InteractionType
from sitepulse.core.signals import SignalHub

__all__ = [
    "AggregateReport",
    "Collection",
    "EventBatch",
    "GuardState",
    "IdleTimeoutGuard",
    "InteractionType",
    "SessionLifecycleManager",
    "SignalHub",
    "TelemetryCollector",
    "build_report",
]
