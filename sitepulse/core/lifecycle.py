# ==============================================================================
# Session Lifecycle Manager
# ==============================================================================
"""
Owns the end boundary of the analytics session.

The session ends on the beforeunload signal or on an explicit
end_session() call, whichever comes first. Ending writes a SessionSummary
and closes out the session-start record with its end time, duration and
totals. Both writes go through the SinkWriter, so the update always lands
after the session-start append.
"""

import logging

from sitepulse.core.collector import TelemetryCollector
from sitepulse.core.context import Clock, now_ms
from sitepulse.core.models import Collection, SessionSummary
from sitepulse.core.signals import Disposer, Signal, SignalHub
from sitepulse.producers.sink_writer import SinkWriter

logger = logging.getLogger(__name__)


class SessionLifecycleManager:
    """Ends a collector's session exactly once."""

    def __init__(
        self,
        collector: TelemetryCollector,
        writer: SinkWriter,
        hub: SignalHub,
        clock: Clock = now_ms,
    ):
        self._collector = collector
        self._writer = writer
        self._hub = hub
        self._clock = clock
        self._unload_disposer: Disposer | None = None
        self._ended_session_id: str | None = None

    @property
    def listening(self) -> bool:
        return self._unload_disposer is not None

    def start(self) -> None:
        """Subscribe to beforeunload. A second call is a no-op."""
        if self._unload_disposer is None:
            self._unload_disposer = self._hub.add_listener("beforeunload", self._on_unload)

    def _on_unload(self, signal: Signal) -> None:
        self.end_session()

    def end_session(self) -> SessionSummary | None:
        """
        End the current session.

        Returns:
            The SessionSummary that was queued, or None if the collector was
            never initialized or this session already ended
        """
        session = self._collector.session
        if session is None:
            logger.debug("No session to end")
            return None
        if self._ended_session_id == session.session_id:
            logger.debug("Session %s already ended", session.session_id)
            return None
        self._ended_session_id = session.session_id

        end_time = self._clock()
        duration = end_time - session.start_time
        summary = SessionSummary(
            session_id=session.session_id,
            end_time=end_time,
            duration=duration,
            total_page_views=self._collector.page_view_count,
            total_interactions=self._collector.interaction_count,
            pages_visited=self._collector.pages_visited(),
            timestamp=end_time,
        )

        self._writer.submit_append(Collection.SESSION_SUMMARIES.value, summary.to_record())
        self._writer.submit_update(
            Collection.SESSIONS.value,
            session.session_id,
            {
                "end_time": end_time,
                "duration": duration,
                "total_page_views": summary.total_page_views,
                "total_interactions": summary.total_interactions,
            },
        )

        logger.info(
            "Session %s ended after %dms (%d page views, %d interactions)",
            session.session_id,
            duration,
            summary.total_page_views,
            summary.total_interactions,
        )
        return summary

    def dispose(self) -> None:
        """Remove the unload listener and the collector's signal sources."""
        if self._unload_disposer is not None:
            self._unload_disposer()
            self._unload_disposer = None
        self._collector.dispose()

    async def aclose(self) -> SessionSummary | None:
        """End the session, remove every listener and flush queued writes."""
        summary = self.end_session()
        self.dispose()
        await self._writer.flush()
        return summary
