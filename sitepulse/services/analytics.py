# ==============================================================================
# Analytics Service
# ==============================================================================
"""
Public telemetry API consumed by the host application.

AnalyticsService wires one visit's collaborators together:

    SignalHub ──> TelemetryCollector ──> SinkWriter ──> EventSink
                         ^
              SessionLifecycleManager (beforeunload / end_session)

and exposes the dashboard query, get_analytics_data(), which pulls a time
window from the sink and reduces it with the aggregation functions.
"""

import asyncio
import logging
from typing import Any

from sitepulse.base.sinks import EventSink, SinkError
from sitepulse.core.aggregation import build_report
from sitepulse.core.collector import TelemetryCollector
from sitepulse.core.context import BrowserContext, Clock, now_ms
from sitepulse.core.lifecycle import SessionLifecycleManager
from sitepulse.core.models import (
    AggregateReport,
    Collection,
    EventBatch,
    InteractionValue,
    SessionSummary,
)
from sitepulse.core.signals import SignalHub
from sitepulse.producers.sink_writer import SinkWriter
from sitepulse.utils.config import TelemetrySettings, get_settings

logger = logging.getLogger(__name__)

DAY_MS = 24 * 60 * 60 * 1000

DEFAULT_ROUTES = {
    "/": "Home",
    "/about": "About",
    "/projects": "Projects",
    "/contact": "Contact",
    "/resume": "Resume",
}

# (collection, field the window is applied to)
WINDOW_QUERIES = (
    (Collection.SESSIONS, "start_time"),
    (Collection.PAGE_VIEWS, "timestamp"),
    (Collection.INTERACTIONS, "timestamp"),
    (Collection.PERFORMANCE, "timestamp"),
)


def page_name_from_path(path: str, routes: dict[str, str] | None = None) -> str:
    """
    Map a route path to its logical page name.

    Args:
        path: URL path (e.g., "/about")
        routes: Path -> name mapping. Defaults to the site's routes.

    Returns:
        Page name, or "Unknown" for unmapped paths
    """
    return (routes if routes is not None else DEFAULT_ROUTES).get(path, "Unknown")


class AnalyticsService:
    """
    Telemetry facade for one visit plus the dashboard query.

    Usage:
        service = AnalyticsService(sink, hub, context)
        service.init()
        service.track_page_view("Home")
        ...
        await service.aclose()
    """

    def __init__(
        self,
        sink: EventSink,
        hub: SignalHub | None = None,
        context: BrowserContext | None = None,
        settings: TelemetrySettings | None = None,
        clock: Clock = now_ms,
    ):
        """
        Initialize the service.

        Args:
            sink: Event store for telemetry records
            hub: Signal hub the host dispatches browser signals into
            context: Browser environment. Defaults use the configured
                     language and timezone.
            settings: Telemetry settings. If None, uses settings.
            clock: Millisecond clock, injectable for tests
        """
        self._settings = settings or get_settings().telemetry
        self._sink = sink
        self._clock = clock
        self._hub = hub or SignalHub()
        self._context = context or BrowserContext(
            language=self._settings.language,
            timezone=self._settings.timezone,
        )
        self._writer = SinkWriter(
            sink,
            max_queue_size=self._settings.queue_max_size,
            retry_attempts=self._settings.write_retry_attempts,
        )
        self._collector = TelemetryCollector(self._writer, self._hub, self._context, clock)
        self._lifecycle = SessionLifecycleManager(self._collector, self._writer, self._hub, clock)

    @property
    def hub(self) -> SignalHub:
        return self._hub

    @property
    def collector(self) -> TelemetryCollector:
        return self._collector

    @property
    def writer(self) -> SinkWriter:
        return self._writer

    @property
    def session_id(self) -> str | None:
        return self._collector.session_id

    # ==========================================================================
    # Tracking
    # ==========================================================================

    def init(self, user_agent: str | None = None) -> str | None:
        """
        Start the analytics session. A second call is a no-op.

        Returns:
            The session id, or None when telemetry is disabled
        """
        if not self._settings.enabled:
            logger.info("Telemetry disabled, not starting a session")
            return None
        session_id = self._collector.initialize(user_agent)
        self._lifecycle.start()
        return session_id

    def track_page_view(self, name: str, url: str | None = None) -> bool:
        return self._collector.record_page_view(name, url)

    def navigate(self, path: str, url: str | None = None, routes: dict[str, str] | None = None) -> bool:
        """
        Handle a client-side route change.

        Moves the context's location to the new page and records a page view
        named after the route.

        Args:
            path: Route path (e.g., "/projects")
            url: Full page URL. Defaults to the path.
            routes: Path -> name mapping. Defaults to the site's routes.

        Returns:
            True if the page view was queued
        """
        location = url if url is not None else path
        self._context.location = location
        return self.track_page_view(page_name_from_path(path, routes), location)

    def track_interaction(
        self,
        type: str,
        element: str | None = None,
        value: InteractionValue = None,
    ) -> bool:
        return self._collector.record_interaction(type, element, value)

    def track_performance(self, metrics: dict[str, Any]) -> bool:
        return self._collector.record_performance(metrics)

    def end_session(self) -> SessionSummary | None:
        """End the session now rather than at unload. Idempotent."""
        return self._lifecycle.end_session()

    # Convenience wrappers used by page components

    def track_button_click(self, button_name: str, value: InteractionValue = None) -> bool:
        return self.track_interaction("click", button_name, value)

    def track_form_submit(self, form_name: str, success: bool = True) -> bool:
        return self.track_interaction("form_submit", form_name, "success" if success else "error")

    def track_link_click(self, link_name: str, destination: str) -> bool:
        return self.track_interaction("link_click", link_name, destination)

    def track_scroll(self, depth: int) -> bool:
        return self._collector.record_scroll_depth(depth)

    def track_time_on_page(self, seconds: float) -> bool:
        return self.track_interaction("time_on_page", "engagement", seconds)

    def track_error(self, error_type: str, message: str) -> bool:
        return self.track_interaction("error", error_type, message)

    def track_performance_metric(self, name: str, value: float) -> bool:
        return self.track_performance({name: value})

    # ==========================================================================
    # Dashboard
    # ==========================================================================

    async def fetch_batch(self, window_days: int) -> EventBatch:
        """
        Fetch the raw records of the last window_days days.

        Raises:
            SinkError: If any collection query fails
        """
        since = self._clock() - window_days * DAY_MS
        results = await asyncio.gather(
            *(self._sink.query(collection.value, since, field) for collection, field in WINDOW_QUERIES)
        )
        sessions, page_views, interactions, performance = results
        return EventBatch.from_records(sessions, page_views, interactions, performance)

    async def get_analytics_data(
        self, window_days: int | None = None, top: int | None = None
    ) -> AggregateReport | None:
        """
        Aggregate the last window_days days of telemetry.

        Args:
            window_days: Window length. Defaults to TELEMETRY_WINDOW_DAYS (30).
            top: Length of the top-N lists. Defaults to TELEMETRY_TOP_N (5).

        Returns:
            AggregateReport (all zeros for an empty window), or None if the
            sink could not be queried
        """
        days = window_days if window_days is not None else self._settings.window_days
        try:
            batch = await self.fetch_batch(days)
        except SinkError as e:
            logger.error("Failed to fetch analytics data: %s", e)
            return None
        return build_report(batch, top if top is not None else self._settings.top_n)

    # ==========================================================================
    # Shutdown
    # ==========================================================================

    async def aclose(self) -> SessionSummary | None:
        """
        End the session, remove listeners and drain the write queue.

        Returns:
            The SessionSummary if this call ended the session
        """
        summary = await self._lifecycle.aclose()
        await self._writer.close(self._settings.flush_timeout_seconds)
        return summary
