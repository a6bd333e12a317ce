# ==============================================================================
# Telemetry Collector
# ==============================================================================
"""
Turns browser signals and explicit calls into timestamped telemetry records.

The collector owns the analytics session for one visit:

    initialize()  ->  session-start record
                  ->  signal sources (load, resource, click, scroll, submit,
                      focus, visibilitychange, beforeunload)
    record_*()    ->  page view / interaction / performance records
    dispose()     ->  every signal source removed

Records are handed to the SinkWriter without waiting for persistence.
Nothing here raises to the caller: invalid input is logged and dropped.
"""

import logging
import random
import string
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from sitepulse.core.context import (
    BrowserContext,
    Clock,
    ElementTarget,
    PageLoadTiming,
    ResourceEntry,
    ScrollPosition,
    VisibilityChange,
    now_ms,
)
from sitepulse.core.models import (
    Collection,
    InteractionEvent,
    InteractionType,
    InteractionValue,
    PageViewEvent,
    PerformanceRecord,
    Session,
)
from sitepulse.core.signals import Disposer, Signal, SignalHub
from sitepulse.producers.sink_writer import SinkWriter

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)

_BASE36 = string.digits + string.ascii_lowercase
FOCUSABLE_TAGS = ("INPUT", "TEXTAREA")


def generate_session_id(clock: Clock = now_ms) -> str:
    """Session id of the form '{ms}-{9 random base36 chars}'."""
    suffix = "".join(random.choices(_BASE36, k=9))
    return f"{clock()}-{suffix}"


class TelemetryCollector:
    """
    Per-visit telemetry producer.

    Construct one per visit and call initialize(); call dispose() when the
    host tears the page down. After dispose() the same instance can be
    initialized again as a fresh session.
    """

    def __init__(
        self,
        writer: SinkWriter,
        hub: SignalHub,
        context: BrowserContext | None = None,
        clock: Clock = now_ms,
        session_id_factory: Callable[[], str] | None = None,
    ):
        """
        Initialize the collector.

        Args:
            writer: Write queue in front of the event sink
            hub: Signal hub the signal sources subscribe to
            context: Browser environment. Defaults to an empty context.
            clock: Millisecond clock, injectable for tests
            session_id_factory: Override for session id generation
        """
        self._writer = writer
        self._hub = hub
        self._context = context or BrowserContext()
        self._clock = clock
        self._session_id_factory = session_id_factory or (lambda: generate_session_id(clock))

        self._session: Session | None = None
        self._disposers: list[Disposer] = []
        self._page_views: list[PageViewEvent] = []
        self._interaction_count = 0
        self._max_scroll_depth = 0
        self._visible_since = 0
        self._load_sampled = False

    # ==========================================================================
    # Session state
    # ==========================================================================

    @property
    def initialized(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> Session | None:
        """The session-start record, or None before initialize()."""
        return self._session

    @property
    def session_id(self) -> str | None:
        return self._session.session_id if self._session else None

    @property
    def context(self) -> BrowserContext:
        return self._context

    @property
    def page_view_count(self) -> int:
        return len(self._page_views)

    @property
    def interaction_count(self) -> int:
        return self._interaction_count

    @property
    def max_scroll_depth(self) -> int:
        return self._max_scroll_depth

    def pages_visited(self) -> list[str]:
        """Distinct page names in first-visit order."""
        return list(dict.fromkeys(pv.page_name for pv in self._page_views))

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    def initialize(self, user_agent: str | None = None) -> str:
        """
        Start the session and install the signal sources.

        A second call while initialized is a no-op.

        Args:
            user_agent: User-agent string. Defaults to the context's.

        Returns:
            The session id
        """
        if self._session is not None:
            logger.debug("Collector already initialized (session %s)", self._session.session_id)
            return self._session.session_id

        start = self._clock()
        ctx = self._context
        self._session = Session(
            session_id=self._session_id_factory(),
            start_time=start,
            user_agent=user_agent if user_agent is not None else ctx.user_agent,
            screen_resolution=ctx.screen_resolution,
            language=ctx.language,
            timezone=ctx.timezone,
            referrer=ctx.referrer or "direct",
            url=ctx.location,
            timestamp=start,
        )
        self._visible_since = start
        self._writer.submit_append(
            Collection.SESSIONS.value,
            self._session.to_record(),
            record_id=self._session.session_id,
        )

        self._disposers.extend(self._install_performance_sources())
        self._disposers.extend(self._install_interaction_sources())
        self._disposers.extend(self._install_visibility_sources())

        logger.info("Telemetry session %s started", self._session.session_id)
        return self._session.session_id

    def dispose(self) -> None:
        """Remove every signal source and forget the session."""
        for dispose in self._disposers:
            dispose()
        self._disposers.clear()

        if self._session is not None:
            logger.debug("Telemetry session %s disposed", self._session.session_id)
        self._session = None
        self._page_views = []
        self._interaction_count = 0
        self._max_scroll_depth = 0
        self._load_sampled = False

    # ==========================================================================
    # Emit paths
    # ==========================================================================

    def record_page_view(self, page_name: str, url: str | None = None) -> bool:
        """
        Record a page view in the current session.

        Args:
            page_name: Logical page name (e.g., "Home")
            url: Page URL. Defaults to the current location.

        Returns:
            True if the record was queued
        """
        if self._session is None:
            logger.warning("Page view '%s' recorded before initialize, dropping", page_name)
            return False

        event = PageViewEvent(
            session_id=self._session.session_id,
            page_name=page_name,
            page_url=url if url is not None else self._context.location,
            timestamp=self._clock(),
        )
        self._page_views.append(event)
        return self._writer.submit_append(Collection.PAGE_VIEWS.value, event.to_record())

    def record_interaction(
        self,
        type: str,
        element: str | None = None,
        value: InteractionValue = None,
    ) -> bool:
        """
        Record a typed interaction.

        Any non-empty type is accepted. An empty type is logged and dropped.

        Args:
            type: Interaction type (see InteractionType for the built-in ones)
            element: Element descriptor. Defaults to "unknown".
            value: Optional scalar value (depth, elapsed ms, label, ...)

        Returns:
            True if the record was queued
        """
        if self._session is None:
            logger.warning("Interaction '%s' recorded before initialize, dropping", type)
            return False
        if not type:
            logger.warning("Interaction with empty type, dropping")
            return False

        try:
            event = InteractionEvent(
                session_id=self._session.session_id,
                type=type,
                element=element or "unknown",
                value=value,
                timestamp=self._clock(),
                page_url=self._context.location,
            )
        except ValidationError as e:
            logger.warning("Invalid '%s' interaction, dropping: %s", type, e)
            return False

        self._interaction_count += 1
        return self._writer.submit_append(Collection.INTERACTIONS.value, event.to_record())

    def record_scroll_depth(self, depth: int) -> bool:
        """
        Record a scroll depth if it exceeds the session's running maximum.

        Depths at or below the maximum already recorded are ignored, so
        scroll_depth values only ever increase within a session.

        Args:
            depth: Scrolled percentage of the page

        Returns:
            True if the record was queued
        """
        if self._session is None:
            logger.warning("Scroll depth recorded before initialize, dropping")
            return False
        if depth <= self._max_scroll_depth:
            return False
        self._max_scroll_depth = depth
        return self.record_interaction(InteractionType.SCROLL_DEPTH.value, "page", depth)

    def record_performance(self, metrics: dict[str, Any]) -> bool:
        """
        Record a set of performance metrics.

        Metrics whose value is None are treated as absent and left out.

        Args:
            metrics: Metric name -> value (e.g. {"page_load_time": 120.5})

        Returns:
            True if the record was queued
        """
        if self._session is None:
            logger.warning("Performance metrics recorded before initialize, dropping")
            return False

        present = {name: value for name, value in metrics.items() if value is not None}
        try:
            record = PerformanceRecord(
                **{
                    **present,
                    "session_id": self._session.session_id,
                    "timestamp": self._clock(),
                    "page_url": self._context.location,
                }
            )
        except ValidationError as e:
            logger.warning("Invalid performance metrics, dropping: %s", e)
            return False

        return self._writer.submit_append(Collection.PERFORMANCE.value, record.to_record())

    # ==========================================================================
    # Signal sources
    # ==========================================================================

    def _install_performance_sources(self) -> list[Disposer]:
        return [
            self._hub.add_listener("load", self._on_load),
            self._hub.add_listener("resource", self._on_resource),
        ]

    def _install_interaction_sources(self) -> list[Disposer]:
        self._max_scroll_depth = 0
        return [
            self._hub.add_listener("click", self._on_click),
            self._hub.add_listener("scroll", self._on_scroll),
            self._hub.add_listener("submit", self._on_submit),
            self._hub.add_listener("focus", self._on_focus, capture=True),
        ]

    def _install_visibility_sources(self) -> list[Disposer]:
        return [
            self._hub.add_listener("visibilitychange", self._on_visibility_change),
            self._hub.add_listener("beforeunload", self._on_before_unload),
        ]

    def _on_load(self, signal: Signal) -> None:
        if self._load_sampled:
            return
        timing = _coerce(PageLoadTiming, signal)
        if timing is None:
            return
        self._load_sampled = True

        metrics: dict[str, float] = {}
        nav = timing.navigation
        if nav is not None:
            metrics["page_load_time"] = nav.load_event_end - nav.load_event_start
            metrics["dom_content_loaded"] = (
                nav.dom_content_loaded_event_end - nav.dom_content_loaded_event_start
            )
            metrics["total_page_load"] = nav.load_event_end - nav.fetch_start
        first_paint = timing.paint_time("first-paint")
        if first_paint is not None:
            metrics["first_paint"] = first_paint
        first_contentful_paint = timing.paint_time("first-contentful-paint")
        if first_contentful_paint is not None:
            metrics["first_contentful_paint"] = first_contentful_paint

        if not metrics:
            logger.debug("Load signal carried no timing entries")
            return
        self.record_performance(metrics)

    def _on_resource(self, signal: Signal) -> None:
        payload = signal.payload
        entries = payload if isinstance(payload, list) else [payload]
        for raw in entries:
            entry = _coerce(ResourceEntry, Signal(signal.name, raw))
            if entry is None or entry.entry_type != "resource":
                continue
            self.record_performance(
                {
                    "resource_name": entry.name,
                    "resource_load_time": entry.duration,
                    "resource_size": entry.transfer_size,
                }
            )

    def _on_click(self, signal: Signal) -> None:
        target = _coerce(ElementTarget, signal)
        if target is not None:
            self.record_interaction(InteractionType.CLICK.value, target.descriptor())

    def _on_scroll(self, signal: Signal) -> None:
        position = _coerce(ScrollPosition, signal)
        if position is None:
            return
        depth = position.percentage()
        if depth is not None:
            self.record_scroll_depth(depth)

    def _on_submit(self, signal: Signal) -> None:
        target = _coerce(ElementTarget, signal)
        if target is not None:
            self.record_interaction(InteractionType.FORM_SUBMIT.value, target.tag_name.lower())

    def _on_focus(self, signal: Signal) -> None:
        target = _coerce(ElementTarget, signal)
        if target is not None and target.tag_name.upper() in FOCUSABLE_TAGS:
            self.record_interaction(InteractionType.INPUT_FOCUS.value, target.input_type or "text")

    def _on_visibility_change(self, signal: Signal) -> None:
        change = _coerce(VisibilityChange, signal)
        if change is None:
            return
        now = self._clock()
        if change.hidden:
            self.record_interaction(
                InteractionType.PAGE_HIDDEN.value, "visibility", now - self._visible_since
            )
        else:
            self._visible_since = now
            self.record_interaction(InteractionType.PAGE_VISIBLE.value, "visibility")

    def _on_before_unload(self, signal: Signal) -> None:
        self.record_interaction(
            InteractionType.PAGE_EXIT.value, "navigation", self._clock() - self._visible_since
        )


def _coerce(model: type[PayloadT], signal: Signal) -> PayloadT | None:
    """Accept a payload as a model instance or a dict; log and skip anything else."""
    payload = signal.payload
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError:
        logger.warning("Ignoring '%s' signal with invalid payload", signal.name)
        return None
