# ==============================================================================
# Telemetry Domain Models
# ==============================================================================
"""
Pydantic models for telemetry sessions, events and derived reports.

These models are used for:
- Building the records the collector hands to the event sink
- Parsing raw sink records back for aggregation
- Serializing the aggregate report for the dashboard and the CLI

All timestamps are Unix timestamps in milliseconds.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)


class Collection(str, Enum):
    """Sink collections written by the telemetry engine."""

    SESSIONS = "analytics_sessions"
    PAGE_VIEWS = "analytics_pageviews"
    INTERACTIONS = "analytics_interactions"
    PERFORMANCE = "analytics_performance"
    SESSION_SUMMARIES = "analytics_session_summaries"


class InteractionType(str, Enum):
    """Interaction types emitted by the built-in signal sources.

    Callers may record any other non-empty type string.
    """

    CLICK = "click"
    SCROLL_DEPTH = "scroll_depth"
    FORM_SUBMIT = "form_submit"
    INPUT_FOCUS = "input_focus"
    PAGE_HIDDEN = "page_hidden"
    PAGE_VISIBLE = "page_visible"
    PAGE_EXIT = "page_exit"


InteractionValue = int | float | str | bool | None


def ms_to_datetime(timestamp: int) -> datetime:
    """Convert a millisecond timestamp to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp / 1000.0, tz=timezone.utc)


ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_records(model: type[ModelT], records: list[dict[str, Any]]) -> list[ModelT]:
    """
    Validate raw sink dicts into models, skipping the ones that do not fit.

    Args:
        model: Pydantic model class to validate against
        records: Raw dicts as returned by EventSink.query()

    Returns:
        Parsed models in input order
    """
    parsed: list[ModelT] = []
    for record in records:
        try:
            parsed.append(model.model_validate(record))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed %s record: %d validation error(s)",
                model.__name__,
                e.error_count(),
            )
    return parsed


# ==============================================================================
# Raw Records
# ==============================================================================


class Session(BaseModel):
    """
    One browser visit's worth of telemetry.

    Created once when the collector initializes; end_time, duration and the
    totals are filled in by the lifecycle manager when the session ends.
    """

    model_config = ConfigDict(extra="ignore")

    session_id: str = Field(..., description="Opaque per-visit identifier")
    start_time: int = Field(..., description="Session start (ms)")
    end_time: int | None = Field(default=None, description="Session end (ms)")
    user_agent: str = Field(default="", description="User-agent string")
    screen_resolution: str = Field(default="", description="WIDTHxHEIGHT")
    language: str = Field(default="", description="Preferred language tag")
    timezone: str = Field(default="", description="IANA timezone name")
    referrer: str = Field(default="direct", description="Referrer or 'direct'")
    url: str = Field(default="", description="Entry URL")
    timestamp: int | None = Field(default=None, description="Record creation (ms)")
    duration: int | None = Field(default=None, description="Session duration (ms)")
    total_page_views: int | None = Field(default=None)
    total_interactions: int | None = Field(default=None)

    def to_record(self) -> dict:
        """Serialize for the sink, omitting fields that are not yet known."""
        return self.model_dump(exclude_none=True)


class PageViewEvent(BaseModel):
    """A single logical page view within a session."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    session_id: str
    page_name: str
    page_url: str = ""
    timestamp: int

    def to_record(self) -> dict:
        return self.model_dump()


class InteractionEvent(BaseModel):
    """A single typed user interaction within a session."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    session_id: str
    type: str = Field(..., min_length=1)
    element: str = "unknown"
    value: InteractionValue = None
    timestamp: int
    page_url: str = ""

    def to_record(self) -> dict:
        return self.model_dump()


class PerformanceRecord(BaseModel):
    """
    A sparse set of timing metrics.

    Only the metrics that were actually observed are present. Extra numeric
    metrics supplied by callers are kept alongside the named fields.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    session_id: str
    timestamp: int
    page_url: str = ""
    page_load_time: float | None = None
    dom_content_loaded: float | None = None
    first_paint: float | None = None
    first_contentful_paint: float | None = None
    total_page_load: float | None = None
    resource_name: str | None = None
    resource_load_time: float | None = None
    resource_size: int | None = None

    def metric(self, name: str) -> float | None:
        """Return a metric value, or None when the record does not carry it."""
        if name in type(self).model_fields:
            value = getattr(self, name)
        else:
            value = (self.model_extra or {}).get(name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value

    def to_record(self) -> dict:
        return self.model_dump(exclude_none=True)


class SessionSummary(BaseModel):
    """Derived per-session totals, written once at session end."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    end_time: int
    duration: int
    total_page_views: int
    total_interactions: int
    pages_visited: list[str] = Field(default_factory=list)
    timestamp: int

    def to_record(self) -> dict:
        return self.model_dump()


# ==============================================================================
# Aggregation Input / Output
# ==============================================================================


class EventBatch(BaseModel):
    """Raw telemetry records for one time window."""

    sessions: list[Session] = Field(default_factory=list)
    page_views: list[PageViewEvent] = Field(default_factory=list)
    interactions: list[InteractionEvent] = Field(default_factory=list)
    performance: list[PerformanceRecord] = Field(default_factory=list)

    @classmethod
    def from_records(
        cls,
        sessions: list[dict[str, Any]],
        page_views: list[dict[str, Any]],
        interactions: list[dict[str, Any]],
        performance: list[dict[str, Any]],
    ) -> "EventBatch":
        """
        Build a batch from raw sink dicts.

        Records that fail validation are logged and skipped so one malformed
        document never hides the rest of the window.
        """
        return cls(
            sessions=parse_records(Session, sessions),
            page_views=parse_records(PageViewEvent, page_views),
            interactions=parse_records(InteractionEvent, interactions),
            performance=parse_records(PerformanceRecord, performance),
        )


class RankedCount(BaseModel):
    """One row of a top-N table."""

    key: str
    count: int
    percentage: float = 0.0


class DailyCount(BaseModel):
    """Number of records on one UTC calendar day."""

    date: str
    count: int


class PerformanceStats(BaseModel):
    """Averages over the performance records that carry each metric."""

    avg_page_load_time: float = 0.0
    avg_dom_content_loaded: float = 0.0
    avg_first_paint: float = 0.0
    avg_first_contentful_paint: float = 0.0
    avg_resource_load_time: float = 0.0
    total_resources: int = 0
    total_resource_size: int = 0


class AggregateReport(BaseModel):
    """
    Summary statistics for a time window.

    Every ratio is 0 when the session count is 0.
    """

    total_sessions: int = 0
    total_page_views: int = 0
    total_interactions: int = 0
    avg_session_duration: float = 0.0
    page_views_per_session: float = 0.0
    interactions_per_session: float = 0.0
    top_pages: list[RankedCount] = Field(default_factory=list)
    top_interactions: list[RankedCount] = Field(default_factory=list)
    avg_page_load_time: float = 0.0
    performance: PerformanceStats = Field(default_factory=PerformanceStats)
    page_views_by_date: list[DailyCount] = Field(default_factory=list)
