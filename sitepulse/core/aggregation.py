# ==============================================================================
# Aggregation Engine - Pure Domain Logic
# ==============================================================================
"""
Pure reduction of a telemetry batch into dashboard statistics.

This module contains the domain logic for the analytics dashboard:
- Average session duration
- Page views / interactions per session
- Top-N pages and interaction types
- Performance metric averages
- Daily page view counts

Everything here is a plain function over already-fetched models: no sink,
clock or framework dependencies. Given the same batch, build_report()
returns an identical report.
"""

from collections.abc import Iterable, Sequence

from sitepulse.core.models import (
    AggregateReport,
    DailyCount,
    EventBatch,
    PageViewEvent,
    PerformanceRecord,
    PerformanceStats,
    RankedCount,
    Session,
    ms_to_datetime,
)

DEFAULT_TOP_N = 5


def ratio(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 when the denominator is zero."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def percentage_of_total(count: float, total: float) -> float:
    """Share of total as a percentage; 0.0 when total is zero."""
    return ratio(count, total) * 100


def average_session_duration(sessions: Iterable[Session]) -> float:
    """
    Mean duration over sessions that have one.

    Sessions that never recorded a duration are left out of both the sum
    and the count.
    """
    durations = [s.duration for s in sessions if s.duration is not None]
    return ratio(sum(durations), len(durations))


def top_n(keys: Iterable[str], n: int) -> list[tuple[str, int]]:
    """
    Count keys and return the n most frequent.

    Ties keep the order in which keys were first encountered: dict insertion
    order gives first-encounter order and sorted() is stable.

    Args:
        keys: Keys in input order (e.g. page names)
        n: Maximum number of entries to return

    Returns:
        List of (key, count) pairs, highest count first
    """
    if n <= 0:
        return []
    counts: dict[str, int] = {}
    for key in keys:
        counts[key] = counts.get(key, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:n]


def rank_with_percentages(ranked: Sequence[tuple[str, int]]) -> list[RankedCount]:
    """Attach each entry's share of the listed total."""
    total = sum(count for _, count in ranked)
    return [
        RankedCount(key=key, count=count, percentage=percentage_of_total(count, total))
        for key, count in ranked
    ]


def average_metric(records: Iterable[PerformanceRecord], name: str) -> float:
    """
    Mean of one metric over the records that carry it.

    A record without the metric is excluded, never counted as zero.
    """
    values = [v for v in (r.metric(name) for r in records) if v is not None]
    return ratio(sum(values), len(values))


def performance_stats(records: Sequence[PerformanceRecord]) -> PerformanceStats:
    """Per-metric averages plus resource totals."""
    resources = [r for r in records if r.metric("resource_load_time") is not None]
    return PerformanceStats(
        avg_page_load_time=average_metric(records, "page_load_time"),
        avg_dom_content_loaded=average_metric(records, "dom_content_loaded"),
        avg_first_paint=average_metric(records, "first_paint"),
        avg_first_contentful_paint=average_metric(records, "first_contentful_paint"),
        avg_resource_load_time=average_metric(resources, "resource_load_time"),
        total_resources=len(resources),
        total_resource_size=sum(r.resource_size or 0 for r in resources),
    )


def page_views_by_date(page_views: Iterable[PageViewEvent]) -> list[DailyCount]:
    """Page views grouped by UTC calendar day, oldest day first."""
    counts: dict[str, int] = {}
    for view in page_views:
        day = ms_to_datetime(view.timestamp).date().isoformat()
        counts[day] = counts.get(day, 0) + 1
    return [DailyCount(date=day, count=counts[day]) for day in sorted(counts)]


def build_report(batch: EventBatch, top: int = DEFAULT_TOP_N) -> AggregateReport:
    """
    Reduce a batch of raw records into an AggregateReport.

    Args:
        batch: Sessions, page views, interactions and performance records
               for one time window
        top: Length of the top pages / top interactions lists

    Returns:
        AggregateReport; all counts and ratios are 0 for an empty batch
    """
    total_sessions = len(batch.sessions)
    total_page_views = len(batch.page_views)
    total_interactions = len(batch.interactions)
    perf = performance_stats(batch.performance)

    return AggregateReport(
        total_sessions=total_sessions,
        total_page_views=total_page_views,
        total_interactions=total_interactions,
        avg_session_duration=average_session_duration(batch.sessions),
        page_views_per_session=ratio(total_page_views, total_sessions),
        interactions_per_session=ratio(total_interactions, total_sessions),
        top_pages=rank_with_percentages(top_n((pv.page_name for pv in batch.page_views), top)),
        top_interactions=rank_with_percentages(top_n((i.type for i in batch.interactions), top)),
        avg_page_load_time=perf.avg_page_load_time,
        performance=perf,
        page_views_by_date=page_views_by_date(batch.page_views),
    )
