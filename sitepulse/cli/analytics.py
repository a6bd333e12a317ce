# ==============================================================================
# Analytics Command
# ==============================================================================
"""
Analytics command for the sitepulse CLI.

Displays the dashboard report (sessions, top pages, top interactions and
performance) aggregated from the Valkey event sink.
"""

import json
from typing import Annotated, Optional

import typer

from sitepulse.cli.formatting import (
    format_bytes,
    format_duration,
    format_interaction_type,
    format_number,
    format_time_ms,
    performance_score,
)
from sitepulse.cli.shared import (
    BOX_WIDTH,
    C,
    I,
    _box_bottom,
    _box_header,
    _box_line,
    _empty_line,
    _section_header,
    run_async,
)
from sitepulse.core.models import AggregateReport, RankedCount
from sitepulse.utils.config import get_settings

# Number of most recent days shown in the daily page view section
DAILY_ROWS = 7


# ==============================================================================
# Data Access
# ==============================================================================


async def _aggregate(days: int, top: int) -> AggregateReport | None:
    from sitepulse.infrastructure.sinks.valkey import ValkeyEventSink
    from sitepulse.services.analytics import AnalyticsService

    sink = ValkeyEventSink()
    try:
        service = AnalyticsService(sink)
        return await service.get_analytics_data(days, top)
    finally:
        await sink.close()


def fetch_report(days: int, top: int) -> AggregateReport | None:
    """Aggregate the last `days` days from the configured sink (None if unreachable)."""
    return run_async(_aggregate(days, top))


# ==============================================================================
# Rendering
# ==============================================================================


def _ranked_rows(title: str, rows: list[RankedCount], label=str) -> None:
    print(_section_header(title))
    if not rows:
        print(_box_line(f"  {C.DIM}No data{C.RESET}"))
        return
    for i, row in enumerate(rows, start=1):
        name = label(row.key)
        if len(name) > 36:
            name = name[:35] + "…"
        line = f"  {i}. {name:<36}{row.count:>10,}  {row.percentage:>9.1f}%"
        print(_box_line(line))


def _metric_row(name: str, ms: float, scored: bool = True) -> str:
    value = format_time_ms(ms)
    score = performance_score(ms) if scored and ms else ""
    return f"  {name:<30}{value:>12}  {score:>12}"


def _print_report(report: AggregateReport, days: int) -> None:
    W = BOX_WIDTH
    perf = report.performance

    print()
    print(_box_header(f"SITE ANALYTICS (LAST {days} DAYS)", W))
    print(_empty_line(W))

    rows = [
        ("Sessions", format_number(report.total_sessions)),
        ("Page Views", format_number(report.total_page_views)),
        ("Interactions", format_number(report.total_interactions)),
        ("Avg Session Duration", format_duration(report.avg_session_duration)),
        ("Pages / Session", f"{report.page_views_per_session:.1f}"),
        ("Interactions / Session", f"{report.interactions_per_session:.1f}"),
        ("Avg Page Load", format_time_ms(report.avg_page_load_time)),
    ]
    for name, value in rows:
        print(_box_line(f"  {name:<30}{value:>12}"))
    print(_empty_line(W))

    _ranked_rows("Top Pages", report.top_pages)
    print(_empty_line(W))
    _ranked_rows("Top Interactions", report.top_interactions, label=format_interaction_type)
    print(_empty_line(W))

    print(_section_header("Performance"))
    print(_box_line(_metric_row("Page Load Time", perf.avg_page_load_time)))
    print(_box_line(_metric_row("DOM Content Loaded", perf.avg_dom_content_loaded)))
    print(_box_line(_metric_row("First Paint", perf.avg_first_paint)))
    print(_box_line(_metric_row("First Contentful Paint", perf.avg_first_contentful_paint)))
    print(_box_line(_metric_row("Resource Load Time", perf.avg_resource_load_time)))
    print(_box_line(f"  {'Resources':<30}{format_number(perf.total_resources):>12}"))
    print(_box_line(f"  {'Total Resource Size':<30}{format_bytes(perf.total_resource_size):>12}"))
    print(_empty_line(W))

    print(_section_header("Page Views by Day"))
    daily = report.page_views_by_date[-DAILY_ROWS:]
    if not daily:
        print(_box_line(f"  {C.DIM}No data{C.RESET}"))
    for day in daily:
        print(_box_line(f"  {day.date:<30}{day.count:>12,}"))

    print(_empty_line(W))
    print(_box_bottom(W))
    print()


# ==============================================================================
# Commands
# ==============================================================================


def show_analytics(
    days: Annotated[
        Optional[int], typer.Option("--days", "-d", min=1, help="Window length in days")
    ] = None,
    top: Annotated[
        Optional[int], typer.Option("--top", "-n", min=1, help="Rows in the top pages/interactions tables")
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output as JSON for scripting")
    ] = False,
) -> None:
    """Show site analytics for a time window.

    Aggregates sessions, page views, interactions and performance records
    whose timestamps fall inside the window (default: TELEMETRY_WINDOW_DAYS).

    Examples:
        sitepulse analytics               # Last 30 days, formatted
        sitepulse analytics -d 7 -n 10    # Last week, top 10
        sitepulse analytics --json        # JSON output for scripting
    """
    settings = get_settings()
    days = days if days is not None else settings.telemetry.window_days
    top = top if top is not None else settings.telemetry.top_n

    report = fetch_report(days, top)

    if report is None:
        if json_output:
            print(json.dumps({"error": "No data available or event store unreachable"}))
        else:
            print(f"\n{C.BRIGHT_RED}{I.CROSS} No data available or event store unreachable{C.RESET}\n")
        raise typer.Exit(1)

    if json_output:
        print(json.dumps(report.model_dump(), indent=2))
        return

    _print_report(report, days)
