# ==============================================================================
# Tests for AnalyticsService and SessionService
# ==============================================================================
"""
Unit tests for the public services.

Tests cover:
- AnalyticsService tracking end to end through the in-memory sink
- get_analytics_data(): window filtering, empty window, sink failure
- Tracking helpers and page name mapping
- SessionService timeout configuration and session info
"""

import pytest
import pytest_asyncio

from sitepulse.base.sinks import SinkUnavailableError
from sitepulse.core.idle_guard import GuardState
from sitepulse.core.models import Collection
from sitepulse.infrastructure.sinks.memory import InMemoryEventSink
from sitepulse.services.analytics import DAY_MS, AnalyticsService, page_name_from_path
from sitepulse.services.session import SessionService
from sitepulse.utils.config import TelemetrySettings

INTERACTIONS = Collection.INTERACTIONS.value


class UnreachableSink(InMemoryEventSink):
    """Sink whose queries always fail."""

    async def query(self, collection, since, order_by):
        raise SinkUnavailableError("store offline")


@pytest_asyncio.fixture()
async def service(memory_sink, hub, context, telemetry_settings, clock):
    service = AnalyticsService(memory_sink, hub, context, telemetry_settings, clock)
    yield service
    await service.aclose()


# ==============================================================================
# Tracking
# ==============================================================================


class TestAnalyticsTracking:
    """Tests for the tracking facade."""

    @pytest.mark.asyncio
    async def test_init_twice_one_session(self, service, memory_sink):
        first = service.init("agent")
        second = service.init("agent")
        await service.writer.flush()

        assert first == second == service.session_id
        assert len(memory_sink.records(Collection.SESSIONS.value)) == 1

    @pytest.mark.asyncio
    async def test_end_session_twice_one_summary(self, service, memory_sink):
        service.init()
        service.track_page_view("Home")

        assert service.end_session() is not None
        assert service.end_session() is None
        await service.writer.flush()

        assert len(memory_sink.records(Collection.SESSION_SUMMARIES.value)) == 1

    @pytest.mark.asyncio
    async def test_aclose_ends_session_and_drains(self, memory_sink, hub, context, telemetry_settings, clock):
        service = AnalyticsService(memory_sink, hub, context, telemetry_settings, clock)
        service.init()
        service.track_page_view("Home")
        clock.advance(3000)

        summary = await service.aclose()

        assert summary.duration == 3000
        assert hub.listener_count() == 0
        assert service.writer.closed
        assert len(memory_sink.records(Collection.PAGE_VIEWS.value)) == 1

    @pytest.mark.asyncio
    async def test_disabled_telemetry(self, memory_sink, hub, context, clock):
        settings = TelemetrySettings(enabled=False)
        service = AnalyticsService(memory_sink, hub, context, settings, clock)

        assert service.init() is None
        assert service.track_page_view("Home") is False
        assert hub.listener_count() == 0
        await service.aclose()

    @pytest.mark.asyncio
    async def test_tracking_helpers(self, service, memory_sink):
        service.init()
        service.track_button_click("download_cv")
        service.track_form_submit("contact", success=False)
        service.track_link_click("github", "https://github.com")
        service.track_scroll(75)
        service.track_time_on_page(12.5)
        service.track_error("network", "timeout")
        service.track_performance_metric("time_to_interactive", 850)
        await service.writer.flush()

        rows = [(r["type"], r["element"], r["value"]) for r in memory_sink.records(INTERACTIONS)]
        assert rows == [
            ("click", "download_cv", None),
            ("form_submit", "contact", "error"),
            ("link_click", "github", "https://github.com"),
            ("scroll_depth", "page", 75),
            ("time_on_page", "engagement", 12.5),
            ("error", "network", "timeout"),
        ]
        [perf] = memory_sink.records(Collection.PERFORMANCE.value)
        assert perf["time_to_interactive"] == 850

    @pytest.mark.asyncio
    async def test_track_scroll_respects_running_maximum(self, service, hub, memory_sink):
        service.init()
        hub.dispatch("scroll", {"scroll_top": 500, "scroll_height": 1100, "viewport_height": 100})

        assert service.track_scroll(10) is False
        assert service.track_scroll(50) is False
        assert service.track_scroll(80) is True
        await service.writer.flush()

        depths = [r["value"] for r in memory_sink.records(INTERACTIONS) if r["type"] == "scroll_depth"]
        assert depths == [50, 80]
        assert service.collector.max_scroll_depth == 80

    @pytest.mark.asyncio
    async def test_navigate_records_named_page_view(self, service, memory_sink):
        service.init()

        assert service.navigate("/projects", "https://example.com/projects") is True
        assert service.navigate("/nowhere") is True
        await service.writer.flush()

        rows = [(r["page_name"], r["page_url"]) for r in memory_sink.records(Collection.PAGE_VIEWS.value)]
        assert rows == [
            ("Projects", "https://example.com/projects"),
            ("Unknown", "/nowhere"),
        ]
        assert service.collector.context.location == "/nowhere"

    @pytest.mark.asyncio
    async def test_interactions_after_navigate_carry_new_location(self, service, memory_sink):
        service.init()
        service.navigate("/about", "https://example.com/about")
        service.track_button_click("download_cv")
        await service.writer.flush()

        [click] = memory_sink.records(INTERACTIONS)
        assert click["page_url"] == "https://example.com/about"

    def test_default_context_uses_settings(self, memory_sink):
        settings = TelemetrySettings(language="fr-FR", timezone="Europe/Paris")
        service = AnalyticsService(memory_sink, settings=settings)

        assert service.collector.context.language == "fr-FR"
        assert service.collector.context.timezone == "Europe/Paris"


# ==============================================================================
# get_analytics_data
# ==============================================================================


class TestGetAnalyticsData:
    """Tests for the dashboard query."""

    @pytest.mark.asyncio
    async def test_empty_window_all_zero(self, service):
        report = await service.get_analytics_data(30)

        assert report is not None
        assert report.total_sessions == 0
        assert report.total_page_views == 0
        assert report.page_views_per_session == 0.0
        assert report.interactions_per_session == 0.0
        assert report.avg_session_duration == 0.0

    @pytest.mark.asyncio
    async def test_report_from_tracked_session(self, service, clock):
        service.init()
        for name in ["Home", "About", "Home", "Projects", "Home"]:
            service.track_page_view(name)
        service.track_interaction("click", "nav")
        service.track_performance({"page_load_time": 200.0})
        clock.advance(120_000)
        service.end_session()
        await service.writer.flush()

        report = await service.get_analytics_data(30)

        assert report.total_sessions == 1
        assert report.total_page_views == 5
        assert report.total_interactions == 1
        assert report.avg_session_duration == 120_000.0
        assert report.page_views_per_session == 5.0
        assert [r.key for r in report.top_pages] == ["Home", "About", "Projects"]
        assert report.top_pages[0].percentage == 60.0
        assert report.avg_page_load_time == 200.0

    @pytest.mark.asyncio
    async def test_window_excludes_old_records(self, service, memory_sink, clock):
        now = clock.now
        await memory_sink.append(
            Collection.PAGE_VIEWS.value,
            {"session_id": "old", "page_name": "Home", "timestamp": now - 40 * DAY_MS},
        )
        await memory_sink.append(
            Collection.PAGE_VIEWS.value,
            {"session_id": "new", "page_name": "About", "timestamp": now - 2 * DAY_MS},
        )

        report = await service.get_analytics_data(30)
        assert [r.key for r in report.top_pages] == ["About"]

        report = await service.get_analytics_data(1)
        assert report.total_page_views == 0

    @pytest.mark.asyncio
    async def test_sessions_windowed_by_start_time(self, service, memory_sink, clock):
        await memory_sink.append(
            Collection.SESSIONS.value,
            {"session_id": "s", "start_time": clock.now - 5 * DAY_MS, "duration": 4000},
        )

        batch = await service.fetch_batch(7)

        assert [s.session_id for s in batch.sessions] == ["s"]

    @pytest.mark.asyncio
    async def test_top_n_parameter(self, service, memory_sink, clock):
        for name in ["A", "B", "C"]:
            await memory_sink.append(
                Collection.PAGE_VIEWS.value,
                {"session_id": "s", "page_name": name, "timestamp": clock.now},
            )

        report = await service.get_analytics_data(30, top=2)

        assert len(report.top_pages) == 2

    @pytest.mark.asyncio
    async def test_sink_failure_returns_none(self, hub, context, telemetry_settings, clock):
        service = AnalyticsService(UnreachableSink(), hub, context, telemetry_settings, clock)

        assert await service.get_analytics_data(30) is None
        await service.aclose()


# ==============================================================================
# page_name_from_path
# ==============================================================================


class TestPageNameFromPath:
    """Tests for route to page name mapping."""

    @pytest.mark.parametrize(
        "path,name",
        [
            ("/", "Home"),
            ("/about", "About"),
            ("/projects", "Projects"),
            ("/contact", "Contact"),
            ("/resume", "Resume"),
            ("/admin", "Unknown"),
        ],
    )
    def test_default_routes(self, path, name):
        assert page_name_from_path(path) == name

    def test_custom_routes(self):
        assert page_name_from_path("/blog", {"/blog": "Blog"}) == "Blog"
        assert page_name_from_path("/", {"/blog": "Blog"}) == "Unknown"


# ==============================================================================
# SessionService
# ==============================================================================


@pytest.fixture()
def session_service(hub, identity, navigator, storages, session_settings):
    service = SessionService(hub, identity, navigator, storages, session_settings)
    yield service
    service.clear_session()


class TestSessionService:
    """Tests for the idle timeout API."""

    @pytest.mark.asyncio
    async def test_timeout_from_config(self, session_service):
        session_service.init_session_management({"session_timeout_minutes": 5})

        assert session_service.guard.state is GuardState.ARMED
        assert session_service.guard.timeout_ms == 5 * 60 * 1000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("config", [None, {}, {"session_timeout_minutes": None}])
    async def test_missing_timeout_uses_30_minutes(self, session_service, config):
        session_service.init_session_management(config)

        assert session_service.guard.timeout_ms == 30 * 60 * 1000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("minutes", ["soon", float("inf"), float("-inf"), float("nan"), [5]])
    async def test_invalid_timeout_uses_default(self, session_service, minutes):
        session_service.init_session_management({"session_timeout_minutes": minutes})

        assert session_service.guard.state is GuardState.ARMED
        assert session_service.guard.timeout_ms == 30 * 60 * 1000

    @pytest.mark.asyncio
    async def test_clear_session_disarms(self, session_service, hub):
        session_service.init_session_management({"session_timeout_minutes": 1})
        session_service.clear_session()

        assert session_service.guard.state is GuardState.DISARMED
        assert hub.listener_count() == 0

    @pytest.mark.asyncio
    async def test_extend_session_keeps_armed(self, session_service):
        session_service.init_session_management()
        session_service.extend_session()

        assert session_service.guard.state is GuardState.ARMED

    def test_session_info(self, session_service):
        assert session_service.is_session_active()
        assert session_service.get_session_info() == {
            "email": "admin@example.com",
            "uid": "uid-1",
            "last_sign_in_time": "2024-01-01T10:00:00Z",
            "creation_time": "2023-06-01T09:00:00Z",
        }

    def test_no_user(self, hub, navigator, session_settings):
        from sitepulse.infrastructure.identity import InMemoryIdentityProvider

        service = SessionService(hub, InMemoryIdentityProvider(), navigator, settings=session_settings)

        assert not service.is_session_active()
        assert service.get_session_info() is None
