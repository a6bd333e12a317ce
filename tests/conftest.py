# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- A manual millisecond clock
- A SignalHub, an in-memory sink and a SinkWriter in front of it
- A collector wired to those, with a fixed browser context
- fakeredis-backed ValkeyEventSink (FakeAsyncRedis, flushed per test)
- In-memory identity, storage and navigator fakes
"""

import fakeredis
import pytest
import pytest_asyncio

from sitepulse.base.identity import User
from sitepulse.core.collector import TelemetryCollector
from sitepulse.core.context import BrowserContext
from sitepulse.core.signals import SignalHub
from sitepulse.infrastructure.client import InMemoryClientStorage, RecordingNavigator
from sitepulse.infrastructure.identity import InMemoryIdentityProvider
from sitepulse.infrastructure.sinks.memory import InMemoryEventSink
from sitepulse.infrastructure.sinks.valkey import ValkeyEventSink
from sitepulse.producers.sink_writer import SinkWriter
from sitepulse.utils.config import SessionSettings, TelemetrySettings

START_MS = 1_700_000_000_000


class ManualClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def hub():
    return SignalHub()


@pytest.fixture()
def memory_sink():
    return InMemoryEventSink()


@pytest_asyncio.fixture()
async def writer(memory_sink):
    """A SinkWriter over the in-memory sink, without retries."""
    writer = SinkWriter(memory_sink, retry_attempts=1)
    yield writer
    await writer.close(timeout=1.0)


@pytest.fixture()
def context():
    return BrowserContext(
        user_agent="pytest-agent",
        screen_width=1920,
        screen_height=1080,
        language="en-GB",
        timezone="Europe/London",
        referrer="",
        location="https://example.com/",
    )


@pytest_asyncio.fixture()
async def collector(writer, hub, context, clock):
    collector = TelemetryCollector(writer, hub, context, clock)
    yield collector
    collector.dispose()


@pytest.fixture()
def telemetry_settings():
    return TelemetrySettings(
        enabled=True,
        queue_max_size=100,
        write_retry_attempts=1,
        flush_timeout_seconds=1.0,
        top_n=5,
        window_days=30,
    )


@pytest.fixture()
def session_settings():
    return SessionSettings(session_timeout_minutes=30, login_path="/admin/login")


# ==============================================================================
# Valkey (fakeredis)
# ==============================================================================


@pytest_asyncio.fixture()
async def fake_async_redis():
    """A clean FakeAsyncRedis for each test.

    Uses decode_responses=True to match the real ValkeyEventSink client.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeAsyncRedis(server=server, decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture()
def valkey_sink(fake_async_redis):
    """A ValkeyEventSink with its internal client replaced by fakeredis."""
    sink = ValkeyEventSink.__new__(ValkeyEventSink)
    sink._client = fake_async_redis
    sink._url = "redis://fake:6379"
    sink._prefix = "test"
    return sink


# ==============================================================================
# Identity / Client
# ==============================================================================


@pytest.fixture()
def user():
    return User(
        id="uid-1",
        email="admin@example.com",
        last_sign_in_time="2024-01-01T10:00:00Z",
        creation_time="2023-06-01T09:00:00Z",
    )


@pytest.fixture()
def identity(user):
    return InMemoryIdentityProvider(user)


@pytest.fixture()
def storages():
    return [
        InMemoryClientStorage({"theme": "dark"}),
        InMemoryClientStorage({"draft": "hello"}),
    ]


@pytest.fixture()
def navigator():
    return RecordingNavigator("/admin/dashboard")
