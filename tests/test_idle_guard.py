# ==============================================================================
# Tests for IdleTimeoutGuard
# ==============================================================================
"""
Unit tests for the idle timeout state machine.

Tests cover:
- Expiry signs out, clears client storage and redirects
- Activity at 90ms of a 100ms timeout pushes expiry past 190ms
- disarm() prevents sign-out and removes every listener
- Re-arming keeps one timer and one set of listeners
- Sign-out failure still clears storage and redirects
- Independence from the telemetry collector's listeners

Timing tests use real (short) timers on the running event loop.
"""

import asyncio

import pytest

from sitepulse.base.identity import IdentityProvider
from sitepulse.core.idle_guard import (
    ACTIVITY_SIGNALS,
    DEFAULT_TIMEOUT_MS,
    GuardState,
    IdleTimeoutGuard,
)


class FailingIdentity(IdentityProvider):
    """Identity provider whose sign-out always fails."""

    def __init__(self):
        self.sign_out_calls = 0

    def current_user(self):
        return None

    async def sign_out(self):
        self.sign_out_calls += 1
        raise ConnectionError("auth service unreachable")


@pytest.fixture()
def guard(hub, identity, navigator, storages):
    guard = IdleTimeoutGuard(hub, identity, navigator, storages=storages)
    yield guard
    guard.disarm()


# ==============================================================================
# Expiry
# ==============================================================================


class TestExpiry:
    """Tests for the timeout firing."""

    @pytest.mark.asyncio
    async def test_no_activity_signs_out(self, guard, identity, navigator, storages):
        guard.arm(100)
        await asyncio.sleep(0.2)
        await guard.wait_teardown()

        assert guard.state is GuardState.TRIGGERED
        assert identity.sign_out_calls == 1
        assert identity.current_user() is None
        assert all(len(s) == 0 for s in storages)
        assert navigator.history == ["/admin/login"]

    @pytest.mark.asyncio
    async def test_not_fired_before_timeout(self, guard, identity):
        guard.arm(100)
        await asyncio.sleep(0.05)

        assert guard.state is GuardState.ARMED
        assert identity.sign_out_calls == 0

    @pytest.mark.asyncio
    async def test_listeners_removed_on_expiry(self, guard, hub):
        guard.arm(50)
        await asyncio.sleep(0.1)
        await guard.wait_teardown()

        assert hub.listener_count() == 0

    @pytest.mark.asyncio
    async def test_sign_out_failure_still_clears_and_redirects(self, hub, navigator, storages):
        identity = FailingIdentity()
        guard = IdleTimeoutGuard(hub, identity, navigator, storages=storages)

        guard.arm(20)
        await asyncio.sleep(0.08)
        await guard.wait_teardown()

        assert identity.sign_out_calls == 1
        assert all(len(s) == 0 for s in storages)
        assert navigator.history == ["/admin/login"]

    @pytest.mark.asyncio
    async def test_custom_login_path(self, hub, identity, navigator):
        guard = IdleTimeoutGuard(hub, identity, navigator, login_path="/signin")

        guard.arm(20)
        await asyncio.sleep(0.08)
        await guard.wait_teardown()

        assert navigator.history == ["/signin"]


# ==============================================================================
# Activity
# ==============================================================================


class TestActivity:
    """Tests for activity resetting the countdown."""

    @pytest.mark.asyncio
    async def test_activity_at_90ms_resets_window(self, guard, hub, identity):
        guard.arm(100)
        await asyncio.sleep(0.09)
        hub.dispatch("mousemove")

        await asyncio.sleep(0.07)  # ~160ms: original deadline passed
        assert identity.sign_out_calls == 0
        assert guard.state is GuardState.ARMED

        await asyncio.sleep(0.1)  # ~260ms: new deadline (~190ms) passed
        await guard.wait_teardown()
        assert identity.sign_out_calls == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("signal", ACTIVITY_SIGNALS)
    async def test_every_activity_signal_extends(self, guard, hub, identity, signal):
        guard.arm(60)
        await asyncio.sleep(0.04)
        hub.dispatch(signal)
        await asyncio.sleep(0.04)

        assert identity.sign_out_calls == 0

    @pytest.mark.asyncio
    async def test_activity_counts_when_propagation_stopped(self, guard, hub, identity):
        """Listeners are in the capture phase."""
        guard.arm(60)
        await asyncio.sleep(0.04)
        hub.dispatch("click", stopped_at_target=True)
        await asyncio.sleep(0.04)

        assert identity.sign_out_calls == 0

    @pytest.mark.asyncio
    async def test_extend_when_disarmed_is_noop(self, guard, identity):
        guard.extend()
        await asyncio.sleep(0.01)

        assert guard.state is GuardState.DISARMED
        assert identity.sign_out_calls == 0


# ==============================================================================
# disarm / re-arm
# ==============================================================================


class TestDisarm:
    """Tests for cancellation and listener hygiene."""

    @pytest.mark.asyncio
    async def test_disarm_prevents_sign_out(self, guard, hub, identity, navigator):
        guard.arm(100)
        await asyncio.sleep(0.03)
        guard.disarm()
        await asyncio.sleep(0.15)

        assert identity.sign_out_calls == 0
        assert navigator.history == []
        assert guard.state is GuardState.DISARMED
        assert hub.listener_count() == 0

    @pytest.mark.asyncio
    async def test_rearm_keeps_single_timer_and_listeners(self, guard, hub, identity):
        guard.arm(50)
        guard.arm(50)
        guard.arm(50)

        assert hub.listener_count() == len(ACTIVITY_SIGNALS)

        await asyncio.sleep(0.12)
        await guard.wait_teardown()
        assert identity.sign_out_calls == 1

    @pytest.mark.asyncio
    async def test_last_arm_wins(self, guard, identity):
        guard.arm(30)
        guard.arm(150)
        await asyncio.sleep(0.08)

        assert identity.sign_out_calls == 0

    @pytest.mark.asyncio
    async def test_repeated_mounts_do_not_leak(self, guard, hub):
        for _ in range(5):
            guard.arm(1000)
            guard.disarm()

        assert hub.listener_count() == 0

    @pytest.mark.asyncio
    async def test_disarm_leaves_collector_listeners(self, guard, collector, hub):
        collector.initialize()
        collector_listeners = hub.listener_count()

        guard.arm(1000)
        guard.disarm()

        assert hub.listener_count() == collector_listeners
        assert collector.initialized


# ==============================================================================
# Configuration
# ==============================================================================


class TestTimeoutConfiguration:
    """Tests for timeout defaults."""

    @pytest.mark.asyncio
    async def test_default_timeout(self, guard):
        guard.arm()
        assert guard.timeout_ms == DEFAULT_TIMEOUT_MS == 30 * 60 * 1000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("timeout", [0, -5])
    async def test_non_positive_timeout_uses_default(self, guard, timeout):
        guard.arm(timeout)
        assert guard.timeout_ms == DEFAULT_TIMEOUT_MS

    def test_initial_state(self, guard):
        assert guard.state is GuardState.DISARMED
        assert guard.teardown_task is None
