# ==============================================================================
# Idle Timeout Guard
# ==============================================================================
"""
Inactivity timeout for an authenticated context.

State machine:

    DISARMED --arm()--> ARMED --timer fires--> TRIGGERED
        ^                 |  ^                     |
        +----disarm()-----+  +--activity/extend()  +--> storage cleared,
                                                       sign-out, redirect

At most one timer is live per guard: arm() and extend() always cancel the
previous one. Activity listeners are registered in the capture phase so
that activity counts even when the originating element stops propagation.
The guard never touches the telemetry collector's listeners.
"""

import asyncio
import logging
from collections.abc import Sequence
from enum import Enum

from sitepulse.base.client import ClientStorage, Navigator
from sitepulse.base.identity import IdentityProvider
from sitepulse.core.signals import Disposer, Signal, SignalHub

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30 * 60 * 1000
DEFAULT_LOGIN_PATH = "/admin/login"

ACTIVITY_SIGNALS = ("mousedown", "mousemove", "keypress", "scroll", "touchstart", "click")


class GuardState(str, Enum):
    """Idle guard states."""

    DISARMED = "disarmed"
    ARMED = "armed"
    TRIGGERED = "triggered"


class IdleTimeoutGuard:
    """
    Signs the user out after a period without activity.

    Must be armed from inside a running event loop; the timer is scheduled
    with loop.call_later().
    """

    def __init__(
        self,
        hub: SignalHub,
        identity: IdentityProvider,
        navigator: Navigator,
        storages: Sequence[ClientStorage] = (),
        login_path: str = DEFAULT_LOGIN_PATH,
    ):
        """
        Initialize the guard.

        Args:
            hub: Signal hub the activity listeners subscribe to
            identity: Provider whose sign_out() runs on timeout
            navigator: Used to redirect to the login path on timeout
            storages: Client storages cleared on timeout (local, session)
            login_path: Redirect target on timeout
        """
        self._hub = hub
        self._identity = identity
        self._navigator = navigator
        self._storages = list(storages)
        self._login_path = login_path

        self._state = GuardState.DISARMED
        self._timeout_ms = DEFAULT_TIMEOUT_MS
        self._timer: asyncio.TimerHandle | None = None
        self._disposers: list[Disposer] = []
        self._teardown: asyncio.Task | None = None

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @property
    def teardown_task(self) -> asyncio.Task | None:
        """The sign-out task started on expiry, if any."""
        return self._teardown

    # ==========================================================================
    # Transitions
    # ==========================================================================

    def arm(self, timeout_ms: int | None = None) -> None:
        """
        Start or restart the countdown.

        Args:
            timeout_ms: Inactivity timeout. None or a non-positive value
                        falls back to 30 minutes.
        """
        if timeout_ms is None:
            timeout_ms = DEFAULT_TIMEOUT_MS
        elif timeout_ms <= 0:
            logger.warning("Invalid idle timeout %sms, using default", timeout_ms)
            timeout_ms = DEFAULT_TIMEOUT_MS

        self._timeout_ms = timeout_ms
        self._state = GuardState.ARMED
        self._restart_timer()

        if not self._disposers:
            self._disposers = [
                self._hub.add_listener(name, self._on_activity, capture=True)
                for name in ACTIVITY_SIGNALS
            ]
        logger.debug("Idle guard armed (%dms)", timeout_ms)

    def extend(self) -> None:
        """Restart the countdown with the configured timeout. No-op unless armed."""
        if self._state is GuardState.ARMED:
            self._restart_timer()

    def disarm(self) -> None:
        """Cancel the countdown and remove every activity listener."""
        self._cancel_timer()
        self._remove_listeners()
        self._state = GuardState.DISARMED
        logger.debug("Idle guard disarmed")

    async def wait_teardown(self) -> None:
        """Wait for an in-flight expiry teardown to finish."""
        if self._teardown is not None:
            await self._teardown

    # ==========================================================================
    # Internals
    # ==========================================================================

    def _on_activity(self, signal: Signal) -> None:
        self.extend()

    def _restart_timer(self) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._timeout_ms / 1000.0, self._expire)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _remove_listeners(self) -> None:
        for dispose in self._disposers:
            dispose()
        self._disposers = []

    def _expire(self) -> None:
        if self._state is not GuardState.ARMED:
            return
        self._timer = None
        self._state = GuardState.TRIGGERED
        self._remove_listeners()
        logger.info("Session idle for %dms, signing out", self._timeout_ms)
        self._teardown = asyncio.get_running_loop().create_task(self._sign_out())

    async def _sign_out(self) -> None:
        for storage in self._storages:
            try:
                storage.clear()
            except Exception:
                logger.exception("Failed to clear client storage")
        try:
            await self._identity.sign_out()
        except Exception:
            logger.exception("Sign-out failed during idle timeout")
        self._navigator.redirect(self._login_path)
