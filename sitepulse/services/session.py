# ==============================================================================
# Session Service
# ==============================================================================
"""
Public API for the authenticated session's idle timeout.

Thin wrapper over IdleTimeoutGuard that takes its timeout in minutes from a
host-supplied config and falls back to the configured default (30 minutes).
"""

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sitepulse.base.client import ClientStorage, Navigator
from sitepulse.base.identity import IdentityProvider
from sitepulse.core.idle_guard import IdleTimeoutGuard
from sitepulse.core.signals import SignalHub
from sitepulse.utils.config import SessionSettings, get_settings

logger = logging.getLogger(__name__)

MINUTE_MS = 60 * 1000


class SessionService:
    """Idle-timeout management for a signed-in user."""

    def __init__(
        self,
        hub: SignalHub,
        identity: IdentityProvider,
        navigator: Navigator,
        storages: Sequence[ClientStorage] = (),
        settings: SessionSettings | None = None,
    ):
        self._settings = settings or get_settings().session
        self._identity = identity
        self._guard = IdleTimeoutGuard(
            hub,
            identity,
            navigator,
            storages=storages,
            login_path=self._settings.login_path,
        )

    @property
    def guard(self) -> IdleTimeoutGuard:
        return self._guard

    def init_session_management(self, config: Mapping[str, Any] | None = None) -> None:
        """
        Arm the idle timeout.

        Args:
            config: Mapping that may carry "session_timeout_minutes". A
                    missing, None or invalid value uses the default.
        """
        minutes = (config or {}).get("session_timeout_minutes")
        if minutes is None:
            minutes = self._settings.session_timeout_minutes
        try:
            timeout_ms = int(float(minutes) * MINUTE_MS)
        except (TypeError, ValueError, OverflowError):
            logger.warning("Invalid session timeout %r, using default", minutes)
            timeout_ms = self._settings.session_timeout_minutes * MINUTE_MS
        self._guard.arm(timeout_ms)

    def extend_session(self) -> None:
        self._guard.extend()

    def clear_session(self) -> None:
        self._guard.disarm()

    def is_session_active(self) -> bool:
        """True while a user is signed in."""
        return self._identity.current_user() is not None

    def get_session_info(self) -> dict[str, str | None] | None:
        """
        Describe the signed-in user.

        Returns:
            Dict with email, uid, last_sign_in_time and creation_time, or
            None when nobody is signed in
        """
        user = self._identity.current_user()
        if user is None:
            return None
        return {
            "email": user.email,
            "uid": user.id,
            "last_sign_in_time": user.last_sign_in_time,
            "creation_time": user.creation_time,
        }
