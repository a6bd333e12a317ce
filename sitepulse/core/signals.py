# ==============================================================================
# Signal Hub
# ==============================================================================
"""
Listener registry for browser-level signals.

The host application dispatches named signals (click, scroll, load,
visibilitychange, beforeunload, ...) into a SignalHub; the collector and the
idle guard subscribe to them. Every subscription returns a Disposer that
removes exactly that listener.

Dispatch runs capture listeners first, then bubble listeners. A signal
whose propagation was stopped at its target still reaches capture
listeners but skips bubble listeners.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

Disposer = Callable[[], None]


@dataclass
class Signal:
    """A dispatched signal and its payload."""

    name: str
    payload: Any = None
    propagation_stopped: bool = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


Listener = Callable[[Signal], None]


@dataclass
class _Registration:
    name: str
    listener: Listener
    capture: bool
    active: bool = field(default=True)


class SignalHub:
    """
    Registry of signal listeners.

    Listener exceptions are logged and do not stop delivery to the
    remaining listeners.
    """

    def __init__(self) -> None:
        self._registrations: list[_Registration] = []

    def add_listener(self, name: str, listener: Listener, capture: bool = False) -> Disposer:
        """
        Register a listener for a signal name.

        Args:
            name: Signal name (e.g., "click")
            listener: Callable receiving the Signal
            capture: Register in the capture phase

        Returns:
            Disposer that removes this registration (safe to call twice)
        """
        registration = _Registration(name=name, listener=listener, capture=capture)
        self._registrations.append(registration)

        def dispose() -> None:
            if registration.active:
                registration.active = False
                self._registrations.remove(registration)

        return dispose

    def dispatch(self, name: str, payload: Any = None, stopped_at_target: bool = False) -> Signal:
        """
        Deliver a signal to its listeners.

        Args:
            name: Signal name
            payload: Signal payload passed through to listeners
            stopped_at_target: The originating element stopped propagation

        Returns:
            The dispatched Signal
        """
        signal = Signal(name=name, payload=payload, propagation_stopped=stopped_at_target)
        # Snapshot so listeners may add/remove registrations while running
        matching = [r for r in self._registrations if r.name == name]
        for registration in [r for r in matching if r.capture]:
            self._deliver(registration, signal)
        for registration in [r for r in matching if not r.capture]:
            if signal.propagation_stopped:
                break
            self._deliver(registration, signal)
        return signal

    def listener_count(self, name: str | None = None) -> int:
        """Number of live registrations, optionally for one signal name."""
        if name is None:
            return len(self._registrations)
        return sum(1 for r in self._registrations if r.name == name)

    def _deliver(self, registration: _Registration, signal: Signal) -> None:
        if not registration.active:
            return
        try:
            registration.listener(signal)
        except Exception:
            logger.exception("Listener for signal '%s' failed", signal.name)
