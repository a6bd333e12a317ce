# ==============================================================================
# Client Storage and Navigation Abstract Base Classes
# ==============================================================================
"""
Abstract interfaces for client-side state the idle guard tears down.

ClientStorage stands for local/session storage; Navigator for the page
location the guard redirects on timeout.
"""

from abc import ABC, abstractmethod


class ClientStorage(ABC):
    """Client-scoped key-value storage."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""
        ...


class Navigator(ABC):
    """Page navigation capability."""

    @abstractmethod
    def redirect(self, url: str) -> None:
        """Navigate the client to url."""
        ...
