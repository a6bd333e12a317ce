# ==============================================================================
# In-Memory Client Storage and Navigator
# ==============================================================================
"""
Process-local stand-ins for browser storage and navigation.
"""

from sitepulse.base.client import ClientStorage, Navigator


class InMemoryClientStorage(ClientStorage):
    """Dict-backed key-value storage."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class RecordingNavigator(Navigator):
    """Navigator that records every redirect."""

    def __init__(self, location: str = "/") -> None:
        self.location = location
        self.history: list[str] = []

    def redirect(self, url: str) -> None:
        self.history.append(url)
        self.location = url
