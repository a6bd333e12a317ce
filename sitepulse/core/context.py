# ==============================================================================
# Browser Context and Signal Payloads
# ==============================================================================
"""
Environment attributes and the payloads carried by browser signals.

BrowserContext holds what the collector reads from the environment (screen,
language, timezone, referrer, location). The payload models describe what
the host application passes to SignalHub.dispatch() for each signal the
collector understands.
"""

import time
from collections.abc import Callable

from pydantic import BaseModel, Field

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in Unix milliseconds."""
    return int(time.time() * 1000)


class BrowserContext(BaseModel):
    """
    Static environment of the visit plus the current location.

    `location` is updated by the host on client-side navigation; events
    are tagged with its value at the time they are recorded.
    """

    user_agent: str = ""
    screen_width: int = 0
    screen_height: int = 0
    language: str = "en-US"
    timezone: str = "UTC"
    referrer: str = ""
    location: str = ""

    @property
    def screen_resolution(self) -> str:
        return f"{self.screen_width}x{self.screen_height}"


# ==============================================================================
# Signal Payloads
# ==============================================================================


class ElementTarget(BaseModel):
    """The element a click/submit/focus signal originated from."""

    tag_name: str
    class_name: str = ""
    id: str = ""
    input_type: str = ""

    def descriptor(self) -> str:
        """tag[.class][#id], with each part present only when set."""
        descriptor = self.tag_name.lower()
        if self.class_name:
            descriptor += f".{self.class_name}"
        if self.id:
            descriptor += f"#{self.id}"
        return descriptor


class ScrollPosition(BaseModel):
    """Document scroll geometry at the time of a scroll signal."""

    scroll_top: float
    scroll_height: float
    viewport_height: float

    def percentage(self) -> int | None:
        """
        Scrolled percentage, rounded half up.

        Returns None when the document is not scrollable.
        """
        scrollable = self.scroll_height - self.viewport_height
        if scrollable <= 0:
            return None
        return int(self.scroll_top / scrollable * 100 + 0.5)


class NavigationTiming(BaseModel):
    """Subset of the navigation timing entry (ms relative to time origin)."""

    fetch_start: float = 0.0
    dom_content_loaded_event_start: float = 0.0
    dom_content_loaded_event_end: float = 0.0
    load_event_start: float = 0.0
    load_event_end: float = 0.0


class PaintEntry(BaseModel):
    """A paint timing entry such as first-paint."""

    name: str
    start_time: float


class PageLoadTiming(BaseModel):
    """Payload of the load signal: whatever timing entries were recorded."""

    navigation: NavigationTiming | None = None
    paint: list[PaintEntry] = Field(default_factory=list)

    def paint_time(self, name: str) -> float | None:
        for entry in self.paint:
            if entry.name == name:
                return entry.start_time
        return None


class ResourceEntry(BaseModel):
    """A completed resource timing entry."""

    name: str
    entry_type: str = "resource"
    duration: float
    transfer_size: int | None = None


class VisibilityChange(BaseModel):
    """Payload of the visibilitychange signal."""

    hidden: bool
