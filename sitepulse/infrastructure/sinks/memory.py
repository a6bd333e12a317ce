# ==============================================================================
# In-Memory Event Sink
# ==============================================================================
"""
Process-local EventSink for development and tests.

Records are deep-copied on the way in and out, so callers can never mutate
stored state through a reference they still hold.
"""

import copy
import uuid

from sitepulse.base.sinks import EventSink


def _numeric(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class InMemoryEventSink(EventSink):
    """EventSink backed by per-collection dicts (insertion ordered)."""

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict]] = {}

    async def append(self, collection: str, record: dict, record_id: str | None = None) -> None:
        records = self._collections.setdefault(collection, {})
        records[record_id or uuid.uuid4().hex] = copy.deepcopy(record)

    async def query(self, collection: str, since: int, order_by: str) -> list[dict]:
        records = self._collections.get(collection, {}).values()
        matching = [r for r in records if _numeric(r.get(order_by)) and r[order_by] >= since]
        matching.sort(key=lambda r: r[order_by], reverse=True)
        return copy.deepcopy(matching)

    async def update(self, collection: str, record_id: str, fields: dict) -> bool:
        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            return False
        record.update(copy.deepcopy(fields))
        return True

    def records(self, collection: str) -> list[dict]:
        """Every stored record of a collection, in append order."""
        return copy.deepcopy(list(self._collections.get(collection, {}).values()))

    def get(self, collection: str, record_id: str) -> dict | None:
        record = self._collections.get(collection, {}).get(record_id)
        return copy.deepcopy(record) if record is not None else None

    def clear(self) -> None:
        self._collections.clear()
