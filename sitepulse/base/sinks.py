# ==============================================================================
# Event Sink Abstract Base Class
# ==============================================================================
"""
Abstract interface for the telemetry event store.

The engine only needs three operations: append a record to a collection,
query a collection by a time-valued field, and update a record by id (used
to close out the session record). Concrete implementations live in
infrastructure/sinks/.
"""

from abc import ABC, abstractmethod


class SinkError(Exception):
    """Base class for event sink failures."""


class SinkUnavailableError(SinkError):
    """The store could not be reached. Transient; safe to retry."""


class EventSink(ABC):
    """Append-only event store with time-range queries."""

    @abstractmethod
    async def append(self, collection: str, record: dict, record_id: str | None = None) -> None:
        """
        Append a record to a collection.

        Args:
            collection: Collection name (see core.models.Collection)
            record: JSON-serializable record
            record_id: Optional id for later update(); generated if omitted
        """
        ...

    @abstractmethod
    async def query(self, collection: str, since: int, order_by: str) -> list[dict]:
        """
        Query records whose `order_by` field is at least `since`.

        Args:
            collection: Collection name
            since: Lower bound (inclusive) for the order_by field
            order_by: Numeric field to filter and order on

        Returns:
            Matching records, highest order_by value first. Records without
            the field are not returned.
        """
        ...

    @abstractmethod
    async def update(self, collection: str, record_id: str, fields: dict) -> bool:
        """
        Merge fields into an existing record.

        Returns:
            True if the record existed and was updated, False otherwise
        """
        ...

    async def close(self) -> None:
        """Release resources. Optional override."""
        pass
