# ==============================================================================
# Sink Writer - Bounded Fire-and-Forget Queue
# ==============================================================================
"""
Bounded write queue in front of the event sink.

Telemetry callers never await persistence. They submit an append/update
operation, which is queued and written by a single background task:

    collector.record_page_view()  ->  SinkWriter.submit_append()
                                          |  asyncio.Queue (bounded)
                                          v
                                      worker task  ->  EventSink.append()

A single worker keeps writes in submission order, so the update that closes
a session always lands after the session-start append. When the queue is
full the operation is dropped with a warning; sink failures are retried for
transient errors, then logged and counted. Nothing is raised to the caller.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass

from sitepulse.base.sinks import EventSink
from sitepulse.utils.retry import RETRY_ATTEMPTS, sink_retrying

logger = logging.getLogger(__name__)

APPEND = "append"
UPDATE = "update"


@dataclass(frozen=True)
class SinkOp:
    """One queued sink operation."""

    kind: str
    collection: str
    record: dict
    record_id: str | None = None


class SinkWriter:
    """
    Single-worker write queue for an EventSink.

    The worker task is started lazily on the first submit, so a SinkWriter
    can be constructed outside a running event loop.
    """

    def __init__(
        self,
        sink: EventSink,
        max_queue_size: int = 1000,
        retry_attempts: int = RETRY_ATTEMPTS,
        log: logging.Logger | None = None,
    ):
        """
        Initialize the writer.

        Args:
            sink: Event sink that receives the writes
            max_queue_size: Operations allowed to wait before new ones are dropped
            retry_attempts: Attempts per operation on SinkUnavailableError
            log: Optional logger override. Defaults to this module's logger.
        """
        self._sink = sink
        self._queue: asyncio.Queue[SinkOp] = asyncio.Queue(maxsize=max_queue_size)
        self._retry_attempts = retry_attempts
        self._log = log or logger
        self._worker: asyncio.Task | None = None
        self._closed = False

        self._submitted = 0
        self._written = 0
        self._failed = 0
        self._dropped = 0

    # ==========================================================================
    # Submission (non-blocking)
    # ==========================================================================

    def submit_append(self, collection: str, record: dict, record_id: str | None = None) -> bool:
        """Queue an append. Returns False if the operation was dropped."""
        return self._submit(SinkOp(APPEND, collection, record, record_id))

    def submit_update(self, collection: str, record_id: str, fields: dict) -> bool:
        """Queue an update-by-id. Returns False if the operation was dropped."""
        return self._submit(SinkOp(UPDATE, collection, fields, record_id))

    def _submit(self, op: SinkOp) -> bool:
        if self._closed:
            self._log.warning("Writer closed, dropping %s to %s", op.kind, op.collection)
            self._dropped += 1
            return False

        try:
            self._ensure_worker()
        except RuntimeError:
            self._log.warning("No running event loop, dropping %s to %s", op.kind, op.collection)
            self._dropped += 1
            return False

        try:
            self._queue.put_nowait(op)
        except asyncio.QueueFull:
            self._log.warning(
                "Write queue full (%d), dropping %s to %s",
                self._queue.maxsize,
                op.kind,
                op.collection,
            )
            self._dropped += 1
            return False

        self._submitted += 1
        return True

    def _ensure_worker(self) -> None:
        if self._worker is None or self._worker.done():
            loop = asyncio.get_running_loop()
            self._worker = loop.create_task(self._run(), name="sitepulse-sink-writer")

    # ==========================================================================
    # Worker
    # ==========================================================================

    async def _run(self) -> None:
        while True:
            op = await self._queue.get()
            try:
                await self._write(op)
                self._written += 1
            except Exception as e:
                self._failed += 1
                self._log.error("Failed to %s record in %s: %s", op.kind, op.collection, e)
            finally:
                self._queue.task_done()

    async def _write(self, op: SinkOp) -> None:
        async for attempt in sink_retrying(self._log, self._retry_attempts):
            with attempt:
                if op.kind == APPEND:
                    await self._sink.append(op.collection, op.record, op.record_id)
                else:
                    updated = await self._sink.update(op.collection, op.record_id, op.record)
                    if not updated:
                        self._log.warning(
                            "No %s record with id %s to update", op.collection, op.record_id
                        )

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    async def flush(self) -> None:
        """Wait until every queued operation has been attempted."""
        if self._worker is not None and not self._worker.done():
            await self._queue.join()

    async def close(self, timeout: float = 5.0) -> None:
        """
        Stop accepting writes, drain the queue (bounded by timeout) and stop
        the worker. Logs a final summary.
        """
        self._closed = True
        try:
            await asyncio.wait_for(self.flush(), timeout)
        except asyncio.TimeoutError:
            self._log.warning(
                "Timed out after %.1fs with %d write(s) pending", timeout, self._queue.qsize()
            )

        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

        stats = self.stats
        self._log.info(
            "Sink writer closed: %d submitted, %d written, %d failed, %d dropped",
            stats["submitted"],
            stats["written"],
            stats["failed"],
            stats["dropped"],
        )

    @property
    def pending(self) -> int:
        """Operations queued but not yet taken by the worker."""
        return self._queue.qsize()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def stats(self) -> dict[str, int]:
        return {
            "submitted": self._submitted,
            "written": self._written,
            "failed": self._failed,
            "dropped": self._dropped,
        }
