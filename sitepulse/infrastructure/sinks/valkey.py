# ==============================================================================
# Valkey Event Sink Implementation
# ==============================================================================
"""
Valkey/Redis implementation of the EventSink interface.

Key layout (prefix defaults to "sitepulse"):
- {prefix}:{collection}                      Hash of record id -> JSON record
- {prefix}:{collection}:idx:{field}          Sorted set of record ids scored
                                             by a time-valued field

The indexed fields are `timestamp` and `start_time`; queries on those fields
read the sorted set with ZREVRANGEBYSCORE. Queries on any other field scan
the collection hash.

Connection and timeout errors are raised as SinkUnavailableError so the
writer can retry them; other Redis errors become SinkError.
"""

import contextlib
import json
import logging
import uuid

import redis.asyncio as redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from sitepulse.base.sinks import EventSink, SinkError, SinkUnavailableError
from sitepulse.utils.config import get_settings
from sitepulse.utils.retry import VALKEY_RETRIES

logger = logging.getLogger(__name__)

INDEXED_FIELDS = ("timestamp", "start_time")


def _score(value) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


@contextlib.contextmanager
def _sink_errors(operation: str, collection: str):
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError) as e:
        raise SinkUnavailableError(f"Valkey unavailable during {operation} on {collection}: {e}") from e
    except RedisError as e:
        raise SinkError(f"Valkey {operation} on {collection} failed: {e}") from e


class ValkeyEventSink(EventSink):
    """
    EventSink storing telemetry records in Valkey.

    Configured with:
    - 10 second socket timeouts for fast failure detection
    - Client-level retries with exponential backoff for dropped connections
    - Health check interval to keep connections alive
    """

    def __init__(
        self,
        url: str | None = None,
        key_prefix: str | None = None,
        socket_timeout: int = 10,
        retries: int | None = None,
        health_check_interval: int = 30,
    ):
        """
        Initialize the Valkey sink.

        Args:
            url: Valkey/Redis connection URL. If None, uses settings.
            key_prefix: Prefix for every key. If None, uses settings.
            socket_timeout: Socket timeout in seconds (default: 10)
            retries: Client retries for transient failures (default: from settings)
            health_check_interval: Health check interval in seconds (default: 30)
        """
        settings = get_settings()
        if url is None:
            url = settings.valkey.url
        if key_prefix is None:
            key_prefix = settings.valkey.key_prefix

        retry_count = retries if retries is not None else VALKEY_RETRIES
        retry_strategy = Retry(ExponentialBackoff(cap=32, base=1), retries=retry_count)

        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            retry=retry_strategy,
            retry_on_error=[RedisTimeoutError, RedisConnectionError],
            health_check_interval=health_check_interval,
        )
        self._url = url
        self._prefix = key_prefix

    @property
    def client(self) -> redis.Redis:
        """Get the underlying Redis client for advanced operations."""
        return self._client

    def _records_key(self, collection: str) -> str:
        return f"{self._prefix}:{collection}"

    def _index_key(self, collection: str, field: str) -> str:
        return f"{self._prefix}:{collection}:idx:{field}"

    async def append(self, collection: str, record: dict, record_id: str | None = None) -> None:
        """
        Store a record and index its time-valued fields.

        Args:
            collection: Collection name
            record: JSON-serializable record
            record_id: Optional id; a random hex id is generated if omitted
        """
        record_id = record_id or uuid.uuid4().hex
        with _sink_errors("append", collection):
            pipe = self._client.pipeline(transaction=True)
            pipe.hset(self._records_key(collection), record_id, json.dumps(record))
            self._queue_index(pipe, collection, record_id, record)
            await pipe.execute()

    async def query(self, collection: str, since: int, order_by: str) -> list[dict]:
        """
        Fetch records whose order_by field is >= since, newest first.

        Returns:
            List of record dicts (undecodable entries are skipped)
        """
        with _sink_errors("query", collection):
            if order_by in INDEXED_FIELDS:
                ids = await self._client.zrevrangebyscore(
                    self._index_key(collection, order_by), "+inf", since
                )
                if not ids:
                    return []
                values = await self._client.hmget(self._records_key(collection), ids)
                return [r for r in (self._decode(collection, v) for v in values) if r is not None]

            raw = await self._client.hvals(self._records_key(collection))

        records = [r for r in (self._decode(collection, v) for v in raw) if r is not None]
        matching = [r for r in records if (s := _score(r.get(order_by))) is not None and s >= since]
        matching.sort(key=lambda r: r[order_by], reverse=True)
        return matching

    async def update(self, collection: str, record_id: str, fields: dict) -> bool:
        """
        Merge fields into a stored record and refresh its index entries.

        Returns:
            True if the record existed, False otherwise
        """
        key = self._records_key(collection)
        with _sink_errors("update", collection):
            value = await self._client.hget(key, record_id)
            if value is None:
                return False
            record = self._decode(collection, value)
            if record is None:
                return False
            record.update(fields)
            pipe = self._client.pipeline(transaction=True)
            pipe.hset(key, record_id, json.dumps(record))
            self._queue_index(pipe, collection, record_id, record)
            await pipe.execute()
        return True

    async def clear_all(self) -> int:
        """
        Delete every key under the sink's prefix.

        Returns:
            Count of keys deleted
        """
        with _sink_errors("clear", self._prefix):
            keys = [key async for key in self._client.scan_iter(match=f"{self._prefix}:*")]
            if keys:
                return await self._client.delete(*keys)
        return 0

    async def count(self, collection: str) -> int:
        """Number of records stored in a collection."""
        with _sink_errors("count", collection):
            return await self._client.hlen(self._records_key(collection))

    async def ping(self) -> bool:
        """
        Check if Valkey is reachable.

        Returns:
            True if ping succeeds, False otherwise
        """
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        """Close the connection."""
        await self._client.aclose()

    def _queue_index(self, pipe, collection: str, record_id: str, record: dict) -> None:
        for field in INDEXED_FIELDS:
            score = _score(record.get(field))
            if score is not None:
                pipe.zadd(self._index_key(collection, field), {record_id: score})

    def _decode(self, collection: str, value: str | None) -> dict | None:
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Failed to decode JSON record in %s", collection)
            return None
