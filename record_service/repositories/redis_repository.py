"""
Redis implementation of the record store.

All records live in a single Redis hash (``USER`` by default): hash
fields are record ids, hash values are JSON-serialized records.

``get_all`` issues one HGETALL over the whole collection. There is no
pagination, so its cost grows with the collection size.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Dict, Optional, Union

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ..domain.entities import Record, deserialize_record, serialize_record
from ..domain.exceptions import (
    SerializationException,
    StoreUnavailableException,
    VersionConflictException,
)
from ..metrics import store_errors_total, store_operation_duration_seconds, update_conflicts_total
from .record_repository import IRecordStore

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "USER"

# Compare-and-set on one hash field. Returns 1 on write, 0 on version
# mismatch, -1 when the field is gone and -2 when the stored value is not
# a JSON object.
CONDITIONAL_PUT_SCRIPT = """
local current = redis.call('HGET', KEYS[1], ARGV[1])
if not current then
    return -1
end
local ok, stored = pcall(cjson.decode, current)
if not ok or type(stored) ~= 'table' then
    return -2
end
local version = tonumber(stored['version']) or 0
if version ~= tonumber(ARGV[2]) then
    return 0
end
redis.call('HSET', KEYS[1], ARGV[1], ARGV[3])
return 1
"""


class RedisRecordStore(IRecordStore):
    """
    Record store backed by one Redis hash.

    Every primitive is a single Redis command (or one atomic script) and
    is bounded by ``operation_timeout`` seconds.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        collection: str = DEFAULT_COLLECTION,
        operation_timeout: float = 5.0,
    ):
        """
        Initialize Redis record store.

        Args:
            redis_client: Async Redis client (shared connection pool)
            collection: Name of the hash holding all records
            operation_timeout: Upper bound for a single round trip in seconds
        """
        self.redis = redis_client
        self.collection = collection
        self.operation_timeout = operation_timeout

    async def _execute(self, operation: str, command: Awaitable[Any]) -> Any:
        """Run one store command with timeout and error translation."""
        start_time = time.perf_counter()
        try:
            return await asyncio.wait_for(command, timeout=self.operation_timeout)
        except (asyncio.TimeoutError, RedisTimeoutError) as e:
            store_errors_total.labels(operation=operation, error_type="timeout").inc()
            logger.error("Redis %s timed out on %s", operation, self.collection)
            raise StoreUnavailableException(operation, "timed out") from e
        except (RedisConnectionError, OSError) as e:
            store_errors_total.labels(operation=operation, error_type="connection").inc()
            logger.error("Redis %s failed on %s: %s", operation, self.collection, e)
            raise StoreUnavailableException(operation, str(e)) from e
        finally:
            store_operation_duration_seconds.labels(operation=operation).observe(
                time.perf_counter() - start_time
            )

    def _decode(self, record_id: str, raw: Union[str, bytes]) -> Record:
        """Deserialize one hash value and check it belongs to its key."""
        try:
            record = deserialize_record(raw)
        except SerializationException as e:
            logger.error("Corrupt record in %s: %s (%s)", self.collection, record_id, e.message)
            raise SerializationException(
                e.details["reason"], e.details.get("detail"), record_id=record_id
            ) from e

        if record.id != record_id:
            logger.error(
                "Record id mismatch in %s: key=%s stored id=%s",
                self.collection,
                record_id,
                record.id,
            )
            raise SerializationException(
                "Stored id does not match its key", record.id, record_id=record_id
            )
        return record

    async def put(self, record_id: str, record: Record) -> Record:
        """HSET record under record_id (last writer wins)."""
        record = record.with_id(record_id)
        await self._execute(
            "put", self.redis.hset(self.collection, record_id, serialize_record(record))
        )
        logger.debug("Saved record %s to %s", record_id, self.collection)
        return record

    async def put_if_version(
        self, record_id: str, record: Record, expected_version: int
    ) -> Optional[Record]:
        """Atomically replace record_id if its stored version matches."""
        record = record.with_id(record_id)
        result = await self._execute(
            "put_if_version",
            self.redis.eval(
                CONDITIONAL_PUT_SCRIPT,
                1,
                self.collection,
                record_id,
                str(expected_version),
                serialize_record(record),
            ),
        )
        result = int(result)

        if result == 1:
            logger.debug(
                "Replaced record %s at version %d", record_id, expected_version
            )
            return record
        if result == -1:
            logger.info("Record %s vanished before conditional write", record_id)
            return None
        if result == -2:
            raise SerializationException(
                "Stored value is not a JSON object", record_id=record_id
            )

        update_conflicts_total.inc()
        logger.info(
            "Version conflict on record %s (expected %d)", record_id, expected_version
        )
        raise VersionConflictException(record_id, expected_version)

    async def get(self, record_id: str) -> Optional[Record]:
        """HGET record_id; None when absent."""
        raw = await self._execute("get", self.redis.hget(self.collection, record_id))
        if raw is None:
            logger.debug("Record %s not found in %s", record_id, self.collection)
            return None
        return self._decode(record_id, raw)

    async def get_all(self) -> Dict[str, Record]:
        """HGETALL the collection and deserialize every entry."""
        entries = await self._execute("get_all", self.redis.hgetall(self.collection))

        records: Dict[str, Record] = {}
        for key, raw in entries.items():
            record_id = key.decode("utf-8") if isinstance(key, bytes) else key
            records[record_id] = self._decode(record_id, raw)

        logger.debug("Loaded %d records from %s", len(records), self.collection)
        return records

    async def delete(self, record_id: str) -> None:
        """HDEL record_id; missing ids are a no-op."""
        removed = await self._execute("delete", self.redis.hdel(self.collection, record_id))
        logger.debug("Deleted record %s from %s (removed=%s)", record_id, self.collection, removed)

    async def ping(self) -> bool:
        """PING the Redis server."""
        return bool(await self._execute("ping", self.redis.ping()))
