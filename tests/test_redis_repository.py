"""
Tests for the Redis record store.

Covers:
- Hash primitives used for each operation
- Absent vs corrupt entries
- Conditional writes, including the Lua script run on fakeredis
- Timeout and connection error translation
"""

import asyncio
import json
from unittest.mock import AsyncMock

import fakeredis
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from record_service.domain.entities import Record, serialize_record
from record_service.domain.exceptions import (
    SerializationException,
    StoreUnavailableException,
    VersionConflictException,
)
from record_service.repositories.redis_repository import (
    CONDITIONAL_PUT_SCRIPT,
    RedisRecordStore,
)
from record_service.services.record_service import RecordPayload, RecordService


@pytest.fixture
def mock_redis():
    """Create mock Redis client."""
    return AsyncMock()


@pytest.fixture
def store(mock_redis):
    """Create Redis record store with mock client."""
    return RedisRecordStore(mock_redis, collection="USER", operation_timeout=0.5)


class TestRedisRecordStore:
    """Test Redis record store."""

    def test_initialization(self, store):
        assert store.collection == "USER"
        assert store.operation_timeout == 0.5
        assert store.redis is not None

    @pytest.mark.asyncio
    async def test_put_writes_hash_field(self, store, mock_redis, sample_record):
        result = await store.put("u1", sample_record)

        assert result == sample_record
        mock_redis.hset.assert_awaited_once_with("USER", "u1", serialize_record(sample_record))

    @pytest.mark.asyncio
    async def test_put_aligns_id_with_key(self, store, mock_redis, sample_record):
        result = await store.put("u9", sample_record)

        assert result.id == "u9"
        stored = json.loads(mock_redis.hset.call_args[0][2])
        assert stored["id"] == "u9"

    @pytest.mark.asyncio
    async def test_get_hit(self, store, mock_redis, sample_record):
        mock_redis.hget.return_value = serialize_record(sample_record)

        result = await store.get("u1")

        assert result == sample_record
        mock_redis.hget.assert_awaited_once_with("USER", "u1")

    @pytest.mark.asyncio
    async def test_get_miss_returns_none(self, store, mock_redis):
        mock_redis.hget.return_value = None

        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_get_corrupt_raises(self, store, mock_redis):
        mock_redis.hget.return_value = "not-json"

        with pytest.raises(SerializationException) as exc_info:
            await store.get("u1")
        assert exc_info.value.details["record_id"] == "u1"

    @pytest.mark.asyncio
    async def test_get_id_mismatch_raises(self, store, mock_redis, sample_record):
        mock_redis.hget.return_value = serialize_record(sample_record.with_id("other"))

        with pytest.raises(SerializationException, match="does not match"):
            await store.get("u1")

    @pytest.mark.asyncio
    async def test_get_all(self, store, mock_redis):
        a = Record(id="a", name="A")
        b = Record(id="b", name="B")
        mock_redis.hgetall.return_value = {
            "a": serialize_record(a),
            b"b": serialize_record(b).encode("utf-8"),
        }

        result = await store.get_all()

        assert result == {"a": a, "b": b}
        mock_redis.hgetall.assert_awaited_once_with("USER")

    @pytest.mark.asyncio
    async def test_get_all_empty(self, store, mock_redis):
        mock_redis.hgetall.return_value = {}

        assert await store.get_all() == {}

    @pytest.mark.asyncio
    async def test_get_all_surfaces_corrupt_entry(self, store, mock_redis, sample_record):
        mock_redis.hgetall.return_value = {
            "u1": serialize_record(sample_record),
            "u2": "{}",
        }

        with pytest.raises(SerializationException):
            await store.get_all()

    @pytest.mark.asyncio
    async def test_delete(self, store, mock_redis):
        mock_redis.hdel.return_value = 0

        assert await store.delete("u1") is None
        mock_redis.hdel.assert_awaited_once_with("USER", "u1")

    @pytest.mark.asyncio
    async def test_ping(self, store, mock_redis):
        mock_redis.ping.return_value = True

        assert await store.ping() is True


class TestConditionalPut:
    """Test version-checked writes."""

    @pytest.mark.asyncio
    async def test_success(self, store, mock_redis, sample_record):
        mock_redis.eval.return_value = 1
        updated = Record(id="u1", name="Ann2", version=1)

        result = await store.put_if_version("u1", updated, 0)

        assert result == updated
        mock_redis.eval.assert_awaited_once_with(
            CONDITIONAL_PUT_SCRIPT, 1, "USER", "u1", "0", serialize_record(updated)
        )

    @pytest.mark.asyncio
    async def test_conflict(self, store, mock_redis, sample_record):
        mock_redis.eval.return_value = 0

        with pytest.raises(VersionConflictException):
            await store.put_if_version("u1", sample_record, 0)

    @pytest.mark.asyncio
    async def test_missing_returns_none(self, store, mock_redis, sample_record):
        mock_redis.eval.return_value = -1

        assert await store.put_if_version("u1", sample_record, 0) is None

    @pytest.mark.asyncio
    async def test_corrupt_stored_value(self, store, mock_redis, sample_record):
        mock_redis.eval.return_value = -2

        with pytest.raises(SerializationException):
            await store.put_if_version("u1", sample_record, 0)


class TestStoreFailures:
    """Test translation of Redis failures."""

    @pytest.mark.asyncio
    async def test_connection_error(self, store, mock_redis, sample_record):
        mock_redis.hset.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(StoreUnavailableException) as exc_info:
            await store.put("u1", sample_record)
        assert exc_info.value.details["operation"] == "put"

    @pytest.mark.asyncio
    async def test_redis_timeout(self, store, mock_redis):
        mock_redis.hgetall.side_effect = RedisTimeoutError("Timeout reading from socket")

        with pytest.raises(StoreUnavailableException, match="timed out"):
            await store.get_all()

    @pytest.mark.asyncio
    async def test_operation_timeout(self, mock_redis):
        async def slow_hget(*args):
            await asyncio.sleep(1)

        mock_redis.hget.side_effect = slow_hget
        store = RedisRecordStore(mock_redis, operation_timeout=0.01)

        with pytest.raises(StoreUnavailableException, match="timed out"):
            await store.get("u1")

    @pytest.mark.asyncio
    async def test_delete_connection_error(self, store, mock_redis):
        mock_redis.hdel.side_effect = RedisConnectionError("down")

        with pytest.raises(StoreUnavailableException):
            await store.delete("u1")


class TestConditionalPutScript:
    """Run the compare-and-set script against an in-process Redis."""

    @pytest.fixture
    def fake_redis(self):
        return fakeredis.FakeAsyncRedis(decode_responses=True)

    @pytest.fixture
    def script_store(self, fake_redis):
        return RedisRecordStore(fake_redis, collection="USER", operation_timeout=5.0)

    @pytest.mark.asyncio
    async def test_update_increments_version(self, script_store, fake_redis):
        service = RecordService(script_store, hash_secrets=False)
        created = await service.create(RecordPayload(name="Ann", secret="p1"))

        updated = await service.update(created.id, RecordPayload(name="Ann2", secret="p1"))

        assert updated.version == 1
        stored = json.loads(await fake_redis.hget("USER", created.id))
        assert stored["name"] == "Ann2"
        assert stored["version"] == 1

    @pytest.mark.asyncio
    async def test_stale_version_rejected(self, script_store, sample_record):
        await script_store.put("u1", sample_record)
        await script_store.put_if_version("u1", Record(id="u1", name="first", version=1), 0)

        with pytest.raises(VersionConflictException):
            await script_store.put_if_version(
                "u1", Record(id="u1", name="stale", version=1), 0
            )

        assert (await script_store.get("u1")).name == "first"

    @pytest.mark.asyncio
    async def test_missing_key_returns_none(self, script_store, fake_redis):
        result = await script_store.put_if_version("ghost", Record(id="ghost", version=1), 0)

        assert result is None
        assert not await fake_redis.hexists("USER", "ghost")

    @pytest.mark.asyncio
    async def test_entry_without_version_updates_as_zero(self, script_store, fake_redis):
        await fake_redis.hset(
            "USER",
            "old",
            json.dumps({"id": "old", "name": "Legacy", "email": "", "about": "", "secret": ""}),
        )

        result = await script_store.put_if_version("old", Record(id="old", name="New", version=1), 0)

        assert result.name == "New"
        assert (await script_store.get("old")).version == 1

    @pytest.mark.asyncio
    async def test_corrupt_entry_not_overwritten(self, script_store, fake_redis):
        await fake_redis.hset("USER", "bad", "not-json")

        with pytest.raises(SerializationException):
            await script_store.put_if_version("bad", Record(id="bad", version=1), 0)

        assert await fake_redis.hget("USER", "bad") == "not-json"

    @pytest.mark.asyncio
    async def test_concurrent_updates_all_land(self, script_store):
        service = RecordService(script_store, hash_secrets=False, max_update_retries=10)
        created = await service.create(RecordPayload(name="Ann"))

        results = await asyncio.gather(
            *(service.update(created.id, RecordPayload(name=f"Ann{i}")) for i in range(3))
        )

        assert sorted(r.version for r in results) == [1, 2, 3]
        final = await service.get_one(created.id)
        assert final.version == 3
        assert final.name in {"Ann0", "Ann1", "Ann2"}
