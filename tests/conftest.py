"""
Test configuration and fixtures
"""

from typing import Dict, Optional

import pytest
from fastapi.testclient import TestClient

from record_service.app import app
from record_service.dependencies import get_record_service, get_record_store
from record_service.domain.entities import Record
from record_service.domain.exceptions import VersionConflictException
from record_service.repositories.record_repository import IRecordStore
from record_service.services.record_service import RecordPayload, RecordService


class InMemoryRecordStore(IRecordStore):
    """Dictionary-backed record store for service and router tests."""

    def __init__(self):
        self.records: Dict[str, Record] = {}
        self.available = True

    async def put(self, record_id: str, record: Record) -> Record:
        record = record.with_id(record_id)
        self.records[record_id] = record
        return record

    async def put_if_version(
        self, record_id: str, record: Record, expected_version: int
    ) -> Optional[Record]:
        current = self.records.get(record_id)
        if current is None:
            return None
        if current.version != expected_version:
            raise VersionConflictException(record_id, expected_version)
        return await self.put(record_id, record)

    async def get(self, record_id: str) -> Optional[Record]:
        return self.records.get(record_id)

    async def get_all(self) -> Dict[str, Record]:
        return dict(self.records)

    async def delete(self, record_id: str) -> None:
        self.records.pop(record_id, None)

    async def ping(self) -> bool:
        return self.available


def fake_hasher(secret: str) -> str:
    """Cheap stand-in for bcrypt."""
    return f"hashed:{secret}"


@pytest.fixture
def memory_store():
    """Create an empty in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
def record_service(memory_store):
    """Create record service over the in-memory store."""
    return RecordService(memory_store, secret_hasher=fake_hasher)


@pytest.fixture
def ann_payload():
    """Payload for the Ann profile."""
    return RecordPayload(name="Ann", email="a@x.com", about="hi", secret="p1")


@pytest.fixture
def sample_record():
    """A stored record."""
    return Record(
        id="u1",
        name="Ann",
        email="a@x.com",
        about="hi",
        secret="hashed:p1",
        version=0,
    )


@pytest.fixture
def client(record_service, memory_store):
    """Create a test client wired to the in-memory store."""
    app.dependency_overrides[get_record_service] = lambda: record_service
    app.dependency_overrides[get_record_store] = lambda: memory_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
