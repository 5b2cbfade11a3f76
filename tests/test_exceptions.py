"""
Tests for domain exceptions.
"""

from record_service.domain.exceptions import (
    ConcurrentUpdateException,
    RecordServiceException,
    SerializationException,
    StoreUnavailableException,
    VersionConflictException,
)


class TestExceptions:
    """Test custom exceptions."""

    def test_store_unavailable_exception(self):
        exc = StoreUnavailableException("get", "timed out")
        assert "get" in str(exc)
        assert "timed out" in str(exc)
        assert exc.details == {"operation": "get", "reason": "timed out"}

    def test_serialization_exception_with_record_id(self):
        exc = SerializationException("bad json", "line 1", record_id="u1")
        assert "u1" in str(exc)
        assert exc.details["record_id"] == "u1"

    def test_version_conflict_exception(self):
        exc = VersionConflictException("u1", 3)
        assert "u1" in str(exc)
        assert exc.details["expected_version"] == 3

    def test_concurrent_update_exception(self):
        exc = ConcurrentUpdateException("u1", 4)
        assert "4 attempts" in str(exc)

    def test_hierarchy(self):
        for exc in (
            StoreUnavailableException("put"),
            SerializationException("x"),
            VersionConflictException("u1", 0),
            ConcurrentUpdateException("u1", 1),
        ):
            assert isinstance(exc, RecordServiceException)
