"""
Custom exceptions for the record service domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, Redis, etc.). A missing record is
not an error: stores and services return ``None`` for it.
"""

from typing import Optional


class RecordServiceException(Exception):
    """Base exception for all record service errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class StoreUnavailableException(RecordServiceException):
    """Raised when the backing store cannot be reached or times out."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        message = f"Record store unavailable during {operation}"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"operation": operation, "reason": reason}
        )


class SerializationException(RecordServiceException):
    """Raised when stored bytes cannot be turned back into a record."""

    def __init__(self, reason: str, detail: Optional[str] = None, record_id: Optional[str] = None):
        message = f"Corrupt record data: {reason}"
        if record_id:
            message = f"Corrupt record data for '{record_id}': {reason}"
        super().__init__(
            message=message,
            details={"reason": reason, "detail": detail, "record_id": record_id},
        )


class VersionConflictException(RecordServiceException):
    """Raised when a conditional write finds a different stored version."""

    def __init__(self, record_id: str, expected_version: int):
        message = (
            f"Version conflict for record '{record_id}': "
            f"expected version {expected_version}"
        )
        super().__init__(
            message=message,
            details={"record_id": record_id, "expected_version": expected_version},
        )


class ConcurrentUpdateException(RecordServiceException):
    """Raised when an update keeps losing the race after all retries."""

    def __init__(self, record_id: str, attempts: int):
        message = f"Record '{record_id}' was modified concurrently ({attempts} attempts)"
        super().__init__(
            message=message, details={"record_id": record_id, "attempts": attempts}
        )
