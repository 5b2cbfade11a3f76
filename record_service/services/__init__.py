"""Business logic services."""

from .record_service import RecordPayload, RecordService

__all__ = ["RecordPayload", "RecordService"]
