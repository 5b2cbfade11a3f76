"""
Shared dependencies for the application.

The record store and service are built during startup and kept on
``app.state``; routers receive them through these functions.
"""

from fastapi import Request

from .repositories.record_repository import IRecordStore
from .services.record_service import RecordService


def get_record_store(request: Request) -> IRecordStore:
    """Get record store instance for dependency injection."""
    store = getattr(request.app.state, "record_store", None)
    if store is None:
        raise RuntimeError("Record store not initialized")
    return store


def get_record_service(request: Request) -> RecordService:
    """Get record service instance for dependency injection."""
    service = getattr(request.app.state, "record_service", None)
    if service is None:
        raise RuntimeError("Record service not initialized")
    return service
