"""
Health check and monitoring router.

Provides liveness and readiness probes.
"""

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .. import __version__
from ..dependencies import get_record_store
from ..domain.exceptions import StoreUnavailableException
from ..repositories.record_repository import IRecordStore

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: str
    service: str = "record-service"
    version: str = __version__


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    ready: bool
    checks: dict
    timestamp: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
)
async def health_check():
    """
    Basic health check.

    Always returns 200 OK if the service is running.
    """
    return HealthResponse(status="healthy", timestamp=_now())


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
    summary="Readiness check",
)
async def readiness_check(store: IRecordStore = Depends(get_record_store)):
    """
    Readiness check.

    Pings Redis. Returns 200 if it answers, 503 otherwise.
    """
    try:
        redis_ok = await store.ping()
    except StoreUnavailableException as e:
        logger.warning("Readiness check failed", error=e.message)
        redis_ok = False

    response = ReadinessResponse(
        ready=redis_ok,
        checks={"redis": "healthy" if redis_ok else "unavailable"},
        timestamp=_now(),
    )
    if not redis_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(),
        )
    return response
