"""
Main FastAPI application.

Wires the layers together:
- Domain: Record entity and error taxonomy
- Repositories: Redis-backed record store
- Services: Record use cases
- Routers: HTTP endpoints
"""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis
import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from . import __version__
from .config import Settings, settings
from .core.redis_manager import RedisConnectionManager
from .domain.exceptions import (
    ConcurrentUpdateException,
    RecordServiceException,
    SerializationException,
    StoreUnavailableException,
)
from .logging_config import setup_logging
from .metrics import track_http_request
from .repositories.redis_repository import RedisRecordStore
from .routers import health_router, records_router
from .services.record_service import RecordService

setup_logging(settings.LOG_LEVEL, use_json=settings.LOG_JSON)

logger = structlog.get_logger(__name__)


def create_record_service(
    redis_client: redis.Redis, config: Optional[Settings] = None
) -> RecordService:
    """
    Create and configure record service with its store.

    Args:
        redis_client: Redis client sharing the application pool
        config: Settings to use (module settings if None)

    Returns:
        Configured RecordService instance
    """
    config = config or settings
    store = RedisRecordStore(
        redis_client,
        collection=config.RECORD_COLLECTION,
        operation_timeout=config.STORE_OPERATION_TIMEOUT,
    )
    return RecordService(
        store,
        hash_secrets=config.HASH_SECRETS,
        max_update_retries=config.UPDATE_MAX_RETRIES,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Record Service", version=__version__)

    redis_manager = RedisConnectionManager(settings)
    service = create_record_service(redis_manager.get_client())

    app.state.redis_manager = redis_manager
    app.state.record_service = service
    app.state.record_store = service.store
    logger.info(
        "Record service initialized",
        collection=settings.RECORD_COLLECTION,
        redis_host=redis_manager.config.host,
        redis_port=redis_manager.config.port,
    )

    yield

    logger.info("Shutting down Record Service...")
    await redis_manager.close()
    logger.info("Record Service shut down complete")


app = FastAPI(
    title="Record Service",
    description="User profile records stored in a Redis hash",
    version=__version__,
    lifespan=lifespan,
)


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Bind a request id to the log context and echo it back."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id

    structlog.contextvars.bind_contextvars(request_id=request_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()

    response.headers["X-Request-ID"] = request_id
    return response


# Metrics middleware
@app.middleware("http")
async def track_metrics(request: Request, call_next):
    """Track Prometheus metrics."""
    start_time = time.perf_counter()
    response = await call_next(request)

    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    track_http_request(
        request.method, endpoint, response.status_code, time.perf_counter() - start_time
    )
    return response


# Include routers
app.include_router(records_router.router)
app.include_router(health_router.router)


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": "Record Service",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
        "health": "/health",
        "ready": "/ready",
    }


def _error_response(
    request: Request, status_code: int, error: str, exc: RecordServiceException
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error,
            "message": exc.message,
            "details": exc.details,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


@app.exception_handler(StoreUnavailableException)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableException):
    """Store connection or timeout failure."""
    logger.error("Record store unavailable", path=request.url.path, error=exc.message)
    return _error_response(
        request, status.HTTP_503_SERVICE_UNAVAILABLE, "store_unavailable", exc
    )


@app.exception_handler(SerializationException)
async def serialization_handler(request: Request, exc: SerializationException):
    """Stored data could not be read back."""
    logger.error("Corrupt record data", path=request.url.path, error=exc.message)
    return _error_response(
        request, status.HTTP_500_INTERNAL_SERVER_ERROR, "corrupt_record", exc
    )


@app.exception_handler(ConcurrentUpdateException)
async def concurrent_update_handler(request: Request, exc: ConcurrentUpdateException):
    """Update gave up after repeated version conflicts."""
    logger.warning("Concurrent update conflict", path=request.url.path, error=exc.message)
    return _error_response(request, status.HTTP_409_CONFLICT, "concurrent_update", exc)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "request_id": getattr(request.state, "request_id", None),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "record_service.app:app",
        host=settings.SERVICE_HOST,
        port=settings.SERVICE_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
