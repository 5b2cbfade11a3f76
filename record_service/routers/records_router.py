"""
Record CRUD API router.

Maps record service outcomes to HTTP responses. A missing record is a
404; store and data failures are turned into responses by the exception
handlers registered in ``app.py``.
"""

from typing import Dict, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from ..dependencies import get_record_service
from ..domain.entities import Record
from ..services.record_service import RecordPayload, RecordService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/records", tags=["records"])


# Request/Response Models
class RecordRequest(BaseModel):
    """
    Record fields sent by the client.

    ``id`` is accepted for compatibility and ignored. Fields left out
    default to empty strings.
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = Field(None, description="Ignored, ids are server generated")
    name: str = Field(default="", json_schema_extra={"example": "Ann"})
    email: str = Field(default="", json_schema_extra={"example": "a@x.com"})
    about: str = Field(default="", json_schema_extra={"example": "hi"})
    secret: str = Field(default="", json_schema_extra={"example": "p1"})

    def to_payload(self) -> RecordPayload:
        return RecordPayload(
            name=self.name, email=self.email, about=self.about, secret=self.secret
        )


class RecordResponse(BaseModel):
    """Stored record as returned to clients."""

    id: str
    name: str
    email: str
    about: str
    secret: str = Field(description="bcrypt hash of the submitted secret")
    version: int

    @classmethod
    def from_record(cls, record: Record) -> "RecordResponse":
        return cls(**record.to_dict())


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    error: str
    message: str
    details: dict = {}


def _not_found(record_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND, detail=f"Record not found: {record_id}"
    )


@router.post(
    "",
    response_model=RecordResponse,
    status_code=status.HTTP_201_CREATED,
    responses={503: {"description": "Record store unavailable", "model": ErrorResponse}},
    summary="Create record",
)
async def create_record(
    body: RecordRequest, service: RecordService = Depends(get_record_service)
):
    """Create a record. The id is generated by the server."""
    if body.id:
        logger.debug("Ignoring client supplied id", client_id=body.id)
    record = await service.create(body.to_payload())
    return RecordResponse.from_record(record)


@router.get(
    "",
    response_model=Dict[str, RecordResponse],
    responses={503: {"description": "Record store unavailable", "model": ErrorResponse}},
    summary="List records",
    description="Return every record keyed by id. Not paginated.",
)
async def list_records(service: RecordService = Depends(get_record_service)):
    records = await service.get_all()
    return {
        record_id: RecordResponse.from_record(record)
        for record_id, record in records.items()
    }


@router.get(
    "/{record_id}",
    response_model=RecordResponse,
    responses={404: {"description": "Record not found"}},
    summary="Get record",
)
async def get_record(record_id: str, service: RecordService = Depends(get_record_service)):
    record = await service.get_one(record_id)
    if record is None:
        raise _not_found(record_id)
    return RecordResponse.from_record(record)


@router.put(
    "/{record_id}",
    response_model=RecordResponse,
    responses={
        404: {"description": "Record not found"},
        409: {"description": "Concurrent modification", "model": ErrorResponse},
    },
    summary="Replace record fields",
    description="Full replacement: omitted fields are stored as empty strings.",
)
async def update_record(
    record_id: str,
    body: RecordRequest,
    service: RecordService = Depends(get_record_service),
):
    record = await service.update(record_id, body.to_payload())
    if record is None:
        raise _not_found(record_id)
    return RecordResponse.from_record(record)


@router.delete(
    "/{record_id}",
    response_model=MessageResponse,
    summary="Delete record",
)
async def delete_record(record_id: str, service: RecordService = Depends(get_record_service)):
    """Delete a record. Succeeds whether or not the record existed."""
    await service.delete(record_id)
    return MessageResponse(message=f"Record {record_id} deleted")
