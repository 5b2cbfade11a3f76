"""
Business logic service layer.

Implements the record use cases on top of a record store: identity
assignment, secret hashing and the read-modify-write update.
"""

import asyncio
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import structlog

from ..domain.entities import Record
from ..domain.exceptions import ConcurrentUpdateException, VersionConflictException
from ..metrics import track_operation
from ..repositories.record_repository import IRecordStore
from ..security import hash_secret

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RecordPayload:
    """Caller-supplied record fields. Omitted fields are empty strings."""

    name: str = ""
    email: str = ""
    about: str = ""
    secret: str = ""


class RecordService:
    """
    CRUD service for user profile records.

    ``update`` is a full-field replace: every mutable field takes the
    payload's value, so a field the caller leaves out is overwritten with
    an empty string rather than kept. Concurrent updates to the same id are
    serialized through the record version; a writer that loses the race
    re-reads and tries again up to ``max_update_retries`` times.
    """

    def __init__(
        self,
        store: IRecordStore,
        hash_secrets: bool = True,
        max_update_retries: int = 3,
        secret_hasher: Callable[[str], str] = hash_secret,
    ):
        """
        Initialize record service.

        Args:
            store: Record store holding the collection
            hash_secrets: Hash the secret field before it is persisted
            max_update_retries: Extra attempts after a version conflict
            secret_hasher: One-way function applied to secrets
        """
        self.store = store
        self.hash_secrets = hash_secrets
        self.max_update_retries = max_update_retries
        self.secret_hasher = secret_hasher

    @staticmethod
    def generate_id() -> str:
        """Mint a random 128-bit identifier."""
        return uuid.uuid4().hex

    async def _protect_secret(self, secret: str) -> str:
        if not self.hash_secrets or not secret:
            return secret
        # bcrypt is CPU bound
        return await asyncio.to_thread(self.secret_hasher, secret)

    async def create(self, payload: RecordPayload) -> Record:
        """
        Create a record with a freshly generated id.

        Any id the caller sent is discarded before this point; the store
        is not checked for collisions.

        Returns:
            The stored record including its id
        """
        record_id = self.generate_id()
        record = Record(
            id=record_id,
            name=payload.name,
            email=payload.email,
            about=payload.about,
            secret=await self._protect_secret(payload.secret),
            version=0,
        )

        stored = await self.store.put(record_id, record)
        track_operation("create", "success")
        logger.info("Record created", record_id=record_id)
        return stored

    async def get_one(self, record_id: str) -> Optional[Record]:
        """
        Look up a record.

        Returns:
            The record, or None if no record has this id
        """
        record = await self.store.get(record_id)
        track_operation("get", "found" if record else "not_found")
        return record

    async def get_all(self) -> Dict[str, Record]:
        """Return every record keyed by id."""
        records = await self.store.get_all()
        track_operation("list", "success")
        logger.debug("Listed records", count=len(records))
        return records

    async def update(self, record_id: str, payload: RecordPayload) -> Optional[Record]:
        """
        Replace all mutable fields of an existing record.

        Args:
            record_id: Record to update
            payload: New field values (full replacement)

        Returns:
            The updated record, or None if the record does not exist

        Raises:
            ConcurrentUpdateException: If every attempt hit a version conflict
        """
        secret: Optional[str] = None
        attempts = self.max_update_retries + 1

        for attempt in range(1, attempts + 1):
            existing = await self.store.get(record_id)
            if existing is None:
                track_operation("update", "not_found")
                return None

            if secret is None:
                secret = await self._protect_secret(payload.secret)

            updated = Record(
                id=record_id,
                name=payload.name,
                email=payload.email,
                about=payload.about,
                secret=secret,
                version=existing.version + 1,
            )

            try:
                stored = await self.store.put_if_version(record_id, updated, existing.version)
            except VersionConflictException:
                logger.warning(
                    "Update lost race, retrying",
                    record_id=record_id,
                    attempt=attempt,
                    max_attempts=attempts,
                )
                continue

            if stored is None:
                track_operation("update", "not_found")
                logger.info("Record deleted during update", record_id=record_id)
                return None

            track_operation("update", "success")
            logger.info("Record updated", record_id=record_id, version=stored.version)
            return stored

        track_operation("update", "conflict")
        logger.error("Update retries exhausted", record_id=record_id, attempts=attempts)
        raise ConcurrentUpdateException(record_id, attempts)

    async def delete(self, record_id: str) -> None:
        """Delete a record. Deleting an absent id is not an error."""
        await self.store.delete(record_id)
        track_operation("delete", "success")
        logger.info("Record deleted", record_id=record_id)
