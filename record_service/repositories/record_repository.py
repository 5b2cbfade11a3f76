"""
Record store interface (Abstract Base Class).

Defines the contract for record persistence independent of the
underlying key-value store.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from ..domain.entities import Record


class IRecordStore(ABC):
    """
    Abstract store for records kept in one collection keyed by id.

    Absence is reported as ``None``, never as an exception. Store
    failures raise ``StoreUnavailableException`` and unreadable data
    raises ``SerializationException``.
    """

    @abstractmethod
    async def put(self, record_id: str, record: Record) -> Record:
        """
        Write record under record_id, overwriting any existing entry.

        Args:
            record_id: Collection key
            record: Record to persist

        Returns:
            The stored record
        """
        pass

    @abstractmethod
    async def put_if_version(
        self, record_id: str, record: Record, expected_version: int
    ) -> Optional[Record]:
        """
        Write record only if the stored entry still has expected_version.

        Args:
            record_id: Collection key
            record: Replacement record
            expected_version: Version the caller read before modifying

        Returns:
            The stored record, or None if the entry no longer exists

        Raises:
            VersionConflictException: If the stored version differs
        """
        pass

    @abstractmethod
    async def get(self, record_id: str) -> Optional[Record]:
        """
        Read record stored under record_id.

        Returns:
            Record if present, None otherwise
        """
        pass

    @abstractmethod
    async def get_all(self) -> Dict[str, Record]:
        """
        Read every record in the collection.

        Returns:
            Mapping of id to record, in no particular order
        """
        pass

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Remove record_id from the collection. Absent ids are ignored."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Return True if the backing store answers."""
        pass
