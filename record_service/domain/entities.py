"""
Domain entities for user profile records.

Records are framework-agnostic value objects. Serialization to the
store format lives next to the entity so the round-trip contract
(``deserialize_record(serialize_record(r)) == r``) is kept in one place.
"""

import json
from dataclasses import dataclass, replace
from typing import Any, Dict, Union

from .exceptions import SerializationException

# Text fields every stored record must carry
RECORD_TEXT_FIELDS = ("id", "name", "email", "about", "secret")

# Fields replaced wholesale by an update
MUTABLE_FIELDS = ("name", "email", "about", "secret")


@dataclass(frozen=True)
class Record:
    """
    A single user profile record.

    ``id`` is minted by the service and never changes. ``version`` is the
    optimistic-concurrency stamp: 0 on create, bumped on every update.
    """

    id: str
    name: str = ""
    email: str = ""
    about: str = ""
    secret: str = ""
    version: int = 0

    def with_id(self, record_id: str) -> "Record":
        """Return a copy carrying the given identifier."""
        return replace(self, id=record_id)

    def to_dict(self) -> Dict[str, Any]:
        """Field-named dictionary view of the record."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "about": self.about,
            "secret": self.secret,
            "version": self.version,
        }


def serialize_record(record: Record) -> str:
    """
    Serialize record to JSON for storage.

    Field names are written explicitly so stored values stay readable
    from redis-cli and tolerate new optional fields.
    """
    return json.dumps(record.to_dict(), separators=(",", ":"))


def deserialize_record(raw: Union[str, bytes]) -> Record:
    """
    Deserialize stored JSON into a record.

    Unknown fields are ignored. Entries written before ``version``
    existed read back as version 0.

    Raises:
        SerializationException: If the payload is not a JSON object or a
            required field is missing or has the wrong type
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SerializationException("Stored value is not valid JSON", str(e)) from e

    if not isinstance(data, dict):
        raise SerializationException(
            "Stored value is not a JSON object", type(data).__name__
        )

    missing = [field for field in RECORD_TEXT_FIELDS if field not in data]
    if missing:
        raise SerializationException(
            "Stored record is missing fields", ", ".join(missing)
        )

    for field in RECORD_TEXT_FIELDS:
        if not isinstance(data[field], str):
            raise SerializationException(
                f"Field '{field}' must be a string", type(data[field]).__name__
            )

    version = data.get("version", 0)
    # bool is an int subclass
    if isinstance(version, bool) or not isinstance(version, int):
        raise SerializationException("Field 'version' must be an integer", repr(version))

    return Record(
        id=data["id"],
        name=data["name"],
        email=data["email"],
        about=data["about"],
        secret=data["secret"],
        version=version,
    )
