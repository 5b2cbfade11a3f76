"""
Repository layer - Data access abstraction.

Defines the record store contract and its Redis implementation.
"""

from .record_repository import IRecordStore
from .redis_repository import RedisRecordStore

__all__ = ["IRecordStore", "RedisRecordStore"]
