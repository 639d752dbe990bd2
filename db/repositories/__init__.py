"""
Repository layer exports.
"""

from db.repositories.errors import RecordStoreError, RecordStoreReadError, RecordStoreWriteError
from db.repositories.record_store import JsonRecordStore, RecordStore
from db.repositories.types import BulkInsertResult, StoreDocument

__all__ = [
    "BulkInsertResult",
    "JsonRecordStore",
    "RecordStore",
    "RecordStoreError",
    "RecordStoreReadError",
    "RecordStoreWriteError",
    "StoreDocument",
]
