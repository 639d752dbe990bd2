"""
Append-only JSON file store for uploaded records.

Every public call is one read-modify-write cycle against the backing file.
Cycles are serialized by a lock shared by all stores pointing at the same
file, and writes go through a temp file that replaces the target in one
rename, so readers never observe a half-written document.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from db.repositories.errors import RecordStoreReadError, RecordStoreWriteError
from db.repositories.types import BulkInsertResult, StoreDocument

logger = logging.getLogger(__name__)

STORE_DESCRIPTION = "Temporary store for bulk upload records"

_locks_guard = threading.Lock()
_locks_by_path: dict[Path, threading.RLock] = {}


def _lock_for(path: Path) -> threading.RLock:
    with _locks_guard:
        lock = _locks_by_path.get(path)
        if lock is None:
            lock = threading.RLock()
            _locks_by_path[path] = lock
        return lock


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _empty_document() -> StoreDocument:
    return {
        "records": [],
        "metadata": {
            "createdAt": None,
            "updatedAt": None,
            "description": STORE_DESCRIPTION,
        },
    }


class RecordStore(Protocol):
    """
    Persistence contract consumed by the upload service.
    """

    def bulk_insert(self, records: Sequence[dict[str, Any]]) -> BulkInsertResult:
        ...

    def get_all_records(self) -> list[dict[str, Any]]:
        ...

    def get_record_count(self) -> int:
        ...

    def reset(self) -> None:
        ...


class JsonRecordStore:
    """
    Record store backed by a single pretty-printed JSON document.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).resolve()
        self._lock = _lock_for(self._path)

    @property
    def path(self) -> Path:
        return self._path

    def initialize(self) -> None:
        """
        Create the store directory and an empty document if none exists.
        """

        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise RecordStoreWriteError("Failed to create record store directory.") from exc
            if not self._path.exists():
                self._write(_empty_document())
                logger.info("Record store created path=%s", self._path)

    def bulk_insert(self, records: Sequence[dict[str, Any]]) -> BulkInsertResult:
        with self._lock:
            document = self._read()
            document["records"].extend(records)
            self._write(document)
            total = len(document["records"])

        logger.info("Bulk inserted %s records. Total: %s", len(records), total)
        return BulkInsertResult(inserted=len(records), total=total)

    def get_all_records(self) -> list[dict[str, Any]]:
        with self._lock:
            return self._read()["records"]

    def get_record_count(self) -> int:
        with self._lock:
            return len(self._read()["records"])

    def reset(self) -> None:
        with self._lock:
            self._write(_empty_document())
        logger.info("Record store reset path=%s", self._path)

    def _read(self) -> StoreDocument:
        if not self._path.exists():
            return _empty_document()
        try:
            raw = self._path.read_text(encoding="utf-8")
            document = json.loads(raw)
        except (OSError, json.JSONDecodeError) as exc:
            raise RecordStoreReadError("Failed to read record store.") from exc

        if not isinstance(document, dict) or not isinstance(document.get("records"), list):
            raise RecordStoreReadError("Record store document is malformed.")
        document.setdefault("metadata", _empty_document()["metadata"])
        return document

    def _write(self, document: StoreDocument) -> None:
        metadata = document["metadata"]
        metadata["updatedAt"] = _utc_now_iso()
        if not metadata.get("createdAt"):
            metadata["createdAt"] = metadata["updatedAt"]

        tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2)
            tmp_path.replace(self._path)
        except OSError as exc:
            raise RecordStoreWriteError("Failed to write record store.") from exc
        finally:
            if tmp_path.exists():
                try:
                    tmp_path.unlink()
                except OSError:
                    pass
