"""
app/services/bulk_upload_service.py

Service layer for the bulk upload workflow.

An upload is parsed completely before anything is persisted, so a request
that fails or is aborted mid-parse never leaves a partial record set behind.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from app.config import get_store_settings
from app.domain.upload_record import UploadResult
from app.services.csv_ingestion_service import CSVIngestionService, get_csv_ingestion_service
from db.config import resolve_store_path
from db.repositories.record_store import JsonRecordStore, RecordStore

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500


@dataclass(frozen=True)
class RecordPage:
    """
    One page of stored records.
    """

    records: list[dict[str, Any]]
    total: int
    page: int
    limit: int

    @property
    def count(self) -> int:
        return len(self.records)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


class BulkUploadService:
    """
    Coordinates CSV ingestion and record persistence.
    """

    def __init__(
        self,
        *,
        store: RecordStore,
        ingestion_service: CSVIngestionService,
    ) -> None:
        self._store = store
        self._ingestion_service = ingestion_service

    def upload(self, file_bytes: bytes, filename: str) -> UploadResult:
        """
        Ingest one CSV file and append its records to the store.

        Raises:
            CSVParseError: the file is not well-formed CSV.
            NoValidRecordsError: the file holds no data rows.
            RecordStoreError: the store could not be read or written.
        """

        started = time.monotonic()
        logger.info("Processing CSV file: %s (%s bytes)", filename, len(file_bytes))

        result = self._ingestion_service.ingest(file_bytes)

        if result.records:
            insert_result = self._store.bulk_insert([record.to_dict() for record in result.records])
            inserted = insert_result.inserted
            total = insert_result.total
        else:
            inserted = 0
            total = self._store.get_record_count()

        processing_time_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "Processed %s records in %sms file=%s failed=%s",
            len(result.records),
            processing_time_ms,
            filename,
            len(result.errors),
        )

        return UploadResult(
            success=True,
            message=f"Successfully uploaded {len(result.records)} records from {filename}",
            records_inserted=inserted,
            records_failed=len(result.errors),
            total_records_in_db=total,
            processing_time_ms=processing_time_ms,
            errors=list(result.errors) if result.errors else None,
        )

    def list_records(self, *, page: int = 1, limit: int = 100) -> RecordPage:
        """
        Return one page of stored records in insertion order.
        """

        if page < 1:
            raise ValueError("page must be >= 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValueError(f"limit must be between 1 and {MAX_PAGE_SIZE}")

        all_records = self._store.get_all_records()
        start = (page - 1) * limit
        return RecordPage(
            records=all_records[start : start + limit],
            total=len(all_records),
            page=page,
            limit=limit,
        )

    def reset(self) -> dict[str, str]:
        self._store.reset()
        return {"message": "Database has been reset successfully"}


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_record_store() -> JsonRecordStore:
    """
    Build and cache the JSON record store from env-driven settings.
    """

    settings = get_store_settings()
    return JsonRecordStore(resolve_store_path(settings.path))


@lru_cache(maxsize=1)
def get_bulk_upload_service() -> BulkUploadService:
    """
    Build and cache the bulk upload service.
    """

    return BulkUploadService(
        store=get_record_store(),
        ingestion_service=get_csv_ingestion_service(),
    )
