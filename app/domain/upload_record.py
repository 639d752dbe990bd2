"""
app/domain/upload_record.py

Domain models used by the CSV bulk upload flow.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

NormalizedValue = Union[str, int, float, bool, None]
NormalizedRow = dict[str, NormalizedValue]


class RecordStatus(str, Enum):
    """
    Processing status carried by each stored record.
    """

    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class UploadRecord:
    """
    One accepted CSV row, ready to be appended to the record store.
    """

    data: NormalizedRow
    status: RecordStatus = RecordStatus.PROCESSED
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: str = field(default_factory=_utc_now_iso)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "data": dict(self.data),
            "status": self.status.value,
            "createdAt": self.created_at,
        }
        if self.error is not None:
            payload["error"] = self.error
        return payload


@dataclass(frozen=True)
class IngestionResult:
    """
    Records and error lines accumulated by one pipeline run.
    """

    records: list[UploadRecord] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    rows_seen: int = 0


@dataclass(frozen=True)
class UploadResult:
    """
    End-of-run bulk upload summary.
    """

    success: bool
    message: str
    records_inserted: int
    records_failed: int
    total_records_in_db: int
    processing_time_ms: int
    errors: list[str] | None = None
