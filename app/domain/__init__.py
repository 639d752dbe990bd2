"""
app/domain package marker.
"""

from app.domain.upload_record import (
    IngestionResult,
    NormalizedRow,
    RecordStatus,
    UploadRecord,
    UploadResult,
)

__all__ = [
    "IngestionResult",
    "NormalizedRow",
    "RecordStatus",
    "UploadRecord",
    "UploadResult",
]
