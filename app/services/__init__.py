"""
app/services package marker.
"""

from app.services.auth_service import AuthenticationError, AuthService, get_auth_service
from app.services.bulk_upload_service import BulkUploadService, RecordPage, get_bulk_upload_service
from app.services.csv_ingestion_service import (
    CSVIngestionError,
    CSVIngestionService,
    CSVParseError,
    NoValidRecordsError,
    get_csv_ingestion_service,
)

__all__ = [
    "AuthenticationError",
    "AuthService",
    "BulkUploadService",
    "CSVIngestionError",
    "CSVIngestionService",
    "CSVParseError",
    "NoValidRecordsError",
    "RecordPage",
    "get_auth_service",
    "get_bulk_upload_service",
    "get_csv_ingestion_service",
]
