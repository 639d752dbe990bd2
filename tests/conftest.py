from __future__ import annotations

import os

# Required settings must exist before app.main builds the application.
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-0123456789-abcdefghij")
os.environ.setdefault("API_KEY", "test-api-key-123")
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD", "admin123")

import pytest

from app.api.rate_limiter import ClientRateLimiter
from app.services.csv_ingestion_service import CSVIngestionService
from db.repositories.record_store import JsonRecordStore


@pytest.fixture()
def store(tmp_path) -> JsonRecordStore:
    record_store = JsonRecordStore(tmp_path / "data" / "records.json")
    record_store.initialize()
    return record_store


@pytest.fixture()
def ingestion_service() -> CSVIngestionService:
    return CSVIngestionService(max_records=10_000, log_row_errors=False)


@pytest.fixture()
def rate_limiter() -> ClientRateLimiter:
    return ClientRateLimiter(max_requests=1_000, window_seconds=60)
