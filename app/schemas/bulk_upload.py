"""
app/schemas/bulk_upload.py

Request and response schemas for bulk upload endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResultResponse(_CamelModel):
    """
    API response model for one bulk upload.
    """

    success: bool
    message: str
    records_inserted: int = Field(..., ge=0)
    records_failed: int = Field(..., ge=0)
    total_records_in_db: int = Field(..., ge=0)
    processing_time_ms: int = Field(..., ge=0)
    errors: list[str] | None = None


class PaginatedRecordsResponse(_CamelModel):
    """
    API response model for one page of stored records.
    """

    success: bool = True
    count: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)
    records: list[dict[str, Any]] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(_CamelModel):
    """
    Uniform error body returned for every failed request.
    """

    success: bool = False
    status_code: int
    timestamp: str
    path: str
    message: str | list[str]
