"""
app/api/routers/bulk_upload.py

Bulk upload HTTP endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.dependencies import ValidatedUpload, get_csv_upload, require_auth
from app.schemas.bulk_upload import ErrorResponse, MessageResponse, PaginatedRecordsResponse, UploadResultResponse
from app.services.bulk_upload_service import MAX_PAGE_SIZE, BulkUploadService, get_bulk_upload_service
from app.services.csv_ingestion_service import CSVIngestionError
from db.repositories.errors import RecordStoreError

router = APIRouter(
    prefix="/api/bulk-upload",
    tags=["bulk-upload"],
    dependencies=[Depends(require_auth)],
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ErrorResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)


@router.post(
    "/upload",
    status_code=status.HTTP_201_CREATED,
    response_model=UploadResultResponse,
    response_model_exclude_none=True,
)
def upload_csv(
    upload: ValidatedUpload = Depends(get_csv_upload),
    upload_service: BulkUploadService = Depends(get_bulk_upload_service),
) -> UploadResultResponse:
    """
    Upload a CSV file for bulk record insertion.
    """

    try:
        result = upload_service.upload(upload.content, upload.filename)
    except CSVIngestionError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to persist uploaded records.",
        ) from exc

    return UploadResultResponse(
        success=result.success,
        message=result.message,
        records_inserted=result.records_inserted,
        records_failed=result.records_failed,
        total_records_in_db=result.total_records_in_db,
        processing_time_ms=result.processing_time_ms,
        errors=result.errors,
    )


@router.get("/records", response_model=PaginatedRecordsResponse)
def get_records(
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    limit: int = Query(default=100, ge=1, le=MAX_PAGE_SIZE, description="Records per page"),
    upload_service: BulkUploadService = Depends(get_bulk_upload_service),
) -> PaginatedRecordsResponse:
    """
    Return stored upload records, paginated.
    """

    try:
        record_page = upload_service.list_records(page=page, limit=limit)
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to read stored records.",
        ) from exc

    return PaginatedRecordsResponse(
        success=True,
        count=record_page.count,
        total=record_page.total,
        page=record_page.page,
        total_pages=record_page.total_pages,
        records=record_page.records,
    )


@router.delete("/records", response_model=MessageResponse)
def reset_records(
    upload_service: BulkUploadService = Depends(get_bulk_upload_service),
) -> MessageResponse:
    """
    Clear all records from the store.
    """

    try:
        return MessageResponse(**upload_service.reset())
    except RecordStoreError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to reset the record store.",
        ) from exc
