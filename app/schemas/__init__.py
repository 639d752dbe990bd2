"""
app/schemas package marker.
"""

from app.schemas.auth import LoginRequest, TokenResponse, UserProfileResponse
from app.schemas.bulk_upload import (
    ErrorResponse,
    MessageResponse,
    PaginatedRecordsResponse,
    UploadResultResponse,
)

__all__ = [
    "ErrorResponse",
    "LoginRequest",
    "MessageResponse",
    "PaginatedRecordsResponse",
    "TokenResponse",
    "UploadResultResponse",
    "UserProfileResponse",
]
