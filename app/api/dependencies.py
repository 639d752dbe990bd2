"""
app/api/dependencies.py

Shared FastAPI dependencies for request throttling, authentication and
upload validation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from fastapi import Depends, File, Header, HTTPException, Request, Response, UploadFile, status

from app.api.rate_limiter import ClientRateLimiter
from app.config import get_rate_limit_settings, get_upload_settings
from app.services.auth_service import (
    AuthenticationError,
    AuthResult,
    AuthService,
    RequestCredentials,
    get_auth_service,
)
from app.validators.file_signature import FileSignatureValidator
from app.validators.file_type import FileTypeAllowList, resolve_media_type

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidatedUpload:
    """
    Upload that passed the allow-list and signature checks.
    """

    content: bytes
    filename: str
    media_type: str


@lru_cache(maxsize=1)
def get_rate_limiter() -> ClientRateLimiter:
    settings = get_rate_limit_settings()
    return ClientRateLimiter(
        max_requests=settings.max_requests,
        window_seconds=settings.window_seconds,
    )


@lru_cache(maxsize=1)
def get_file_type_allow_list() -> FileTypeAllowList:
    settings = get_upload_settings()
    return FileTypeAllowList.from_file_types(
        settings.allowed_file_types,
        max_size_bytes=settings.max_upload_bytes,
    )


@lru_cache(maxsize=1)
def get_file_signature_validator() -> FileSignatureValidator:
    return FileSignatureValidator()


def enforce_rate_limit(
    request: Request,
    response: Response,
    limiter: ClientRateLimiter = Depends(get_rate_limiter),
) -> None:
    """
    Reject the request with 429 once the client exhausts its window.
    """

    client = request.client.host if request.client else "unknown"
    decision = limiter.hit(client)
    if not decision.allowed:
        logger.warning("Rate limit exceeded for %s on %s", client, request.url.path)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Please slow down.",
            headers={
                "Retry-After": str(decision.retry_after_seconds),
                "X-RateLimit-Limit": str(decision.limit),
                "X-RateLimit-Remaining": "0",
            },
        )
    response.headers["X-RateLimit-Limit"] = str(decision.limit)
    response.headers["X-RateLimit-Remaining"] = str(decision.remaining)


def _credentials(authorization: str | None, x_api_key: str | None) -> RequestCredentials:
    return RequestCredentials(authorization=authorization, api_key=x_api_key)


def require_auth(
    authorization: str | None = Header(default=None),
    x_api_key: str | None = Header(default=None, alias="x-api-key"),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResult:
    """
    Accept a valid JWT bearer token or a valid ``x-api-key`` header.
    """

    try:
        return auth_service.authorize(_credentials(authorization, x_api_key))
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def require_jwt(
    authorization: str | None = Header(default=None),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResult:
    """
    Accept only a valid JWT bearer token.
    """

    try:
        return auth_service.authorize_jwt(_credentials(authorization, None))
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_csv_upload(
    file: UploadFile | None = File(default=None),
    allow_list: FileTypeAllowList = Depends(get_file_type_allow_list),
    signature_validator: FileSignatureValidator = Depends(get_file_signature_validator),
) -> ValidatedUpload:
    """
    Read the uploaded file and validate its claimed type, size and content.
    """

    if file is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No file provided",
        )

    filename = (file.filename or "").strip() or "upload.csv"
    media_type = resolve_media_type(content_type=file.content_type, filename=filename)

    try:
        if not allow_list.is_allowed_type(media_type):
            allowed = ", ".join(sorted(allow_list.allowed_media_types))
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Validation failed (expected type is {allowed})",
            )

        content = file.file.read(allow_list.max_size_bytes + 1)
        if not allow_list.is_within_size(len(content)):
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"Validation failed (file exceeds {allow_list.max_size_bytes} bytes)",
            )
    finally:
        file.file.close()

    if not signature_validator.is_valid(content, media_type):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=signature_validator.error_message(),
        )

    return ValidatedUpload(content=content, filename=filename, media_type=media_type)
