from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import get_app_settings, validate_settings
from app.logging_utils import configure_logging, log_event

logger = logging.getLogger(__name__)
http_logger = logging.getLogger("app.http")


def _validate_env() -> None:
    """
    Validate all required environment variables at startup.

    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.
    """

    errors = validate_settings()
    if errors:
        raise RuntimeError(
            "Startup validation failed, missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _error_body(request: Request, status_code: int, message: object) -> dict[str, object]:
    return {
        "success": False,
        "statusCode": status_code,
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        "path": request.url.path,
        "message": message,
    }


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Create the record store file on boot."""
    from app.services.bulk_upload_service import get_record_store

    store = get_record_store()
    store.initialize()
    logger.info("Record store ready at %s", store.path)
    yield


def _register_exception_handlers(application: FastAPI) -> None:
    @application.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s -> %s",
                request.method,
                request.url.path,
                exc.status_code,
                exc_info=exc.__cause__,
            )
        else:
            logger.warning(
                "[%s] %s -> %s: %s",
                request.method,
                request.url.path,
                exc.status_code,
                exc.detail,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.status_code, exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = [
            f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', 'invalid')}"
            for error in exc.errors()
        ]
        logger.warning("[%s] %s -> 400: %s", request.method, request.url.path, messages)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(request, status.HTTP_400_BAD_REQUEST, messages),
        )

    @application.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "[%s] %s -> 500 unhandled %s",
            request.method,
            request.url.path,
            type(exc).__name__,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"),
        )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    settings = get_app_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title="Bulk Upload Service",
        description="CSV bulk-upload API with JWT & API-key authentication and rate-limiting.",
        version="1.0.0",
        lifespan=_lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
        allow_credentials=settings.cors_origin != "*",
    )

    @application.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.monotonic()
        response = await call_next(request)
        log_event(
            http_logger,
            logging.INFO,
            "http_request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=int((time.monotonic() - started) * 1000),
            client=request.client.host if request.client else None,
        )
        return response

    _register_exception_handlers(application)

    from app.api.dependencies import enforce_rate_limit
    from app.api.routers import auth_router, bulk_upload_router

    rate_limited = [Depends(enforce_rate_limit)]
    application.include_router(auth_router, dependencies=rate_limited)
    application.include_router(bulk_upload_router, dependencies=rate_limited)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
