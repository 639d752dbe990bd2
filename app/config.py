"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

DEFAULT_MAX_RECORDS = 10_000
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _get_list_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list from environment variables.
    """

    raw_value = _get_optional_str_env(name)
    if raw_value is None:
        return default
    items = tuple(item.strip().lower() for item in raw_value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class UploadSettings:
    """
    Runtime settings for CSV bulk uploads.
    """

    max_records: int = DEFAULT_MAX_RECORDS
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_file_types: tuple[str, ...] = ("csv",)
    log_row_errors: bool = True


@dataclass(frozen=True)
class AuthSettings:
    """
    Credentials and token lifetime for the API.
    """

    jwt_secret: str | None = None
    jwt_expiration_seconds: int = 3600
    api_key: str | None = None
    admin_username: str = "admin"
    admin_password: str | None = None


@dataclass(frozen=True)
class RateLimitSettings:
    """
    Fixed-window request throttling per client.
    """

    window_seconds: int = 60
    max_requests: int = 10


@dataclass(frozen=True)
class StoreSettings:
    """
    Location of the JSON record store.
    """

    path: str = "data/bulk-upload-temp.json"


@dataclass(frozen=True)
class AppSettings:
    """
    Top-level HTTP settings.
    """

    cors_origin: str = "*"
    log_level: str = "INFO"


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    """
    Return cached application settings.
    """

    return AppSettings(
        cors_origin=_get_str_env("CORS_ORIGIN", "*"),
        log_level=_get_str_env("LOG_LEVEL", "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_upload_settings() -> UploadSettings:
    """
    Return cached upload settings from environment variables.
    """

    return UploadSettings(
        max_records=max(1, _get_int_env("CSV_UPLOAD_MAX_RECORDS", DEFAULT_MAX_RECORDS)),
        max_upload_bytes=max(1, _get_int_env("CSV_UPLOAD_MAX_BYTES", DEFAULT_MAX_UPLOAD_BYTES)),
        allowed_file_types=_get_list_env("CSV_UPLOAD_ALLOWED_TYPES", ("csv",)),
        log_row_errors=_get_bool_env("CSV_UPLOAD_LOG_ROW_ERRORS", True),
    )


@lru_cache(maxsize=1)
def get_auth_settings() -> AuthSettings:
    """
    Return cached authentication settings from environment variables.
    """

    return AuthSettings(
        jwt_secret=_get_optional_str_env("JWT_SECRET"),
        jwt_expiration_seconds=max(1, _get_int_env("JWT_EXPIRATION_SECONDS", 3600)),
        api_key=_get_optional_str_env("API_KEY"),
        admin_username=_get_str_env("ADMIN_USERNAME", "admin"),
        admin_password=_get_optional_str_env("ADMIN_PASSWORD"),
    )


@lru_cache(maxsize=1)
def get_rate_limit_settings() -> RateLimitSettings:
    """
    Return cached rate limit settings from environment variables.
    """

    return RateLimitSettings(
        window_seconds=max(1, _get_int_env("THROTTLE_TTL", 60)),
        max_requests=max(1, _get_int_env("THROTTLE_LIMIT", 10)),
    )


@lru_cache(maxsize=1)
def get_store_settings() -> StoreSettings:
    """
    Return cached record store settings from environment variables.
    """

    return StoreSettings(path=_get_str_env("RECORD_STORE_PATH", "data/bulk-upload-temp.json"))


def validate_settings() -> list[str]:
    """
    Return one message per missing or invalid required setting.
    """

    auth = get_auth_settings()
    errors: list[str] = []
    if auth.jwt_secret is None or len(auth.jwt_secret) < 16:
        errors.append("JWT_SECRET must be set and at least 16 characters long.")
    if auth.api_key is None or len(auth.api_key) < 8:
        errors.append("API_KEY must be set and at least 8 characters long.")
    if auth.admin_password is None or len(auth.admin_password) < 6:
        errors.append("ADMIN_PASSWORD must be set and at least 6 characters long.")
    return errors


def clear_settings_cache() -> None:
    """
    Drop cached settings so the next lookup re-reads the environment.
    """

    for getter in (
        get_app_settings,
        get_upload_settings,
        get_auth_settings,
        get_rate_limit_settings,
        get_store_settings,
    ):
        getter.cache_clear()
