from __future__ import annotations

from collections.abc import Iterator

import pytest

from app.config import (
    DEFAULT_MAX_RECORDS,
    clear_settings_cache,
    get_auth_settings,
    get_rate_limit_settings,
    get_store_settings,
    get_upload_settings,
    validate_settings,
)
from app.main import _validate_env

VALID_AUTH_ENV = {
    "JWT_SECRET": "config-test-secret-0123456789",
    "API_KEY": "config-key-1234",
    "ADMIN_PASSWORD": "secret123",
}


@pytest.fixture()
def fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[pytest.MonkeyPatch]:
    for name in (
        "CSV_UPLOAD_MAX_RECORDS",
        "CSV_UPLOAD_MAX_BYTES",
        "CSV_UPLOAD_ALLOWED_TYPES",
        "CSV_UPLOAD_LOG_ROW_ERRORS",
        "THROTTLE_TTL",
        "THROTTLE_LIMIT",
        "RECORD_STORE_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    for name, value in VALID_AUTH_ENV.items():
        monkeypatch.setenv(name, value)
    clear_settings_cache()
    yield monkeypatch
    clear_settings_cache()


class TestUploadSettings:
    def test_defaults(self, fresh_settings: pytest.MonkeyPatch) -> None:
        settings = get_upload_settings()

        assert settings.max_records == DEFAULT_MAX_RECORDS
        assert settings.max_upload_bytes == 10 * 1024 * 1024
        assert settings.allowed_file_types == ("csv",)
        assert settings.log_row_errors is True

    def test_env_overrides(self, fresh_settings: pytest.MonkeyPatch) -> None:
        fresh_settings.setenv("CSV_UPLOAD_MAX_RECORDS", "50")
        fresh_settings.setenv("CSV_UPLOAD_ALLOWED_TYPES", "CSV, txt")
        fresh_settings.setenv("CSV_UPLOAD_LOG_ROW_ERRORS", "false")

        settings = get_upload_settings()

        assert settings.max_records == 50
        assert settings.allowed_file_types == ("csv", "txt")
        assert settings.log_row_errors is False

    def test_settings_are_cached_until_cleared(self, fresh_settings: pytest.MonkeyPatch) -> None:
        assert get_upload_settings().max_records == DEFAULT_MAX_RECORDS

        fresh_settings.setenv("CSV_UPLOAD_MAX_RECORDS", "7")
        assert get_upload_settings().max_records == DEFAULT_MAX_RECORDS

        clear_settings_cache()
        assert get_upload_settings().max_records == 7


def test_invalid_integers_fall_back_to_defaults(fresh_settings: pytest.MonkeyPatch) -> None:
    fresh_settings.setenv("THROTTLE_LIMIT", "many")
    fresh_settings.setenv("THROTTLE_TTL", "0")

    settings = get_rate_limit_settings()

    assert settings.max_requests == 10
    assert settings.window_seconds == 1


def test_store_path_default(fresh_settings: pytest.MonkeyPatch) -> None:
    assert get_store_settings().path == "data/bulk-upload-temp.json"


class TestValidateSettings:
    def test_valid_environment(self, fresh_settings: pytest.MonkeyPatch) -> None:
        assert validate_settings() == []
        assert get_auth_settings().api_key == VALID_AUTH_ENV["API_KEY"]

    def test_every_problem_is_reported(self, fresh_settings: pytest.MonkeyPatch) -> None:
        fresh_settings.setenv("JWT_SECRET", "short")
        fresh_settings.delenv("API_KEY")
        fresh_settings.setenv("ADMIN_PASSWORD", "   ")

        errors = validate_settings()

        assert len(errors) == 3
        assert any("JWT_SECRET" in error for error in errors)
        assert any("API_KEY" in error for error in errors)
        assert any("ADMIN_PASSWORD" in error for error in errors)

    def test_startup_validation_raises(self, fresh_settings: pytest.MonkeyPatch) -> None:
        fresh_settings.delenv("API_KEY")

        with pytest.raises(RuntimeError, match="API_KEY"):
            _validate_env()
