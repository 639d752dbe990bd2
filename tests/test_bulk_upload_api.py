"""
tests/test_bulk_upload_api.py

HTTP-level tests for the bulk upload and auth endpoints.

The record store is a temp-dir JSON file and the rate limiter and auth
service are replaced per test through FastAPI dependency overrides.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import get_file_type_allow_list, get_rate_limiter
from app.api.rate_limiter import ClientRateLimiter
from app.config import AuthSettings
from app.main import app
from app.services.auth_service import AuthService, get_auth_service
from app.services.bulk_upload_service import BulkUploadService, get_bulk_upload_service
from app.validators.file_type import FileTypeAllowList
from tests.helpers import PNG_BYTES, make_csv

API_KEY = "api-key-for-tests"
AUTH_HEADERS = {"x-api-key": API_KEY}
UPLOAD_URL = "/api/bulk-upload/upload"
RECORDS_URL = "/api/bulk-upload/records"


@pytest.fixture()
def auth_service() -> AuthService:
    return AuthService(
        settings=AuthSettings(
            jwt_secret="api-test-jwt-secret-0123456789abcdef",
            jwt_expiration_seconds=300,
            api_key=API_KEY,
            admin_username="admin",
            admin_password="admin123",
        )
    )


@pytest.fixture()
def client(store, ingestion_service, rate_limiter, auth_service) -> Iterator[TestClient]:
    upload_service = BulkUploadService(store=store, ingestion_service=ingestion_service)
    app.dependency_overrides[get_bulk_upload_service] = lambda: upload_service
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _upload(client: TestClient, data: bytes, *, filename: str = "test.csv", media_type: str = "text/csv", headers=None):
    return client.post(
        UPLOAD_URL,
        files={"file": (filename, data, media_type)},
        headers=AUTH_HEADERS if headers is None else headers,
    )


def _assert_error_body(response, status_code: int) -> dict:
    body = response.json()
    assert response.status_code == status_code
    assert body["success"] is False
    assert body["statusCode"] == status_code
    assert body["timestamp"].endswith("Z")
    assert body["path"] == response.request.url.path
    assert "message" in body
    return body


class TestUploadEndpoint:
    def test_valid_upload_returns_201(self, client: TestClient) -> None:
        response = _upload(client, make_csv("name,email,age", ["Alice,alice@test.com,30", "Bob,bob@test.com,25"]))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["recordsInserted"] == 2
        assert body["recordsFailed"] == 0
        assert body["totalRecordsInDb"] == 2
        assert isinstance(body["processingTimeMs"], int)
        assert "test.csv" in body["message"]
        assert "errors" not in body

    def test_mixed_rows_include_errors(self, client: TestClient) -> None:
        response = _upload(client, b"name,email\r\nAlice,alice@test.com\r\n,,\r\nBob,bob@test.com")

        assert response.status_code == 201
        body = response.json()
        assert body["recordsInserted"] == 2
        assert body["recordsFailed"] == 1
        assert body["errors"] == ["Row 2: empty row skipped"]

    def test_header_only_is_400(self, client: TestClient) -> None:
        body = _assert_error_body(_upload(client, b"name,email,age\n"), 400)
        assert body["message"] == "No valid records found in the CSV file"

    def test_malformed_csv_is_400_with_parser_message(self, client: TestClient) -> None:
        body = _assert_error_body(_upload(client, b'name,email\r\nAlice,"a@test.com"x\r\n'), 400)
        assert body["message"].startswith("Failed to parse CSV")

    def test_png_disguised_as_csv_is_422(self, client: TestClient) -> None:
        body = _assert_error_body(_upload(client, PNG_BYTES, filename="image.csv"), 422)
        assert body["message"] == "validation failed (file type does not match file signature)"

    def test_disallowed_media_type_is_422(self, client: TestClient) -> None:
        body = _assert_error_body(_upload(client, PNG_BYTES, filename="image.png", media_type="image/png"), 422)
        assert "text/csv" in body["message"]

    def test_html_disguised_as_csv_is_422(self, client: TestClient) -> None:
        _assert_error_body(_upload(client, b"<html>,x\n<script>alert(1)</script>\n"), 422)

    def test_octet_stream_falls_back_to_extension(self, client: TestClient) -> None:
        response = _upload(client, make_csv("name,age", ["Alice,30"]), media_type="application/octet-stream")
        assert response.status_code == 201

    def test_oversized_file_is_422(self, client: TestClient, store) -> None:
        app.dependency_overrides[get_file_type_allow_list] = lambda: FileTypeAllowList.from_file_types(
            ["csv"], max_size_bytes=16
        )
        body = _assert_error_body(_upload(client, make_csv("name,age", [f"user{i},{i}" for i in range(20)])), 422)
        assert "16 bytes" in body["message"]
        assert store.get_record_count() == 0

    def test_missing_file_is_400(self, client: TestClient) -> None:
        response = client.post(UPLOAD_URL, data={"note": "no file"}, headers=AUTH_HEADERS)
        body = _assert_error_body(response, 400)
        assert body["message"] == "No file provided"

    def test_records_persist_across_uploads(self, client: TestClient, store) -> None:
        _upload(client, make_csv("name,age", ["Alice,30"]))
        response = _upload(client, make_csv("name,age", ["Bob,25", "Carol,40"]))

        assert response.json()["totalRecordsInDb"] == 3
        assert store.get_record_count() == 3


class TestRecordsEndpoints:
    def test_list_records_paginates(self, client: TestClient) -> None:
        _upload(client, make_csv("name,age", [f"user{i},{i}" for i in range(5)]))

        response = client.get(RECORDS_URL, params={"page": 2, "limit": 2}, headers=AUTH_HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 2
        assert body["total"] == 5
        assert body["page"] == 2
        assert body["totalPages"] == 3
        assert [record["data"]["name"] for record in body["records"]] == ["user2", "user3"]
        assert body["records"][0]["status"] == "processed"
        assert set(body["records"][0]) == {"id", "data", "status", "createdAt"}

    def test_null_values_survive_listing(self, client: TestClient) -> None:
        _upload(client, b"name,val\r\nAlice,\r\n")
        body = client.get(RECORDS_URL, headers=AUTH_HEADERS).json()
        assert body["records"][0]["data"] == {"name": "Alice", "val": None}

    def test_invalid_limit_is_400(self, client: TestClient) -> None:
        response = client.get(RECORDS_URL, params={"limit": 501}, headers=AUTH_HEADERS)
        body = _assert_error_body(response, 400)
        assert isinstance(body["message"], list)

    def test_delete_resets_store(self, client: TestClient, store) -> None:
        _upload(client, make_csv("name,age", ["Alice,30"]))

        response = client.delete(RECORDS_URL, headers=AUTH_HEADERS)

        assert response.status_code == 200
        assert "reset" in response.json()["message"].lower()
        assert store.get_record_count() == 0


class TestAuthentication:
    def test_missing_credentials_is_401(self, client: TestClient) -> None:
        body = _assert_error_body(client.get(RECORDS_URL), 401)
        assert body["message"] == "Authentication required"

    def test_wrong_api_key_is_401(self, client: TestClient) -> None:
        _assert_error_body(client.get(RECORDS_URL, headers={"x-api-key": "wrong-key"}), 401)

    def test_upload_without_credentials_never_reaches_pipeline(self, client: TestClient, store) -> None:
        _assert_error_body(_upload(client, make_csv("name", ["Alice"]), headers={}), 401)
        assert store.get_record_count() == 0

    def test_login_then_bearer_token(self, client: TestClient) -> None:
        login = client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
        assert login.status_code == 200
        token = login.json()["access_token"]

        bearer = {"Authorization": f"Bearer {token}"}
        assert client.get(RECORDS_URL, headers=bearer).status_code == 200

        me = client.get("/api/auth/me", headers=bearer)
        assert me.json() == {"username": "admin", "role": "admin"}

    def test_login_with_bad_password_is_401(self, client: TestClient) -> None:
        response = client.post("/api/auth/login", json={"username": "admin", "password": "nope"})
        body = _assert_error_body(response, 401)
        assert body["message"] == "Invalid credentials"

    def test_login_rejects_unknown_fields(self, client: TestClient) -> None:
        response = client.post(
            "/api/auth/login",
            json={"username": "admin", "password": "admin123", "role": "root"},
        )
        body = _assert_error_body(response, 400)
        assert any("role" in message for message in body["message"])

    def test_me_rejects_api_key(self, client: TestClient) -> None:
        _assert_error_body(client.get("/api/auth/me", headers=AUTH_HEADERS), 401)


def test_rate_limit_returns_429(client: TestClient) -> None:
    limiter = ClientRateLimiter(max_requests=2, window_seconds=60)
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    limiter_responses = [client.get(RECORDS_URL, headers=AUTH_HEADERS) for _ in range(3)]

    assert [response.status_code for response in limiter_responses] == [200, 200, 429]
    blocked = limiter_responses[-1]
    _assert_error_body(blocked, 429)
    assert int(blocked.headers["Retry-After"]) > 0


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_error_body_is_documented(client: TestClient) -> None:
    schema = client.get("/openapi.json").json()

    error_schema = schema["components"]["schemas"]["ErrorResponse"]
    assert {"success", "statusCode", "timestamp", "path", "message"} <= set(error_schema["properties"])
    upload_responses = schema["paths"][UPLOAD_URL]["post"]["responses"]
    assert upload_responses["401"]["content"]["application/json"]["schema"]["$ref"].endswith("/ErrorResponse")
