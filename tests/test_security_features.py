"""Tests covering security and hardening features."""

from __future__ import annotations

import sys
from io import BytesIO
from pathlib import Path

from flask import Flask

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app
from config import Config


class _SecurityBaseConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAIL_BACKEND = "memory"
    MAIL_ASYNC = False


def _build_app(tmp_path: Path, **overrides) -> Flask:
    upload_dir = tmp_path / "uploads"

    class TestConfig(_SecurityBaseConfig):
        UPLOAD_DIR = str(upload_dir)

    for key, value in overrides.items():
        setattr(TestConfig, key, value)

    return create_app(TestConfig)


def _add_failing_route(app: Flask) -> None:
    @app.route("/boom")
    def boom():
        raise RuntimeError("connection string leaked")


def test_cors_allows_configured_origin(tmp_path):
    app = _build_app(tmp_path, CORS_ORIGINS=["https://client.example"])
    client = app.test_client()

    response = client.get(
        "/api/health/ping", headers={"Origin": "https://client.example"}
    )

    assert response.status_code == 200
    assert response.headers.get("Access-Control-Allow-Origin") == "https://client.example"
    assert response.headers.get("X-Request-ID")


def test_inbound_request_id_is_echoed(tmp_path):
    client = _build_app(tmp_path).test_client()

    response = client.get("/api/health/ping", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_rate_limit_exceeded_returns_json(tmp_path):
    app = _build_app(tmp_path, RATE_LIMIT="2 per minute")
    client = app.test_client()

    client.get("/")
    client.get("/")
    response = client.get("/")

    assert response.status_code == 429
    payload = response.get_json()
    assert payload["error"] == "Too Many Requests"
    assert payload["code"] == "TOO_MANY_REQUESTS"
    assert "request_id" in payload


def test_health_probes_are_not_rate_limited(tmp_path):
    client = _build_app(tmp_path, RATE_LIMIT="1 per minute").test_client()

    statuses = {client.get("/api/health/ping").status_code for _ in range(3)}

    assert statuses == {200}


def test_json_error_shape_for_invalid_request(tmp_path):
    app = _build_app(tmp_path)
    client = app.test_client()

    response = client.post(
        "/api/contact",
        data="{not-json",
        content_type="application/json",
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["status"] == "fail"
    assert payload["error"] == "Bad Request"
    assert "valid JSON" in payload["message"]
    assert payload["request_id"]


def test_oversize_body_is_rejected(tmp_path):
    client = _build_app(tmp_path, MAX_CONTENT_LENGTH=1024).test_client()

    response = client.post(
        "/api/visa/application",
        data={"passport_copy": (BytesIO(b"x" * 4096), "passport.pdf", "application/pdf")},
        content_type="multipart/form-data",
    )

    assert response.status_code == 413
    assert response.get_json()["code"] == "FILE_TOO_LARGE"


def test_unexpected_errors_hide_details_when_hardened(tmp_path):
    app = _build_app(tmp_path, EXPOSE_ERROR_DETAILS=False)
    _add_failing_route(app)

    response = app.test_client().get("/boom")

    assert response.status_code == 500
    payload = response.get_json()
    assert payload["code"] == "INTERNAL_SERVER_ERROR"
    assert "detail" not in payload
    assert "leaked" not in response.get_data(as_text=True)


def test_unexpected_errors_include_details_when_exposed(tmp_path):
    app = _build_app(tmp_path, EXPOSE_ERROR_DETAILS=True)
    _add_failing_route(app)

    response = app.test_client().get("/boom")

    assert response.status_code == 500
    assert "connection string leaked" in response.get_json()["detail"]
