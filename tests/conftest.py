"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from datetime import timedelta
from io import BytesIO
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from mail import MailTransport  # noqa: E402
from models import db, utcnow  # noqa: E402
from services import EXTENSION_KEY  # noqa: E402
from utils.errors import TransportError  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    RATE_LIMIT = "1000 per minute"
    MAIL_BACKEND = "memory"
    MAIL_ASYNC = False
    MAIL_MAX_RETRIES = 1
    MAIL_RETRY_DELAY = 0
    MAIL_DEFAULT_SENDER = "noreply@visa.example"
    ADMIN_EMAIL = "ops@visa.example"
    FRONTEND_URL = "https://visa.example"
    EXPOSE_ERROR_DETAILS = False


@pytest.fixture()
def app(tmp_path) -> Flask:
    """Create a Flask application instance for tests."""

    upload_dir = tmp_path / "uploads"

    class TestConfig(_BaseTestConfig):
        UPLOAD_DIR = str(upload_dir)

    application = create_app(TestConfig)

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def services(app: Flask):
    return app.extensions[EXTENSION_KEY]


@pytest.fixture()
def outbox(services) -> list:
    """Messages delivered through the in-memory mail transport."""

    return services.dispatcher.transport.outbox


class RefusingTransport(MailTransport):
    name = "refusing"

    def __init__(self):
        self.attempts = 0

    def send(self, message) -> str:
        self.attempts += 1
        raise TransportError("relay refused the connection")


@pytest.fixture()
def failing_mail(services, monkeypatch) -> RefusingTransport:
    """Swap the mail transport for one that refuses every message."""

    transport = RefusingTransport()
    monkeypatch.setattr(services.dispatcher, "transport", transport)
    return transport


@pytest.fixture()
def visa_form():
    """Build a valid visa application form, travelling a month from today."""

    def build(**overrides) -> dict:
        arrival = utcnow().date() + timedelta(days=30)
        form = {
            "full_name": "Amira Haddad",
            "email": "Amira.Haddad@Example.com",
            "phone": "+971501234567",
            "nationality": "Jordanian",
            "passport_number": "n1234567",
            "visa_type": "tourist",
            "purpose_of_visit": "Visiting family in Abu Dhabi",
            "duration_of_stay": "5",
            "arrival_date": arrival.isoformat(),
            "departure_date": (arrival + timedelta(days=5)).isoformat(),
            "previous_uae_visit": "no",
            "criminal_record": "no",
            "emergency_contact_name": "Omar Haddad",
            "emergency_contact_phone": "+962791234567",
            "emergency_contact_relationship": "Brother",
        }
        form.update(overrides)
        return form

    return build


@pytest.fixture()
def visa_files():
    """Build the multipart file parts for a visa application."""

    def build(**overrides) -> dict:
        files = {
            "passport_copy": (BytesIO(b"%PDF-1.4 passport"), "passport.pdf", "application/pdf"),
            "photo": (BytesIO(b"\x89PNG photo"), "photo.png", "image/png"),
        }
        files.update(overrides)
        return {key: value for key, value in files.items() if value is not None}

    return build


@pytest.fixture()
def submit_visa(client, visa_form, visa_files):
    """POST a visa application and return the response."""

    def submit(form: dict | None = None, files: dict | None = None):
        data = dict(form if form is not None else visa_form())
        data.update(files if files is not None else visa_files())
        return client.post("/api/visa/application", data=data, content_type="multipart/form-data")

    return submit
