"""Application configuration module."""

import os
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
    API_PREFIX = os.getenv("API_PREFIX", "/api")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    EXPOSE_ERROR_DETAILS = _env_bool("EXPOSE_ERROR_DETAILS", False)

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///database.sqlite")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    AUTO_CREATE_SCHEMA = _env_bool("AUTO_CREATE_SCHEMA", True)

    # Uploads
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", str(Path("workspace") / "uploads"))
    MAX_UPLOAD_SIZE = int(os.getenv("UPLOAD_MAX_SIZE", 5 * 1024 * 1024))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", 50 * 1024 * 1024))

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Rate limiting
    RATE_LIMIT = os.getenv("RATE_LIMIT", "100 per 15 minutes")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")

    # Mail
    MAIL_BACKEND = os.getenv("MAIL_BACKEND", "smtp")
    MAIL_SERVER = os.getenv("EMAIL_HOST", "smtp.gmail.com")
    MAIL_PORT = int(os.getenv("EMAIL_PORT", 587))
    MAIL_USE_TLS = _env_bool("EMAIL_USE_TLS", True)
    MAIL_USERNAME = os.getenv("EMAIL_USER")
    MAIL_PASSWORD = os.getenv("EMAIL_PASS")
    MAIL_TIMEOUT = float(os.getenv("EMAIL_TIMEOUT", 10))
    MAIL_DEFAULT_SENDER = os.getenv(
        "EMAIL_FROM", MAIL_USERNAME or "noreply@uaevisaservices.com"
    )
    MAIL_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "UAE Visa Services")
    MAIL_TEMPLATE_DIR = os.getenv(
        "EMAIL_TEMPLATE_DIR", str(Path(__file__).resolve().parent / "templates" / "email")
    )
    MAIL_ASYNC = _env_bool("EMAIL_ASYNC", True)
    MAIL_MAX_RETRIES = int(os.getenv("EMAIL_MAX_RETRIES", 2))
    MAIL_RETRY_DELAY = float(os.getenv("EMAIL_RETRY_DELAY", 2))
    ADMIN_EMAIL = os.getenv("EMAIL_TO", "admin@uaevisaservices.com")
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # Visa applications
    VISA_REJECT_DUPLICATE_PASSPORT = _env_bool("VISA_REJECT_DUPLICATE_PASSPORT", False)
