"""Liveness and readiness probes."""

from __future__ import annotations

import os
import platform
import sys
import time
from datetime import UTC, datetime

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from services import get_services
from utils.errors import PersistenceError

health_bp = Blueprint("health", __name__)

_STARTED = time.monotonic()


def _now() -> str:
    return datetime.now(UTC).isoformat()


def _uptime() -> float:
    return round(time.monotonic() - _STARTED, 3)


def _format_uptime(seconds: float) -> str:
    seconds = int(seconds)
    days, seconds = divmod(seconds, 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes, seconds = divmod(seconds, 60)
    return f"{days}d {hours}h {minutes}m {seconds}s"


def _database_check() -> dict:
    started = time.perf_counter()
    try:
        healthy = get_services().gateway.ping()
        error = None
    except (PersistenceError, SQLAlchemyError) as exc:
        current_app.logger.error("Database health check failed: %s", exc)
        healthy, error = False, str(exc)
    check = {
        "status": "healthy" if healthy else "unhealthy",
        "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
    }
    if error and current_app.config.get("EXPOSE_ERROR_DETAILS"):
        check["error"] = error
    return check


@health_bp.route("", methods=["GET"])
def health():
    database = _database_check()
    uploads = get_services().storage.describe()
    healthy = database["status"] == "healthy"
    payload = {
        "status": "healthy" if healthy else "unhealthy",
        "message": "UAE Visa Services API is running smoothly" if healthy else "Service is experiencing issues",
        "timestamp": _now(),
        "uptime": _uptime(),
        "version": current_app.config.get("APP_VERSION"),
        "services": {
            "database": database,
            "file_system": {
                "status": "healthy" if uploads["writable"] else "warning",
                "uploads_writable": uploads["writable"],
            },
        },
    }
    if not healthy:
        payload["error"] = {"message": "Database is unreachable", "code": "HEALTH_CHECK_FAILED"}
    return jsonify(payload), 200 if healthy else 503


@health_bp.route("/detailed", methods=["GET"])
def detailed_health():
    services = get_services()
    config = current_app.config
    database = _database_check()
    uploads = services.storage.describe()
    healthy = database["status"] == "healthy"

    transport = services.dispatcher.transport
    email = {
        "status": "configured" if transport.name == "memory" or config.get("MAIL_USERNAME") else "not configured",
        "backend": transport.name,
    }
    if transport.name == "smtp" and config.get("MAIL_USERNAME"):
        email["reachable"] = services.dispatcher.verify()

    payload = {
        "status": "healthy" if healthy else "unhealthy",
        "message": "Detailed health check completed",
        "timestamp": _now(),
        "uptime": {"seconds": int(_uptime()), "formatted": _format_uptime(_uptime())},
        "version": config.get("APP_VERSION"),
        "services": {
            "database": {**database, "type": services.gateway.db.engine.dialect.name},
            "file_system": {"status": "healthy" if uploads["writable"] else "warning", "uploads": uploads},
            "email": email,
        },
        "configuration": {
            "database_url": bool(os.getenv("DATABASE_URL")),
            "origins": bool(os.getenv("ORIGINS")),
            "email_host": bool(os.getenv("EMAIL_HOST")),
            "email_user": bool(config.get("MAIL_USERNAME")),
            "admin_email": bool(config.get("ADMIN_EMAIL")),
        },
        "system": {
            "platform": platform.system().lower(),
            "architecture": platform.machine(),
            "python_version": sys.version.split()[0],
            "cpu_count": os.cpu_count(),
            "pid": os.getpid(),
        },
    }
    return jsonify(payload), 200 if healthy else 503


@health_bp.route("/ping", methods=["GET"])
def ping():
    return jsonify({"status": "ok", "message": "pong", "timestamp": _now()})
