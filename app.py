"""Application factory."""

import atexit
import logging
import os
import time
import uuid
from datetime import UTC, datetime

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from mail import NotificationDispatcher, build_transport
from models import db
from routes.contact import contact_bp
from routes.feedback import feedback_bp
from routes.health import health_bp
from routes.newsletter import newsletter_bp
from routes.visa import visa_bp
from services import EXTENSION_KEY, Services
from storage import LocalStorage, PersistenceGateway
from utils.errors import AppError

migrate = Migrate()
limiter = Limiter(key_func=get_remote_address)

HTTP_ERROR_CODES = {413: "FILE_TOO_LARGE", 429: "TOO_MANY_REQUESTS"}


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    _configure_logging(app)

    # Core subsystems
    db.init_app(app)
    migrate.init_app(app, db)

    # CORS
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Rate limiting
    storage_uri = app.config.get("RATELIMIT_STORAGE_URI", "memory://")
    headers_enabled = app.config.get("RATELIMIT_HEADERS_ENABLED", True)
    key_prefix = app.config.get("RATELIMIT_KEY_PREFIX") or str(uuid.uuid4())

    global limiter
    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[lambda: app.config.get("RATE_LIMIT", "100 per 15 minutes")],
        storage_uri=storage_uri,
        headers_enabled=headers_enabled,
        key_prefix=key_prefix,
    )
    limiter.init_app(app)
    limiter.exempt(health_bp)
    app.config["RATELIMIT_KEY_PREFIX"] = key_prefix

    # Persistence, uploads and mail, shared by every service
    gateway = PersistenceGateway(db)
    storage = LocalStorage(app.config.get("UPLOAD_DIR"))
    dispatcher = NotificationDispatcher.from_config(app.config, build_transport(app.config))
    app.extensions[EXTENSION_KEY] = Services.build(gateway, dispatcher, storage, app.config)

    if app.config.get("AUTO_CREATE_SCHEMA", True):
        with app.app_context():
            gateway.init_schema()

    # Blueprints
    prefix = app.config.get("API_PREFIX", "/api").rstrip("/")
    app.register_blueprint(visa_bp, url_prefix=f"{prefix}/visa")
    app.register_blueprint(contact_bp, url_prefix=f"{prefix}/contact")
    app.register_blueprint(feedback_bp, url_prefix=f"{prefix}/feedback")
    app.register_blueprint(newsletter_bp, url_prefix=f"{prefix}/newsletter")
    app.register_blueprint(health_bp, url_prefix=f"{prefix}/health")

    @app.route("/", methods=["GET"])
    def index():
        return jsonify(
            {
                "status": "success",
                "message": "UAE Visa Services API",
                "version": app.config.get("APP_VERSION"),
                "endpoints": {
                    "health": f"{prefix}/health",
                    "visa": f"{prefix}/visa",
                    "contact": f"{prefix}/contact",
                    "feedback": f"{prefix}/feedback",
                    "newsletter": f"{prefix}/newsletter",
                },
            }
        )

    # Errors
    _register_error_handlers(app)

    atexit.register(_shutdown, app)
    app.logger.info("Application created with API prefix %s", prefix or "/")
    return app


def _configure_logging(app: Flask) -> None:
    level = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)


def _shutdown(app: Flask) -> None:
    services = app.extensions.get(EXTENSION_KEY)
    if services is None:
        return
    services.dispatcher.shutdown()
    with app.app_context():
        services.gateway.close()


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


def _register_error_handlers(app: Flask) -> None:
    """Register JSON error handlers with request IDs."""

    @app.before_request
    def _assign_request_id():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        g.request_started = time.perf_counter()

    @app.after_request
    def _add_request_id_header(response):
        request_id = g.get("request_id")
        if request_id:
            response.headers.setdefault("X-Request-ID", request_id)
        started = g.get("request_started")
        if started is not None:
            app.logger.info(
                "%s %s %s %.1fms request_id=%s",
                request.method,
                request.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
                request_id,
            )
        return response

    @app.errorhandler(AppError)
    def _handle_app_error(error: AppError):
        request_id = g.get("request_id") or str(uuid.uuid4())
        if error.status_code >= 500:
            app.logger.error("%s [%s] request_id=%s", error.message, error.code, request_id)
        else:
            app.logger.info("Rejected request: %s [%s] request_id=%s", error.message, error.code, request_id)

        payload = error.to_dict()
        payload["timestamp"] = _timestamp()
        payload["request_id"] = request_id
        if app.config.get("EXPOSE_ERROR_DETAILS") and error.__cause__ is not None:
            payload["detail"] = str(error.__cause__)
        response = jsonify(payload)
        response.status_code = error.status_code
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        request_id = g.get("request_id") or str(uuid.uuid4())
        status_code = error.code or 500
        name = getattr(error, "name", "Error")
        payload = {
            "status": "fail" if status_code < 500 else "error",
            "error": name,
            "message": error.description,
            "code": HTTP_ERROR_CODES.get(status_code, name.upper().replace(" ", "_")),
            "timestamp": _timestamp(),
            "request_id": request_id,
        }
        response = error.get_response()
        response.data = jsonify(payload).get_data()
        response.content_type = "application/json"
        response.headers.setdefault("X-Request-ID", request_id)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        request_id = g.get("request_id") or str(uuid.uuid4())
        app.logger.exception("Unhandled application error request_id=%s", request_id, exc_info=error)
        payload = {
            "status": "error",
            "message": "Something went wrong",
            "code": "INTERNAL_SERVER_ERROR",
            "timestamp": _timestamp(),
            "request_id": request_id,
        }
        if app.config.get("EXPOSE_ERROR_DETAILS"):
            payload["detail"] = repr(error)
        response = jsonify(payload)
        response.status_code = 500
        response.headers.setdefault("X-Request-ID", request_id)
        return response


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
