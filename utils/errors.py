"""Application error hierarchy mapped onto JSON error responses."""

from __future__ import annotations

from typing import Iterable


class AppError(Exception):
    """Base class for errors that carry an HTTP status and a stable code."""

    status_code = 500
    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    @property
    def status(self) -> str:
        return "fail" if 400 <= self.status_code < 500 else "error"

    def to_dict(self) -> dict:
        return {"status": self.status, "message": self.message, "code": self.code}


class ValidationError(AppError):
    """One or more submitted fields were rejected."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, errors: Iterable, message: str = "Validation failed"):
        super().__init__(message)
        self.errors = list(errors)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["errors"] = [error.to_dict() for error in self.errors]
        return payload


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"


class DuplicateError(AppError):
    status_code = 409
    code = "DUPLICATE_ENTRY"


class UploadError(AppError):
    status_code = 400
    code = "UPLOAD_ERROR"


class InvalidTokenError(AppError):
    status_code = 400
    code = "INVALID_TOKEN"


class PersistenceError(AppError):
    status_code = 500
    code = "DATABASE_ERROR"


class TransportError(AppError):
    """Outbound mail could not be delivered. Never returned to a client."""

    status_code = 502
    code = "EMAIL_DELIVERY_FAILED"
