"""JSON success envelope shared by the blueprints."""

from __future__ import annotations

from flask import jsonify


def success(data=None, message: str | None = None, status_code: int = 200):
    payload = {"status": "success"}
    if message:
        payload["message"] = message
    if data is not None:
        payload["data"] = data
    return jsonify(payload), status_code
