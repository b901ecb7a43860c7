"""Utilities for reading incoming Flask request bodies."""

from __future__ import annotations

from typing import Iterable

from flask import Request
from werkzeug.exceptions import BadRequest


def parse_json_request(req: Request, *, allow_empty: bool = False) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    data = req.get_json(silent=True)
    if data is None:
        if allow_empty and not req.get_data():
            return {}
        raise BadRequest("Request body must be valid JSON.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    return data


def parse_submission(req: Request, *, list_fields: Iterable[str] = ()) -> dict:
    """Return the submitted fields from a JSON, urlencoded or multipart body.

    Form bodies are flattened to single values except for ``list_fields``,
    which are read as lists (``preferences=a&preferences=b``).
    """

    if req.is_json:
        return parse_json_request(req, allow_empty=True)

    form = req.form
    data = {key: form.get(key) for key in form.keys()}
    for field in list_fields:
        values = form.getlist(field) or form.getlist(f"{field}[]")
        if values:
            data[field] = values
            data.pop(f"{field}[]", None)
    return data


def uploaded_files(req: Request) -> dict:
    return {field: req.files.getlist(field) for field in req.files.keys()}
