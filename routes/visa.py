"""Visa application blueprint."""

from __future__ import annotations

from flask import Blueprint, current_app, request

from services import get_services
from utils.request_validation import parse_submission, uploaded_files
from utils.responses import success

visa_bp = Blueprint("visa", __name__)


@visa_bp.route("/application", methods=["POST"])
def submit_application():
    """Accept a multipart visa application with its documents."""

    result = get_services().visa.submit(parse_submission(request), uploaded_files(request))
    current_app.logger.info("Visa application %s accepted", result["application_id"])
    return success(result, "Visa application submitted successfully", 201)


@visa_bp.route("/status/<application_id>", methods=["GET"])
def application_status(application_id: str):
    return success(get_services().visa.get_status(application_id))


@visa_bp.route("/applications", methods=["GET"])
def list_applications():
    args = request.args
    result = get_services().visa.list(
        filters={"status": args.get("status"), "visa_type": args.get("visa_type")},
        page=args.get("page"),
        limit=args.get("limit"),
        sort_by=args.get("sort_by"),
        sort_order=args.get("sort_order"),
    )
    return success(result)


@visa_bp.route("/applications/<application_id>", methods=["GET"])
def get_application(application_id: str):
    return success({"application": get_services().visa.get_application(application_id)})


@visa_bp.route("/applications/<application_id>/status", methods=["PATCH"])
def update_application_status(application_id: str):
    data = parse_submission(request)
    result = get_services().visa.update_status(
        application_id,
        data.get("status"),
        data.get("notes"),
        changed_by=data.get("changed_by") or "operator",
    )
    return success(result, "Application status updated successfully")


@visa_bp.route("/stats", methods=["GET"])
def application_stats():
    return success(get_services().visa.stats())
