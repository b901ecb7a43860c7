"""Feedback blueprint."""

from __future__ import annotations

from flask import Blueprint, request

from services import get_services
from utils.request_validation import parse_submission
from utils.responses import success

feedback_bp = Blueprint("feedback", __name__)


@feedback_bp.route("", methods=["POST"])
def submit_feedback():
    result = get_services().feedback.submit(parse_submission(request))
    return success(result, "Thank you for your feedback! We appreciate your input.", 201)


@feedback_bp.route("", methods=["GET"])
def list_feedback():
    args = request.args
    result = get_services().feedback.list(
        filters={
            "feedback_type": args.get("feedback_type"),
            "rating": args.get("rating", type=int),
            "status": args.get("status"),
            "service_used": args.get("service_used"),
        },
        page=args.get("page"),
        limit=args.get("limit"),
        sort_by=args.get("sort_by"),
        sort_order=args.get("sort_order"),
    )
    return success(result)


@feedback_bp.route("/stats", methods=["GET"])
@feedback_bp.route("/stats/overview", methods=["GET"])
def feedback_stats():
    return success(get_services().feedback.stats())


@feedback_bp.route("/<feedback_id>", methods=["GET"])
def get_feedback(feedback_id: str):
    return success({"feedback": get_services().feedback.get(feedback_id)})


@feedback_bp.route("/<feedback_id>/status", methods=["PATCH"])
def update_feedback_status(feedback_id: str):
    data = parse_submission(request)
    result = get_services().feedback.update_status(feedback_id, data.get("status"), data.get("admin_notes"))
    return success(result, "Feedback status updated successfully")
