"""Contact form blueprint."""

from __future__ import annotations

from flask import Blueprint, request

from services import get_services
from utils.request_validation import parse_submission
from utils.responses import success

contact_bp = Blueprint("contact", __name__)


@contact_bp.route("", methods=["POST"])
def submit_message():
    result = get_services().contact.submit(parse_submission(request))
    return success(result, "Your message has been sent successfully", 201)


@contact_bp.route("/messages", methods=["GET"])
def list_messages():
    args = request.args
    result = get_services().contact.list(
        filters={"status": args.get("status"), "inquiry_type": args.get("inquiry_type")},
        page=args.get("page"),
        limit=args.get("limit"),
        sort_by=args.get("sort_by"),
        sort_order=args.get("sort_order"),
    )
    return success(result)


@contact_bp.route("/messages/<message_id>", methods=["GET"])
def get_message(message_id: str):
    return success({"message": get_services().contact.get(message_id)})


@contact_bp.route("/messages/<message_id>/status", methods=["PATCH"])
def update_message_status(message_id: str):
    data = parse_submission(request)
    result = get_services().contact.update_status(message_id, data.get("status"), data.get("notes"))
    return success(result, "Contact message status updated successfully")


@contact_bp.route("/stats", methods=["GET"])
def message_stats():
    return success(get_services().contact.stats())
