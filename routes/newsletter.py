"""Newsletter blueprint."""

from __future__ import annotations

from flask import Blueprint, request

from services import get_services
from utils.request_validation import parse_submission
from utils.responses import success

newsletter_bp = Blueprint("newsletter", __name__)


@newsletter_bp.route("/subscribe", methods=["POST"])
def subscribe():
    outcome = get_services().newsletter.subscribe(parse_submission(request, list_fields=("preferences",)))
    return success(outcome.data, outcome.message, 201 if outcome.created else 200)


@newsletter_bp.route("/unsubscribe", methods=["POST"])
def unsubscribe():
    data = parse_submission(request)
    token = data.get("token") or request.args.get("token")
    result = get_services().newsletter.unsubscribe(token)
    return success(result, "You have been successfully unsubscribed from our newsletter")


@newsletter_bp.route("/preferences", methods=["PATCH"])
def update_preferences():
    data = parse_submission(request, list_fields=("preferences",))
    result = get_services().newsletter.update_preferences(data.get("email"), data.get("preferences"))
    return success(result, "Newsletter preferences updated successfully")


@newsletter_bp.route("/status/<email>", methods=["GET"])
def subscription_status(email: str):
    return success(get_services().newsletter.get_subscription(email))


@newsletter_bp.route("/subscriptions", methods=["GET"])
def list_subscriptions():
    args = request.args
    result = get_services().newsletter.list(
        status=args.get("status", "active"),
        page=args.get("page"),
        limit=args.get("limit"),
        sort_by=args.get("sort_by"),
        sort_order=args.get("sort_order"),
    )
    return success(result)


@newsletter_bp.route("/stats", methods=["GET"])
def newsletter_stats():
    return success(get_services().newsletter.stats())
