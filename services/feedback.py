"""Customer feedback intake, review workflow and rating statistics."""

from __future__ import annotations

import logging

from sqlalchemy import case, func, select, update

from models import FEEDBACK_STATUSES, Feedback

from .base import SubmissionService, display_timestamp, generate_identifier, iso, percentage, rounded

logger = logging.getLogger(__name__)

NEXT_STEPS = [
    "Your feedback has been received and assigned a reference number",
    "Our team will review your feedback",
    "If a response is required, we will contact you within 48 hours",
    "Your feedback helps us improve our services",
]


def _rating_groups(rows: list[dict], key: str) -> dict:
    return {row[key]: {"count": row["count"], "avg_rating": rounded(row["avg_rating"], 2)} for row in rows}


class FeedbackService(SubmissionService):
    model = Feedback
    identifier_field = "feedback_id"
    filter_fields = ("status", "feedback_type", "rating", "service_used")
    sort_columns = ("created_at", "rating", "feedback_type", "name")
    not_found_message = "Feedback not found"
    not_found_code = "FEEDBACK_NOT_FOUND"

    def submit(self, payload) -> dict:
        data = self.validated("feedback", payload)
        feedback_id = generate_identifier("FB")
        now = self.clock()
        self.gateway.add(Feedback(feedback_id=feedback_id, created_at=now, updated_at=now, **data))
        logger.info("Feedback %s received (rating %s)", feedback_id, data["rating"])

        submitted_at = display_timestamp(now)
        self.dispatcher.notify(
            data["email"],
            f"Feedback Confirmation - {feedback_id}",
            "feedback-confirmation",
            {
                "name": data["name"],
                "feedback_id": feedback_id,
                "subject": data["subject"],
                "rating": data["rating"],
                "service_used": data.get("service_used") or "other",
                "submitted_at": submitted_at,
            },
        )
        self.dispatcher.notify(
            self.admin_email,
            f"New Feedback Received - {feedback_id} ({data['feedback_type'].upper()})",
            "new-feedback-admin",
            {
                "feedback_id": feedback_id,
                "name": data["name"],
                "email": data["email"],
                "service_used": data.get("service_used") or "Not specified",
                "rating": data["rating"],
                "feedback_type": data["feedback_type"],
                "subject": data["subject"],
                "message": data["message"],
                "would_recommend": data["would_recommend"],
                "application_id": data.get("application_id") or "Not provided",
                "submitted_at": submitted_at,
            },
        )

        return {
            "feedback_id": feedback_id,
            "status": "received",
            "submitted_at": iso(now),
            "next_steps": NEXT_STEPS,
        }

    def get(self, feedback_id: str) -> dict:
        return self.require(feedback_id).to_dict()

    def list(self, filters=None, page=None, limit=None, sort_by=None, sort_order=None) -> dict:
        filters = dict(filters or {})
        result = self.paginate(self.filter_conditions(filters), page, limit, sort_by, sort_order)
        return {
            "feedback": [entry.summary() for entry in result.items],
            "pagination": result.pagination(),
            "filters": {name: filters.get(name) for name in self.filter_fields},
            "sorting": result.sorting(),
        }

    def update_status(self, feedback_id: str, status: str | None, admin_notes: str | None = None) -> dict:
        data = self.validated("feedback_status_update", {"status": status, "admin_notes": admin_notes})
        feedback = self.require(feedback_id)
        new_status = data["status"]
        admin_notes = data.get("admin_notes")
        now = self.clock()

        self.gateway.execute(
            update(Feedback)
            .where(Feedback.feedback_id == feedback_id)
            .values(status=new_status, admin_notes=admin_notes, updated_at=now)
        )
        logger.info("Feedback %s set to %s", feedback_id, new_status)

        if new_status == "responded" and admin_notes:
            self.dispatcher.notify(
                feedback.email,
                f"Response to Your Feedback - {feedback_id}",
                "feedback-response",
                {
                    "name": feedback.name,
                    "feedback_id": feedback_id,
                    "original_subject": feedback.subject,
                    "response": admin_notes,
                    "responded_at": display_timestamp(now),
                },
            )

        return {"feedback_id": feedback_id, "new_status": new_status, "updated_at": iso(now)}

    def stats(self) -> dict:
        overall = self.gateway.fetch_rows(
            select(
                func.count().label("total"),
                func.avg(Feedback.rating).label("average_rating"),
                *(
                    func.count(case((Feedback.would_recommend == answer, 1))).label(answer)
                    for answer in ("yes", "no", "maybe")
                ),
            )
        )[0]
        ratings = self.count_by(Feedback.rating)
        by_status = self.count_by(Feedback.status)

        grouped = select(func.count().label("count"), func.avg(Feedback.rating).label("avg_rating"))
        by_type = self.gateway.fetch_rows(
            grouped.add_columns(Feedback.feedback_type).group_by(Feedback.feedback_type)
        )
        by_service = self.gateway.fetch_rows(
            grouped.add_columns(Feedback.service_used)
            .where(Feedback.service_used.isnot(None))
            .group_by(Feedback.service_used)
        )
        recent = self.gateway.fetch_rows(
            select(func.count().label("count"), func.avg(Feedback.rating).label("avg_rating")).where(
                Feedback.created_at >= self.since(7)
            )
        )[0]

        return {
            "overview": {
                "total_feedback": overall["total"],
                "average_rating": rounded(overall["average_rating"], 2),
                "recommendation_rate": {
                    "yes": overall["yes"],
                    "no": overall["no"],
                    "maybe": overall["maybe"],
                    "percentage_yes": percentage(overall["yes"], overall["total"]),
                },
            },
            "status_breakdown": {status: by_status.get(status, 0) for status in FEEDBACK_STATUSES},
            "rating_distribution": {f"{rating}_star": ratings.get(rating, 0) for rating in range(1, 6)},
            "feedback_types": _rating_groups(by_type, "feedback_type"),
            "service_feedback": _rating_groups(by_service, "service_used"),
            "monthly_trends": [
                {**row, "avg_rating": rounded(row["avg_rating"], 2)}
                for row in self.monthly_trends(func.avg(Feedback.rating).label("avg_rating"))
            ],
            "recent_activity": {
                "last_7_days": recent["count"],
                "recent_avg_rating": rounded(recent["avg_rating"], 2),
            },
        }
