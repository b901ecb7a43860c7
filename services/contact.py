"""Contact form intake and operator follow-up."""

from __future__ import annotations

import logging

from sqlalchemy import update

from models import CONTACT_STATUSES, ContactMessage

from .base import SubmissionService, display_timestamp, generate_identifier, iso

logger = logging.getLogger(__name__)

RESPONSE_TIME = "24-48 hours"
NEXT_STEPS = [
    "Your message has been received and assigned a reference number",
    "Our team will review your inquiry",
    "You will receive a response within 24-48 hours",
    "For urgent matters, please call our hotline",
]


class ContactService(SubmissionService):
    model = ContactMessage
    identifier_field = "message_id"
    filter_fields = ("status", "inquiry_type")
    sort_columns = ("created_at", "updated_at", "name", "status", "inquiry_type")
    not_found_message = "Contact message not found"
    not_found_code = "MESSAGE_NOT_FOUND"

    def submit(self, payload) -> dict:
        data = self.validated("contact", payload)
        message_id = generate_identifier("CONTACT")
        now = self.clock()
        record = ContactMessage(
            message_id=message_id,
            name=data["name"],
            email=data["email"],
            phone=data.get("phone"),
            inquiry_type=data.get("inquiry_type", "general"),
            subject=data["subject"],
            message=data["message"],
            preferred_contact=data.get("preferred_contact_method", "email"),
            created_at=now,
            updated_at=now,
        )
        self.gateway.add(record)
        logger.info("Contact message %s received (%s)", message_id, record.inquiry_type)

        submitted_at = display_timestamp(now)
        self.dispatcher.notify(
            data["email"],
            f"Contact Form Confirmation - {message_id}",
            "contact-confirmation",
            {
                "name": data["name"],
                "message_id": message_id,
                "subject": data["subject"],
                "inquiry_type": data.get("inquiry_type", "general"),
                "submitted_at": submitted_at,
            },
        )
        self.dispatcher.notify(
            self.admin_email,
            f"New Contact Form Submission - {message_id}",
            "new-contact-admin",
            {
                "message_id": message_id,
                "name": data["name"],
                "email": data["email"],
                "phone": data.get("phone") or "Not provided",
                "subject": data["subject"],
                "message": data["message"],
                "inquiry_type": data.get("inquiry_type", "general"),
                "preferred_contact": data.get("preferred_contact_method", "email"),
                "submitted_at": submitted_at,
            },
        )

        return {
            "message_id": message_id,
            "status": "received",
            "submitted_at": iso(now),
            "estimated_response_time": RESPONSE_TIME,
            "next_steps": NEXT_STEPS,
        }

    def get(self, message_id: str) -> dict:
        return self.require(message_id).to_dict()

    def list(self, filters=None, page=None, limit=None, sort_by=None, sort_order=None) -> dict:
        result = self.paginate(self.filter_conditions(filters), page, limit, sort_by, sort_order)
        return {
            "messages": [message.summary() for message in result.items],
            "pagination": result.pagination(),
            "sorting": result.sorting(),
        }

    def update_status(self, message_id: str, status: str | None, notes: str | None = None) -> dict:
        data = self.validated("contact_status_update", {"status": status, "notes": notes})
        message = self.require(message_id)
        new_status = data["status"]
        notes = data.get("notes")
        now = self.clock()

        self.gateway.execute(
            update(ContactMessage)
            .where(ContactMessage.message_id == message_id)
            .values(status=new_status, admin_notes=notes, updated_at=now)
        )
        logger.info("Contact message %s set to %s", message_id, new_status)

        if new_status == "resolved":
            self.dispatcher.notify(
                message.email,
                f"Your Inquiry Has Been Resolved - {message_id}",
                "contact-resolved",
                {
                    "name": message.name,
                    "message_id": message_id,
                    "subject": message.subject,
                    "resolution_notes": notes or "Your inquiry has been resolved.",
                    "resolved_at": display_timestamp(now),
                },
            )

        return {"message_id": message_id, "new_status": new_status, "updated_at": iso(now)}

    def stats(self) -> dict:
        by_status = self.count_by(ContactMessage.status)
        return {
            "status_breakdown": {status: by_status.get(status, 0) for status in CONTACT_STATUSES},
            "inquiry_type_breakdown": self.count_by(ContactMessage.inquiry_type),
            "monthly_trends": self.monthly_trends(),
            "recent_activity": {"last_7_days": self.count(ContactMessage.created_at >= self.since(7))},
            "total_messages": sum(by_status.values()),
        }
