"""Contact form message model."""

from . import db, utcnow


INQUIRY_TYPES = (
    "general",
    "visa_inquiry",
    "application_status",
    "technical_support",
    "complaint",
    "suggestion",
)
CONTACT_METHODS = ("email", "phone", "both")
CONTACT_STATUSES = ("new", "in_progress", "resolved", "closed")


class ContactMessage(db.Model):
    """Represents an inquiry submitted through the contact form."""

    __tablename__ = "contact_messages"

    id = db.Column(db.Integer, primary_key=True)
    message_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(20), nullable=True)
    inquiry_type = db.Column(db.String(32), nullable=False, default="general", index=True)
    subject = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    preferred_contact = db.Column(db.String(16), nullable=False, default="email")
    status = db.Column(
        db.Enum(*CONTACT_STATUSES, name="contact_message_status"),
        nullable=False,
        default="new",
        server_default=db.text("'new'"),
        index=True,
    )
    admin_notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def summary(self) -> dict:
        return {
            "message_id": self.message_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "subject": self.subject,
            "inquiry_type": self.inquiry_type,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_dict(self) -> dict:
        data = self.summary()
        data.update(
            {
                "message": self.message,
                "preferred_contact": self.preferred_contact,
                "admin_notes": self.admin_notes,
            }
        )
        return data
