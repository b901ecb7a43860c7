"""Customer feedback model."""

from . import db, utcnow


SERVICES_USED = (
    "visa_application",
    "document_verification",
    "consultation",
    "status_inquiry",
    "other",
)
FEEDBACK_TYPES = ("compliment", "complaint", "suggestion", "general")
RECOMMENDATIONS = ("yes", "no", "maybe")
FEEDBACK_STATUSES = ("new", "reviewed", "responded", "closed")


class Feedback(db.Model):
    """Rated feedback, optionally linked to a visa application."""

    __tablename__ = "feedback"
    __table_args__ = (
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_feedback_rating_range"),
    )

    id = db.Column(db.Integer, primary_key=True)
    feedback_id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    service_used = db.Column(db.String(32), nullable=True)
    rating = db.Column(db.Integer, nullable=False)
    feedback_type = db.Column(db.String(32), nullable=False, index=True)
    subject = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    would_recommend = db.Column(db.Enum(*RECOMMENDATIONS, name="feedback_recommendation"), nullable=False)
    application_id = db.Column(db.String(64), nullable=True)
    status = db.Column(
        db.Enum(*FEEDBACK_STATUSES, name="feedback_status"),
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
            "feedback_id": self.feedback_id,
            "name": self.name,
            "email": self.email,
            "service_used": self.service_used,
            "rating": self.rating,
            "feedback_type": self.feedback_type,
            "subject": self.subject,
            "would_recommend": self.would_recommend,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_dict(self) -> dict:
        data = self.summary()
        data.update(
            {
                "message": self.message,
                "application_id": self.application_id,
                "admin_notes": self.admin_notes,
            }
        )
        return data
