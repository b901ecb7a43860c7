"""Newsletter subscription model."""

from . import db, utcnow


NEWSLETTER_PREFERENCES = (
    "visa_updates",
    "policy_changes",
    "travel_tips",
    "promotions",
    "general_news",
)


class NewsletterSubscription(db.Model):
    """At most one row per email; unsubscribing only deactivates it."""

    __tablename__ = "newsletter_subscriptions"

    id = db.Column(db.Integer, primary_key=True)
    subscription_id = db.Column(db.String(64), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=True)
    preferences = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(
        db.Boolean,
        nullable=False,
        default=True,
        server_default=db.text("1"),
        index=True,
    )
    unsubscribe_token = db.Column(db.String(64), unique=True, nullable=False)
    unsubscribed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def status(self) -> str:
        return "active" if self.is_active else "unsubscribed"

    def to_dict(self) -> dict:
        return {
            "subscription_id": self.subscription_id,
            "email": self.email,
            "name": self.name,
            "preferences": list(self.preferences or []),
            "status": self.status,
            "subscribed": bool(self.is_active),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
