"""Database initialization and model exports."""

from datetime import UTC, datetime

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite stores."""

    return datetime.now(UTC).replace(tzinfo=None)


# Import models to register them with SQLAlchemy metadata.
from .visa_application import (  # noqa: E402,F401
    VISA_STATUSES,
    VISA_TYPES,
    VisaApplication,
    VisaApplicationDocument,
)
from .status_log import ApplicationStatusLog  # noqa: E402,F401
from .contact_message import CONTACT_STATUSES, ContactMessage  # noqa: E402,F401
from .feedback import FEEDBACK_STATUSES, Feedback  # noqa: E402,F401
from .newsletter_subscription import (  # noqa: E402,F401
    NEWSLETTER_PREFERENCES,
    NewsletterSubscription,
)

__all__ = [
    "db",
    "utcnow",
    "VisaApplication",
    "VisaApplicationDocument",
    "ApplicationStatusLog",
    "ContactMessage",
    "Feedback",
    "NewsletterSubscription",
    "VISA_STATUSES",
    "VISA_TYPES",
    "CONTACT_STATUSES",
    "FEEDBACK_STATUSES",
    "NEWSLETTER_PREFERENCES",
]
