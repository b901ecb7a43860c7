"""Email notifications."""

from .notifications import DEFAULT_TEMPLATES, FALLBACK_TEMPLATE, NotificationDispatcher
from .transport import MailTransport, MemoryTransport, SMTPTransport, build_transport

__all__ = [
    "DEFAULT_TEMPLATES",
    "FALLBACK_TEMPLATE",
    "MailTransport",
    "MemoryTransport",
    "NotificationDispatcher",
    "SMTPTransport",
    "build_transport",
]
