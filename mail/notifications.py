"""Templated email notifications.

``send`` delivers one message and raises :class:`TransportError` when it
cannot. ``notify`` is the path request handlers use: it delivers in the
background (or inline when async delivery is off), retries a bounded number
of times and only logs the final failure, so a broken mail relay never fails
a submission that has already been stored.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from email.message import EmailMessage
from email.utils import formataddr, formatdate, make_msgid
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, Template, TemplateError, TemplateNotFound, select_autoescape

from utils.errors import TransportError

from .transport import MailTransport

logger = logging.getLogger(__name__)

_LAYOUT_HEAD = """<!DOCTYPE html>
<html><body style="font-family: Arial, sans-serif; color: #1f2937; max-width: 640px; margin: 0 auto;">
<h2 style="color: #0f5132;">{{ brand }}</h2>
"""
_LAYOUT_FOOT = """
<p style="color: #6b7280; font-size: 12px;">This message was sent by {{ brand }}.</p>
</body></html>
"""

FALLBACK_TEMPLATE = (
    _LAYOUT_HEAD
    + """<h3>{{ email_subject }}</h3>
{% if fields %}<table cellpadding="4">
{% for key, value in fields.items() %}<tr><td><strong>{{ key | replace('_', ' ') | title }}</strong></td><td>{{ value }}</td></tr>
{% endfor %}</table>{% endif %}"""
    + _LAYOUT_FOOT
)

DEFAULT_TEMPLATES: dict[str, str] = {
    "visa-application-confirmation": _LAYOUT_HEAD
    + """<p>Dear {{ full_name }},</p>
<p>We have received your {{ visa_type }} visa application.</p>
<p>Your application ID is <strong>{{ application_id }}</strong>. Keep it to track the status of your application.</p>"""
    + _LAYOUT_FOOT,
    "contact-confirmation": _LAYOUT_HEAD
    + """<p>Dear {{ name }},</p>
<p>Thank you for contacting us about "{{ subject }}". Our team will get back to you shortly.</p>
<p>Reference: <strong>{{ message_id }}</strong></p>"""
    + _LAYOUT_FOOT,
    "feedback-confirmation": _LAYOUT_HEAD
    + """<p>Dear {{ name }},</p>
<p>Thank you for rating our {{ service_used | replace('_', ' ') }} service {{ rating }}/5.</p>
<p>Reference: <strong>{{ feedback_id }}</strong></p>"""
    + _LAYOUT_FOOT,
    "newsletter-welcome": _LAYOUT_HEAD
    + """<p>Hello {{ name or "there" }},</p>
<p>You are now subscribed to our newsletter.</p>
{% if unsubscribe_url %}<p><a href="{{ unsubscribe_url }}">Unsubscribe</a></p>{% endif %}"""
    + _LAYOUT_FOOT,
}

_TAG_RE = re.compile(r"<[^>]+>")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def html_to_text(html: str) -> str:
    return _BLANK_LINES_RE.sub("\n\n", _TAG_RE.sub("", html)).strip()


class NotificationDispatcher:
    def __init__(
        self,
        transport: MailTransport,
        sender: str,
        sender_name: str = "UAE Visa Services",
        template_dir: str | None = None,
        async_send: bool = True,
        max_retries: int = 2,
        retry_delay: float = 2.0,
        max_workers: int = 2,
    ):
        self.transport = transport
        self.sender = sender
        self.sender_name = sender_name
        self.async_send = async_send
        self.max_retries = max(0, int(max_retries))
        self.retry_delay = retry_delay
        self.max_workers = max_workers
        self.env = Environment(
            loader=FileSystemLoader(template_dir) if template_dir else None,
            autoescape=select_autoescape(["html", "xml"], default_for_string=True),
        )
        self._cache: dict[str, Template] = {}
        self._lock = threading.Lock()
        self._executor: ThreadPoolExecutor | None = None

    @classmethod
    def from_config(cls, config: Mapping[str, Any], transport: MailTransport) -> "NotificationDispatcher":
        return cls(
            transport=transport,
            sender=config.get("MAIL_DEFAULT_SENDER") or config.get("MAIL_USERNAME") or "no-reply@localhost",
            sender_name=config.get("MAIL_SENDER_NAME", "UAE Visa Services"),
            template_dir=config.get("MAIL_TEMPLATE_DIR"),
            async_send=bool(config.get("MAIL_ASYNC", True)),
            max_retries=config.get("MAIL_MAX_RETRIES", 2),
            retry_delay=float(config.get("MAIL_RETRY_DELAY", 2)),
        )

    # Templates -----------------------------------------------------------

    def get_template(self, name: str) -> Template:
        """Return the compiled template for ``name``, compiling it at most once."""

        with self._lock:
            template = self._cache.get(name)
            if template is None:
                template = self._load(name)
                self._cache[name] = template
            return template

    def _load(self, name: str) -> Template:
        if self.env.loader is not None:
            try:
                return self.env.get_template(f"{name}.html")
            except TemplateNotFound:
                pass
        if name in DEFAULT_TEMPLATES:
            return self.env.from_string(DEFAULT_TEMPLATES[name])
        logger.warning("Email template %s not found, using generic fallback", name)
        return self.env.from_string(FALLBACK_TEMPLATE)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def render(self, template_name: str, subject: str, template_data: Mapping[str, Any] | None = None) -> str:
        data = dict(template_data or {})
        context = {**data, "email_subject": subject, "brand": self.sender_name, "fields": data}
        return self.get_template(template_name).render(**context)

    # Delivery ------------------------------------------------------------

    def build_message(self, recipient: str, subject: str, html: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.sender_name, self.sender))
        message["To"] = recipient
        message["Subject"] = subject
        message["Date"] = formatdate(localtime=False)
        message["Message-ID"] = make_msgid(domain=self.sender.rpartition("@")[2] or None)
        message.set_content(html_to_text(html))
        message.add_alternative(html, subtype="html")
        return message

    def send(
        self,
        recipient: str,
        subject: str,
        template_name: str,
        template_data: Mapping[str, Any] | None = None,
    ) -> str:
        """Render and deliver one email, returning the transport's message id."""

        try:
            html = self.render(template_name, subject, template_data)
        except TemplateError as exc:
            raise TransportError(f"Could not render email template {template_name}: {exc}") from exc

        message_id = self.transport.send(self.build_message(recipient, subject, html))
        logger.info("Email %s sent to %s (%s)", message_id, recipient, template_name)
        return message_id

    def notify(
        self,
        recipient: str | None,
        subject: str,
        template_name: str,
        template_data: Mapping[str, Any] | None = None,
    ) -> Future | None:
        """Best-effort delivery. Never raises for delivery failures."""

        if not recipient:
            logger.debug("Skipping %s notification without a recipient", template_name)
            return None
        if self.async_send:
            return self._get_executor().submit(self._deliver, recipient, subject, template_name, template_data)
        self._deliver(recipient, subject, template_name, template_data)
        return None

    def _deliver(self, recipient, subject, template_name, template_data) -> str | None:
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return self.send(recipient, subject, template_name, template_data)
            except TransportError as exc:
                if attempt == attempts:
                    logger.error(
                        "Giving up on %s email to %s after %d attempt(s): %s",
                        template_name,
                        recipient,
                        attempts,
                        exc,
                    )
                    return None
                logger.warning(
                    "Email %s to %s failed (attempt %d/%d): %s", template_name, recipient, attempt, attempts, exc
                )
                time.sleep(self.retry_delay * attempt)
            except Exception:
                logger.exception("Unexpected error delivering %s email to %s", template_name, recipient)
                return None
        return None

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="mail")
            return self._executor

    def verify(self) -> bool:
        return self.transport.verify()

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)
