"""Outbound mail transports."""

from __future__ import annotations

import logging
import smtplib
import ssl
from abc import ABC, abstractmethod
from email.message import EmailMessage

from utils.errors import TransportError

logger = logging.getLogger(__name__)


class MailTransport(ABC):
    """Hands a fully built message to a delivery mechanism."""

    name = "abstract"

    @abstractmethod
    def send(self, message: EmailMessage) -> str:
        """Deliver ``message`` and return its message id. Raise TransportError on failure."""

    def verify(self) -> bool:
        return True


class SMTPTransport(MailTransport):
    """Deliver through an SMTP relay, upgrading to TLS when configured."""

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        if self.use_tls:
            server.starttls(context=ssl.create_default_context())
        if self.username:
            # App passwords are often displayed with spaces for readability.
            server.login(self.username, (self.password or "").replace(" ", ""))
        return server

    def send(self, message: EmailMessage) -> str:
        try:
            with self._connect() as server:
                server.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            raise TransportError(f"SMTP delivery to {message['To']} failed: {exc}") from exc
        return message["Message-ID"]

    def verify(self) -> bool:
        try:
            with self._connect() as server:
                server.noop()
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("SMTP verification against %s:%s failed: %s", self.host, self.port, exc)
            return False
        return True


class MemoryTransport(MailTransport):
    """Keep messages in ``outbox``; used in development and tests."""

    name = "memory"

    def __init__(self):
        self.outbox: list[EmailMessage] = []

    def send(self, message: EmailMessage) -> str:
        self.outbox.append(message)
        return message["Message-ID"]


def build_transport(config) -> MailTransport:
    backend = (config.get("MAIL_BACKEND") or "smtp").lower()
    if backend == "memory":
        return MemoryTransport()
    if backend != "smtp":
        raise ValueError(f"Unknown MAIL_BACKEND: {backend}")
    return SMTPTransport(
        host=config["MAIL_SERVER"],
        port=int(config.get("MAIL_PORT", 587)),
        username=config.get("MAIL_USERNAME"),
        password=config.get("MAIL_PASSWORD"),
        use_tls=bool(config.get("MAIL_USE_TLS", True)),
        timeout=float(config.get("MAIL_TIMEOUT", 10)),
    )
