"""Email transports.

The workflow only needs ``send(to, subject, body)``.  Failures are
raised as :class:`TransportError` and handled by the scheduler.  A
transport whose ``ready`` flag is False cannot deliver at all, and the
scheduler leaves the pending queue untouched rather than drain it.
"""

from __future__ import annotations

import smtplib
from dataclasses import dataclass, field
from datetime import datetime
from email.mime.text import MIMEText
from typing import List, Protocol

from ..config.settings import Settings
from ..core.errors import TransportError
from ..core.models import utc_now
from ..utils.logging import get_logger

logger = get_logger(__name__)


class EmailTransport(Protocol):
    ready: bool

    def send(self, to: str, subject: str, body: str) -> None: ...


@dataclass
class OutboundEmail:
    to: str
    subject: str
    body: str
    sent_at: datetime = field(default_factory=utc_now)


class OutboxTransport:
    """Keep messages in memory. Injected by tests and local tooling."""

    ready = True

    def __init__(self) -> None:
        self.sent: List[OutboundEmail] = []

    def send(self, to: str, subject: str, body: str) -> None:
        if not to:
            raise TransportError("Recipient address is empty")
        self.sent.append(OutboundEmail(to=to, subject=subject, body=body))
        logger.info(f"Email to {to} stored in outbox: {subject}")


class SmtpTransport:
    """Send plain-text mail through an SMTP relay."""

    ready = True

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        sender: str = "noreply@conference.local",
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpTransport":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            sender=settings.email_from,
        )

    def send(self, to: str, subject: str, body: str) -> None:
        msg = MIMEText(body, "plain", "utf-8")
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise TransportError(f"SMTP delivery to {to} failed: {exc}") from exc


class UnconfiguredTransport:
    """Stand-in used when no SMTP host is set. Every send fails."""

    ready = False

    def send(self, to: str, subject: str, body: str) -> None:
        raise TransportError("No SMTP host configured")


def build_transport(settings: Settings) -> EmailTransport:
    if settings.smtp_host:
        return SmtpTransport.from_settings(settings)
    logger.warning("SMTP_HOST is not set; decision emails cannot be delivered")
    return UnconfiguredTransport()
