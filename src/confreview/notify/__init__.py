"""Decision email rendering, transports and scheduling."""

from .scheduler import NotificationOutcome, NotificationScheduler
from .templates import render
from .transport import (
    EmailTransport,
    OutboxTransport,
    SmtpTransport,
    UnconfiguredTransport,
    build_transport,
)

__all__ = [
    "EmailTransport",
    "NotificationOutcome",
    "NotificationScheduler",
    "OutboxTransport",
    "SmtpTransport",
    "UnconfiguredTransport",
    "build_transport",
    "render",
]
