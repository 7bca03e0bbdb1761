"""Decision notification scheduling.

In ``immediate`` mode the decision email is rendered and sent as part
of the decision.  In ``manual`` mode an entry is appended to the
pending email queue and delivered later by :meth:`NotificationScheduler.flush`.
A failed send never undoes a decision: it is logged and reported back
as a warning.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..core.errors import TransportError
from ..core.models import (
    Abstract,
    AbstractStatus,
    EmailKind,
    FlushResult,
    NotificationMode,
)
from ..io.store import ReviewStore
from ..review.config import ReviewerConfig
from ..utils.logging import get_logger, log_event
from .templates import render
from .transport import EmailTransport

logger = get_logger(__name__)


@dataclass(frozen=True)
class NotificationOutcome:
    """What happened to the notification for one decision."""

    kind: EmailKind
    mode: NotificationMode
    sent: bool = False
    queued: bool = False
    warning: Optional[str] = None


def kind_for_status(status: AbstractStatus) -> EmailKind:
    if status == AbstractStatus.ACCEPTED:
        return EmailKind.ACCEPTANCE
    if status == AbstractStatus.REJECTED:
        return EmailKind.REJECTION
    raise ValueError(f"No decision email for status {status.value}")


class NotificationScheduler:
    """Send decision emails now or queue them for a manual flush."""

    def __init__(self, store: ReviewStore, transport: EmailTransport, dashboard_url: str) -> None:
        self.store = store
        self.transport = transport
        self.dashboard_url = dashboard_url

    def placeholders(self, abstract: Abstract, kind: EmailKind) -> Dict[str, str]:
        data = {
            "name": abstract.author_name,
            "title": abstract.title,
            "abstractId": abstract.abstract_code,
            "dashboardUrl": self.dashboard_url,
        }
        if kind == EmailKind.ACCEPTANCE:
            data["approvedFor"] = abstract.approved_for or "presentation"
        return data

    def compose(self, abstract: Abstract, kind: EmailKind, config: ReviewerConfig) -> Tuple[str, str]:
        subject_template, body_template = config.templates_for(kind)
        data = self.placeholders(abstract, kind)
        return render(subject_template, data), render(body_template, data)

    def _deliver(self, abstract: Abstract, kind: EmailKind, config: ReviewerConfig) -> None:
        subject, body = self.compose(abstract, kind, config)
        self.transport.send(abstract.submitter_email, subject, body)

    def on_decision(self, abstract: Abstract, config: ReviewerConfig) -> NotificationOutcome:
        """Handle the notification for a freshly decided abstract."""
        kind = kind_for_status(abstract.status)
        mode = config.email_notification_mode

        if mode == NotificationMode.MANUAL:
            self.store.enqueue_email(abstract.abstract_code, kind)
            log_event(
                logger,
                logging.INFO,
                f"{kind.value.capitalize()} email queued for {abstract.abstract_code}",
                abstract_code=abstract.abstract_code,
                kind=kind.value,
            )
            return NotificationOutcome(kind=kind, mode=mode, queued=True)

        try:
            self._deliver(abstract, kind, config)
        except TransportError as exc:
            logger.warning(f"Failed to send {kind.value} email for {abstract.abstract_code}: {exc}")
            return NotificationOutcome(kind=kind, mode=mode, warning=str(exc))
        logger.info(f"{kind.value.capitalize()} email sent for {abstract.abstract_code}")
        return NotificationOutcome(kind=kind, mode=mode, sent=True)

    def flush(self, config: ReviewerConfig) -> FlushResult:
        """Deliver every queued email, then drop exactly the entries that were read.

        Entries appended while the flush runs stay queued for the next
        flush.  A failed entry is counted and does not stop the rest.
        With no deliverable transport the queue is left as it is.
        """
        snapshot = self.store.list_pending_emails()
        result = FlushResult()
        if not snapshot:
            logger.info("No pending emails to send")
            return result
        if not getattr(self.transport, "ready", True):
            logger.warning(f"Email transport not configured; keeping {len(snapshot)} pending emails")
            result.failed_count = len(snapshot)
            result.errors.append("No email transport configured; pending emails kept")
            return result

        for entry in snapshot:
            abstract = self.store.get_abstract_by_code(entry.abstract_code)
            if abstract is None:
                result.failed_count += 1
                result.errors.append(f"Abstract {entry.abstract_code} not found")
                continue
            try:
                self._deliver(abstract, entry.kind, config)
            except TransportError as exc:
                logger.warning(f"Failed to send email for {entry.abstract_code}: {exc}")
                result.failed_count += 1
                result.errors.append(f"Failed to send email for {entry.abstract_code}")
                continue
            result.sent_count += 1

        self.store.remove_pending_emails(e.id for e in snapshot if e.id is not None)
        log_event(
            logger,
            logging.INFO,
            f"Flushed pending emails: {result.sent_count} sent, {result.failed_count} failed",
            sent_count=result.sent_count,
            failed_count=result.failed_count,
        )
        return result
