"""Reviewer configuration with defaulting and merge-on-read.

The configuration is stored as a single document.  Reading merges the
stored document over :data:`DEFAULT_REVIEWER_CONFIG`, so keys added in
later versions pick up their defaults and a fresh installation works
with no document at all.  The loaded :class:`ReviewerConfig` is a plain
value object that callers pass explicitly to the components that need
it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaError

from ..core.errors import ValidationError
from ..core.models import (
    EmailKind,
    NotificationMode,
    PendingEmail,
    Recommendation,
    ScoreCriterion,
)
from ..io.store import ReviewStore
from ..utils.logging import get_logger

logger = get_logger(__name__)


ACCEPTANCE_SUBJECT = "Congratulations! Your Abstract {abstractId} Has Been Accepted"
ACCEPTANCE_BODY = """Dear {name},

Congratulations! We are pleased to inform you that your abstract titled "{title}" (ID: {abstractId}) has been ACCEPTED for presentation.

Presentation Type: {approvedFor}

Please log in to your dashboard to view the details and complete any required next steps for your final submission.

Dashboard: {dashboardUrl}

Best regards,
Organizing Committee"""

REJECTION_SUBJECT = "Update on Your Abstract Submission {abstractId}"
REJECTION_BODY = """Dear {name},

Thank you for submitting your abstract titled "{title}" (ID: {abstractId}).

After careful review by our scientific committee, we regret to inform you that your abstract has not been selected for presentation at this year's conference.

We appreciate your interest and encourage you to submit again in the future.

Best regards,
Organizing Committee"""


class ApprovalOption(BaseModel):
    """Presentation category an accepted abstract may be approved for."""

    key: str
    label: str
    enabled: bool = True


class CriterionSetting(BaseModel):
    """Scoring criterion as configured by an administrator."""

    key: ScoreCriterion
    label: str
    max_score: int = Field(10, ge=1)
    enabled: bool = True


class ReviewerConfig(BaseModel):
    """Process-wide reviewer settings, loaded once per request."""

    blind_review: bool = False
    reviewer_layout: str = "new-tab"
    approval_options: List[ApprovalOption] = Field(default_factory=list)
    scoring_criteria: List[CriterionSetting] = Field(default_factory=list)
    require_rejection_comment: bool = True
    allow_review_edit: bool = False
    show_total_score: bool = True
    email_notification_mode: NotificationMode = NotificationMode.IMMEDIATE
    acceptance_email_subject: str = ACCEPTANCE_SUBJECT
    acceptance_email_body: str = ACCEPTANCE_BODY
    rejection_email_subject: str = REJECTION_SUBJECT
    rejection_email_body: str = REJECTION_BODY

    # Filled from the queue table on load, never written back with the document
    pending_emails: List[PendingEmail] = Field(default_factory=list, exclude=True)

    @property
    def enabled_recommendations(self) -> List[Recommendation]:
        return [Recommendation.ACCEPT, Recommendation.REJECT]

    @property
    def enabled_criteria(self) -> Dict[ScoreCriterion, int]:
        """Enabled criteria mapped to their maximum score."""
        return {c.key: c.max_score for c in self.scoring_criteria if c.enabled}

    @property
    def enabled_approval_keys(self) -> List[str]:
        return [o.key for o in self.approval_options if o.enabled]

    def templates_for(self, kind: EmailKind) -> tuple[str, str]:
        """Return the ``(subject, body)`` templates for a notification kind."""
        if kind == EmailKind.ACCEPTANCE:
            return (
                self.acceptance_email_subject or ACCEPTANCE_SUBJECT,
                self.acceptance_email_body or ACCEPTANCE_BODY,
            )
        return (
            self.rejection_email_subject or REJECTION_SUBJECT,
            self.rejection_email_body or REJECTION_BODY,
        )


DEFAULT_REVIEWER_CONFIG: Dict[str, Any] = {
    "blind_review": False,
    "reviewer_layout": "new-tab",
    "approval_options": [
        {"key": "award-paper", "label": "Award Paper Presentation", "enabled": True},
        {"key": "podium", "label": "Podium Presentation", "enabled": True},
        {"key": "poster", "label": "Poster Presentation", "enabled": True},
    ],
    "scoring_criteria": [
        {"key": "originality", "label": "Originality of the Study", "max_score": 10, "enabled": True},
        {"key": "levelOfEvidence", "label": "Level of Evidence of Study", "max_score": 10, "enabled": True},
        {"key": "scientificImpact", "label": "Scientific Impact", "max_score": 10, "enabled": True},
        {"key": "socialSignificance", "label": "Social Significance", "max_score": 10, "enabled": True},
        {
            "key": "qualityOfManuscript",
            "label": "Quality of Manuscript + Abstract & Study",
            "max_score": 10,
            "enabled": True,
        },
    ],
    "require_rejection_comment": True,
    "allow_review_edit": False,
    "show_total_score": True,
    "email_notification_mode": NotificationMode.IMMEDIATE.value,
    "acceptance_email_subject": ACCEPTANCE_SUBJECT,
    "acceptance_email_body": ACCEPTANCE_BODY,
    "rejection_email_subject": REJECTION_SUBJECT,
    "rejection_email_body": REJECTION_BODY,
}


def merge_config(stored: Optional[Dict[str, Any]], overrides: Optional[Dict[str, Any]] = None) -> ReviewerConfig:
    """Merge ``stored`` and then ``overrides`` over the defaults, key by key."""
    document: Dict[str, Any] = dict(DEFAULT_REVIEWER_CONFIG)
    for layer in (stored or {}, overrides or {}):
        for key, value in layer.items():
            if key in ReviewerConfig.model_fields and key != "pending_emails" and value is not None:
                document[key] = value
    return ReviewerConfig.model_validate(document)


class ReviewerConfigStore:
    """Load and update the singleton reviewer configuration."""

    def __init__(self, store: ReviewStore) -> None:
        self._store = store

    def load(self) -> ReviewerConfig:
        config = merge_config(self._store.load_config_document())
        config.pending_emails = self._store.list_pending_emails()
        return config

    def update(self, changes: Dict[str, Any]) -> ReviewerConfig:
        """Apply a partial update and persist the merged document."""
        with self._store.transaction():
            try:
                merged = merge_config(self._store.load_config_document(), changes)
            except SchemaError as exc:
                raise ValidationError(f"Invalid reviewer configuration: {exc}") from exc
            self._store.save_config_document(merged.model_dump(mode="json"))
        logger.info(f"Reviewer configuration updated: {sorted(changes)}")
        return self.load()
