"""Review service: one entry point per operation exposed to the web layer and CLI.

Each public method is a request-scoped unit of work.  The reviewer
configuration is loaded once per call and passed down explicitly.
Transient store errors are retried as a whole by ``store_retry``;
workflow errors propagate to the caller untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from .assignment.assigner import ReviewerAssigner
from .assignment.selector import naive_round_robin
from .config.settings import Settings, settings as default_settings
from .core.errors import NotFoundError, ValidationError
from .core.ids import normalize_reviewer_ids
from .core.models import (
    Abstract,
    AbstractDraft,
    AbstractStatus,
    AssignmentPolicy,
    AssignmentRule,
    FlushResult,
    NotificationMode,
    OPEN_STATUSES,
    PendingEmail,
    Review,
    Reviewer,
)
from .io.store import ReviewStore, store_retry
from .notify.scheduler import NotificationOutcome, NotificationScheduler
from .notify.transport import EmailTransport, build_transport
from .review.config import ReviewerConfig, ReviewerConfigStore
from .review.consensus import ConsensusEngine, Decision, TieBreak
from .review.intake import ReviewIntake
from .review.lifecycle import AbstractLifecycle
from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ReviewSubmission:
    """Result of submitting or editing a review."""

    review: Review
    abstract: Abstract
    decision: Optional[Decision] = None
    notification: Optional[NotificationOutcome] = None

    @property
    def warnings(self) -> List[str]:
        if self.notification and self.notification.warning:
            return [self.notification.warning]
        return []


@dataclass
class AutoAssignResult:
    assigned_count: int
    reviewer_count: int


class ReviewService:
    """Composes assignment, lifecycle, intake, consensus and notification."""

    def __init__(
        self,
        store: ReviewStore,
        transport: Optional[EmailTransport] = None,
        settings: Settings = default_settings,
        tie_break: TieBreak = TieBreak.REJECT_ON_TIE,
    ) -> None:
        self.store = store
        self.settings = settings
        self.config_store = ReviewerConfigStore(store)
        self.assigner = ReviewerAssigner(
            store,
            default_policy=AssignmentPolicy(settings.assignment_policy),
            default_count=settings.reviewers_per_abstract_default,
        )
        self.lifecycle = AbstractLifecycle(store, self.assigner, settings.max_abstracts_per_user)
        self.intake = ReviewIntake(store, self.lifecycle)
        self.consensus = ConsensusEngine(tie_break)
        self.notifier = NotificationScheduler(
            store, transport or build_transport(settings), settings.dashboard_url
        )

    # ------------------------------------------------------------------
    # Abstracts
    # ------------------------------------------------------------------

    @store_retry
    def submit_abstract(self, draft: AbstractDraft) -> Abstract:
        return self.lifecycle.submit(draft)

    def get_abstract(self, abstract_code: str) -> Abstract:
        return self.lifecycle.get(abstract_code)

    def list_reviews(self, abstract_code: str) -> List[Review]:
        return self.store.list_reviews(self.lifecycle.get(abstract_code).id)

    # ------------------------------------------------------------------
    # Reviews and consensus
    # ------------------------------------------------------------------

    @store_retry
    def submit_review(
        self,
        abstract_code: str,
        reviewer_id: str,
        recommendation: Any,
        comments: str = "",
        scores: Optional[Mapping[str, Any]] = None,
    ) -> ReviewSubmission:
        config = self.config_store.load()
        with self.store.transaction():
            review = self.intake.submit_review(
                abstract_code, reviewer_id, recommendation, comments, scores, config
            )
            abstract, decision, outcome = self._decide(abstract_code, config)
        if decision is not None and outcome is None:
            outcome = self.notifier.on_decision(abstract, config)
        return ReviewSubmission(review=review, abstract=abstract, decision=decision, notification=outcome)

    @store_retry
    def edit_review(
        self,
        abstract_code: str,
        reviewer_id: str,
        recommendation: Any,
        comments: str = "",
        scores: Optional[Mapping[str, Any]] = None,
    ) -> ReviewSubmission:
        config = self.config_store.load()
        with self.store.transaction():
            review = self.intake.edit_review(
                abstract_code, reviewer_id, recommendation, comments, scores, config
            )
            abstract, decision, outcome = self._decide(abstract_code, config)
        if decision is not None and outcome is None:
            outcome = self.notifier.on_decision(abstract, config)
        return ReviewSubmission(review=review, abstract=abstract, decision=decision, notification=outcome)

    @store_retry
    def evaluate_consensus(self, abstract_code: str) -> Tuple[Abstract, Optional[Decision]]:
        """Re-run consensus for an abstract. A decided abstract is left as is and not re-notified."""
        config = self.config_store.load()
        with self.store.transaction():
            abstract, decision, outcome = self._decide(abstract_code, config)
        if decision is not None and outcome is None:
            self.notifier.on_decision(abstract, config)
        return abstract, decision

    def _decide(
        self, abstract_code: str, config: ReviewerConfig
    ) -> Tuple[Abstract, Optional[Decision], Optional[NotificationOutcome]]:
        """Evaluate and apply consensus inside the caller's transaction.

        Manual-mode queueing happens in the same transaction as the
        decision; immediate sends are left to the caller after commit.
        """
        abstract = self.lifecycle.get(abstract_code)
        if abstract.status not in OPEN_STATUSES:
            return abstract, None, None
        reviews = self.store.list_reviews(abstract.id)
        decision = self.consensus.evaluate(abstract, reviews)
        if decision is None or not self.lifecycle.apply_decision(abstract, decision):
            return abstract, None, None
        abstract = self.lifecycle.reload(abstract)
        outcome = None
        if config.email_notification_mode == NotificationMode.MANUAL:
            outcome = self.notifier.on_decision(abstract, config)
        return abstract, decision, outcome

    # ------------------------------------------------------------------
    # Administrative assignment
    # ------------------------------------------------------------------

    def _abstracts_for(self, abstract_codes: Iterable[str]) -> List[Abstract]:
        codes = list(dict.fromkeys(abstract_codes))
        if not codes:
            raise ValidationError("Abstract codes are required")
        return [self.lifecycle.get(code) for code in codes]

    def _known_reviewers(self, reviewer_ids: Iterable[str]) -> List[str]:
        ids = normalize_reviewer_ids(reviewer_ids)
        if not ids:
            raise ValidationError("Reviewer ids are required")
        missing = [rid for rid in ids if self.store.get_reviewer(rid) is None]
        if missing:
            raise NotFoundError(f"Unknown reviewers: {missing}")
        return ids

    @store_retry
    def assign_reviewers(self, abstract_codes: Iterable[str], reviewer_ids: Iterable[str]) -> int:
        """Add reviewers to each abstract. Returns how many abstracts changed."""
        updated = 0
        with self.store.transaction():
            ids = self._known_reviewers(reviewer_ids)
            for abstract in self._abstracts_for(abstract_codes):
                if self.lifecycle.add_reviewers(abstract, ids):
                    updated += 1
        logger.info(f"Assigned {ids} to {updated} abstracts")
        return updated

    @store_retry
    def unassign_reviewers(self, abstract_codes: Iterable[str], reviewer_ids: Iterable[str]) -> int:
        """Remove reviewers from each abstract. Returns how many abstracts changed."""
        updated = 0
        with self.store.transaction():
            ids = normalize_reviewer_ids(reviewer_ids)
            if not ids:
                raise ValidationError("Reviewer ids are required")
            for abstract in self._abstracts_for(abstract_codes):
                if self.lifecycle.remove_reviewers(abstract, ids):
                    updated += 1
        logger.info(f"Unassigned {ids} from {updated} abstracts")
        return updated

    @store_retry
    def auto_assign_unassigned(self) -> AutoAssignResult:
        """Give every open, unassigned abstract one active reviewer by index modulo."""
        with self.store.transaction():
            reviewers = [r.reviewer_id for r in self.store.list_reviewers(active_only=True)]
            if not reviewers:
                raise ValidationError("No active reviewers found")
            pending = self.store.find_abstracts(statuses=OPEN_STATUSES, unassigned_only=True)
            plan = naive_round_robin([a.id for a in pending], reviewers)
            for abstract in pending:
                self.store.add_assigned_reviewers(abstract.id, [plan[abstract.id]])
                self.store.transition_status(
                    abstract.id, [AbstractStatus.SUBMITTED], AbstractStatus.UNDER_REVIEW
                )
        logger.info(f"Auto-assigned {len(plan)} abstracts to {len(reviewers)} reviewers")
        return AutoAssignResult(
            assigned_count=len(plan),
            reviewer_count=len(reviewers),
        )

    @store_retry
    def set_status(
        self,
        abstract_code: str,
        status: AbstractStatus,
        approved_for: Optional[str] = None,
    ) -> Abstract:
        """Administrative override of status and presentation category."""
        config = self.config_store.load()
        if approved_for is not None and approved_for not in config.enabled_approval_keys:
            raise ValidationError(
                f"approved_for must be one of {config.enabled_approval_keys}"
            )
        return self.lifecycle.override(self.lifecycle.get(abstract_code), status, approved_for)

    # ------------------------------------------------------------------
    # Pending emails
    # ------------------------------------------------------------------

    def pending_emails(self) -> List[PendingEmail]:
        return self.store.list_pending_emails()

    def flush_pending_emails(self) -> FlushResult:
        return self.notifier.flush(self.config_store.load())

    # ------------------------------------------------------------------
    # Configuration, directory and rules
    # ------------------------------------------------------------------

    def reviewer_config(self) -> ReviewerConfig:
        return self.config_store.load()

    @store_retry
    def update_reviewer_config(self, changes: Dict[str, Any]) -> ReviewerConfig:
        return self.config_store.update(changes)

    def register_reviewer(self, reviewer: Reviewer) -> Reviewer:
        return self.store.upsert_reviewer(reviewer)

    def list_reviewers(self, active_only: bool = False) -> List[Reviewer]:
        return self.store.list_reviewers(active_only=active_only)

    def save_rule(self, rule: AssignmentRule) -> AssignmentRule:
        return self.store.save_rule(rule)

    def list_rules(self) -> List[AssignmentRule]:
        return self.store.list_rules()
