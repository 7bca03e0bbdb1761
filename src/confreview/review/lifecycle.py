"""Abstract lifecycle state machine.

States::

    submitted -> under-review -> accepted | rejected -> final-submitted

``final-submitted`` is reached through the final-submission stage and
is never entered here.  Review intake on a terminal abstract is a
:class:`ConflictError`.  Reviewer add/remove primitives never trigger
consensus evaluation; only a new review does.
"""

from __future__ import annotations

from typing import Iterable, Optional

from ..assignment.assigner import ReviewerAssigner
from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..core.ids import generate_abstract_code, normalize_reviewer_ids
from ..core.models import (
    Abstract,
    AbstractDraft,
    AbstractStatus,
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    utc_now,
)
from ..io.store import ReviewStore
from ..utils.logging import get_logger
from .consensus import Decision

logger = get_logger(__name__)


class AbstractLifecycle:
    """Owns every status transition of an abstract."""

    def __init__(
        self,
        store: ReviewStore,
        assigner: ReviewerAssigner,
        max_abstracts_per_user: int = 5,
    ) -> None:
        self.store = store
        self.assigner = assigner
        self.max_abstracts_per_user = max_abstracts_per_user

    def get(self, abstract_code: str) -> Abstract:
        abstract = self.store.get_abstract_by_code(abstract_code)
        if abstract is None:
            raise NotFoundError(f"Abstract {abstract_code} not found")
        return abstract

    def reload(self, abstract: Abstract) -> Abstract:
        fresh = self.store.get_abstract(abstract.id)
        if fresh is None:
            raise NotFoundError(f"Abstract {abstract.abstract_code} not found")
        return fresh

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, draft: AbstractDraft) -> Abstract:
        """Create the abstract and assign reviewers in one operation.

        The abstract moves to ``under-review`` only if at least one
        reviewer was assigned; otherwise it stays ``submitted``.
        """
        with self.store.transaction():
            if self.store.count_abstracts_by_submitter(draft.submitter_id) >= self.max_abstracts_per_user:
                raise ValidationError(
                    f"Submission limit of {self.max_abstracts_per_user} abstracts reached"
                )
            number = self.store.count_abstracts_by_registration(draft.registration_id) + 1
            abstract = self.store.create_abstract(
                draft, generate_abstract_code(draft.registration_id, number)
            )
            selection = self.assigner.assign(abstract)
            if not selection.empty:
                self.store.transition_status(
                    abstract.id, [AbstractStatus.SUBMITTED], AbstractStatus.UNDER_REVIEW
                )
        logger.info(f"Abstract {abstract.abstract_code} submitted by {draft.submitter_id}")
        return self.reload(abstract)

    # ------------------------------------------------------------------
    # Review intake
    # ------------------------------------------------------------------

    def ensure_open(self, abstract: Abstract) -> None:
        if abstract.status in TERMINAL_STATUSES:
            raise ConflictError(
                f"Abstract {abstract.abstract_code} is already {abstract.status.value}"
            )

    def record_review(self, abstract: Abstract) -> None:
        """Promote ``submitted`` to ``under-review`` on the first review."""
        self.ensure_open(abstract)
        self.store.transition_status(
            abstract.id, [AbstractStatus.SUBMITTED], AbstractStatus.UNDER_REVIEW
        )

    def apply_decision(self, abstract: Abstract, decision: Decision) -> bool:
        """Move an open abstract to its terminal status.

        Returns False when another request already decided it, so the
        caller does not notify twice.
        """
        changed = self.store.transition_status(
            abstract.id,
            OPEN_STATUSES,
            decision.status,
            decision_at=decision.decided_at,
            average_score=decision.average_score,
        )
        if changed:
            logger.info(
                f"Abstract {abstract.abstract_code} {decision.status.value} "
                f"({decision.accept_count} accept / {decision.reject_count} reject)"
            )
        return changed

    # ------------------------------------------------------------------
    # Administrative primitives
    # ------------------------------------------------------------------

    def add_reviewers(self, abstract: Abstract, reviewer_ids: Iterable[str]) -> int:
        return self.store.add_assigned_reviewers(abstract.id, normalize_reviewer_ids(reviewer_ids))

    def remove_reviewers(self, abstract: Abstract, reviewer_ids: Iterable[str]) -> int:
        return self.store.remove_assigned_reviewers(abstract.id, normalize_reviewer_ids(reviewer_ids))

    def override(
        self,
        abstract: Abstract,
        status: AbstractStatus,
        approved_for: Optional[str] = None,
    ) -> Abstract:
        """Set status directly, bypassing consensus and notification."""
        if approved_for is not None and status != AbstractStatus.ACCEPTED:
            raise ValidationError("approved_for can only be set on accepted abstracts")
        decided = status in (AbstractStatus.ACCEPTED, AbstractStatus.REJECTED)
        fields = {
            "status": status,
            "decision_at": utc_now() if decided else abstract.decision_at,
        }
        if status == AbstractStatus.ACCEPTED:
            fields["approved_for"] = approved_for if approved_for is not None else abstract.approved_for
        elif status != AbstractStatus.FINAL_SUBMITTED:
            fields["approved_for"] = None
        with self.store.transaction():
            self.store.update_abstract(abstract.id, **fields)
        logger.info(f"Abstract {abstract.abstract_code} status overridden to {status.value}")
        return self.reload(abstract)
