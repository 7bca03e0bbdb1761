"""Consensus decision over a complete set of reviews.

A decision is only reached once every assigned reviewer has submitted
exactly one review (quorum).  The outcome is a majority vote on the
recommendation.  What happens on an even split is a named policy,
:class:`TieBreak`; the default rejects on a tie, so acceptance needs a
strict majority.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Sequence

from ..core.models import Abstract, AbstractStatus, Recommendation, Review, utc_now


class TieBreak(str, Enum):
    """Outcome applied when accept and reject votes are equal."""

    REJECT_ON_TIE = "reject-on-tie"
    ACCEPT_ON_TIE = "accept-on-tie"


@dataclass(frozen=True)
class Decision:
    """Terminal outcome computed from a quorum of reviews."""

    status: AbstractStatus
    accept_count: int
    reject_count: int
    average_score: Optional[float]
    decided_at: datetime

    @property
    def accepted(self) -> bool:
        return self.status == AbstractStatus.ACCEPTED


def has_quorum(assigned_count: int, review_count: int) -> bool:
    return assigned_count > 0 and review_count == assigned_count


def average_total_score(reviews: Sequence[Review]) -> Optional[float]:
    """Mean of the review totals, ignoring reviews without scores."""
    totals = [r.total_score for r in reviews if r.total_score is not None]
    if not totals:
        return None
    return round(sum(totals) / len(totals), 2)


class ConsensusEngine:
    """Compute accept/reject once quorum is reached."""

    def __init__(self, tie_break: TieBreak = TieBreak.REJECT_ON_TIE) -> None:
        self.tie_break = tie_break

    def evaluate(self, abstract: Abstract, reviews: Sequence[Review]) -> Optional[Decision]:
        """Return the decision, or None while reviews are still pending.

        ``reviews`` must be the authoritative list read at evaluation
        time; only reviews from currently assigned reviewers count.
        """
        assigned = set(abstract.assigned_reviewer_ids)
        counted = [r for r in reviews if r.reviewer_id in assigned]
        if not has_quorum(len(assigned), len(counted)):
            return None

        accepts = sum(1 for r in counted if r.recommendation == Recommendation.ACCEPT)
        rejects = len(counted) - accepts
        if accepts > rejects:
            status = AbstractStatus.ACCEPTED
        elif accepts < rejects:
            status = AbstractStatus.REJECTED
        elif self.tie_break == TieBreak.ACCEPT_ON_TIE:
            status = AbstractStatus.ACCEPTED
        else:
            status = AbstractStatus.REJECTED

        return Decision(
            status=status,
            accept_count=accepts,
            reject_count=rejects,
            average_score=average_total_score(counted),
            decided_at=utc_now(),
        )
