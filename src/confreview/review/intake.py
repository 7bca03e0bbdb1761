"""Review intake: validate and record one reviewer's verdict."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Tuple

from ..core.errors import ConflictError, DuplicateReviewError, NotAssignedError, NotFoundError, ValidationError
from ..core.models import Recommendation, Review, ScoreCriterion
from ..io.store import ReviewStore
from ..utils.logging import get_logger
from .config import ReviewerConfig
from .lifecycle import AbstractLifecycle

logger = get_logger(__name__)


def parse_recommendation(value: Any, config: ReviewerConfig) -> Recommendation:
    candidate = value.value if isinstance(value, Recommendation) else value
    allowed = {r.value: r for r in config.enabled_recommendations}
    if not isinstance(candidate, str) or candidate not in allowed:
        raise ValidationError(
            f"Recommendation must be one of {sorted(allowed)}, got {value!r}"
        )
    return allowed[candidate]


def validate_scores(
    scores: Optional[Mapping[str, Any]], config: ReviewerConfig
) -> Tuple[Dict[ScoreCriterion, int], Optional[int]]:
    """Check scores against the enabled criteria and return them with their total."""
    if not scores:
        return {}, None
    enabled = config.enabled_criteria
    validated: Dict[ScoreCriterion, int] = {}
    for raw_key, raw_value in scores.items():
        try:
            criterion = ScoreCriterion(raw_key)
        except ValueError:
            raise ValidationError(f"Unknown scoring criterion: {raw_key}") from None
        if criterion not in enabled:
            raise ValidationError(f"Scoring criterion {criterion.value} is not enabled")
        if isinstance(raw_value, bool) or not isinstance(raw_value, (int, float)) or raw_value != int(raw_value):
            raise ValidationError(f"Score for {criterion.value} must be a whole number")
        value = int(raw_value)
        if not 1 <= value <= enabled[criterion]:
            raise ValidationError(
                f"Score for {criterion.value} must be between 1 and {enabled[criterion]}"
            )
        validated[criterion] = value
    return validated, sum(validated.values())


class ReviewIntake:
    """Enforce one review per assigned reviewer per abstract.

    Preconditions are checked in a fixed order, each with its own error:
    assignment membership, then duplicates, then input validation.
    Nothing is written unless all of them pass.
    """

    def __init__(self, store: ReviewStore, lifecycle: AbstractLifecycle) -> None:
        self.store = store
        self.lifecycle = lifecycle

    def _validate(
        self,
        recommendation: Any,
        comments: str,
        scores: Optional[Mapping[str, Any]],
        config: ReviewerConfig,
    ) -> Tuple[Recommendation, str, Dict[ScoreCriterion, int], Optional[int]]:
        verdict = parse_recommendation(recommendation, config)
        comments = (comments or "").strip()
        if verdict == Recommendation.REJECT and config.require_rejection_comment and not comments:
            raise ValidationError("A comment is required when recommending rejection")
        validated, total = validate_scores(scores, config)
        return verdict, comments, validated, total

    def submit_review(
        self,
        abstract_code: str,
        reviewer_id: str,
        recommendation: Any,
        comments: str,
        scores: Optional[Mapping[str, Any]],
        config: ReviewerConfig,
    ) -> Review:
        with self.store.transaction():
            abstract = self.lifecycle.get(abstract_code)
            if reviewer_id not in abstract.assigned_reviewer_ids:
                raise NotAssignedError(
                    f"Reviewer {reviewer_id} is not assigned to {abstract.abstract_code}"
                )
            if self.store.get_review(abstract.id, reviewer_id) is not None:
                raise DuplicateReviewError(
                    f"Reviewer {reviewer_id} has already reviewed {abstract.abstract_code}"
                )
            verdict, comments, validated, total = self._validate(recommendation, comments, scores, config)
            self.lifecycle.ensure_open(abstract)
            review = self.store.create_review(abstract, reviewer_id, verdict, comments, validated, total)
            self.lifecycle.record_review(abstract)
        logger.info(f"Review recorded for {abstract.abstract_code} by {reviewer_id}: {verdict.value}")
        return review

    def edit_review(
        self,
        abstract_code: str,
        reviewer_id: str,
        recommendation: Any,
        comments: str,
        scores: Optional[Mapping[str, Any]],
        config: ReviewerConfig,
    ) -> Review:
        """Replace a reviewer's own review; only allowed when review edits are enabled."""
        if not config.allow_review_edit:
            raise ConflictError("Editing submitted reviews is disabled")
        with self.store.transaction():
            abstract = self.lifecycle.get(abstract_code)
            if reviewer_id not in abstract.assigned_reviewer_ids:
                raise NotAssignedError(
                    f"Reviewer {reviewer_id} is not assigned to {abstract.abstract_code}"
                )
            existing = self.store.get_review(abstract.id, reviewer_id)
            if existing is None:
                raise NotFoundError(
                    f"No review by {reviewer_id} on {abstract.abstract_code} to edit"
                )
            verdict, comments, validated, total = self._validate(recommendation, comments, scores, config)
            self.lifecycle.ensure_open(abstract)
            review = self.store.replace_review(existing.id, verdict, comments, validated, total)
        logger.info(f"Review edited for {abstract.abstract_code} by {reviewer_id}: {verdict.value}")
        return review
