"""Unit tests for review intake preconditions."""

import pytest

from confreview.core.errors import (
    ConflictError,
    DuplicateReviewError,
    NotAssignedError,
    NotFoundError,
    ValidationError,
)
from confreview.core.models import AbstractStatus, Recommendation, ScoreCriterion
from confreview.review.config import merge_config
from confreview.review.intake import parse_recommendation, validate_scores


@pytest.fixture
def config():
    return merge_config({})


@pytest.fixture
def abstract(service, reviewers, make_draft):
    """An abstract under review by R1 and R2."""
    return service.submit_abstract(make_draft())


class TestParseRecommendation:
    def test_exact_value(self, config) -> None:
        assert parse_recommendation("accept", config) == Recommendation.ACCEPT
        assert parse_recommendation(Recommendation.REJECT, config) == Recommendation.REJECT

    @pytest.mark.parametrize("value", ["ACCEPT", "Accept", " accept "])
    def test_no_case_or_whitespace_folding(self, config, value) -> None:
        """Only the canonical lower-case values are accepted."""
        with pytest.raises(ValidationError):
            parse_recommendation(value, config)

    def test_unknown_value(self, config) -> None:
        with pytest.raises(ValidationError):
            parse_recommendation("maybe", config)


class TestValidateScores:
    def test_total_is_sum(self, config) -> None:
        scores, total = validate_scores({"originality": 7, "scientificImpact": 8}, config)
        assert scores == {ScoreCriterion.ORIGINALITY: 7, ScoreCriterion.SCIENTIFIC_IMPACT: 8}
        assert total == 15

    def test_no_scores(self, config) -> None:
        assert validate_scores(None, config) == ({}, None)

    @pytest.mark.parametrize("value", [0, 11, 7.5, "7", True])
    def test_out_of_range_or_not_whole(self, config, value) -> None:
        with pytest.raises(ValidationError):
            validate_scores({"originality": value}, config)

    def test_unknown_criterion(self, config) -> None:
        with pytest.raises(ValidationError):
            validate_scores({"novelty": 5}, config)

    def test_disabled_criterion(self) -> None:
        config = merge_config(
            {"scoring_criteria": [{"key": "originality", "label": "O", "max_score": 5, "enabled": False}]}
        )
        with pytest.raises(ValidationError):
            validate_scores({"originality": 3}, config)


class TestReviewIntake:
    """Errors come in a fixed order and nothing is written on failure."""

    def test_records_review(self, service, abstract, config) -> None:
        review = service.intake.submit_review(abstract.abstract_code, "R1", "accept", "", None, config)
        assert review.reviewer_id == "R1"
        assert review.track == abstract.track
        assert service.store.count_reviews(abstract.id) == 1

    def test_not_assigned(self, service, abstract, config) -> None:
        with pytest.raises(NotAssignedError):
            service.intake.submit_review(abstract.abstract_code, "R3", "accept", "", None, config)
        assert service.store.count_reviews(abstract.id) == 0

    def test_unknown_abstract(self, service, config) -> None:
        with pytest.raises(NotFoundError):
            service.intake.submit_review("NOPE-ABS-1", "R1", "accept", "", None, config)

    def test_duplicate_before_validation(self, service, abstract, config) -> None:
        """A second review is a duplicate even when its input is also invalid."""
        service.intake.submit_review(abstract.abstract_code, "R1", "accept", "", None, config)
        with pytest.raises(DuplicateReviewError):
            service.intake.submit_review(abstract.abstract_code, "R1", "reject", "", None, config)
        assert service.store.count_reviews(abstract.id) == 1

    def test_not_assigned_before_validation(self, service, abstract, config) -> None:
        with pytest.raises(NotAssignedError):
            service.intake.submit_review(abstract.abstract_code, "R3", "bogus", "", None, config)

    def test_rejection_needs_comment(self, service, abstract, config) -> None:
        with pytest.raises(ValidationError):
            service.intake.submit_review(abstract.abstract_code, "R1", "reject", "   ", None, config)
        assert service.store.count_reviews(abstract.id) == 0

    def test_rejection_comment_optional_when_disabled(self, service, abstract) -> None:
        config = merge_config({"require_rejection_comment": False})
        review = service.intake.submit_review(abstract.abstract_code, "R1", "reject", "", None, config)
        assert review.recommendation == Recommendation.REJECT

    def test_terminal_abstract(self, service, abstract, config) -> None:
        service.store.update_abstract(abstract.id, status=AbstractStatus.REJECTED)
        with pytest.raises(ConflictError):
            service.intake.submit_review(abstract.abstract_code, "R1", "accept", "", None, config)
        assert service.store.count_reviews(abstract.id) == 0


class TestEditReview:
    def test_disabled_by_default(self, service, abstract, config) -> None:
        service.intake.submit_review(abstract.abstract_code, "R1", "accept", "", None, config)
        with pytest.raises(ConflictError):
            service.intake.edit_review(abstract.abstract_code, "R1", "reject", "changed", None, config)

    def test_replaces_own_review(self, service, abstract) -> None:
        config = merge_config({"allow_review_edit": True})
        service.intake.submit_review(abstract.abstract_code, "R1", "accept", "", None, config)
        edited = service.intake.edit_review(
            abstract.abstract_code, "R1", "reject", "changed my mind", {"originality": 2}, config
        )
        assert edited.recommendation == Recommendation.REJECT
        assert edited.total_score == 2
        assert edited.updated_at is not None
        assert service.store.count_reviews(abstract.id) == 1

    def test_nothing_to_edit(self, service, abstract) -> None:
        config = merge_config({"allow_review_edit": True})
        with pytest.raises(NotFoundError):
            service.intake.edit_review(abstract.abstract_code, "R1", "accept", "", None, config)
