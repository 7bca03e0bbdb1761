"""Integration tests driving the review service from submission to notification."""

import threading

from confreview.core.errors import ConflictError, NotFoundError, ValidationError
from confreview.core.models import AbstractStatus, AssignmentPolicy, AssignmentRule, Reviewer
from confreview.io.store import ReviewStore
from confreview.service import AutoAssignResult, ReviewService

import pytest


def _review_all(service, code, verdicts):
    results = []
    for reviewer_id, verdict in verdicts:
        comments = "" if verdict == "accept" else "Insufficient evidence"
        results.append(service.submit_review(code, reviewer_id, verdict, comments))
    return results


class TestDecisionFlow:
    """Reviews reach quorum, consensus decides and the author is notified once."""

    def test_accept_by_majority(self, service, outbox, store, make_draft) -> None:
        store.save_rule(
            AssignmentRule(track="Oncology", reviewer_ids=["R1", "R2", "R3"], reviewer_count=3)
        )
        abstract = service.submit_abstract(make_draft())
        assert abstract.assigned_reviewer_ids == ["R1", "R2", "R3"]

        first, second, third = _review_all(
            service, abstract.abstract_code, [("R1", "accept"), ("R2", "reject"), ("R3", "accept")]
        )
        assert first.decision is None and second.decision is None
        assert third.abstract.status == AbstractStatus.ACCEPTED
        assert third.decision.accept_count == 2
        assert len(outbox.sent) == 1
        assert "Accepted" in outbox.sent[0].subject

    def test_tie_rejects(self, service, outbox, reviewers, make_draft) -> None:
        abstract = service.submit_abstract(make_draft())
        last = _review_all(service, abstract.abstract_code, [("R1", "accept"), ("R2", "reject")])[-1]
        assert last.abstract.status == AbstractStatus.REJECTED
        assert "has not been selected" in outbox.sent[0].body

    def test_average_score_recorded(self, service, reviewers, make_draft) -> None:
        abstract = service.submit_abstract(make_draft())
        service.submit_review(abstract.abstract_code, "R1", "accept", "", {"originality": 8, "scientificImpact": 6})
        result = service.submit_review(abstract.abstract_code, "R2", "accept", "", {"originality": 9})
        assert result.abstract.average_score == 11.5

    def test_review_after_decision_conflicts(self, service, reviewers, make_draft) -> None:
        abstract = service.submit_abstract(make_draft())
        _review_all(service, abstract.abstract_code, [("R1", "accept"), ("R2", "accept")])
        service.assign_reviewers([abstract.abstract_code], ["R3"])
        with pytest.raises(ConflictError):
            service.submit_review(abstract.abstract_code, "R3", "accept")

    def test_reevaluation_is_idempotent(self, service, outbox, reviewers, make_draft) -> None:
        abstract = service.submit_abstract(make_draft())
        _review_all(service, abstract.abstract_code, [("R1", "reject"), ("R2", "reject")])
        decided, decision = service.evaluate_consensus(abstract.abstract_code)
        assert decided.status == AbstractStatus.REJECTED
        assert decision is None
        assert len(outbox.sent) == 1

    def test_removing_a_pending_reviewer_completes_quorum_on_next_evaluation(
        self, service, outbox, reviewers, make_draft
    ) -> None:
        abstract = service.submit_abstract(make_draft())
        service.submit_review(abstract.abstract_code, "R1", "accept")
        assert service.unassign_reviewers([abstract.abstract_code], ["R2"]) == 1
        assert service.get_abstract(abstract.abstract_code).status == AbstractStatus.UNDER_REVIEW

        decided, decision = service.evaluate_consensus(abstract.abstract_code)
        assert decided.status == AbstractStatus.ACCEPTED
        assert decision.accept_count == 1
        assert len(outbox.sent) == 1

    def test_edit_review_can_complete_decision(self, service, reviewers, make_draft) -> None:
        service.update_reviewer_config({"allow_review_edit": True})
        abstract = service.submit_abstract(make_draft())
        service.submit_review(abstract.abstract_code, "R1", "accept")
        edited = service.edit_review(abstract.abstract_code, "R1", "reject", "On reflection, no")
        assert edited.decision is None
        result = service.submit_review(abstract.abstract_code, "R2", "accept")
        assert result.abstract.status == AbstractStatus.REJECTED


class TestConcurrentReviews:
    """Final reviews arriving together on separate connections."""

    def test_simultaneous_final_reviews_decide_once(self, store, outbox, reviewers, make_draft) -> None:
        first = ReviewService(store, transport=outbox)
        other_store = ReviewStore(store.db_path)
        second = ReviewService(other_store, transport=outbox)
        abstract = first.submit_abstract(make_draft())
        assert abstract.assigned_reviewer_ids == ["R1", "R2"]

        barrier = threading.Barrier(2)
        results, errors = [], []

        def _review(service, reviewer_id):
            barrier.wait()
            try:
                results.append(service.submit_review(abstract.abstract_code, reviewer_id, "accept"))
            except Exception as exc:
                errors.append(exc)

        threads = [
            threading.Thread(target=_review, args=(first, "R1")),
            threading.Thread(target=_review, args=(second, "R2")),
        ]
        try:
            for t in threads:
                t.start()
            for t in threads:
                t.join(timeout=30)
        finally:
            other_store.close()

        assert errors == []
        assert len(results) == 2
        assert sum(1 for r in results if r.decision is not None) == 1
        assert len(outbox.sent) == 1
        assert first.get_abstract(abstract.abstract_code).status == AbstractStatus.ACCEPTED


class TestNotificationModes:
    def test_failed_send_keeps_decision(self, store, reviewers, make_draft) -> None:
        from confreview.core.errors import TransportError

        class DownTransport:
            def send(self, to, subject, body):
                raise TransportError("SMTP relay refused connection")

        service = ReviewService(store, transport=DownTransport())
        abstract = service.submit_abstract(make_draft())
        service.submit_review(abstract.abstract_code, "R1", "accept")
        result = service.submit_review(abstract.abstract_code, "R2", "accept")
        assert result.abstract.status == AbstractStatus.ACCEPTED
        assert result.warnings == ["SMTP relay refused connection"]

    def test_manual_mode_queues_then_flushes(self, service, outbox, reviewers, make_draft) -> None:
        service.update_reviewer_config({"email_notification_mode": "manual"})
        abstract = service.submit_abstract(make_draft())
        result = _review_all(service, abstract.abstract_code, [("R1", "accept"), ("R2", "accept")])[-1]
        assert result.notification.queued
        assert outbox.sent == []
        assert len(service.pending_emails()) == 1

        flushed = service.flush_pending_emails()
        assert flushed.sent_count == 1
        assert service.pending_emails() == []
        assert len(outbox.sent) == 1


class TestAdministration:
    def test_bulk_assign_counts_changed_abstracts(self, service, reviewers, make_draft) -> None:
        a = service.submit_abstract(make_draft())
        b = service.submit_abstract(make_draft())
        # Load-based: a gets R1 and R2, b gets R3 and R1
        assert service.assign_reviewers([a.abstract_code, b.abstract_code], ["R1"]) == 0
        assert service.assign_reviewers([a.abstract_code, b.abstract_code], ["R2", "R3"]) == 2
        assert service.get_abstract(b.abstract_code).assigned_reviewer_ids == ["R3", "R1", "R2"]

    def test_assign_unknown_reviewer(self, service, reviewers, make_draft) -> None:
        abstract = service.submit_abstract(make_draft())
        with pytest.raises(NotFoundError):
            service.assign_reviewers([abstract.abstract_code], ["R404"])

    def test_auto_assign_unassigned(self, service, store, make_draft) -> None:
        first = service.submit_abstract(make_draft())
        second = service.submit_abstract(make_draft())
        store.upsert_reviewer(Reviewer(reviewer_id="R1"))
        store.upsert_reviewer(Reviewer(reviewer_id="R2"))

        result = service.auto_assign_unassigned()
        assert result == AutoAssignResult(assigned_count=2, reviewer_count=2)
        assert service.get_abstract(first.abstract_code).assigned_reviewer_ids == ["R1"]
        assert service.get_abstract(second.abstract_code).assigned_reviewer_ids == ["R2"]
        assert service.get_abstract(first.abstract_code).status == AbstractStatus.UNDER_REVIEW

    def test_auto_assign_without_reviewers(self, service, make_draft) -> None:
        service.submit_abstract(make_draft())
        with pytest.raises(ValidationError):
            service.auto_assign_unassigned()

    def test_override_validates_approval_option(self, service, make_draft) -> None:
        abstract = service.submit_abstract(make_draft())
        with pytest.raises(ValidationError):
            service.set_status(abstract.abstract_code, AbstractStatus.ACCEPTED, "keynote")
        updated = service.set_status(abstract.abstract_code, AbstractStatus.ACCEPTED, "podium")
        assert updated.approved_for == "podium"

    def test_override_does_not_notify(self, service, outbox, make_draft) -> None:
        abstract = service.submit_abstract(make_draft())
        service.set_status(abstract.abstract_code, AbstractStatus.REJECTED)
        assert outbox.sent == []

    def test_round_robin_rule_via_service(self, service, store, make_draft) -> None:
        service.save_rule(
            AssignmentRule(
                track="Oncology",
                reviewer_ids=["R1", "R2", "R3"],
                policy=AssignmentPolicy.ROUND_ROBIN,
                reviewer_count=2,
            )
        )
        a = service.submit_abstract(make_draft())
        b = service.submit_abstract(make_draft())
        assert a.assigned_reviewer_ids == ["R1", "R2"]
        assert b.assigned_reviewer_ids == ["R3", "R1"]
