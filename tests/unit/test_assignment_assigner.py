"""Unit tests for rule-driven reviewer assignment against a real store."""

from confreview.assignment import AssignmentCursorStore, ReviewerAssigner
from confreview.core.models import AbstractStatus, AssignmentPolicy, AssignmentRule, Reviewer


class TestReviewerAssigner:
    """Assignment resolves a rule, selects reviewers and persists them."""

    def _new_abstract(self, store, make_draft, n: int, **kwargs):
        return store.create_abstract(make_draft(**kwargs), f"REG1-ABS-{n}")

    def test_round_robin_advances_cursor_by_selection(self, store, make_draft) -> None:
        store.save_rule(
            AssignmentRule(
                track="Oncology",
                reviewer_ids=["R1", "R2", "R3"],
                policy=AssignmentPolicy.ROUND_ROBIN,
                reviewer_count=2,
            )
        )
        assigner = ReviewerAssigner(store)

        first = assigner.assign(self._new_abstract(store, make_draft, 1))
        second = assigner.assign(self._new_abstract(store, make_draft, 2))

        assert first.reviewer_ids == ["R1", "R2"]
        assert second.reviewer_ids == ["R3", "R1"]
        assert AssignmentCursorStore(store).position("Oncology") == 4

    def test_cursors_are_per_track(self, store, make_draft) -> None:
        for track in ("Oncology", "Cardiology"):
            store.save_rule(
                AssignmentRule(
                    track=track,
                    reviewer_ids=["R1", "R2"],
                    policy=AssignmentPolicy.ROUND_ROBIN,
                    reviewer_count=1,
                )
            )
        assigner = ReviewerAssigner(store)
        a = assigner.assign(self._new_abstract(store, make_draft, 1, track="Oncology"))
        b = assigner.assign(self._new_abstract(store, make_draft, 2, track="Cardiology"))
        assert a.reviewer_ids == ["R1"]
        assert b.reviewer_ids == ["R1"]

    def test_load_based_prefers_idle_reviewers(self, store, make_draft) -> None:
        store.save_rule(AssignmentRule(track="Oncology", reviewer_ids=["R1", "R2", "R3"], reviewer_count=1))
        assigner = ReviewerAssigner(store, default_policy=AssignmentPolicy.LOAD_BASED)
        picks = [assigner.assign(self._new_abstract(store, make_draft, n)).reviewer_ids[0] for n in (1, 2, 3)]
        assert sorted(picks) == ["R1", "R2", "R3"]

    def test_terminal_abstracts_do_not_count_as_load(self, store, make_draft) -> None:
        store.save_rule(AssignmentRule(track="Oncology", reviewer_ids=["R1", "R2"], reviewer_count=1))
        assigner = ReviewerAssigner(store)
        decided = self._new_abstract(store, make_draft, 1)
        store.add_assigned_reviewers(decided.id, ["R1"])
        store.update_abstract(decided.id, status=AbstractStatus.ACCEPTED)
        selection = assigner.assign(self._new_abstract(store, make_draft, 2))
        assert selection.reviewer_ids == ["R1"]

    def test_empty_pool_leaves_abstract_unassigned(self, store, make_draft) -> None:
        """No reviewers is a warning, not an error, and the cursor stays put."""
        store.save_rule(
            AssignmentRule(track="Oncology", reviewer_ids=[], policy=AssignmentPolicy.ROUND_ROBIN)
        )
        abstract = self._new_abstract(store, make_draft, 1)
        selection = ReviewerAssigner(store).assign(abstract)
        assert selection.empty
        assert store.assigned_reviewer_ids(abstract.id) == []
        assert AssignmentCursorStore(store).position("Oncology") == 0

    def test_default_pool_is_active_directory(self, store, make_draft, reviewers) -> None:
        store.upsert_reviewer(Reviewer(reviewer_id="R2", active=False))
        abstract = self._new_abstract(store, make_draft, 1)
        selection = ReviewerAssigner(store, default_count=5).assign(abstract)
        assert sorted(selection.reviewer_ids) == ["R1", "R3"]

    def test_inactive_reviewers_dropped_from_rule_pool(self, store, make_draft) -> None:
        store.upsert_reviewer(Reviewer(reviewer_id="R1", active=False))
        store.save_rule(AssignmentRule(track="Oncology", reviewer_ids=["R1", "R2"], reviewer_count=2))
        selection = ReviewerAssigner(store).assign(self._new_abstract(store, make_draft, 1))
        assert selection.reviewer_ids == ["R2"]
