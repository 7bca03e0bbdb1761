"""Automatic reviewer assignment for newly submitted abstracts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..core.models import Abstract, AssignmentPolicy, AssignmentRule
from ..io.store import ReviewStore
from ..utils.logging import get_logger
from .cursor import AssignmentCursorStore
from .resolver import AssignmentRuleResolver
from .selector import LoadBasedSelector, RoundRobinSelector, Selection, clamp_count

logger = get_logger(__name__)


@dataclass(frozen=True)
class AssignmentPlan:
    """Pool, policy and count that apply to one abstract."""

    rule: Optional[AssignmentRule]
    pool: List[str]
    policy: AssignmentPolicy
    reviewer_count: int


class ReviewerAssigner:
    """Resolve the rule for an abstract, pick reviewers and record them.

    When no rule matches, the pool is every active reviewer in the
    directory.  The round-robin cursor is reserved inside the same
    transaction that records the assignment.
    """

    def __init__(
        self,
        store: ReviewStore,
        default_policy: AssignmentPolicy = AssignmentPolicy.LOAD_BASED,
        default_count: int = 2,
    ) -> None:
        self.store = store
        self.default_policy = default_policy
        self.default_count = default_count
        self.cursors = AssignmentCursorStore(store)
        self.load_based = LoadBasedSelector(store.open_assignment_counts)
        self.round_robin = RoundRobinSelector()

    def plan(self, abstract: Abstract) -> AssignmentPlan:
        resolver = AssignmentRuleResolver(self.store.list_rules())
        rule = resolver.find_rule(abstract.track, abstract.category, abstract.subcategory)
        if rule is not None:
            inactive = {r.reviewer_id for r in self.store.list_reviewers() if not r.active}
            pool = [rid for rid in rule.reviewer_ids if rid not in inactive]
            policy = rule.policy or self.default_policy
            count = rule.reviewer_count or self.default_count
        else:
            pool = [r.reviewer_id for r in self.store.list_reviewers(active_only=True)]
            policy = self.default_policy
            count = self.default_count
        return AssignmentPlan(rule=rule, pool=pool, policy=policy, reviewer_count=count)

    def assign(self, abstract: Abstract) -> Selection:
        """Select reviewers for ``abstract`` and persist them atomically."""
        with self.store.transaction():
            plan = self.plan(abstract)
            if plan.policy == AssignmentPolicy.ROUND_ROBIN:
                step = clamp_count(plan.pool, plan.reviewer_count)
                reservation = self.cursors.reserve(abstract.track, step)
                selection = self.round_robin.select(plan.pool, plan.reviewer_count, reservation.start)
            else:
                selection = self.load_based.select(plan.pool, plan.reviewer_count)
            if not selection.empty:
                self.store.add_assigned_reviewers(abstract.id, selection.reviewer_ids)

        if selection.empty:
            logger.warning(
                f"No reviewers available for {abstract.abstract_code} "
                f"(track={abstract.track}); left unassigned"
            )
        else:
            logger.info(
                f"Assigned {abstract.abstract_code} to {selection.reviewer_ids} "
                f"via {selection.policy.value}"
            )
        return selection
