"""Reviewer selection policies.

Two interchangeable policies pick reviewers from a rule's candidate
pool:

* :class:`LoadBasedSelector` picks the least-loaded reviewers, where
  load is the number of open (non-terminal) abstracts already assigned.
* :class:`RoundRobinSelector` walks the pool from a persisted per-track
  cursor, wrapping around.

:func:`naive_round_robin` is the separate, simpler variant used by the
bulk "assign every unassigned abstract" action: plain index-modulo over
all active reviewers, one reviewer per abstract, no cursor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from ..core.models import AssignmentPolicy


@dataclass(frozen=True)
class Selection:
    """Reviewers picked by a policy and, for round robin, the new cursor."""

    reviewer_ids: List[str]
    policy: AssignmentPolicy
    next_cursor: Optional[int] = None

    @property
    def empty(self) -> bool:
        return not self.reviewer_ids


def clamp_count(pool: Sequence[str], desired_count: int) -> int:
    """Never select more reviewers than the pool holds, nor fewer than zero."""
    return max(0, min(desired_count, len(pool)))


class LoadBasedSelector:
    """Pick the reviewers with the fewest open assignments.

    Ties are broken by the reviewer's position in the pool.
    """

    def __init__(self, load_counter: Callable[[Sequence[str]], Mapping[str, int]]) -> None:
        self._load_counter = load_counter

    def select(self, pool: Sequence[str], desired_count: int) -> Selection:
        count = clamp_count(pool, desired_count)
        if count == 0:
            return Selection(reviewer_ids=[], policy=AssignmentPolicy.LOAD_BASED)
        loads: Dict[str, int] = dict(self._load_counter(pool))
        ranked = sorted(
            enumerate(pool),
            key=lambda item: (loads.get(item[1], 0), item[0]),
        )
        return Selection(
            reviewer_ids=[reviewer_id for _, reviewer_id in ranked[:count]],
            policy=AssignmentPolicy.LOAD_BASED,
        )


class RoundRobinSelector:
    """Take consecutive reviewers starting at ``cursor mod len(pool)``."""

    def select(self, pool: Sequence[str], desired_count: int, cursor: int) -> Selection:
        count = clamp_count(pool, desired_count)
        if count == 0:
            return Selection(reviewer_ids=[], policy=AssignmentPolicy.ROUND_ROBIN, next_cursor=cursor)
        start = cursor % len(pool)
        picked = [pool[(start + offset) % len(pool)] for offset in range(count)]
        return Selection(
            reviewer_ids=picked,
            policy=AssignmentPolicy.ROUND_ROBIN,
            next_cursor=cursor + count,
        )


def naive_round_robin(abstract_ids: Sequence[int], reviewer_ids: Sequence[str]) -> Dict[int, str]:
    """Map each abstract to one reviewer by index modulo the reviewer count."""
    if not reviewer_ids:
        return {}
    return {
        abstract_id: reviewer_ids[index % len(reviewer_ids)]
        for index, abstract_id in enumerate(abstract_ids)
    }
