"""Assignment rule resolution.

Rules are matched most-specific-first: an exact
``(track, category, subcategory)`` rule wins over a ``(track, category)``
rule, which wins over a track-only rule.  No match is not an error; the
caller falls back to the pool of all active reviewers.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..core.models import AssignmentRule


class AssignmentRuleResolver:
    """Find the assignment rule that applies to an abstract's classification."""

    def __init__(self, rules: Sequence[AssignmentRule]) -> None:
        self._rules: List[AssignmentRule] = list(rules)

    def find_rule(
        self,
        track: str,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
    ) -> Optional[AssignmentRule]:
        candidates = [r for r in self._rules if r.track == track]
        if category is not None and subcategory is not None:
            for rule in candidates:
                if rule.category == category and rule.subcategory == subcategory:
                    return rule
        if category is not None:
            for rule in candidates:
                if rule.category == category and rule.subcategory is None:
                    return rule
        for rule in candidates:
            if rule.category is None and rule.subcategory is None:
                return rule
        return None
