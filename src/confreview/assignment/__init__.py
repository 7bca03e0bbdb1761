"""Reviewer assignment: rule resolution, selection policies and cursors."""

from .assigner import AssignmentPlan, ReviewerAssigner
from .cursor import AssignmentCursorStore, CursorReservation
from .resolver import AssignmentRuleResolver
from .selector import LoadBasedSelector, RoundRobinSelector, Selection, naive_round_robin

__all__ = [
    "AssignmentPlan",
    "ReviewerAssigner",
    "AssignmentCursorStore",
    "AssignmentRuleResolver",
    "CursorReservation",
    "LoadBasedSelector",
    "RoundRobinSelector",
    "Selection",
    "naive_round_robin",
]
