"""Review workflow: configuration, lifecycle, intake and consensus."""

from .config import ReviewerConfig, ReviewerConfigStore
from .consensus import ConsensusEngine, Decision, TieBreak
from .intake import ReviewIntake
from .lifecycle import AbstractLifecycle

__all__ = [
    "AbstractLifecycle",
    "ConsensusEngine",
    "Decision",
    "ReviewIntake",
    "ReviewerConfig",
    "ReviewerConfigStore",
    "TieBreak",
]
