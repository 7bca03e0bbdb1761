"""Core domain models for abstracts, reviews and assignment rules."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class AbstractStatus(str, Enum):
    """Lifecycle states of an abstract."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under-review"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    FINAL_SUBMITTED = "final-submitted"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {AbstractStatus.ACCEPTED, AbstractStatus.REJECTED, AbstractStatus.FINAL_SUBMITTED}
)
OPEN_STATUSES = frozenset({AbstractStatus.SUBMITTED, AbstractStatus.UNDER_REVIEW})


class Recommendation(str, Enum):
    """A reviewer's verdict."""

    ACCEPT = "accept"
    REJECT = "reject"


class ScoreCriterion(str, Enum):
    """Closed set of scoring criteria a reviewer may grade."""

    ORIGINALITY = "originality"
    LEVEL_OF_EVIDENCE = "levelOfEvidence"
    SCIENTIFIC_IMPACT = "scientificImpact"
    SOCIAL_SIGNIFICANCE = "socialSignificance"
    QUALITY_OF_MANUSCRIPT = "qualityOfManuscript"


class AssignmentPolicy(str, Enum):
    """Reviewer selection policies."""

    LOAD_BASED = "load-based"
    ROUND_ROBIN = "round-robin"


class NotificationMode(str, Enum):
    """How decision emails leave the system."""

    IMMEDIATE = "immediate"
    MANUAL = "manual"


class EmailKind(str, Enum):
    """Kinds of decision notification."""

    ACCEPTANCE = "acceptance"
    REJECTION = "rejection"


class FileReference(BaseModel):
    """Opaque pointer to a file held by the file-storage service."""

    original_name: str
    mime_type: str
    size_bytes: int = Field(0, ge=0)
    storage_path: str


class AbstractDraft(BaseModel):
    """Submission payload for a new abstract."""

    submitter_id: str = Field(..., min_length=1)
    submitter_name: str = ""
    submitter_email: str = Field(..., min_length=3)
    registration_id: str = Field(..., min_length=1)

    # Classification
    track: str = Field(..., min_length=1)
    category: Optional[str] = None
    subcategory: Optional[str] = None

    # Content
    title: str = Field(..., min_length=1)
    authors: List[str] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    word_count: Optional[int] = Field(None, ge=0)
    files: List[FileReference] = Field(default_factory=list)

    @field_validator("registration_id")
    @classmethod
    def _normalize_registration(cls, v: str) -> str:
        # Abstract codes and their running numbers are keyed on this form
        v = v.strip().upper()
        if not v:
            raise ValueError("registration_id must not be blank")
        return v


class Abstract(AbstractDraft):
    """A stored abstract with its workflow fields."""

    id: int
    abstract_code: str
    status: AbstractStatus = AbstractStatus.SUBMITTED
    assigned_reviewer_ids: List[str] = Field(default_factory=list)
    approved_for: Optional[str] = None
    average_score: Optional[float] = None
    decision_at: Optional[datetime] = None
    submitted_at: datetime = Field(default_factory=utc_now)

    @field_validator("assigned_reviewer_ids")
    @classmethod
    def _no_duplicate_reviewers(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError("assigned_reviewer_ids must not contain duplicates")
        return v

    @property
    def author_name(self) -> str:
        return self.submitter_name.strip() or self.submitter_email


class Review(BaseModel):
    """One reviewer's verdict on one abstract."""

    id: int
    abstract_id: int
    abstract_code: str
    reviewer_id: str

    # Denormalized from the abstract at creation time
    track: str
    category: Optional[str] = None
    subcategory: Optional[str] = None

    scores: Dict[ScoreCriterion, int] = Field(default_factory=dict)
    total_score: Optional[int] = None
    comments: str = ""
    recommendation: Recommendation
    submitted_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None


class AssignmentRule(BaseModel):
    """Admin-configured reviewer pool for a track/category/subcategory."""

    id: Optional[int] = None
    track: str = Field(..., min_length=1)
    category: Optional[str] = None
    subcategory: Optional[str] = None
    reviewer_ids: List[str] = Field(default_factory=list)
    policy: Optional[AssignmentPolicy] = None
    reviewer_count: Optional[int] = Field(None, ge=1)

    @field_validator("reviewer_ids")
    @classmethod
    def _dedupe_pool(cls, v: List[str]) -> List[str]:
        # Keep first occurrence so pool order stays stable
        return list(dict.fromkeys(v))


class Reviewer(BaseModel):
    """Reviewer directory entry."""

    reviewer_id: str = Field(..., min_length=1)
    name: str = ""
    email: str = ""
    active: bool = True


class PendingEmail(BaseModel):
    """A decision email awaiting manual batch dispatch."""

    id: Optional[int] = None
    abstract_code: str
    kind: EmailKind
    created_at: datetime = Field(default_factory=utc_now)


class FlushResult(BaseModel):
    """Outcome of draining the pending email queue."""

    sent_count: int = 0
    failed_count: int = 0
    errors: List[str] = Field(default_factory=list)
