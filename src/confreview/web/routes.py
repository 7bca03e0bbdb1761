"""API routes for abstract review.

Each request gets its own store connection and :class:`ReviewService`;
the reviewer configuration is read fresh inside every operation.
Workflow errors raised by the service are turned into responses by the
exception handler installed in :mod:`confreview.web.app`.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ..config.settings import settings
from ..core.models import (
    Abstract,
    AbstractDraft,
    AbstractStatus,
    AssignmentRule,
    FlushResult,
    Review,
    Reviewer,
)
from ..io.store import ReviewStore
from ..notify.transport import EmailTransport, build_transport
from ..service import ReviewService


router = APIRouter()

# Built once per process from settings
_transport: Optional[EmailTransport] = None


def get_store() -> Iterator[ReviewStore]:
    store = ReviewStore(settings.database_path)
    try:
        yield store
    finally:
        store.close()


def get_transport() -> EmailTransport:
    global _transport
    if _transport is None:
        _transport = build_transport(settings)
    return _transport


def get_service(
    store: ReviewStore = Depends(get_store),
    transport: EmailTransport = Depends(get_transport),
) -> ReviewService:
    return ReviewService(store, transport=transport)


class ReviewRequest(BaseModel):
    """Review submission parameters."""

    reviewer_id: str = Field(..., min_length=1)
    recommendation: str
    comments: str = ""
    scores: Optional[Dict[str, Any]] = None


class ReviewEditRequest(BaseModel):
    recommendation: str
    comments: str = ""
    scores: Optional[Dict[str, Any]] = None


class ReviewResponse(BaseModel):
    review: Review
    abstract: Abstract
    warnings: List[str] = Field(default_factory=list)


class AssignmentRequest(BaseModel):
    """Bulk assignment change for the admin console."""

    abstract_codes: List[str]
    reviewer_ids: List[str]
    action: Literal["assign", "unassign"] = "assign"


class StatusRequest(BaseModel):
    status: AbstractStatus
    approved_for: Optional[str] = None


class EvaluationResponse(BaseModel):
    abstract: Abstract
    decided: bool


# ----------------------------------------------------------------------
# Abstracts and reviews
# ----------------------------------------------------------------------


@router.post("/api/abstracts", response_model=Abstract, status_code=201)
def submit_abstract(draft: AbstractDraft, service: ReviewService = Depends(get_service)) -> Abstract:
    """Submit a new abstract and assign its reviewers."""
    return service.submit_abstract(draft)


@router.get("/api/abstracts/{abstract_code}", response_model=Abstract)
def get_abstract(abstract_code: str, service: ReviewService = Depends(get_service)) -> Abstract:
    return service.get_abstract(abstract_code)


@router.get("/api/abstracts/{abstract_code}/reviews", response_model=List[Review])
def list_reviews(abstract_code: str, service: ReviewService = Depends(get_service)) -> List[Review]:
    return service.list_reviews(abstract_code)


@router.post("/api/abstracts/{abstract_code}/reviews", response_model=ReviewResponse, status_code=201)
def submit_review(
    abstract_code: str,
    review_req: ReviewRequest,
    service: ReviewService = Depends(get_service),
) -> ReviewResponse:
    """Record a review and evaluate consensus.

    A failed decision email does not fail the request; it is reported
    in ``warnings``.
    """
    result = service.submit_review(
        abstract_code,
        review_req.reviewer_id,
        review_req.recommendation,
        review_req.comments,
        review_req.scores,
    )
    return ReviewResponse(review=result.review, abstract=result.abstract, warnings=result.warnings)


@router.put("/api/abstracts/{abstract_code}/reviews/{reviewer_id}", response_model=ReviewResponse)
def edit_review(
    abstract_code: str,
    reviewer_id: str,
    edit_req: ReviewEditRequest,
    service: ReviewService = Depends(get_service),
) -> ReviewResponse:
    result = service.edit_review(
        abstract_code,
        reviewer_id,
        edit_req.recommendation,
        edit_req.comments,
        edit_req.scores,
    )
    return ReviewResponse(review=result.review, abstract=result.abstract, warnings=result.warnings)


# ----------------------------------------------------------------------
# Administration
# ----------------------------------------------------------------------


@router.post("/api/admin/assignments")
def change_assignments(
    assignment_req: AssignmentRequest,
    service: ReviewService = Depends(get_service),
) -> Dict[str, int]:
    if assignment_req.action == "assign":
        updated = service.assign_reviewers(assignment_req.abstract_codes, assignment_req.reviewer_ids)
    else:
        updated = service.unassign_reviewers(assignment_req.abstract_codes, assignment_req.reviewer_ids)
    return {"updated_count": updated}


@router.post("/api/admin/assignments/auto")
def auto_assign(service: ReviewService = Depends(get_service)) -> Dict[str, int]:
    """Assign one active reviewer to every open abstract that has none."""
    result = service.auto_assign_unassigned()
    return {"assigned_count": result.assigned_count, "reviewer_count": result.reviewer_count}


@router.post("/api/admin/abstracts/{abstract_code}/status", response_model=Abstract)
def override_status(
    abstract_code: str,
    status_req: StatusRequest,
    service: ReviewService = Depends(get_service),
) -> Abstract:
    return service.set_status(abstract_code, status_req.status, status_req.approved_for)


@router.post("/api/admin/abstracts/{abstract_code}/evaluate", response_model=EvaluationResponse)
def evaluate_consensus(
    abstract_code: str,
    service: ReviewService = Depends(get_service),
) -> EvaluationResponse:
    """Re-run consensus, e.g. after a pending reviewer was unassigned.

    ``decided`` is True only when this call made the decision.
    """
    abstract, decision = service.evaluate_consensus(abstract_code)
    return EvaluationResponse(abstract=abstract, decided=decision is not None)


@router.get("/api/admin/emails/pending")
def pending_emails(service: ReviewService = Depends(get_service)) -> Dict[str, Any]:
    entries = service.pending_emails()
    return {
        "count": len(entries),
        "pending_emails": [e.model_dump(mode="json") for e in entries],
    }


@router.post("/api/admin/emails/flush", response_model=FlushResult)
def flush_emails(service: ReviewService = Depends(get_service)) -> FlushResult:
    return service.flush_pending_emails()


@router.get("/api/reviewer/config")
def get_reviewer_config(service: ReviewService = Depends(get_service)) -> Dict[str, Any]:
    config = service.reviewer_config()
    data = config.model_dump(mode="json")
    data["pending_emails"] = [e.model_dump(mode="json") for e in config.pending_emails]
    return data


@router.put("/api/reviewer/config")
def update_reviewer_config(
    changes: Dict[str, Any],
    service: ReviewService = Depends(get_service),
) -> Dict[str, Any]:
    return service.update_reviewer_config(changes).model_dump(mode="json")


@router.get("/api/admin/rules", response_model=List[AssignmentRule])
def list_rules(service: ReviewService = Depends(get_service)) -> List[AssignmentRule]:
    return service.list_rules()


@router.post("/api/admin/rules", response_model=AssignmentRule, status_code=201)
def save_rule(rule: AssignmentRule, service: ReviewService = Depends(get_service)) -> AssignmentRule:
    return service.save_rule(rule)


@router.post("/api/admin/reviewers", response_model=Reviewer, status_code=201)
def register_reviewer(reviewer: Reviewer, service: ReviewService = Depends(get_service)) -> Reviewer:
    return service.register_reviewer(reviewer)
