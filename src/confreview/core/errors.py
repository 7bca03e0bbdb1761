"""Error taxonomy for the review workflow.

Each error carries the HTTP status code the web layer should answer
with, so routes never have to translate kinds by hand.  Everything
except :class:`TransportError` aborts the operation that raised it;
transport failures are caught by the notification scheduler and turned
into warnings.
"""

from __future__ import annotations


class ReviewWorkflowError(Exception):
    """Base class for all workflow errors."""

    status_code: int = 500
    kind: str = "workflow_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ReviewWorkflowError):
    """Malformed or missing input."""

    status_code = 400
    kind = "validation_error"


class NotAssignedError(ReviewWorkflowError):
    """A reviewer acted on an abstract outside their assignment."""

    status_code = 403
    kind = "not_assigned"


class NotFoundError(ReviewWorkflowError):
    """Abstract, review, reviewer or rule is absent."""

    status_code = 404
    kind = "not_found"


class DuplicateReviewError(ReviewWorkflowError):
    """A second review by the same reviewer on the same abstract."""

    status_code = 409
    kind = "duplicate_review"


class ConflictError(ReviewWorkflowError):
    """State transition attempted from a terminal or otherwise invalid state."""

    status_code = 409
    kind = "conflict"


class TransportError(ReviewWorkflowError):
    """Email delivery failed. Non-fatal for the triggering workflow step."""

    status_code = 502
    kind = "transport_error"
