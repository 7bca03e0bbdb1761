"""Shared fixtures: a throwaway database, an in-memory outbox and a service over both."""

from typing import Optional

import pytest

from confreview.core.models import AbstractDraft, Reviewer
from confreview.io.store import ReviewStore
from confreview.notify.transport import OutboxTransport
from confreview.service import ReviewService


def _draft(
    submitter_id: str = "user-1",
    registration_id: str = "REG1",
    track: str = "Oncology",
    category: Optional[str] = None,
    subcategory: Optional[str] = None,
    title: str = "Outcomes of early screening",
    email: str = "author@example.org",
) -> AbstractDraft:
    return AbstractDraft(
        submitter_id=submitter_id,
        submitter_name="Dana Author",
        submitter_email=email,
        registration_id=registration_id,
        track=track,
        category=category,
        subcategory=subcategory,
        title=title,
        authors=["Dana Author"],
        keywords=["screening"],
    )


@pytest.fixture
def make_draft():
    """Factory for submission payloads with sensible defaults."""
    return _draft


@pytest.fixture
def store(tmp_path):
    """A fresh SQLite store per test."""
    s = ReviewStore(tmp_path / "review.db")
    yield s
    s.close()


@pytest.fixture
def outbox():
    return OutboxTransport()


@pytest.fixture
def service(store, outbox):
    return ReviewService(store, transport=outbox)


@pytest.fixture
def reviewers(store):
    """Three active reviewers in the directory."""
    ids = ["R1", "R2", "R3"]
    for rid in ids:
        store.upsert_reviewer(Reviewer(reviewer_id=rid, name=f"Reviewer {rid}", email=f"{rid.lower()}@example.org"))
    return ids
