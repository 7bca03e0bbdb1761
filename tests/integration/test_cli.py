"""Integration tests for the Typer CLI."""

from typer.testing import CliRunner

from confreview.cli.main import app
from confreview.core.models import AbstractDraft, AbstractStatus, EmailKind, Recommendation
from confreview.io.store import ReviewStore

runner = CliRunner()


def _draft():
    return AbstractDraft(
        submitter_id="user-1",
        submitter_email="author@example.org",
        registration_id="REG1",
        track="Oncology",
        title="Outcomes of early screening",
    )


def test_add_reviewer_and_auto_assign(tmp_path):
    db = tmp_path / "cli.db"
    result = runner.invoke(app, ["add-reviewer", "R1", "--name", "Reviewer One", "--db", str(db)])
    assert result.exit_code == 0
    assert "Saved reviewer R1" in result.output

    result = runner.invoke(app, ["auto-assign", "--db", str(db)])
    assert result.exit_code == 0
    assert "Assigned 0 abstracts" in result.output


def test_auto_assign_without_reviewers_fails(tmp_path):
    result = runner.invoke(app, ["auto-assign", "--db", str(tmp_path / "cli.db")])
    assert result.exit_code == 1
    assert "No active reviewers" in result.output


def test_pending_emails_listing(tmp_path):
    db = tmp_path / "cli.db"
    with ReviewStore(db) as store:
        store.enqueue_email("REG1-ABS-1", EmailKind.ACCEPTANCE)
    result = runner.invoke(app, ["pending-emails", "--db", str(db)])
    assert result.exit_code == 0
    assert "REG1-ABS-1" in result.output


def test_flush_without_smtp_keeps_queue(tmp_path):
    """With no SMTP host configured nothing is reported sent and the queue stays."""
    db = tmp_path / "cli.db"
    with ReviewStore(db) as store:
        abstract = store.create_abstract(_draft(), "REG1-ABS-1")
        store.update_abstract(abstract.id, status=AbstractStatus.ACCEPTED)
        store.enqueue_email("REG1-ABS-1", EmailKind.ACCEPTANCE)
    result = runner.invoke(app, ["flush-emails", "--db", str(db)])
    assert result.exit_code == 1
    assert "Sent: 0" in result.output
    assert "Failed: 1" in result.output
    assert "No email transport configured" in result.output
    with ReviewStore(db) as store:
        assert [e.abstract_code for e in store.list_pending_emails()] == ["REG1-ABS-1"]


def test_evaluate_decides_after_unassignment(tmp_path):
    db = tmp_path / "cli.db"
    with ReviewStore(db) as store:
        abstract = store.create_abstract(_draft(), "REG1-ABS-1")
        store.add_assigned_reviewers(abstract.id, ["R1"])
        store.create_review(abstract, "R1", Recommendation.REJECT, "Out of scope", {}, None)
    result = runner.invoke(app, ["evaluate", "REG1-ABS-1", "--db", str(db)])
    assert result.exit_code == 0
    assert "REG1-ABS-1 rejected" in result.output

    result = runner.invoke(app, ["evaluate", "REG1-ABS-1", "--db", str(db)])
    assert result.exit_code == 0
    assert "unchanged (rejected)" in result.output


def test_evaluate_unknown_abstract(tmp_path):
    result = runner.invoke(app, ["evaluate", "NOPE-ABS-1", "--db", str(tmp_path / "cli.db")])
    assert result.exit_code == 1
    assert "not found" in result.output
