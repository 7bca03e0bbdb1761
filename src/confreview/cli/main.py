"""CLI application using Typer for the abstract review service."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..config.settings import settings
from ..core.errors import ReviewWorkflowError
from ..core.models import Reviewer
from ..io.store import ReviewStore
from ..service import ReviewService
from ..utils.logging import get_logger
from ..web.app import start_server as _start_web_server

app = typer.Typer(
    name="confreview",
    help="Conference abstract review - reviewer assignment and decision emails",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


def _open_service(db: Optional[Path]) -> ReviewService:
    return ReviewService(ReviewStore(db or settings.database_path))


@app.command()
def serve(
    host: str = typer.Option(
        "127.0.0.1",
        "--host",
        help="Hostname to bind the web server to.",
    ),
    port: int = typer.Option(
        8000,
        "--port",
        help="Port for the web server.",
    ),
    reload: bool = typer.Option(
        False,
        "--reload/--no-reload",
        help="Enable auto-reload (development only).",
    ),
) -> None:
    """Start the review API server."""
    console.print(f"[bold blue]Starting web server[/bold blue] at http://{host}:{port}")
    _start_web_server(host=host, port=port, reload=reload)


@app.command("pending-emails")
def pending_emails(
    db: Optional[Path] = typer.Option(None, "--db", help="Database file (default from settings)"),
) -> None:
    """List decision emails waiting for a manual flush."""
    service = _open_service(db)
    try:
        entries = service.pending_emails()
    finally:
        service.store.close()

    if not entries:
        console.print("[yellow]No pending emails[/yellow]")
        return
    table = Table(title=f"Pending Emails ({len(entries)})")
    table.add_column("ID", justify="right")
    table.add_column("Abstract", style="cyan")
    table.add_column("Kind")
    table.add_column("Queued at")
    for entry in entries:
        table.add_row(str(entry.id), entry.abstract_code, entry.kind.value, entry.created_at.isoformat())
    console.print(table)


@app.command("flush-emails")
def flush_emails(
    db: Optional[Path] = typer.Option(None, "--db", help="Database file (default from settings)"),
) -> None:
    """Send every queued decision email."""
    service = _open_service(db)
    try:
        result = service.flush_pending_emails()
    finally:
        service.store.close()

    console.print(f"[green]Sent: {result.sent_count}[/green]")
    if result.failed_count:
        console.print(f"[red]Failed: {result.failed_count}[/red]")
        for error in result.errors:
            console.print(f"  [red]{error}[/red]")
        raise typer.Exit(1)


@app.command("auto-assign")
def auto_assign(
    db: Optional[Path] = typer.Option(None, "--db", help="Database file (default from settings)"),
) -> None:
    """Give every open abstract without reviewers one active reviewer."""
    service = _open_service(db)
    try:
        result = service.auto_assign_unassigned()
    except ReviewWorkflowError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(1)
    finally:
        service.store.close()
    console.print(
        f"[bold green]Assigned {result.assigned_count} abstracts[/bold green] "
        f"across {result.reviewer_count} reviewers"
    )


@app.command()
def evaluate(
    abstract_code: str = typer.Argument(..., help="Abstract code, e.g. REG123-ABS-1"),
    db: Optional[Path] = typer.Option(None, "--db", help="Database file (default from settings)"),
) -> None:
    """Re-run consensus for one abstract."""
    service = _open_service(db)
    try:
        abstract, decision = service.evaluate_consensus(abstract_code)
    except ReviewWorkflowError as exc:
        console.print(f"[red]Error: {exc.message}[/red]")
        raise typer.Exit(1)
    finally:
        service.store.close()
    if decision is None:
        console.print(f"[yellow]{abstract.abstract_code} unchanged ({abstract.status.value})[/yellow]")
    else:
        console.print(
            f"[bold green]{abstract.abstract_code} {abstract.status.value}[/bold green] "
            f"({decision.accept_count} accept / {decision.reject_count} reject)"
        )


@app.command("add-reviewer")
def add_reviewer(
    reviewer_id: str = typer.Argument(..., help="Reviewer user id"),
    name: str = typer.Option("", "--name", help="Display name"),
    email: str = typer.Option("", "--email", help="Contact address"),
    active: bool = typer.Option(True, "--active/--inactive", help="Include in default pools"),
    db: Optional[Path] = typer.Option(None, "--db", help="Database file (default from settings)"),
) -> None:
    """Add or update a reviewer directory entry."""
    service = _open_service(db)
    try:
        reviewer = service.register_reviewer(
            Reviewer(reviewer_id=reviewer_id, name=name, email=email, active=active)
        )
    finally:
        service.store.close()
    state = "active" if reviewer.active else "inactive"
    console.print(f"[green]Saved reviewer {reviewer.reviewer_id} ({state})[/green]")


if __name__ == "__main__":
    app()
