"""
Commitsync CLI - Sync commands.

Reconcile registered repositories with the remote, or preview the delta.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from commitsync.cli.errors import (
    ExitCode,
    print_error,
    print_no_remote_error,
    print_not_registered_error,
)
from commitsync.cli.service import get_service
from commitsync.core.exceptions import CommitSyncError
from commitsync.core.repos.models import RepoEntry
from commitsync.core.sync import SyncRunResult, SyncService

console = Console()


def _select_entries(service: SyncService, paths: list[Path] | None) -> list[RepoEntry]:
    """Resolve CLI paths to registry entries, or the whole registry if none."""
    try:
        if not paths:
            return service.registry.list_repos()

        entries: list[RepoEntry] = []
        for path in paths:
            entry = service.registry.get(path)
            if entry is None:
                print_not_registered_error(str(path))
                raise typer.Exit(ExitCode.USER_ERROR)
            entries.append(entry)
        return entries
    except CommitSyncError as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def _render(run: SyncRunResult, title: str) -> None:
    table = Table(title=title)
    table.add_column("Repository")
    table.add_column("Identity", style="cyan")
    table.add_column("Added", justify="right")
    table.add_column("Deleted", justify="right")
    table.add_column("Status")

    for outcome in run.outcomes:
        delta = outcome.delta
        added = str(len(delta.added)) if delta else "-"
        deleted = str(len(delta.deleted)) if delta else "-"

        if outcome.error:
            status = f"[red]✗ {outcome.error_type}[/red]: {outcome.error}"
        elif outcome.result is not None and not outcome.result.success:
            status = f"[yellow]⚠ {outcome.result.message}[/yellow]"
        elif delta is not None and delta.is_empty:
            status = "[green]✓[/green] up to date"
        elif run.dry_run:
            status = "[blue]pending[/blue]"
        else:
            status = "[green]✓[/green] reported"

        if outcome.skipped:
            status += f" [dim]({outcome.skipped} skipped)[/dim]"

        table.add_row(outcome.path, outcome.identity[:12], added, deleted, status)

    console.print(table)


def sync(
    paths: list[Path] | None = typer.Argument(
        None,
        help="Registered checkouts to sync (default: all)",
    ),
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Number of repositories to sync concurrently",
    ),
) -> None:
    """
    Report new and rewritten commits to the remote.

    Each repository is reconciled independently; one failure does not stop
    the others. A repository whose report failed is retried on the next run.

    Examples:
        commitsync sync
        commitsync sync ~/src/widgets --workers 1
    """
    service = get_service()
    if service.reporter is None:
        print_no_remote_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    entries = _select_entries(service, paths)
    if not entries:
        console.print("[dim]No repositories registered.[/dim]")
        return

    run = service.sync_all(entries, max_workers=workers)
    _render(run, "Sync Results")

    if run.success:
        console.print(f"\n[green]✓[/green] {run.summary()}")
        return

    console.print(f"\n[red]✗[/red] {run.summary()}")
    raise typer.Exit(ExitCode.GENERAL_ERROR)


def status(
    paths: list[Path] | None = typer.Argument(
        None,
        help="Registered checkouts to inspect (default: all)",
    ),
) -> None:
    """
    Show what the next sync would report, without reporting it.
    """
    service = get_service()
    entries = _select_entries(service, paths)
    if not entries:
        console.print("[dim]No repositories registered.[/dim]")
        console.print("\nRun [bold]commitsync add PATH[/bold] to register one.")
        return

    run = service.sync_all(entries, dry_run=True)
    _render(run, "Pending Changes")

    if not run.success:
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    pending = [o for o in run.outcomes if o.delta is not None and not o.delta.is_empty]
    if pending:
        console.print("\n[dim]→ Run [bold]commitsync sync[/bold] to report changes[/dim]")
