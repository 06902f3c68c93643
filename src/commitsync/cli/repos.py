"""
Commitsync CLI - Repository registry commands.

Manage the repositories this device reports on.
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from commitsync.cli.errors import ExitCode, print_error
from commitsync.cli.service import get_service
from commitsync.core.exceptions import CommitSyncError
from commitsync.utils.git import GitError

console = Console()


def add(
    path: Path = typer.Argument(
        Path("."),
        help="Path of the local checkout",
    ),
    discriminator: str | None = typer.Option(
        None,
        "--discriminator",
        "-d",
        help="Override the clone URL used to tell forks apart",
    ),
) -> None:
    """
    Register a repository for commit reporting.

    The repository identity is derived from its initial commit and its
    origin URL (or local path when there is no origin).

    Examples:
        commitsync add .
        commitsync add ~/src/widgets --discriminator https://github.com/me/widgets
    """
    service = get_service()
    try:
        entry = service.register(path, discriminator)
    except GitError as e:
        print_error(f"Not a git repository: {path}", reason=e.stderr or str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except CommitSyncError as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)

    console.print(f"[green]✓[/green] Registered {entry.path}")
    console.print(f"  identity: [bold]{entry.identity}[/bold]")
    console.print(f"  [dim]discriminator: {entry.discriminator}[/dim]")


def remove(
    path: Path = typer.Argument(..., help="Path of a registered checkout"),
) -> None:
    """Unregister a repository. Its known state is kept."""
    service = get_service()
    try:
        removed = service.registry.remove(path)
    except CommitSyncError as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if not removed:
        print_error(f"Repository not registered: {path}")
        raise typer.Exit(ExitCode.USER_ERROR)

    console.print(f"[green]✓[/green] Unregistered {path.expanduser().resolve()}")


def list_repos() -> None:
    """List registered repositories."""
    service = get_service()
    try:
        entries = service.registry.list_repos()
    except CommitSyncError as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if not entries:
        console.print("[dim]No repositories registered.[/dim]")
        console.print("\nRun [bold]commitsync add PATH[/bold] to register one.")
        return

    table = Table(title="Registered Repositories")
    table.add_column("Path")
    table.add_column("Identity", style="cyan")
    table.add_column("Discriminator", style="dim")
    table.add_column("Added")

    for entry in entries:
        table.add_row(
            entry.path,
            entry.short_identity,
            entry.discriminator,
            entry.added_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


def identity(
    path: Path = typer.Argument(
        Path("."),
        help="Path of the local checkout",
    ),
    discriminator: str | None = typer.Option(
        None,
        "--discriminator",
        "-d",
        help="Override the clone URL used to tell forks apart",
    ),
) -> None:
    """Print the repository identity without registering it."""
    service = get_service()
    try:
        entry = service.describe(path, discriminator)
    except GitError as e:
        print_error(f"Not a git repository: {path}", reason=e.stderr or str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except CommitSyncError as e:
        print_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)

    typer.echo(entry.identity)
