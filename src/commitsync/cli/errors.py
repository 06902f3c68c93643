"""
Standardized error handling and exit codes for the commitsync CLI.
"""

from enum import IntEnum

from rich.console import Console

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for commitsync CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, or at least one repository failed to sync."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "No remote configured",
        ...     solution="export COMMITSYNC_REMOTE_URL=https://api.example.com/v1",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_no_remote_error() -> None:
    """Print error when sync is requested without a remote."""
    print_error(
        "No remote configured",
        reason="Commits can only be reported once remote.base_url is set",
        solution="export COMMITSYNC_REMOTE_URL=https://api.example.com/v1",
    )


def print_not_registered_error(path: str) -> None:
    """Print error when a path is not in the registry."""
    print_error(
        f"Repository not registered: {path}",
        solution=f"commitsync add {path}",
    )
