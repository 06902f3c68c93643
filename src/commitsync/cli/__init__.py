"""
Commitsync CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from commitsync import __version__
from commitsync.cli import repos, sync
from commitsync.cli.errors import ExitCode
from commitsync.core.config.env import load_layered_env

# Help panel names for command grouping
PANEL_REPOS = "Manage Repositories"
PANEL_SYNC = "Report Commits"

app = typer.Typer(
    name="commitsync",
    help="Report local commit history to a remote service",
    no_args_is_help=False,
    invoke_without_command=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for all commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    Commitsync - keep a remote service in step with your git history.

    Quick Start:
        1. commitsync add ~/src/widgets   # Register a repository
        2. commitsync status              # Preview what would be reported
        3. commitsync sync                # Report it

    Configuration:
        COMMITSYNC_REMOTE_URL             # Remote API base URL
        COMMITSYNC_TOKEN                  # Bearer token
    """
    setup_logging(debug)
    # Precedence: OS env > project .env > user .env
    load_layered_env()

    ctx.obj = {"debug": debug}

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command(name="version")
def version() -> None:
    """Show the commitsync version."""
    console.print(f"commitsync version {__version__}")


app.command(name="add", rich_help_panel=PANEL_REPOS)(repos.add)
app.command(name="remove", rich_help_panel=PANEL_REPOS)(repos.remove)
app.command(name="list", rich_help_panel=PANEL_REPOS)(repos.list_repos)
app.command(name="identity", rich_help_panel=PANEL_REPOS)(repos.identity)

app.command(name="status", rich_help_panel=PANEL_SYNC)(sync.status)
app.command(name="sync", rich_help_panel=PANEL_SYNC)(sync.sync)


def cli_main() -> None:
    """Entry point for the console script."""
    try:
        app()
    except KeyboardInterrupt:
        sys.exit(ExitCode.SIGINT)


__all__ = ["app", "cli_main"]
