"""
Git utilities for commitsync.

Reads commit history from a local repository with `git log` and turns it
into Commit objects whose parent links are commit identities rather than
git SHAs.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from commitsync.core.commits.identity import build_commit
from commitsync.core.commits.models import Commit
from commitsync.core.exceptions import IdentityComputationError

logger = logging.getLogger(__name__)

# Unit/record separators keep multi-line messages intact
_FIELD_SEP = "\x1f"
_RECORD_SEP = "\x1e"
_LOG_FORMAT = "%x1f".join(["%H", "%P", "%an", "%ae", "%aI", "%B"]) + "%x1e"


class GitError(Exception):
    """Exception raised when a git operation fails."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.stderr = stderr


@dataclass
class CommitLog:
    """Commits read from a repository, oldest first, plus any that failed to parse."""

    commits: list[Commit] = field(default_factory=list)
    errors: list[IdentityComputationError] = field(default_factory=list)

    @property
    def root(self) -> Commit | None:
        """The initial commit of the history, if any."""
        return self.commits[0] if self.commits else None


def run_git(
    args: list[str],
    cwd: Path,
    *,
    check: bool = True,
    timeout: int = 120,
) -> str:
    """
    Run a git command and return its stdout.

    Args:
        args: Git command arguments (without "git" prefix)
        cwd: Repository directory
        check: Whether to raise on non-zero exit code
        timeout: Seconds before the command is abandoned

    Returns:
        Command stdout (not stripped; callers parse raw output)

    Raises:
        GitError: If the command fails and check=True
    """
    cmd = ["git"] + args
    logger.debug("Running git command: %s", " ".join(cmd))

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise GitError(f"Git command timed out: {' '.join(cmd)}", command=cmd) from e
    except FileNotFoundError as e:
        raise GitError("git not found in PATH", command=cmd) from e

    if check and result.returncode != 0:
        stderr = result.stderr.strip() if result.stderr else ""
        raise GitError(f"Git command failed: {' '.join(cmd)}", command=cmd, stderr=stderr)

    return result.stdout or ""


def is_git_repo(path: Path) -> bool:
    """Check if `path` is inside a git work tree or is a bare repository."""
    try:
        run_git(["rev-parse", "--git-dir"], cwd=path)
        return True
    except (GitError, NotADirectoryError, FileNotFoundError):
        return False


def has_commits(path: Path, ref: str = "HEAD") -> bool:
    """Check whether `ref` resolves to a commit."""
    try:
        run_git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], cwd=path)
        return True
    except GitError:
        return False


def get_remote_url(path: Path, remote: str = "origin") -> str | None:
    """
    Get the URL of a git remote.

    Returns:
        Remote URL or None if the remote is not configured
    """
    try:
        url = run_git(["remote", "get-url", remote], cwd=path).strip()
    except GitError:
        return None
    return url or None


def parse_log(output: str) -> CommitLog:
    """
    Parse `git log --reverse --topo-order` output into a CommitLog.

    Records must arrive with parents before children so each parent's
    identity is known by the time a child is built. A parent that was
    never seen (shallow clone) or failed to parse is linked by its git SHA.
    """
    log = CommitLog()
    identities: dict[str, str] = {}

    for record in output.split(_RECORD_SEP):
        record = record.lstrip("\n")
        if not record:
            continue

        parts = record.split(_FIELD_SEP, 5)
        if len(parts) < 6:
            log.errors.append(
                IdentityComputationError(f"Truncated git log record: {record[:40]!r}")
            )
            continue

        sha, parent_shas, author_name, author_email, timestamp, message = parts
        parents = tuple(identities.get(p, p) for p in parent_shas.split())

        try:
            commit = build_commit(
                sha=sha,
                author_name=author_name,
                author_email=author_email,
                timestamp=timestamp,
                message=message.rstrip("\n"),
                parents=parents,
            )
        except IdentityComputationError as e:
            logger.warning("Skipping commit %s: %s", sha[:8], e)
            log.errors.append(e)
            continue

        identities[sha] = commit.identity
        log.commits.append(commit)

    return log


def read_commits(path: Path, ref: str = "HEAD") -> CommitLog:
    """
    Read every commit reachable from `ref`, oldest first.

    An unborn branch (fresh `git init`) yields an empty log.

    Args:
        path: Repository directory
        ref: Revision to walk from

    Returns:
        CommitLog with commits oldest first (parents before children)

    Raises:
        GitError: If `path` is not a repository or git fails
    """
    if not is_git_repo(path):
        raise GitError(f"Not a git repository: {path}")

    if not has_commits(path, ref):
        logger.debug("No commits at %s in %s", ref, path)
        return CommitLog()

    output = run_git(
        ["log", "--reverse", "--topo-order", f"--format={_LOG_FORMAT}", ref],
        cwd=path,
    )
    log = parse_log(output)
    logger.debug("Read %d commits from %s (%d skipped)", len(log.commits), path, len(log.errors))
    return log
