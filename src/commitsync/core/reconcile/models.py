"""
Data models for reconciliation runs.

Defines Pydantic models for the delta, run states and run results.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from commitsync.core.commits.models import Commit


class LogOrder(str, Enum):
    """Order of a live commit list as handed in by the caller."""

    OLDEST_FIRST = "oldest_first"
    NEWEST_FIRST = "newest_first"


class ReconcileState(str, Enum):
    """States of one reconciliation run."""

    IDLE = "idle"
    COMPUTING_DELTA = "computing_delta"
    REPORTING = "reporting"
    COMMITTING = "committing"
    REPORTING_FAILED = "reporting_failed"


class Delta(BaseModel):
    """
    Difference between live history and known state for one run.

    `added` is oldest-first with every parent ahead of its children;
    `deleted` holds identities only, sorted.
    """

    added: list[Commit] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.deleted

    def summary(self) -> str:
        return f"+{len(self.added)} -{len(self.deleted)}"


class SkippedCommit(BaseModel):
    """A commit left out of a run because it could not be hashed."""

    sha: str | None = Field(default=None)
    reason: str = Field(description="Why the commit could not be hashed")


class ReconcileResult(BaseModel):
    """
    Result of one reconciliation run.

    Example:
        >>> result = reconciler.run(repo_id, live)
        >>> if not result.success:
        ...     print(result.summary())  # retry on the next scheduled run
    """

    repo_identity: str = Field(description="Repository identity reconciled")
    success: bool = Field(description="Whether the run finished with state committed")
    state: ReconcileState = Field(description="Terminal state of the run")
    delta: Delta = Field(default_factory=Delta)
    committed: bool = Field(
        default=False,
        description="Whether known state was written during this run",
    )
    message: str = Field(default="")
    skipped: list[SkippedCommit] = Field(
        default_factory=list,
        description="Commits excluded because their metadata was malformed",
    )

    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)

    @property
    def duration_seconds(self) -> float | None:
        """Calculate run duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        short = self.repo_identity[:12]
        if not self.success:
            return f"{short}: report failed ({self.delta.summary()}): {self.message}"

        parts = [f"{short}: {self.delta.summary()}"]
        if self.delta.is_empty:
            parts.append("up to date")
        if self.skipped:
            parts.append(f"{len(self.skipped)} commits skipped")
        if self.message:
            parts.append(self.message)
        return ", ".join(parts)
