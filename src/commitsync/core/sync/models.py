"""
Data models for the sync service.

Defines Pydantic models for per-repository outcomes and whole-run results.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from commitsync.core.reconcile.models import Delta, ReconcileResult


class RepoSyncOutcome(BaseModel):
    """
    What happened to one repository during a sync run.

    Exactly one of `result` (real run), `planned` (dry run) or `error`
    is set.
    """

    path: str = Field(description="Local checkout path")
    identity: str = Field(description="Repository identity")
    result: ReconcileResult | None = Field(default=None)
    planned: Delta | None = Field(default=None)
    skipped: int = Field(default=0, ge=0, description="Commits that could not be hashed")
    error: str | None = Field(default=None)
    error_type: str | None = Field(default=None)

    @property
    def success(self) -> bool:
        if self.error is not None:
            return False
        if self.result is not None:
            return self.result.success
        return True

    @property
    def delta(self) -> Delta | None:
        if self.result is not None:
            return self.result.delta
        return self.planned


class SyncRunResult(BaseModel):
    """Aggregate result across all repositories in one sync run."""

    dry_run: bool = Field(default=False)
    outcomes: list[RepoSyncOutcome] = Field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    @property
    def success(self) -> bool:
        return self.failed == 0

    def summary(self) -> str:
        verb = "planned" if self.dry_run else "synced"
        parts = [f"{self.succeeded} {verb}"]
        if self.failed:
            parts.append(f"{self.failed} failed")
        return ", ".join(parts)
