"""
Remote reporter protocol.

A reporter delivers one run's delta to the remote. Transport (HTTP, RPC,
queue) is the reporter's business; the reconciler only sees success or
failure.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from commitsync.core.commits.models import Commit


class ReportResult(BaseModel):
    """
    Outcome of reporting one delta.

    A successful result is the only thing allowed to advance known state.
    """

    success: bool = Field(description="Whether the remote acknowledged the whole delta")
    message: str = Field(default="", description="Human-readable detail")
    added_sent: int = Field(default=0, ge=0, description="Added commits delivered")
    deleted_sent: int = Field(default=0, ge=0, description="Deleted identities delivered")

    @classmethod
    def ok(cls, added_sent: int = 0, deleted_sent: int = 0, message: str = "") -> ReportResult:
        return cls(success=True, added_sent=added_sent, deleted_sent=deleted_sent, message=message)

    @classmethod
    def failed(cls, message: str, added_sent: int = 0, deleted_sent: int = 0) -> ReportResult:
        return cls(
            success=False, added_sent=added_sent, deleted_sent=deleted_sent, message=message
        )


@runtime_checkable
class RemoteReporter(Protocol):
    """
    Protocol for remote reporter implementations.

    Implementations must:
    - Treat one call as the full delta for one run
    - Preserve the order of `added` (oldest first) even when chunking
    - Return a failed ReportResult or raise TransientReportError when the
      remote is unreachable or temporarily rejects the delta
    """

    def report(
        self,
        repo_identity: str,
        added: Sequence[Commit],
        deleted: Sequence[str],
    ) -> ReportResult:
        """
        Report added and deleted commits for a repository.

        Args:
            repo_identity: Repository identity
            added: New commits, oldest first
            deleted: Identities of commits gone from local history

        Returns:
            ReportResult describing the outcome

        Raises:
            TransientReportError: If the remote could not be reached
        """
        ...
