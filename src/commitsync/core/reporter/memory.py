"""
In-memory reporter.

Stands in for the remote API in tests and dry environments: records
every delta it receives and can be told to fail.
"""

from __future__ import annotations

from collections.abc import Sequence

from commitsync.core.commits.models import Commit
from commitsync.core.exceptions import TransientReportError
from commitsync.core.reporter.backend import ReportResult


class InMemoryReporter:
    """
    Reporter that keeps received commits in lists.

    Example:
        >>> reporter = InMemoryReporter()
        >>> reporter.report("repo-1", [commit], [])
        >>> reporter.received_added == [commit]
        True
        >>> reporter.fail_next(unreachable=True)
    """

    def __init__(self) -> None:
        self.received_added: list[Commit] = []
        self.received_deleted: list[str] = []
        self.calls: list[tuple[str, list[Commit], list[str]]] = []
        self._failures: list[bool] = []

    def fail_next(self, count: int = 1, *, unreachable: bool = False) -> None:
        """
        Make the next `count` reports fail.

        Args:
            count: Number of calls to fail
            unreachable: Raise TransientReportError instead of returning
                         a failed result
        """
        self._failures.extend([unreachable] * count)

    def report(
        self,
        repo_identity: str,
        added: Sequence[Commit],
        deleted: Sequence[str],
    ) -> ReportResult:
        self.calls.append((repo_identity, list(added), list(deleted)))

        if self._failures:
            unreachable = self._failures.pop(0)
            if unreachable:
                raise TransientReportError("Remote unreachable")
            return ReportResult.failed("Remote rejected the delta")

        self.received_added.extend(added)
        self.received_deleted.extend(deleted)
        return ReportResult.ok(added_sent=len(added), deleted_sent=len(deleted))
