"""
Commit reconciliation: compute the delta, report it, then commit state.

Example:
    >>> from commitsync.core.reconcile import Reconciler
    >>> from commitsync.core.reporter import InMemoryReporter
    >>> from commitsync.core.state import InMemoryKnownStateStore
    >>> reconciler = Reconciler(InMemoryKnownStateStore(), InMemoryReporter())
    >>> result = reconciler.run(repo_id, commits)
    >>> result.summary()
"""

from commitsync.core.reconcile.models import (
    Delta,
    LogOrder,
    ReconcileResult,
    ReconcileState,
    SkippedCommit,
)
from commitsync.core.reconcile.reconciler import Reconciler, compute_delta

__all__ = [
    "Delta",
    "LogOrder",
    "ReconcileResult",
    "ReconcileState",
    "Reconciler",
    "SkippedCommit",
    "compute_delta",
]
