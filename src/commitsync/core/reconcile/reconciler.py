"""
Commit reconciliation.

Computes what changed between live local history and what the remote
already acknowledged, reports it, and only then advances known state.

Run states:

    IDLE -> COMPUTING_DELTA -> REPORTING -> COMMITTING -> IDLE
                                   |
                                   +-> REPORTING_FAILED (nothing written)

Known state is replaced wholesale with the live identity list after a
successful report, never merged. A run that fails to report leaves the
watermark where it was, so the next run computes the same `added` set
again and the remote catches up.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence, Set
from datetime import datetime

from commitsync.core.commits.models import Commit
from commitsync.core.exceptions import TransientReportError
from commitsync.core.reconcile.models import (
    Delta,
    LogOrder,
    ReconcileResult,
    ReconcileState,
    SkippedCommit,
)
from commitsync.core.reporter.backend import RemoteReporter
from commitsync.core.state.store import KnownStateStore

logger = logging.getLogger(__name__)


def normalize_history(
    live: Sequence[Commit],
    order: LogOrder = LogOrder.OLDEST_FIRST,
) -> list[tuple[str, Commit]]:
    """
    Bring a live commit list into oldest-first order, keyed by identity.

    Repeated identities (the same commit reachable twice) keep their
    first occurrence.

    Returns:
        List of (identity, commit) pairs, oldest first
    """
    ordered = list(live) if order == LogOrder.OLDEST_FIRST else list(reversed(live))

    seen: set[str] = set()
    pairs: list[tuple[str, Commit]] = []
    for commit in ordered:
        identity = commit.identity
        if identity in seen:
            continue
        seen.add(identity)
        pairs.append((identity, commit))
    return pairs


def order_parents_first(pairs: Sequence[tuple[str, Commit]]) -> list[Commit]:
    """
    Stable reorder so no commit comes before a parent in the same list.

    Input that already satisfies the ordering comes back unchanged.
    Parents outside the list are ignored.
    """
    by_identity = dict(pairs)
    emitted: set[str] = set()
    in_progress: set[str] = set()
    ordered: list[Commit] = []

    for start, _ in pairs:
        stack = [start]
        while stack:
            identity = stack[-1]
            if identity in emitted:
                stack.pop()
                continue

            in_progress.add(identity)
            pending = [
                parent
                for parent in by_identity[identity].parents
                if parent in by_identity and parent not in emitted and parent not in in_progress
            ]
            if pending:
                stack.extend(reversed(pending))
                continue

            stack.pop()
            in_progress.discard(identity)
            emitted.add(identity)
            ordered.append(by_identity[identity])

    return ordered


def diff_history(pairs: Sequence[tuple[str, Commit]], known: Set[str]) -> Delta:
    """Set difference by identity over already-normalized history."""
    live_identities = {identity for identity, _ in pairs}
    added = order_parents_first([(i, c) for i, c in pairs if i not in known])
    deleted = sorted(known - live_identities)
    return Delta(added=added, deleted=deleted)


def compute_delta(
    live: Sequence[Commit],
    known: Set[str],
    order: LogOrder = LogOrder.OLDEST_FIRST,
) -> Delta:
    """
    Compute the added/deleted delta between live history and known state.

    Args:
        live: Commits currently reachable in local history
        known: Identities the remote has acknowledged
        order: Order of `live` as supplied

    Returns:
        Delta with `added` oldest-first (parents before children) and
        `deleted` sorted

    Example:
        >>> delta = compute_delta([c1, c2, c3], known=set())
        >>> delta.added == [c1, c2, c3]
        True
    """
    return diff_history(normalize_history(live, order), known)


class Reconciler:
    """
    Drives one compute -> report -> commit pipeline per call.

    Runs for the same repository identity are serialized through the
    store's lock; runs for different repositories share nothing and may
    proceed in parallel, each on its own Reconciler.

    Example:
        >>> reconciler = Reconciler(store=store, reporter=reporter)
        >>> result = reconciler.run(repo_id, live_commits)
        >>> result.success, result.delta.summary()
        (True, '+3 -0')
    """

    def __init__(
        self,
        store: KnownStateStore,
        reporter: RemoteReporter,
        on_transition: Callable[[ReconcileState], None] | None = None,
    ) -> None:
        """
        Initialize the reconciler.

        Args:
            store: Known-state store (read before, written after reporting)
            reporter: Remote reporter for the delta
            on_transition: Optional callback invoked with every new state
        """
        self.store = store
        self.reporter = reporter
        self._on_transition = on_transition
        self.state = ReconcileState.IDLE

    def _transition(self, state: ReconcileState) -> None:
        logger.debug("Reconciler %s -> %s", self.state.value, state.value)
        self.state = state
        if self._on_transition is not None:
            self._on_transition(state)

    def plan(
        self,
        repo_identity: str,
        live: Sequence[Commit],
        order: LogOrder = LogOrder.OLDEST_FIRST,
    ) -> Delta:
        """
        Compute the delta a run would report, without reporting or writing.

        Raises:
            CorruptKnownStateError: If known state cannot be read
        """
        return compute_delta(live, self.store.get(repo_identity), order)

    def run(
        self,
        repo_identity: str,
        live: Sequence[Commit],
        order: LogOrder = LogOrder.OLDEST_FIRST,
        skipped: Sequence[SkippedCommit] = (),
    ) -> ReconcileResult:
        """
        Reconcile one repository.

        Args:
            repo_identity: Repository identity (known-state key)
            live: Commits currently reachable in local history
            order: Order of `live` as supplied
            skipped: Commits the caller could not hash, carried into the result

        Returns:
            ReconcileResult; `success` is False only for a report failure

        Raises:
            CorruptKnownStateError: If known state cannot be read. The run
                stops before reporting.
        """
        started_at = datetime.now()

        try:
            with self.store.lock(repo_identity):
                self._transition(ReconcileState.COMPUTING_DELTA)
                pairs = normalize_history(live, order)
                delta = diff_history(pairs, self.store.get(repo_identity))

                if delta.is_empty:
                    self._transition(ReconcileState.IDLE)
                    logger.info("%s is up to date", repo_identity[:12])
                    return ReconcileResult(
                        repo_identity=repo_identity,
                        success=True,
                        state=ReconcileState.IDLE,
                        delta=delta,
                        skipped=list(skipped),
                        started_at=started_at,
                        completed_at=datetime.now(),
                    )

                self._transition(ReconcileState.REPORTING)
                try:
                    report = self.reporter.report(repo_identity, delta.added, delta.deleted)
                except TransientReportError as e:
                    return self._failed(repo_identity, delta, str(e), skipped, started_at)

                if not report.success:
                    return self._failed(
                        repo_identity, delta, report.message, skipped, started_at
                    )

                self._transition(ReconcileState.COMMITTING)
                self.store.set(repo_identity, [identity for identity, _ in pairs])
                self._transition(ReconcileState.IDLE)

                logger.info("Reported %s for %s", delta.summary(), repo_identity[:12])
                return ReconcileResult(
                    repo_identity=repo_identity,
                    success=True,
                    state=ReconcileState.IDLE,
                    delta=delta,
                    committed=True,
                    message=report.message,
                    skipped=list(skipped),
                    started_at=started_at,
                    completed_at=datetime.now(),
                )
        finally:
            # Errors and cancellation land here too; nothing was committed
            self.state = ReconcileState.IDLE

    def _failed(
        self,
        repo_identity: str,
        delta: Delta,
        message: str,
        skipped: Sequence[SkippedCommit],
        started_at: datetime,
    ) -> ReconcileResult:
        self._transition(ReconcileState.REPORTING_FAILED)
        logger.warning(
            "Report failed for %s (%s), state left unchanged: %s",
            repo_identity[:12],
            delta.summary(),
            message,
        )
        return ReconcileResult(
            repo_identity=repo_identity,
            success=False,
            state=ReconcileState.REPORTING_FAILED,
            delta=delta,
            message=message,
            skipped=list(skipped),
            started_at=started_at,
            completed_at=datetime.now(),
        )
