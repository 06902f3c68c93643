"""
Repository sync service.

Connects the pieces for real repositories: reads history with git,
derives repository identity, and runs one reconciliation per registered
repository. Repositories are independent, so a run fans out over a
thread pool; runs for the same identity still serialize on the store's
lock.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path

from commitsync.core.config.env import get_api_token
from commitsync.core.config.loader import get_registry_file, get_state_file
from commitsync.core.commits.models import Commit
from commitsync.core.config.models import CommitSyncConfig
from commitsync.core.exceptions import CommitSyncError, RegistryError
from commitsync.core.http import RetryConfig
from commitsync.core.reconcile.models import SkippedCommit
from commitsync.core.reconcile.reconciler import Reconciler, compute_delta
from commitsync.core.repos.identity import choose_discriminator, repo_identity
from commitsync.core.repos.models import RepoEntry
from commitsync.core.repos.registry import RepoRegistry
from commitsync.core.reporter.backend import RemoteReporter
from commitsync.core.reporter.http import HttpReporter
from commitsync.core.state.json_store import JsonKnownStateStore
from commitsync.core.state.store import KnownStateStore
from commitsync.core.sync.models import RepoSyncOutcome, SyncRunResult
from commitsync.utils.git import get_remote_url, read_commits

logger = logging.getLogger(__name__)


class RootChangedError(CommitSyncError):
    """Raised when a registered repository's initial commit no longer matches."""

    pass


class SyncService:
    """
    Service for reconciling registered repositories with the remote.

    Example:
        >>> service = SyncService.from_config(load_config())
        >>> service.register(Path("~/src/widgets"))
        >>> result = service.sync_all()
        >>> print(result.summary())
    """

    def __init__(
        self,
        store: KnownStateStore,
        registry: RepoRegistry,
        reporter: RemoteReporter | None = None,
        ref: str = "HEAD",
        max_workers: int = 4,
        author_emails: Sequence[str] = (),
    ) -> None:
        """
        Initialize the sync service.

        Args:
            store: Known-state store shared by all repositories
            registry: Device repository registry
            reporter: Remote reporter; required for non-dry runs
            ref: Revision whose history is reported
            max_workers: Default concurrency for sync_all
            author_emails: Only report commits by these authors (empty: all)
        """
        self.store = store
        self.registry = registry
        self.reporter = reporter
        self.ref = ref
        self.max_workers = max_workers
        self.author_emails = frozenset(e.strip().lower() for e in author_emails if e.strip())

    @classmethod
    def from_config(cls, config: CommitSyncConfig) -> SyncService:
        """
        Build a service from configuration.

        The HTTP reporter is only created when a remote base URL is set.
        """
        reporter: RemoteReporter | None = None
        if config.remote.base_url:
            reporter = HttpReporter(
                config.remote.base_url,
                token=get_api_token(config),
                timeout=config.remote.timeout,
                chunk_size=config.remote.chunk_size,
                retry=RetryConfig.from_remote(config.remote),
            )

        return cls(
            store=JsonKnownStateStore(get_state_file(config)),
            registry=RepoRegistry(get_registry_file(config)),
            reporter=reporter,
            ref=config.sync.ref,
            max_workers=config.sync.max_workers,
            author_emails=config.sync.author_emails,
        )

    def describe(self, path: Path, discriminator: str | None = None) -> RepoEntry:
        """
        Derive the registry entry for a checkout without saving it.

        Args:
            path: Local repository path
            discriminator: Override for the clone URL / path discriminator

        Returns:
            RepoEntry with initial commit and repository identity

        Raises:
            GitError: If `path` is not a git repository
            RegistryError: If the repository has no commits yet
        """
        path = path.expanduser().resolve()
        log = read_commits(path, self.ref)
        if log.root is None:
            raise RegistryError(f"Repository has no commits at {self.ref}: {path}")

        if discriminator is None:
            discriminator = choose_discriminator(path, get_remote_url(path))

        initial = log.root.identity
        return RepoEntry(
            path=str(path),
            discriminator=discriminator,
            initial_commit=initial,
            identity=repo_identity(initial, discriminator),
        )

    def register(self, path: Path, discriminator: str | None = None) -> RepoEntry:
        """Derive and save the registry entry for a checkout."""
        return self.registry.add(self.describe(path, discriminator))

    def _own_commits(self, commits: list[Commit]) -> list[Commit]:
        """Keep commits by the configured authors; all commits when none are set."""
        if not self.author_emails:
            return commits
        return [c for c in commits if c.author_email.strip().lower() in self.author_emails]

    def sync_repo(self, entry: RepoEntry, dry_run: bool = False) -> RepoSyncOutcome:
        """
        Reconcile one registered repository.

        Args:
            entry: Registered repository
            dry_run: Compute the delta only; no report, no state write

        Returns:
            RepoSyncOutcome with the reconcile result or planned delta

        Raises:
            GitError: If history cannot be read
            RootChangedError: If the initial commit differs from registration
            CorruptKnownStateError: If known state cannot be read
            CommitSyncError: If no reporter is configured for a real run
        """
        if not dry_run and self.reporter is None:
            raise CommitSyncError("No remote configured; set remote.base_url")

        log = read_commits(Path(entry.path), self.ref)
        if log.root is not None and log.root.identity != entry.initial_commit:
            raise RootChangedError(
                f"Initial commit of {entry.path} changed since registration; "
                "re-register to report under a new identity"
            )

        skipped = [SkippedCommit(sha=e.sha, reason=str(e)) for e in log.errors]
        live = self._own_commits(log.commits)

        if dry_run:
            planned = compute_delta(live, self.store.get(entry.identity))
            return RepoSyncOutcome(
                path=entry.path,
                identity=entry.identity,
                planned=planned,
                skipped=len(skipped),
            )

        reconciler = Reconciler(store=self.store, reporter=self.reporter)
        result = reconciler.run(entry.identity, live, skipped=skipped)
        return RepoSyncOutcome(
            path=entry.path,
            identity=entry.identity,
            result=result,
            skipped=len(skipped),
        )

    def sync_all(
        self,
        entries: list[RepoEntry] | None = None,
        dry_run: bool = False,
        max_workers: int | None = None,
    ) -> SyncRunResult:
        """
        Reconcile several repositories concurrently.

        Failures are captured per repository; one broken repository never
        stops the others.

        Args:
            entries: Repositories to sync (defaults to the whole registry)
            dry_run: Compute deltas only
            max_workers: Concurrency (defaults to the service setting)

        Returns:
            SyncRunResult with outcomes in the order of `entries`
        """
        if entries is None:
            entries = self.registry.list_repos()

        run = SyncRunResult(dry_run=dry_run)
        if not entries:
            return run

        workers = min(max_workers or self.max_workers, len(entries))
        outcomes: dict[int, RepoSyncOutcome] = {}

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures: dict[Future[RepoSyncOutcome], int] = {}
            for index, entry in enumerate(entries):
                futures[executor.submit(self.sync_repo, entry, dry_run)] = index

            for future in as_completed(futures):
                index = futures[future]
                entry = entries[index]
                try:
                    outcomes[index] = future.result()
                except Exception as e:
                    # KeyboardInterrupt is not an Exception and still propagates
                    logger.error("Sync failed for %s: %s", entry.path, e)
                    outcomes[index] = RepoSyncOutcome(
                        path=entry.path,
                        identity=entry.identity,
                        error=str(e),
                        error_type=type(e).__name__,
                    )

        run.outcomes = [outcomes[i] for i in range(len(entries))]
        logger.info("Sync run finished: %s", run.summary())
        return run

