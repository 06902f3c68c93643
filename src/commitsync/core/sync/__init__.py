"""
Repository sync service.

Reads local history for each registered repository and reconciles it
with the remote, one pipeline per repository.

Example:
    >>> from commitsync.core.sync import SyncService
    >>> service = SyncService.from_config(load_config())
    >>> result = service.sync_all(dry_run=True)
    >>> for outcome in result.outcomes:
    ...     print(outcome.path, outcome.delta.summary())
"""

from commitsync.core.sync.models import RepoSyncOutcome, SyncRunResult
from commitsync.core.sync.service import RootChangedError, SyncService

__all__ = [
    "RepoSyncOutcome",
    "RootChangedError",
    "SyncRunResult",
    "SyncService",
]
