"""
Exceptions for commitsync.

Exception Hierarchy:
    CommitSyncError (base)
    ├── IdentityComputationError (malformed commit metadata)
    ├── CorruptKnownStateError (persisted watermark cannot be read)
    ├── TransientReportError (remote unreachable or temporarily rejecting)
    └── RegistryError (device repository registry problems)

Example:
    >>> from commitsync.core.exceptions import CorruptKnownStateError
    >>> try:
    ...     store.get(repo_identity)
    ... except CorruptKnownStateError as e:
    ...     print(f"State for {e.repo_identity} is unreadable: {e}")
"""


class CommitSyncError(Exception):
    """
    Base exception for all commitsync errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class IdentityComputationError(CommitSyncError):
    """
    Raised when commit metadata is too malformed to hash.

    Fatal for the single commit only. Readers collect these per commit
    so unrelated commits in the same batch are still processed.
    """

    def __init__(self, message: str, sha: str | None = None, **context: object) -> None:
        super().__init__(message, sha=sha, **context)
        self.sha = sha


class CorruptKnownStateError(CommitSyncError):
    """
    Raised when the persisted known-state record cannot be parsed.

    Never treated as "no prior state": doing so would re-report the
    entire history of the repository.
    """

    def __init__(
        self,
        message: str,
        repo_identity: str | None = None,
        path: str | None = None,
        **context: object,
    ) -> None:
        super().__init__(message, repo_identity=repo_identity, path=path, **context)
        self.repo_identity = repo_identity
        self.path = path


class TransientReportError(CommitSyncError):
    """
    Raised by a reporter when the remote is unreachable or temporarily
    rejects a batch. The next run recomputes and resends the same delta.
    """

    def __init__(self, message: str, status_code: int | None = None, **context: object) -> None:
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code


class RegistryError(CommitSyncError):
    """Error from the device repository registry."""

    pass


__all__ = [
    "CommitSyncError",
    "CorruptKnownStateError",
    "IdentityComputationError",
    "RegistryError",
    "TransientReportError",
]
