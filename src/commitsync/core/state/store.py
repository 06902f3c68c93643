"""
Known-state store protocol.

A known-state store remembers, per repository identity, which commit
identities the remote has acknowledged. The reconciler only writes to it
after a successful report, so it doubles as the resume point for
interrupted runs.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from contextlib import AbstractContextManager
from typing import Protocol, runtime_checkable


@runtime_checkable
class KnownStateStore(Protocol):
    """
    Protocol for known-state backends.

    Backends are responsible for:
    - Returning the acknowledged identity set for a repository
      (empty when the repository is unknown)
    - Replacing that set atomically with respect to concurrent readers
    - Providing a per-repository lock so at most one run writes a key
      at a time
    """

    def get(self, repo_identity: str) -> frozenset[str]:
        """
        Get the acknowledged commit identities for a repository.

        Args:
            repo_identity: Repository identity

        Returns:
            Set of commit identities (empty if the repository is unknown)

        Raises:
            CorruptKnownStateError: If the stored record cannot be read
        """
        ...

    def set(self, repo_identity: str, identities: Iterable[str]) -> None:
        """
        Replace the acknowledged commit identities for a repository.

        Args:
            repo_identity: Repository identity
            identities: Commit identities in oldest-first order
        """
        ...

    def lock(self, repo_identity: str) -> AbstractContextManager[None]:
        """
        Acquire exclusive access to a repository's record.

        Args:
            repo_identity: Repository identity

        Returns:
            Context manager held for the duration of one run. Not
            re-entrant; `get` and `set` may be called while it is held.
        """
        ...


class KeyedLocks:
    """
    Registry of per-key locks.

    Different keys never block each other; the same key is held by at
    most one thread at a time. Locks are not re-entrant: a thread that
    already holds a key must not acquire it again.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def get(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock


def dedupe(identities: Iterable[str]) -> list[str]:
    """Drop repeated identities, keeping first occurrence order."""
    return list(dict.fromkeys(identities))
