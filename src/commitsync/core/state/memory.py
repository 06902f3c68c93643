"""
In-memory known-state store.

Used by tests and as the reference backend. Nothing survives the process.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from commitsync.core.state.store import KeyedLocks, dedupe


class InMemoryKnownStateStore:
    """
    Known-state store held in a dict.

    Example:
        >>> store = InMemoryKnownStateStore({"repo-1": ["c1", "c2"]})
        >>> sorted(store.get("repo-1"))
        ['c1', 'c2']
        >>> store.get("unknown")
        frozenset()
    """

    def __init__(self, initial: dict[str, Iterable[str]] | None = None) -> None:
        self._records: dict[str, list[str]] = {
            key: dedupe(value) for key, value in (initial or {}).items()
        }
        self._records_lock = threading.Lock()
        self._locks = KeyedLocks()
        self.writes = 0

    def get(self, repo_identity: str) -> frozenset[str]:
        with self._records_lock:
            return frozenset(self._records.get(repo_identity, ()))

    def get_ordered(self, repo_identity: str) -> list[str]:
        """Return the stored identities in the order they were written."""
        with self._records_lock:
            return list(self._records.get(repo_identity, ()))

    def set(self, repo_identity: str, identities: Iterable[str]) -> None:
        record = dedupe(identities)
        with self._records_lock:
            self._records[repo_identity] = record
            self.writes += 1

    @contextmanager
    def lock(self, repo_identity: str) -> Iterator[None]:
        with self._locks.get(repo_identity):
            yield
