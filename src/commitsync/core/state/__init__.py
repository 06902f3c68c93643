"""
Known-state stores: what the remote has already acknowledged.

Example:
    >>> from commitsync.core.state import JsonKnownStateStore
    >>> store = JsonKnownStateStore(Path("state.json"))
    >>> store.get(repo_identity)
    frozenset()
"""

from commitsync.core.state.json_store import JsonKnownStateStore, KnownStateRecord
from commitsync.core.state.memory import InMemoryKnownStateStore
from commitsync.core.state.store import KnownStateStore

__all__ = [
    "InMemoryKnownStateStore",
    "JsonKnownStateStore",
    "KnownStateRecord",
    "KnownStateStore",
]
