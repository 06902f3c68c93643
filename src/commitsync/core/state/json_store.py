"""
JSON known-state store.

Persists every repository's acknowledged commit identities in a single
JSON file:

    {
      "version": 1,
      "repos": {
        "<repo identity>": {
          "commits": ["<commit identity>", ...],
          "updated_at": "2024-01-01T00:00:00Z"
        }
      }
    }

Each repository entry is validated on its own, so a damaged entry only
fails runs for that repository. Writes go through a temp file and
`os.replace`. Cross-process exclusion uses `fcntl.flock`: a per-repository
lock file for the duration of a run, and a store-wide lock file around
each read-modify-write of the shared JSON file.
"""

from __future__ import annotations

import fcntl
import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from commitsync.core.exceptions import CorruptKnownStateError
from commitsync.core.state.store import KeyedLocks, dedupe

logger = logging.getLogger(__name__)

STATE_VERSION = 1


class KnownStateRecord(BaseModel):
    """Persisted record for one repository."""

    commits: list[str] = Field(default_factory=list)
    updated_at: datetime | None = Field(default=None)


@contextmanager
def _flock(path: Path) -> Iterator[None]:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a+") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


class JsonKnownStateStore:
    """
    Known-state store backed by a JSON file.

    Example:
        >>> store = JsonKnownStateStore(Path("~/.local/share/commitsync/state.json"))
        >>> with store.lock(repo_id):
        ...     known = store.get(repo_id)
        ...     store.set(repo_id, [c.identity for c in live])
    """

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path.expanduser()
        self._file_lock_path = self._file_path.with_name(self._file_path.name + ".lock")
        self._locks_dir = self._file_path.parent / "locks"
        self._key_locks = KeyedLocks()
        self._file_guard = threading.Lock()

    @property
    def file_path(self) -> Path:
        """Get the path to the state file."""
        return self._file_path

    def _read_raw(self) -> dict[str, Any]:
        """Read the whole file, failing loudly on anything unparseable."""
        if not self._file_path.exists():
            return {"version": STATE_VERSION, "repos": {}}

        try:
            data = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptKnownStateError(
                f"Failed to parse known-state file {self._file_path}: {e}",
                path=str(self._file_path),
            ) from e

        if not isinstance(data, dict) or not isinstance(data.get("repos"), dict):
            raise CorruptKnownStateError(
                f"Known-state file {self._file_path} has no 'repos' mapping",
                path=str(self._file_path),
            )

        version = data.get("version", STATE_VERSION)
        if version != STATE_VERSION:
            raise CorruptKnownStateError(
                f"Unsupported known-state version {version!r} in {self._file_path}",
                path=str(self._file_path),
            )
        return data

    def _write_raw(self, data: dict[str, Any]) -> None:
        """Write the whole file atomically."""
        self._file_path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            dir=self._file_path.parent,
            prefix=".state_",
            suffix=".json.tmp",
        )

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self._file_path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def get(self, repo_identity: str) -> frozenset[str]:
        return frozenset(self.get_record(repo_identity).commits)

    def get_record(self, repo_identity: str) -> KnownStateRecord:
        """
        Get the full persisted record for a repository.

        Raises:
            CorruptKnownStateError: If the file or this repository's entry
                cannot be parsed
        """
        raw = self._read_raw()["repos"].get(repo_identity)
        if raw is None:
            return KnownStateRecord()

        try:
            return KnownStateRecord.model_validate(raw)
        except ValidationError as e:
            raise CorruptKnownStateError(
                f"Known-state entry for {repo_identity[:12]} is malformed: {e}",
                repo_identity=repo_identity,
                path=str(self._file_path),
            ) from e

    def set(self, repo_identity: str, identities: Iterable[str]) -> None:
        record = KnownStateRecord(
            commits=dedupe(identities),
            updated_at=datetime.now(timezone.utc),
        )

        with self._file_guard, _flock(self._file_lock_path):
            data = self._read_raw()
            data["version"] = STATE_VERSION
            data["repos"][repo_identity] = record.model_dump(mode="json")
            self._write_raw(data)

        logger.debug(
            "Stored %d known commits for %s", len(record.commits), repo_identity[:12]
        )

    @contextmanager
    def lock(self, repo_identity: str) -> Iterator[None]:
        with self._key_locks.get(repo_identity):
            with _flock(self._locks_dir / f"{repo_identity}.lock"):
                yield
