"""
Device repository registry backed by a JSON file.

Tracks every repository this device reports on, keyed by local path.
The registry is an explicit object handed to the sync service rather
than process-wide state.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from commitsync.core.exceptions import RegistryError
from commitsync.core.repos.models import RegistryFile, RepoEntry

logger = logging.getLogger(__name__)


class RepoRegistry:
    """
    Store for registered repositories.

    Example:
        >>> registry = RepoRegistry(Path("~/.local/share/commitsync/repos.json"))
        >>> registry.add(entry)
        >>> [e.path for e in registry.list_repos()]
        ['/home/ada/src/widgets']
    """

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path.expanduser()

    @property
    def file_path(self) -> Path:
        """Get the path to the registry file."""
        return self._file_path

    @staticmethod
    def _key(path: str | Path) -> str:
        return str(Path(path).expanduser().resolve())

    def _read_file(self) -> RegistryFile:
        if not self._file_path.exists():
            return RegistryFile()

        try:
            return RegistryFile.model_validate_json(self._file_path.read_text())
        except (ValidationError, ValueError) as e:
            raise RegistryError(f"Failed to parse registry {self._file_path}: {e}") from e

    def _write_file(self, content: RegistryFile) -> None:
        """Write the registry atomically."""
        self._file_path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            dir=self._file_path.parent,
            prefix=".repos_",
            suffix=".json.tmp",
        )

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content.model_dump_json(indent=2))
                f.write("\n")
            os.replace(temp_path, self._file_path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def list_repos(self) -> list[RepoEntry]:
        """Return all registered repositories in registration order."""
        return self._read_file().repos

    def get(self, path: str | Path) -> RepoEntry | None:
        """
        Look up a repository by its local path.

        Args:
            path: Local checkout path (resolved before comparison)

        Returns:
            RepoEntry if registered, None otherwise
        """
        key = self._key(path)
        for entry in self.list_repos():
            if entry.path == key:
                return entry
        return None

    def add(self, entry: RepoEntry) -> RepoEntry:
        """
        Register a repository, replacing any entry for the same path.

        Returns:
            The stored entry (with its path resolved)
        """
        stored = entry.model_copy(update={"path": self._key(entry.path)})
        content = self._read_file()
        content.repos = [e for e in content.repos if e.path != stored.path]
        content.repos.append(stored)
        self._write_file(content)
        logger.info("Registered %s as %s", stored.path, stored.short_identity)
        return stored

    def remove(self, path: str | Path) -> bool:
        """
        Unregister a repository.

        Returns:
            True if an entry was removed, False if none matched
        """
        key = self._key(path)
        content = self._read_file()
        remaining = [e for e in content.repos if e.path != key]
        if len(remaining) == len(content.repos):
            return False
        content.repos = remaining
        self._write_file(content)
        logger.info("Unregistered %s", key)
        return True
