"""
Pytest configuration and shared fixtures.

Provides commit factories, real temporary git repositories, and isolation
of XDG directories and COMMITSYNC_* environment variables.
"""

import os
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from commitsync.core.commits.models import Commit
from commitsync.core.config.loader import clear_cache
from commitsync.core.repos.registry import RepoRegistry
from commitsync.core.reporter.memory import InMemoryReporter
from commitsync.core.state.memory import InMemoryKnownStateStore
from commitsync.core.sync.service import SyncService

BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


# ==============================================================================
# Environment Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point XDG dirs at tmp_path and drop any COMMITSYNC_* settings."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    for key in list(os.environ):
        if key.startswith("COMMITSYNC_"):
            monkeypatch.delenv(key)
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Commit Fixtures
# ==============================================================================


@pytest.fixture
def make_commit():
    """
    Factory for Commit objects with deterministic timestamps.

    Parents may be given as Commit objects or identities.
    """

    def _make(
        message: str,
        parents: tuple = (),
        *,
        author_name: str = "Ada Lovelace",
        author_email: str = "ada@example.com",
        minute: int = 0,
        sha: str | None = None,
    ) -> Commit:
        return Commit(
            sha=sha,
            author_name=author_name,
            author_email=author_email,
            timestamp=BASE_TIME + timedelta(minutes=minute),
            message=message,
            parents=tuple(p.identity if isinstance(p, Commit) else p for p in parents),
        )

    return _make


@pytest.fixture
def linear_history(make_commit):
    """Factory for a linear history of `n` commits, oldest first."""

    def _history(n: int, prefix: str = "commit") -> list[Commit]:
        commits: list[Commit] = []
        for i in range(n):
            parents = (commits[-1],) if commits else ()
            commits.append(make_commit(f"{prefix} {i + 1}", parents, minute=i))
        return commits

    return _history


# ==============================================================================
# Git Repository Fixtures
# ==============================================================================


class GitRepo:
    """A real git repository in a temp directory with pinned commit dates."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._tick = 0

    def git(self, *args: str) -> str:
        env = os.environ.copy()
        date = (BASE_TIME + timedelta(minutes=self._tick)).isoformat()
        env["GIT_AUTHOR_DATE"] = date
        env["GIT_COMMITTER_DATE"] = date
        result = subprocess.run(
            ["git", *args],
            cwd=self.path,
            capture_output=True,
            check=True,
            text=True,
            env=env,
        )
        return result.stdout

    def init(self) -> "GitRepo":
        self.path.mkdir(parents=True, exist_ok=True)
        self.git("init", "-q")
        self.git("symbolic-ref", "HEAD", "refs/heads/main")
        self.git("config", "user.email", "test@example.com")
        self.git("config", "user.name", "Test User")
        self.git("config", "commit.gpgsign", "false")
        return self

    def commit(
        self, message: str, filename: str | None = None, author: str | None = None
    ) -> str:
        """Write a file, commit it, and return the new SHA."""
        self._tick += 1
        name = filename or f"file{self._tick}.txt"
        (self.path / name).write_text(f"{message}\n")
        self.git("add", name)
        extra = ["--author", author] if author else []
        self.git("commit", "-q", "-m", message, *extra)
        return self.git("rev-parse", "HEAD").strip()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD").strip()


@pytest.fixture
def make_git_repo(tmp_path):
    """Factory for initialized, empty git repositories under tmp_path."""

    def _make(name: str = "repo") -> GitRepo:
        return GitRepo(tmp_path / name).init()

    return _make


@pytest.fixture
def git_repo(make_git_repo):
    """A git repository with three linear commits on main."""
    repo = make_git_repo("project")
    repo.commit("Initial commit")
    repo.commit("Add feature")
    repo.commit("Fix bug")
    return repo


# ==============================================================================
# Service Fixtures
# ==============================================================================


@pytest.fixture
def memory_store():
    return InMemoryKnownStateStore()


@pytest.fixture
def memory_reporter():
    return InMemoryReporter()


@pytest.fixture
def registry(tmp_path):
    return RepoRegistry(tmp_path / "data" / "repos.json")


@pytest.fixture
def sync_service(memory_store, memory_reporter, registry):
    """SyncService wired to in-memory state and reporter."""
    return SyncService(store=memory_store, registry=registry, reporter=memory_reporter)
