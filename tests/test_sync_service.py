"""
Tests for SyncService against real git repositories.
"""

from pathlib import Path

import pytest

from commitsync.core.config.models import CommitSyncConfig, RemoteConfig, StorageConfig
from commitsync.core.exceptions import CommitSyncError, RegistryError
from commitsync.core.reporter.http import HttpReporter
from commitsync.core.state.json_store import JsonKnownStateStore
from commitsync.core.state.memory import InMemoryKnownStateStore
from commitsync.core.sync import RootChangedError, SyncService
from commitsync.utils.git import GitError, read_commits


class TestRegister:
    def test_register_uses_path_without_origin(self, sync_service, git_repo):
        entry = sync_service.register(git_repo.path)

        root = read_commits(git_repo.path).root
        assert entry.path == str(git_repo.path.resolve())
        assert entry.discriminator == str(git_repo.path.resolve())
        assert entry.initial_commit == root.identity
        assert sync_service.registry.get(git_repo.path) == entry

    def test_register_prefers_origin(self, sync_service, git_repo):
        git_repo.git("remote", "add", "origin", "https://github.com/acme/widgets.git")
        entry = sync_service.register(git_repo.path)
        assert entry.discriminator == "https://github.com/acme/widgets"

    def test_explicit_discriminator(self, sync_service, git_repo):
        entry = sync_service.register(git_repo.path, discriminator="device-1:/work")
        assert entry.discriminator == "device-1:/work"

    def test_register_is_deterministic(self, sync_service, git_repo):
        first = sync_service.describe(git_repo.path)
        second = sync_service.describe(git_repo.path)
        assert first.identity == second.identity

    def test_empty_repo_rejected(self, sync_service, make_git_repo):
        with pytest.raises(RegistryError, match="no commits"):
            sync_service.register(make_git_repo("empty").path)

    def test_not_a_repo_rejected(self, sync_service, tmp_path):
        plain = tmp_path / "plain"
        plain.mkdir()
        with pytest.raises(GitError):
            sync_service.register(plain)


class TestForkDisambiguation:
    def test_same_history_different_location(self, sync_service, make_git_repo):
        """Clones of one history at different paths get different identities."""
        a = make_git_repo("a")
        b = make_git_repo("b")
        a.commit("Initial commit")
        b.commit("Initial commit")

        entry_a = sync_service.describe(a.path)
        entry_b = sync_service.describe(b.path)

        assert entry_a.initial_commit == entry_b.initial_commit
        assert entry_a.identity != entry_b.identity

    def test_same_origin_agrees_across_locations(self, sync_service, make_git_repo):
        a = make_git_repo("a")
        b = make_git_repo("b")
        for repo in (a, b):
            repo.commit("Initial commit")
            repo.git("remote", "add", "origin", "https://github.com/acme/widgets.git")

        assert sync_service.describe(a.path).identity == sync_service.describe(b.path).identity

    def test_unrelated_histories_differ(self, sync_service, make_git_repo):
        a = make_git_repo("a")
        b = make_git_repo("b")
        a.commit("Start project A")
        b.commit("Start project B")
        assert sync_service.describe(a.path).identity != sync_service.describe(b.path).identity


class TestSyncRepo:
    def test_first_sync_reports_history(self, sync_service, memory_reporter, git_repo):
        entry = sync_service.register(git_repo.path)

        outcome = sync_service.sync_repo(entry)

        assert outcome.success
        assert outcome.result.committed
        assert [c.subject for c in memory_reporter.received_added] == [
            "Initial commit",
            "Add feature",
            "Fix bug",
        ]

    def test_second_sync_is_noop(self, sync_service, memory_reporter, git_repo):
        entry = sync_service.register(git_repo.path)
        sync_service.sync_repo(entry)

        outcome = sync_service.sync_repo(entry)

        assert outcome.delta.is_empty
        assert len(memory_reporter.calls) == 1

    def test_new_commit_only(self, sync_service, memory_reporter, git_repo):
        entry = sync_service.register(git_repo.path)
        sync_service.sync_repo(entry)
        git_repo.commit("Another change")

        outcome = sync_service.sync_repo(entry)

        assert [c.subject for c in outcome.delta.added] == ["Another change"]
        assert outcome.delta.deleted == []

    def test_amend_reports_deletion(self, sync_service, memory_reporter, git_repo):
        entry = sync_service.register(git_repo.path)
        sync_service.sync_repo(entry)
        old_tip = read_commits(git_repo.path).commits[-1]

        git_repo.git("commit", "-q", "--amend", "-m", "Fix bug properly")
        outcome = sync_service.sync_repo(entry)

        assert [c.subject for c in outcome.delta.added] == ["Fix bug properly"]
        assert outcome.delta.deleted == [old_tip.identity]

    def test_failed_report_retried_next_run(self, sync_service, memory_reporter, git_repo):
        entry = sync_service.register(git_repo.path)
        memory_reporter.fail_next(unreachable=True)

        first = sync_service.sync_repo(entry)
        second = sync_service.sync_repo(entry)

        assert not first.success
        assert second.success
        assert len(second.delta.added) == 3

    def test_dry_run_writes_nothing(self, sync_service, memory_store, memory_reporter, git_repo):
        entry = sync_service.register(git_repo.path)

        outcome = sync_service.sync_repo(entry, dry_run=True)

        assert outcome.result is None
        assert len(outcome.planned.added) == 3
        assert memory_reporter.calls == []
        assert memory_store.writes == 0

    def test_dry_run_without_reporter(self, memory_store, registry, git_repo):
        service = SyncService(store=memory_store, registry=registry)
        entry = service.register(git_repo.path)
        assert service.sync_repo(entry, dry_run=True).success

    def test_real_run_without_reporter_raises(self, memory_store, registry, git_repo):
        service = SyncService(store=memory_store, registry=registry)
        entry = service.register(git_repo.path)
        with pytest.raises(CommitSyncError, match="No remote configured"):
            service.sync_repo(entry)

    def test_root_drift_raises(self, sync_service, git_repo):
        entry = sync_service.register(git_repo.path)
        git_repo.git("checkout", "-q", "--orphan", "fresh")
        git_repo.commit("Brand new root")

        with pytest.raises(RootChangedError):
            sync_service.sync_repo(entry)

    def test_author_filter_skips_foreign_commits(
        self, memory_store, memory_reporter, registry, git_repo
    ):
        git_repo.commit("Vendored upstream fix", author="Upstream Dev <upstream@example.org>")
        git_repo.commit("Own follow-up")
        service = SyncService(
            store=memory_store,
            registry=registry,
            reporter=memory_reporter,
            author_emails=[" Test@Example.com "],
        )
        entry = service.register(git_repo.path)

        outcome = service.sync_repo(entry)

        subjects = [c.subject for c in memory_reporter.received_added]
        assert "Vendored upstream fix" not in subjects
        assert subjects[-1] == "Own follow-up"
        assert len(memory_store.get(entry.identity)) == 4
        assert outcome.success

    def test_no_author_filter_reports_everyone(self, sync_service, memory_reporter, git_repo):
        git_repo.commit("Vendored upstream fix", author="Upstream Dev <upstream@example.org>")
        entry = sync_service.register(git_repo.path)

        sync_service.sync_repo(entry)

        assert len(memory_reporter.received_added) == 4

    def test_root_by_foreign_author_still_registers(self, memory_store, registry, make_git_repo):
        repo = make_git_repo("forked")
        repo.commit("Upstream start", author="Upstream Dev <upstream@example.org>")
        repo.commit("Own change")
        service = SyncService(
            store=memory_store, registry=registry, author_emails=["test@example.com"]
        )
        entry = service.register(repo.path)

        outcome = service.sync_repo(entry, dry_run=True)

        assert [c.subject for c in outcome.planned.added] == ["Own change"]


class TestSyncAll:
    def test_syncs_every_registered_repo(self, sync_service, memory_store, make_git_repo):
        repos = [make_git_repo(f"repo{i}") for i in range(3)]
        for i, repo in enumerate(repos):
            repo.commit(f"Start repo {i}")
            sync_service.register(repo.path)

        run = sync_service.sync_all()

        assert run.success
        assert run.succeeded == 3
        assert [o.path for o in run.outcomes] == [str(r.path.resolve()) for r in repos]
        for outcome in run.outcomes:
            assert len(memory_store.get(outcome.identity)) == 1

    def test_failure_isolated_per_repo(self, sync_service, make_git_repo):
        good = make_git_repo("good")
        bad = make_git_repo("bad")
        good.commit("Good start")
        bad.commit("Bad start")
        sync_service.register(good.path)
        sync_service.register(bad.path)
        bad.git("checkout", "-q", "--orphan", "other")
        bad.commit("Different root")

        run = sync_service.sync_all(max_workers=2)

        assert not run.success
        assert run.succeeded == 1
        failed = [o for o in run.outcomes if not o.success][0]
        assert failed.error_type == "RootChangedError"
        assert "1 failed" in run.summary()

    def test_missing_checkout_is_captured(self, sync_service, git_repo, tmp_path):
        entry = sync_service.register(git_repo.path)
        moved = entry.model_copy(update={"path": str(tmp_path / "gone")})

        run = sync_service.sync_all([moved])

        assert run.outcomes[0].error_type == "GitError"

    def test_empty_registry(self, sync_service):
        run = sync_service.sync_all()
        assert run.outcomes == []
        assert run.success

    def test_dry_run_summary(self, sync_service, git_repo):
        sync_service.register(git_repo.path)
        run = sync_service.sync_all(dry_run=True)
        assert run.summary() == "1 planned"

    def test_unexpected_store_error_is_captured(
        self, registry, memory_reporter, make_git_repo
    ):
        good = make_git_repo("good")
        bad = make_git_repo("bad")
        good.commit("Good start")
        bad.commit("Bad start")

        class ReadOnlyStore(InMemoryKnownStateStore):
            read_only: frozenset[str] = frozenset()

            def set(self, repo_identity, identities):
                if repo_identity in self.read_only:
                    raise PermissionError("state file not writable")
                super().set(repo_identity, identities)

        store = ReadOnlyStore()
        service = SyncService(store=store, registry=registry, reporter=memory_reporter)
        service.register(good.path)
        bad_entry = service.register(bad.path)
        store.read_only = frozenset({bad_entry.identity})

        run = service.sync_all(max_workers=2)

        assert run.succeeded == 1
        assert run.failed == 1
        failed = [o for o in run.outcomes if not o.success][0]
        assert failed.identity == bad_entry.identity
        assert failed.error_type == "PermissionError"
        assert "not writable" in failed.error


class TestFromConfig:
    def test_without_remote(self, tmp_path):
        config = CommitSyncConfig(
            storage=StorageConfig(
                state_file=tmp_path / "s.json", registry_file=tmp_path / "r.json"
            )
        )
        service = SyncService.from_config(config)

        assert service.reporter is None
        assert isinstance(service.store, JsonKnownStateStore)
        assert service.store.file_path == tmp_path / "s.json"
        assert service.registry.file_path == tmp_path / "r.json"

    def test_with_remote(self, monkeypatch):
        monkeypatch.setenv("COMMITSYNC_TOKEN", "s3cret")
        config = CommitSyncConfig(remote=RemoteConfig(base_url="https://api.example.com/v1/"))

        service = SyncService.from_config(config)

        assert isinstance(service.reporter, HttpReporter)
        assert service.reporter.base_url == "https://api.example.com/v1"
        assert service.reporter.retry.max_retries == config.remote.max_retries

    def test_default_paths_under_xdg_data(self, tmp_path):
        service = SyncService.from_config(CommitSyncConfig())
        assert service.store.file_path == Path(tmp_path / "xdg-data" / "commitsync" / "state.json")

    def test_author_emails_wired(self):
        config = CommitSyncConfig(sync={"author_emails": "Me@Example.com, alt@example.com"})
        service = SyncService.from_config(config)
        assert service.author_emails == {"me@example.com", "alt@example.com"}
