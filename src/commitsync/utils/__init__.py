"""Utility modules for commitsync."""

from .git import CommitLog, GitError, get_remote_url, is_git_repo, read_commits

__all__ = [
    "CommitLog",
    "GitError",
    "get_remote_url",
    "is_git_repo",
    "read_commits",
]
