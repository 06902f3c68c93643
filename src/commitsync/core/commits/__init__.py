"""
Commit model and content-stable commit identity.

Example:
    >>> from commitsync.core.commits import build_commit
    >>> commit = build_commit(
    ...     author_name="Ada",
    ...     author_email="ada@example.com",
    ...     timestamp="2024-01-01T00:00:00+00:00",
    ...     message="Initial commit",
    ... )
    >>> commit.identity == commit_identity(commit)
    True
"""

from commitsync.core.commits.identity import build_commit, commit_identity
from commitsync.core.commits.models import Commit

__all__ = ["Commit", "build_commit", "commit_identity"]
