"""
Commit data model.

A Commit is immutable once observed. Its identity is a content hash over
the author, message, timestamp and parent linkage; the git object id is
carried along for display only.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Commit(BaseModel):
    """
    A single commit as read from local history.

    `parents` holds the *identities* of parent commits, not git SHAs, so
    that identity stays a function of commit content alone.

    Example:
        >>> commit = Commit(
        ...     author_name="Ada",
        ...     author_email="ada@example.com",
        ...     timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        ...     message="Initial commit",
        ... )
        >>> len(commit.identity)
        64
    """

    model_config = ConfigDict(frozen=True)

    sha: str | None = Field(
        default=None,
        description="Git object id (informational, not part of identity)",
    )
    author_name: str = Field(min_length=1, description="Author display name")
    author_email: str = Field(description="Author email address")
    timestamp: datetime = Field(description="Author timestamp (timezone-aware)")
    message: str = Field(default="", description="Full commit message")
    parents: tuple[str, ...] = Field(
        default=(),
        description="Identities of parent commits",
    )

    @field_validator("timestamp")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        """Reject naive timestamps; they hash differently on every machine."""
        if v.tzinfo is None or v.utcoffset() is None:
            raise ValueError("timestamp must be timezone-aware")
        return v

    @property
    def identity(self) -> str:
        """Content hash identifying this commit."""
        from commitsync.core.commits.identity import commit_identity

        return commit_identity(self)

    @property
    def short_sha(self) -> str:
        """First 8 characters of the git SHA, or of the identity if unknown."""
        return (self.sha or self.identity)[:8]

    @property
    def subject(self) -> str:
        """First line of the commit message."""
        return self.message.split("\n", 1)[0]

    def to_payload(self) -> dict[str, object]:
        """Serialize for the remote API, including the identity."""
        return {
            "identity": self.identity,
            "sha": self.sha,
            "author_name": self.author_name,
            "author_email": self.author_email,
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
            "parents": list(self.parents),
        }
