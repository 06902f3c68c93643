"""
Commit identity hashing.

The identity is a SHA-256 digest over a canonical JSON encoding of the
commit's immutable metadata. Two structurally identical commits always
hash the same; commits differing in author, time, message or ancestry
never do.
"""

from __future__ import annotations

import hashlib
import json
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from commitsync.core.commits.models import Commit
from commitsync.core.exceptions import IdentityComputationError


def _canonical_timestamp(ts: datetime) -> str:
    # Normalize to UTC so the same instant hashes the same across offsets
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def commit_identity(commit: Commit) -> str:
    """
    Compute the content hash for a commit.

    Args:
        commit: A validated Commit

    Returns:
        64-character lowercase hex digest
    """
    payload = [
        commit.author_name,
        commit.author_email,
        _canonical_timestamp(commit.timestamp),
        commit.message,
        list(commit.parents),
    ]
    encoded = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def build_commit(**fields: Any) -> Commit:
    """
    Validate raw commit metadata and build a Commit.

    This is the gate that keeps malformed input away from
    `commit_identity`.

    Args:
        **fields: Commit fields (sha, author_name, author_email,
                  timestamp, message, parents). `timestamp` may be a
                  datetime or an ISO-8601 string.

    Returns:
        Validated Commit

    Raises:
        IdentityComputationError: If required metadata is missing or invalid
    """
    sha = fields.get("sha")

    timestamp = fields.get("timestamp")
    if timestamp is None or timestamp == "":
        raise IdentityComputationError(
            f"Commit {sha or '<unknown>'} has no timestamp", sha=sha
        )
    if isinstance(timestamp, str):
        try:
            fields["timestamp"] = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        except ValueError as e:
            raise IdentityComputationError(
                f"Commit {sha or '<unknown>'} has an unparseable timestamp: {timestamp!r}",
                sha=sha,
            ) from e

    try:
        return Commit.model_validate(fields)
    except ValidationError as e:
        fields_in_error = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        raise IdentityComputationError(
            f"Commit {sha or '<unknown>'} has malformed metadata: {fields_in_error}",
            sha=sha,
        ) from e
