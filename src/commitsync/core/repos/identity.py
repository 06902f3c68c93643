"""
Repository identity derivation.

A repository is identified by where its history begins (the initial
commit's identity) combined with the point it was observed from (the
discriminator: a clone URL or a local path). Root-only identity would
merge per-location reporting of the same project; discriminator-only
identity would merge unrelated projects cloned to the same place.
"""

from __future__ import annotations

import hashlib
from pathlib import Path


def normalize_discriminator(discriminator: str) -> str:
    """
    Normalize a discriminator so trivially different spellings agree.

    Strips surrounding whitespace, trailing slashes and a trailing
    ``.git`` suffix. Case is preserved: paths are case-sensitive on
    most filesystems.

    Example:
        >>> normalize_discriminator("https://github.com/acme/widgets.git/")
        'https://github.com/acme/widgets'
    """
    normalized = discriminator.strip().rstrip("/")
    if normalized.endswith(".git"):
        normalized = normalized[: -len(".git")].rstrip("/")
    return normalized


def repo_identity(initial_commit_identity: str, discriminator: str) -> str:
    """
    Compute the identity of an observed repository.

    Args:
        initial_commit_identity: Identity of the root commit
        discriminator: Clone URL or local path the history was observed from

    Returns:
        64-character lowercase hex digest

    Raises:
        ValueError: If either input is empty
    """
    if not initial_commit_identity:
        raise ValueError("initial_commit_identity cannot be empty")

    normalized = normalize_discriminator(discriminator)
    if not normalized:
        raise ValueError("discriminator cannot be empty")

    material = f"{initial_commit_identity}\0{normalized}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def choose_discriminator(path: Path, remote_url: str | None = None) -> str:
    """
    Pick the discriminator for a local checkout.

    Resolution order:
    1. The ``origin`` remote URL, so checkouts of the same remote agree
       regardless of where they live on disk
    2. The resolved absolute path of the checkout

    Args:
        path: Local repository path
        remote_url: URL of the origin remote, if any

    Returns:
        Normalized discriminator string
    """
    if remote_url and remote_url.strip():
        return normalize_discriminator(remote_url)
    return normalize_discriminator(str(path.expanduser().resolve()))
