"""
Repository identity and the device repository registry.
"""

from commitsync.core.repos.identity import (
    choose_discriminator,
    normalize_discriminator,
    repo_identity,
)
from commitsync.core.repos.models import RepoEntry
from commitsync.core.repos.registry import RepoRegistry

__all__ = [
    "RepoEntry",
    "RepoRegistry",
    "choose_discriminator",
    "normalize_discriminator",
    "repo_identity",
]
