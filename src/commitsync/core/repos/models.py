"""
Data models for the device repository registry.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class RepoEntry(BaseModel):
    """
    A repository known to this device.

    Example:
        >>> entry = RepoEntry(
        ...     path="/home/ada/src/widgets",
        ...     discriminator="https://github.com/acme/widgets",
        ...     initial_commit="9f2c...",
        ...     identity="41ab...",
        ... )
    """

    path: str = Field(description="Absolute path of the local checkout")
    discriminator: str = Field(description="Clone URL or path used to derive identity")
    initial_commit: str = Field(description="Identity of the root commit")
    identity: str = Field(description="Repository identity (known-state key)")
    added_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the repository was registered",
    )

    @property
    def short_identity(self) -> str:
        return self.identity[:12]


class RegistryFile(BaseModel):
    """On-disk layout of the registry file."""

    version: int = Field(default=1)
    repos: list[RepoEntry] = Field(default_factory=list)
