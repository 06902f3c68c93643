"""
Configuration data models for commitsync.

These models define the structure of ~/.config/commitsync/config.json,
with validation and type safety via Pydantic.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RemoteConfig(BaseModel):
    """
    Remote API settings.

    Without a base_url nothing can be reported; `status` still works.
    """
    base_url: Optional[str] = Field(
        default=None,
        description="Root URL of the commit-tracking API"
    )
    token_env_var: str = Field(
        default="COMMITSYNC_TOKEN",
        description="Environment variable holding the API bearer token"
    )
    timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Per-request timeout in seconds"
    )
    chunk_size: int = Field(
        default=500,
        ge=1,
        description="Maximum commits sent per request"
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries for transient failures inside one report"
    )
    retry_backoff: float = Field(
        default=1.0,
        gt=0.0,
        description="Seconds before the first retry; doubles on each further retry"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().rstrip("/")
        return v or None


class StorageConfig(BaseModel):
    """
    Where local state lives.

    Unset paths default to $XDG_DATA_HOME/commitsync/.
    """
    state_file: Optional[Path] = Field(
        default=None,
        description="Known-state JSON file"
    )
    registry_file: Optional[Path] = Field(
        default=None,
        description="Device repository registry JSON file"
    )


class SyncConfig(BaseModel):
    """
    Reconciliation run settings.
    """
    ref: str = Field(
        default="HEAD",
        min_length=1,
        description="Revision whose history is reported"
    )
    max_workers: int = Field(
        default=4,
        ge=1,
        description="Repositories reconciled concurrently"
    )
    author_emails: list[str] = Field(
        default_factory=list,
        description="Only report commits by these author emails (empty: all authors)"
    )

    @field_validator('author_emails', mode='before')
    @classmethod
    def split_author_emails(cls, v: object) -> object:
        """Accept a comma-separated string; drop blanks and normalize case."""
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, list):
            return [str(e).strip().lower() for e in v if str(e).strip()]
        return v


class CommitSyncConfig(BaseModel):
    """
    Top-level commitsync configuration.

    Loaded from defaults, user config and env vars.

    Example:
        >>> config = CommitSyncConfig(
        ...     remote=RemoteConfig(base_url="https://api.example.com/v1"),
        ...     sync=SyncConfig(max_workers=8),
        ... )
        >>> config.sync.ref
        'HEAD'
    """
    remote: RemoteConfig = Field(
        default_factory=RemoteConfig,
        description="Remote API settings"
    )
    storage: StorageConfig = Field(
        default_factory=StorageConfig,
        description="Local state locations"
    )
    sync: SyncConfig = Field(
        default_factory=SyncConfig,
        description="Reconciliation run settings"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )

    @field_validator('remote', mode='before')
    @classmethod
    def validate_remote(cls, v: object) -> object:
        """Accept a bare URL string for the remote section."""
        if isinstance(v, str):
            return {"base_url": v}
        return v
