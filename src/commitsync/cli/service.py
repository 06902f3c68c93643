"""
Shared service construction for CLI commands.
"""

from commitsync.core.config import load_config
from commitsync.core.sync import SyncService


def get_service() -> SyncService:
    """Build a SyncService from the layered configuration."""
    return SyncService.from_config(load_config())
