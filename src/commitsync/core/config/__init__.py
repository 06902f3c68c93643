"""
Configuration models and loading.

This module provides Pydantic models for commitsync configuration
with multi-layer merging: defaults < user < env vars.
"""

from .env import get_api_token, load_layered_env
from .loader import (
    clear_cache,
    get_data_dir,
    get_registry_file,
    get_state_file,
    get_user_config_path,
    get_xdg_config_home,
    get_xdg_data_home,
    load_config,
)
from .models import CommitSyncConfig, RemoteConfig, StorageConfig, SyncConfig

__all__ = [
    # Models
    "CommitSyncConfig",
    "RemoteConfig",
    "StorageConfig",
    "SyncConfig",
    # Loader functions
    "clear_cache",
    "get_api_token",
    "get_data_dir",
    "get_registry_file",
    "get_state_file",
    "get_user_config_path",
    "get_xdg_config_home",
    "get_xdg_data_home",
    "load_config",
    "load_layered_env",
]
