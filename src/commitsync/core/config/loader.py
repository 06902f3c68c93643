"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import CommitSyncConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per process
_config_cache: CommitSyncConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_xdg_data_home() -> Path:
    """
    Get XDG data home directory.

    Returns:
        Path to data directory (defaults to ~/.local/share)
    """
    if xdg_home := os.environ.get("XDG_DATA_HOME"):
        return Path(xdg_home)
    return Path.home() / ".local" / "share"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/commitsync/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "commitsync" / "config.json"


def get_data_dir() -> Path:
    """Directory holding known state and the repository registry."""
    return get_xdg_data_home() / "commitsync"


def get_state_file(config: CommitSyncConfig) -> Path:
    """Resolve the known-state file path."""
    return (config.storage.state_file or get_data_dir() / "state.json").expanduser()


def get_registry_file(config: CommitSyncConfig) -> Path:
    """Resolve the repository registry file path."""
    return (config.storage.registry_file or get_data_dir() / "repos.json").expanduser()


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 30}})
        {'a': 1, 'b': {'x': 10, 'y': 30}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _section(result: dict[str, Any], name: str) -> dict[str, Any]:
    if not isinstance(result.get(name), dict):
        result[name] = {}
    section: dict[str, Any] = result[name]
    return section


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        COMMITSYNC_REMOTE_URL - overrides remote.base_url
        COMMITSYNC_TIMEOUT - overrides remote.timeout
        COMMITSYNC_STATE_FILE - overrides storage.state_file
        COMMITSYNC_MAX_WORKERS - overrides sync.max_workers
        COMMITSYNC_AUTHOR_EMAILS - overrides sync.author_emails (comma-separated)

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    if url := os.environ.get("COMMITSYNC_REMOTE_URL"):
        _section(result, "remote")["base_url"] = url

    if timeout_str := os.environ.get("COMMITSYNC_TIMEOUT"):
        try:
            _section(result, "remote")["timeout"] = float(timeout_str)
        except ValueError:
            logger.warning("Invalid COMMITSYNC_TIMEOUT value '%s', ignoring", timeout_str)

    if state_file := os.environ.get("COMMITSYNC_STATE_FILE"):
        _section(result, "storage")["state_file"] = state_file

    if workers_str := os.environ.get("COMMITSYNC_MAX_WORKERS"):
        try:
            workers = int(workers_str)
            if workers < 1:
                logger.warning("COMMITSYNC_MAX_WORKERS must be >= 1, got %d, ignoring", workers)
            else:
                _section(result, "sync")["max_workers"] = workers
        except ValueError:
            logger.warning("Invalid COMMITSYNC_MAX_WORKERS value '%s', ignoring", workers_str)

    if (emails := os.environ.get("COMMITSYNC_AUTHOR_EMAILS")) is not None:
        _section(result, "sync")["author_emails"] = emails

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "remote": {"timeout": 30.0, "chunk_size": 500, "max_retries": 3, "retry_backoff": 1.0},
        "sync": {"ref": "HEAD", "max_workers": 4},
    }


def load_config(use_cache: bool = True) -> CommitSyncConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (COMMITSYNC_*)
        2. User config (~/.config/commitsync/config.json)
        3. Hardcoded defaults

    Args:
        use_cache: If True, return cached config from previous load

    Returns:
        Validated CommitSyncConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    merged = apply_env_overrides(merged)

    config = CommitSyncConfig(**merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
