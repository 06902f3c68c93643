"""Load `.env` files into the process environment.

Two files are read: the user file (~/.config/commitsync/.env) and the
`.env` in the working directory. Only commitsync's own keys are taken
from them, so a project's unrelated `.env` settings never leak into the
process. The working-directory file beats the user file; neither
replaces a variable already exported in the shell.
"""

import logging
import os
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home
from .models import CommitSyncConfig

logger = logging.getLogger(__name__)

ENV_PREFIX = "COMMITSYNC_"
DEFAULT_TOKEN_ENV_VAR = "COMMITSYNC_TOKEN"


def get_user_env_path() -> Path:
    return get_xdg_config_home() / "commitsync" / ".env"


def read_env_file(path: Path, token_env_var: str = DEFAULT_TOKEN_ENV_VAR) -> dict[str, str]:
    """Return the COMMITSYNC_* keys (and the token variable) set in one file."""
    if not path.is_file():
        return {}
    return {
        key: value
        for key, value in dotenv_values(path).items()
        if value is not None and (key.startswith(ENV_PREFIX) or key == token_env_var)
    }


def load_layered_env(
    *, cwd: Path | None = None, token_env_var: str = DEFAULT_TOKEN_ENV_VAR
) -> list[str]:
    """
    Copy values from the user and working-directory `.env` files into os.environ.

    Args:
        cwd: Directory holding the local `.env` (defaults to the cwd)
        token_env_var: Token variable to accept even without the prefix

    Returns:
        Sorted names of the variables that were set
    """
    values = read_env_file(get_user_env_path(), token_env_var)
    values.update(read_env_file((cwd or Path.cwd()) / ".env", token_env_var))

    applied = sorted(key for key in values if key not in os.environ)
    for key in applied:
        os.environ[key] = values[key]
    if applied:
        logger.debug("Loaded from .env: %s", ", ".join(applied))
    return applied


def get_api_token(config: CommitSyncConfig) -> str | None:
    """Read the API token from the env var named in the config."""
    token = os.environ.get(config.remote.token_env_var, "").strip()
    return token or None
