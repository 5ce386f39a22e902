"""Default locations for the registry cache and global configuration."""

import os
from pathlib import Path

from shry.global_config import GLOBAL_CONFIG_FILE

CACHE_DIR_ENV_VAR = "SHRY_CACHE_DIR"
GLOBAL_CONFIG_ENV_VAR = "SHRY_GLOBAL_CONFIG"


def get_cache_dir() -> Path:
    """Get the registry cache directory.

    Resolution order:
    1. SHRY_CACHE_DIR environment variable (if set)
    2. Default: ~/.cache/shry/
    """
    env_value = os.environ.get(CACHE_DIR_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    return Path.home() / ".cache" / "shry"


def get_global_config_path() -> Path:
    """Get the global configuration file path.

    Resolution order:
    1. SHRY_GLOBAL_CONFIG environment variable (if set)
    2. Default: ~/.config/shry/config.yaml
    """
    env_value = os.environ.get(GLOBAL_CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value).expanduser()
    return Path.home() / ".config" / "shry" / GLOBAL_CONFIG_FILE
