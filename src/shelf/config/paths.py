"""Centralized path management for Shelf.

All state (config, database, logs, exports) is stored under a single base
directory. The base directory can be overridden with the SHELF_HOME
environment variable.

Default locations:
- Linux/macOS: ~/.shelf
- Windows: %USERPROFILE%\\.shelf
"""

import os
from functools import lru_cache
from pathlib import Path

ENV_VAR = "SHELF_HOME"


@lru_cache(maxsize=1)
def get_shelf_home() -> Path:
    """Get the base directory for all Shelf data.

    Resolution order:
    1. SHELF_HOME environment variable (if set)
    2. Platform default (~/.shelf)

    Returns:
        Path to the Shelf home directory.
    """
    if env_home := os.environ.get(ENV_VAR):
        return Path(env_home).expanduser().resolve()

    return Path.home() / ".shelf"


def get_config_path() -> Path:
    """Get the default config file path."""
    return get_shelf_home() / "config.toml"


def get_database_path(database_name: str = "UniversalDB") -> Path:
    """Get the SQLite file backing a named database."""
    return get_shelf_home() / "data" / f"{database_name}.db"


def get_logs_path() -> Path:
    """Get the default logs directory path."""
    return get_shelf_home() / "logs"


def get_exports_path() -> Path:
    """Get the directory where exports are written by default."""
    return get_shelf_home() / "exports"


def get_all_paths() -> dict[str, Path]:
    """Get all standard paths for debugging/display."""
    return {
        "home": get_shelf_home(),
        "config": get_config_path(),
        "database": get_database_path(),
        "logs": get_logs_path(),
        "exports": get_exports_path(),
    }
