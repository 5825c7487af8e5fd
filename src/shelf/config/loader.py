"""Configuration loading from TOML files and environment variables."""

import os
import tomllib
from pathlib import Path
from typing import Any

from shelf.config.models import ConfigError, ShelfConfig
from shelf.config.paths import get_config_path

DATABASE_PATH_ENV_VAR = "SHELF_DATABASE_PATH"


def _get_default_config_paths() -> list[Path]:
    """Get ordered list of default config file locations."""
    return [
        Path("config.toml"),  # Current directory
        get_config_path(),  # ~/.shelf/config.toml (or SHELF_HOME)
    ]


def _resolve_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply environment overrides where the file leaves a value unset."""
    if value := os.environ.get(DATABASE_PATH_ENV_VAR):
        store = config.setdefault("store", {})
        if store.get("database_path") is None:
            store["database_path"] = value
    return config


def load_config(path: Path | None = None) -> ShelfConfig:
    """Load configuration from TOML file.

    Args:
        path: Explicit path to config file. If None, searches default locations.

    Returns:
        Validated ShelfConfig instance.

    Raises:
        FileNotFoundError: If an explicit path does not exist.
        ConfigError: If the file is not valid TOML.
        ValueError: If the config fails validation.
    """
    config_path: Path | None = None

    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for default_path in _get_default_config_paths():
            expanded = default_path.expanduser()
            if expanded.exists():
                config_path = expanded
                break

    # No config file anywhere: run with the stock schema
    if config_path is None:
        return get_default_config()

    try:
        with config_path.open("rb") as f:
            raw_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    raw_config = _resolve_env_overrides(raw_config)

    return ShelfConfig.model_validate(raw_config)


def get_default_config() -> ShelfConfig:
    """Get a default configuration for development/testing."""
    return ShelfConfig.model_validate(_resolve_env_overrides({}))
