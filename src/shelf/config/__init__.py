"""Configuration module."""

from shelf.config.loader import get_default_config, load_config
from shelf.config.models import ConfigError, ShelfConfig, StoreConfig
from shelf.config.paths import (
    get_config_path,
    get_database_path,
    get_logs_path,
    get_shelf_home,
)

__all__ = [
    "ConfigError",
    "ShelfConfig",
    "StoreConfig",
    "get_config_path",
    "get_database_path",
    "get_default_config",
    "get_logs_path",
    "get_shelf_home",
    "load_config",
]
