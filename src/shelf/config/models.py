"""Configuration models using Pydantic."""

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from shelf.config.paths import get_database_path
from shelf.schema import Schema, default_schema

logger = logging.getLogger(__name__)


class StoreConfig(BaseModel):
    """Configuration for the object store holding records.

    Bumping `version` provisions indexes for search fields added since the
    store was created. Lowering it refuses to open the store.
    """

    name: str = "records"
    version: int = Field(default=1, ge=1)
    # None = derive from SHELF_HOME and the database name
    database_path: Path | None = None


class ConfigError(Exception):
    """Configuration error."""

    pass


class ShelfConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(populate_by_name=True)

    app_title: str = "Universal Database"
    database_name: str = "UniversalDB"
    store: StoreConfig = Field(default_factory=StoreConfig)
    schema_: Schema = Field(default_factory=default_schema, alias="schema")

    @property
    def database_path(self) -> Path:
        """Resolved SQLite file path for the configured database."""
        if self.store.database_path is not None:
            return self.store.database_path.expanduser()
        return get_database_path(self.database_name)
