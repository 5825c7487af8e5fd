"""Configuration writer for config.toml.

Uses tomlkit so that edits to an existing file keep its comments,
formatting and ordering.
"""

import logging
from pathlib import Path

import tomlkit
from tomlkit import TOMLDocument, aot, comment, nl, table

from shelf.config.models import ShelfConfig
from shelf.config.paths import get_config_path

logger = logging.getLogger(__name__)


def render_config(config: ShelfConfig) -> str:
    """Render a config as a commented TOML document."""
    doc = tomlkit.document()
    doc.add(comment("Shelf configuration"))
    doc.add(nl())
    doc["app_title"] = config.app_title
    doc["database_name"] = config.database_name

    store = table()
    store.add(comment("Bump version after adding search fields to index them"))
    store["name"] = config.store.name
    store["version"] = config.store.version
    if config.store.database_path is not None:
        store["database_path"] = str(config.store.database_path)
    doc["store"] = store

    schema = config.schema_
    schema_table = table()
    schema_table["search_fields"] = list(schema.search_fields)
    if schema.timestamp_field is not None:
        schema_table["timestamp_field"] = schema.timestamp_field
    schema_table["max_date"] = schema.max_date

    fields = aot()
    for descriptor in schema.fields:
        entry = table()
        for key, value in descriptor.model_dump(
            mode="json", exclude_defaults=True
        ).items():
            entry[key] = value
        fields.append(entry)
    schema_table["fields"] = fields
    doc["schema"] = schema_table

    return tomlkit.dumps(doc)


class ConfigWriter:
    """Writer for creating and modifying config.toml."""

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or get_config_path()
        self._doc: TOMLDocument | None = None

    def _load(self) -> TOMLDocument:
        """Load the config file, creating an empty document if missing."""
        if self._doc is not None:
            return self._doc

        if self.config_path.exists():
            self._doc = tomlkit.parse(self.config_path.read_text(encoding="utf-8"))
        else:
            self._doc = tomlkit.document()

        return self._doc

    def _save(self) -> None:
        if self._doc is None:
            return

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(tomlkit.dumps(self._doc), encoding="utf-8")
        logger.debug("config_saved", extra={"config.path": str(self.config_path)})

    def write_template(self, config: ShelfConfig, overwrite: bool = False) -> bool:
        """Write `config` as a fresh config file.

        Returns:
            False if the file exists and overwrite is not set.
        """
        if self.config_path.exists() and not overwrite:
            return False

        self._doc = tomlkit.parse(render_config(config))
        self._save()
        logger.info("config_created", extra={"config.path": str(self.config_path)})
        return True

    def set_store_version(self, version: int) -> int | None:
        """Set [store].version, returning the previous value if any."""
        if version < 1:
            raise ValueError("Store version must be at least 1")

        doc = self._load()
        if "store" not in doc:
            doc["store"] = table()
        store = doc["store"]

        previous = store.get("version")
        store["version"] = version
        self._save()
        logger.info(
            "store_version_set",
            extra={"store.version": version, "store.previous_version": previous},
        )
        return None if previous is None else int(previous)
