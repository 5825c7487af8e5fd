"""Shared test fixtures and factories."""

import logging
from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest

from shelf.config.models import ShelfConfig, StoreConfig
from shelf.config.paths import get_shelf_home
from shelf.db.engine import Database
from shelf.records import RecordCodec, RecordService
from shelf.schema import FieldDescriptor, FieldKind, Schema
from shelf.store import ObjectStore, open_store

# =============================================================================
# Schema Fixtures
# =============================================================================


@pytest.fixture
def small_schema() -> Schema:
    """Identifier, a required name and an optional rating."""
    return Schema(
        fields=(
            FieldDescriptor(name="id", kind=FieldKind.IDENTIFIER),
            FieldDescriptor(
                name="name", kind=FieldKind.SHORT_TEXT, label="Name", required=True
            ),
            FieldDescriptor(name="rating", kind=FieldKind.NUMBER, min=1, max=5),
        ),
        search_fields=("name",),
    )


@pytest.fixture
def dated_schema() -> Schema:
    """Schema with a creation date, a choice field and an image."""
    return Schema(
        fields=(
            FieldDescriptor(name="id", kind=FieldKind.IDENTIFIER),
            FieldDescriptor(name="name", kind=FieldKind.SHORT_TEXT, required=True),
            FieldDescriptor(name="notes", kind=FieldKind.LONG_TEXT),
            FieldDescriptor(
                name="category",
                kind=FieldKind.SINGLE_CHOICE,
                options=("A", "B"),
            ),
            FieldDescriptor(name="createdAt", kind=FieldKind.DATE),
            FieldDescriptor(name="photo", kind=FieldKind.BINARY_IMAGE),
        ),
        search_fields=("name", "notes", "category"),
        timestamp_field="createdAt",
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Create a temporary test database."""
    db = Database(database_path=tmp_path / "test.db")
    await db.connect()

    yield db

    await db.disconnect()


@pytest.fixture
async def store(database: Database, small_schema: Schema) -> ObjectStore:
    """A freshly provisioned store over the small schema."""
    return await open_store(database, "records", 1, small_schema)


@pytest.fixture
async def service(store: ObjectStore, small_schema: Schema) -> RecordService:
    return RecordService(store, RecordCodec(small_schema), database_name="TestDB")


@pytest.fixture
async def dated_service(
    database: Database, dated_schema: Schema
) -> RecordService:
    dated_store = await open_store(database, "items", 1, dated_schema)
    return RecordService(dated_store, RecordCodec(dated_schema))


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def shelf_home(tmp_path: Path, monkeypatch) -> Generator[Path, None, None]:
    """Point SHELF_HOME at a temporary directory."""
    home = tmp_path / "shelf-home"
    monkeypatch.setenv("SHELF_HOME", str(home))
    monkeypatch.delenv("SHELF_DATABASE_PATH", raising=False)
    monkeypatch.delenv("SHELF_LOG_LEVEL", raising=False)
    monkeypatch.delenv("SHELF_LOG_FILE", raising=False)
    # Keep the working directory free of a stray config.toml
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    get_shelf_home.cache_clear()

    yield home

    get_shelf_home.cache_clear()


@pytest.fixture
def small_config(tmp_path: Path, small_schema: Schema) -> ShelfConfig:
    return ShelfConfig(
        database_name="TestDB",
        store=StoreConfig(database_path=tmp_path / "config-test.db"),
        schema=small_schema,
    )


@pytest.fixture
def config_toml_content() -> str:
    """Valid TOML config content with a custom schema."""
    return """
app_title = "Books"
database_name = "Library"

[store]
name = "books"
version = 2

[schema]
search_fields = ["title", "author"]

[[schema.fields]]
name = "id"
kind = "identifier"

[[schema.fields]]
name = "title"
kind = "short-text"
label = "Title"
required = true

[[schema.fields]]
name = "author"
kind = "short-text"

[[schema.fields]]
name = "pages"
kind = "number"
"""


@pytest.fixture
def config_file(tmp_path: Path, config_toml_content: str) -> Path:
    """Create a temporary config file."""
    config_path = tmp_path / "config.toml"
    config_path.write_text(config_toml_content)
    return config_path


# =============================================================================
# CLI Fixtures
# =============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner with colors disabled."""
    from typer.testing import CliRunner

    return CliRunner(env={"NO_COLOR": "1"})


@pytest.fixture
def restore_root_logger():
    """Undo configure_logging() changes to the root logger."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level

    yield root

    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
