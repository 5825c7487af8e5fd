"""Object store gateway backed by SQLite.

Each object store is a table of JSON documents keyed by an auto-assigned
integer. Search fields get a non-unique expression index on
``json_extract(data, '$.<field>')``. The catalogue tables in shelf.db.models
record each store's version and provisioned indexes, which is how an
upgrade knows which indexes are still missing.

Every public method runs in its own transaction. ``run_atomic`` runs a
whole batch in one transaction, so a failing batch leaves no trace.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import (
    JSON,
    Column,
    ColumnElement,
    Index,
    Integer,
    MetaData,
    Table,
    delete,
    func,
    insert,
    literal_column,
    select,
)
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.schema import CreateIndex, CreateTable

from shelf.db.engine import Database
from shelf.db.models import Base, ObjectStoreEntry, StoreIndexEntry
from shelf.errors import (
    IndexNotFound,
    StorageReadError,
    StorageUnavailable,
    StorageWriteError,
)
from shelf.schema import FIELD_NAME_PATTERN, Record, Schema
from shelf.store.operations import Add, Clear, Delete, Operation, Put

logger = logging.getLogger(__name__)

RESERVED_STORE_NAMES = frozenset(
    {ObjectStoreEntry.__tablename__, StoreIndexEntry.__tablename__}
)


def _build_table(name: str) -> Table:
    return Table(
        name,
        MetaData(),
        Column("key", Integer, primary_key=True, autoincrement=True),
        Column("data", JSON, nullable=False),
        sqlite_autoincrement=True,
    )


def _field_expression(table: Table, field: str) -> ColumnElement[Any]:
    """SQL expression for a field inside the JSON document."""
    # Must render exactly like the index definition; field names are
    # validated identifiers.
    return func.json_extract(table.c.data, literal_column(f"'$.{field}'"))


def _build_index(table: Table, field: str) -> Index:
    return Index(f"ix_{table.name}_{field}", _field_expression(table, field))


def _key_of(record: Record, key_path: str) -> int | None:
    key = record.get(key_path)
    if key is None:
        return None
    if isinstance(key, bool) or not isinstance(key, int):
        raise StorageWriteError(
            f"Identifier '{key_path}' must be an integer, got {key!r}"
        )
    return key


class ObjectStore:
    """Handle to an opened object store.

    Obtain one with open_store(); the handle does not cache records.
    """

    def __init__(
        self,
        database: Database,
        name: str,
        key_path: str,
        index_names: Sequence[str],
    ) -> None:
        self._database = database
        self._name = name
        self._key_path = key_path
        self._table = _build_table(name)
        self._index_names = tuple(index_names)

    @property
    def name(self) -> str:
        return self._name

    @property
    def key_path(self) -> str:
        """Name of the record field holding the identifier."""
        return self._key_path

    @property
    def index_names(self) -> tuple[str, ...]:
        return self._index_names

    @property
    def database(self) -> Database:
        return self._database

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _reading(self, action: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self._database.session() as session:
                yield session
        except SQLAlchemyError as e:
            logger.warning(
                "store_read_failed",
                extra={"store": self._name, "action": action},
                exc_info=True,
            )
            raise StorageReadError(f"Failed to {action} in '{self._name}': {e}") from e

    @asynccontextmanager
    async def _writing(self, action: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self._database.session() as session:
                yield session
        except SQLAlchemyError as e:
            logger.warning(
                "store_write_failed",
                extra={"store": self._name, "action": action},
                exc_info=True,
            )
            raise StorageWriteError(
                f"Failed to {action} in '{self._name}': {e}"
            ) from e

    def _to_record(self, key: int, data: dict[str, Any]) -> Record:
        record: Record = {self._key_path: key}
        record.update((k, v) for k, v in data.items() if k != self._key_path)
        return record

    def _document(self, record: Record) -> dict[str, Any]:
        return {k: v for k, v in record.items() if k != self._key_path}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_all(self) -> list[Record]:
        """Return every record ordered by identifier."""
        table = self._table
        async with self._reading("read records") as session:
            result = await session.execute(
                select(table.c.key, table.c.data).order_by(table.c.key)
            )
            return [self._to_record(key, data) for key, data in result]

    async def get(self, key: int) -> Record | None:
        """Return one record, or None when the identifier is unknown."""
        table = self._table
        async with self._reading("read record") as session:
            result = await session.execute(
                select(table.c.key, table.c.data).where(table.c.key == key)
            )
            row = result.first()
            return self._to_record(row[0], row[1]) if row else None

    async def count(self) -> int:
        async with self._reading("count records") as session:
            result = await session.execute(
                select(func.count()).select_from(self._table)
            )
            return int(result.scalar_one())

    async def scan_index(self, index_name: str) -> list[Record]:
        """Return every record ordered by the indexed field.

        Records whose field is null or missing are included (they sort
        first). Raises IndexNotFound when the index was never provisioned.
        """
        if index_name not in self._index_names:
            raise IndexNotFound(self._name, index_name)
        table = self._table
        async with self._reading(f"scan index '{index_name}'") as session:
            result = await session.execute(
                select(table.c.key, table.c.data).order_by(
                    _field_expression(table, index_name), table.c.key
                )
            )
            return [self._to_record(key, data) for key, data in result]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def put(self, record: Record) -> int:
        """Insert or replace a record; returns its identifier."""
        async with self._writing("put record") as session:
            return await self._apply_put(session, record)

    async def add(self, record: Record) -> int:
        """Insert a record; a duplicate identifier raises StorageWriteError."""
        async with self._writing("add record") as session:
            return await self._apply_add(session, record)

    async def delete(self, key: int) -> None:
        """Remove a record; unknown identifiers are ignored."""
        async with self._writing("delete record") as session:
            await session.execute(delete(self._table).where(self._table.c.key == key))

    async def clear(self) -> None:
        """Remove every record."""
        async with self._writing("clear store") as session:
            await session.execute(delete(self._table))

    async def run_atomic(self, operations: Sequence[Operation]) -> list[int | None]:
        """Apply a batch of writes in a single transaction.

        Returns one entry per operation: the identifier for Put/Add, None
        for Clear/Delete. If any operation fails, nothing is committed.
        """
        results: list[int | None] = []
        async with self._writing("apply batch") as session:
            for op in operations:
                if isinstance(op, Clear):
                    await session.execute(delete(self._table))
                    results.append(None)
                elif isinstance(op, Put):
                    results.append(await self._apply_put(session, op.record))
                elif isinstance(op, Add):
                    results.append(await self._apply_add(session, op.record))
                elif isinstance(op, Delete):
                    await session.execute(
                        delete(self._table).where(self._table.c.key == op.key)
                    )
                    results.append(None)
                else:
                    raise TypeError(f"Unsupported operation: {op!r}")
        logger.debug(
            "store_batch_committed",
            extra={"store": self._name, "operations": len(results)},
        )
        return results

    async def _apply_put(self, session: AsyncSession, record: Record) -> int:
        key = _key_of(record, self._key_path)
        document = self._document(record)
        if key is None:
            result = await session.execute(insert(self._table).values(data=document))
            return int(result.inserted_primary_key[0])
        stmt = sqlite_insert(self._table).values(key=key, data=document)
        stmt = stmt.on_conflict_do_update(
            index_elements=[self._table.c.key],
            set_={"data": stmt.excluded.data},
        )
        await session.execute(stmt)
        return key

    async def _apply_add(self, session: AsyncSession, record: Record) -> int:
        key = _key_of(record, self._key_path)
        values: dict[str, Any] = {"data": self._document(record)}
        if key is not None:
            values["key"] = key
        result = await session.execute(insert(self._table).values(**values))
        return key if key is not None else int(result.inserted_primary_key[0])


async def open_store(
    database: Database,
    name: str,
    version: int,
    schema: Schema,
) -> ObjectStore:
    """Open (creating or upgrading if needed) a named object store.

    - Absent store: create its table and one index per search field.
    - Recorded version lower than `version`: create indexes for search
      fields that are not provisioned yet, then record the new version.
    - Recorded version higher than `version`: refuse with StorageUnavailable.

    Existing records are never touched.

    Raises:
        StorageUnavailable: If the database cannot be opened or provisioned.
        ValueError: If the store name is not a valid table name.
    """
    if not FIELD_NAME_PATTERN.match(name) or name in RESERVED_STORE_NAMES:
        raise ValueError(f"Invalid store name '{name}'")
    if version < 1:
        raise ValueError("Store version must be a positive integer")

    try:
        if not database.is_connected:
            await database.connect()
        async with database.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with database.session() as session:
            index_names = await _provision(session, name, version, schema)
    except (SQLAlchemyError, OSError) as e:
        logger.error(
            "store_open_failed", extra={"store": name, "error.message": str(e)}
        )
        raise StorageUnavailable(f"Cannot open store '{name}': {e}") from e

    logger.debug(
        "store_opened",
        extra={"store": name, "version": version, "indexes": list(index_names)},
    )
    return ObjectStore(database, name, schema.key_path, index_names)


async def _provision(
    session: AsyncSession, name: str, version: int, schema: Schema
) -> list[str]:
    """Create or upgrade the store inside the caller's transaction."""
    table = _build_table(name)
    conn = await session.connection()
    entry = await session.get(ObjectStoreEntry, name)

    if entry is None:
        await conn.execute(CreateTable(table, if_not_exists=True))
        entry = ObjectStoreEntry(
            name=name, version=version, key_path=schema.key_path, indexes=[]
        )
        session.add(entry)
        existing: set[str] = set()
        logger.info("store_created", extra={"store": name, "version": version})
    else:
        if entry.version > version:
            raise StorageUnavailable(
                f"Store '{name}' is at version {entry.version}, "
                f"cannot open at older version {version}"
            )
        if entry.key_path != schema.key_path:
            raise StorageUnavailable(
                f"Store '{name}' is keyed by '{entry.key_path}', "
                f"schema identifier is '{schema.key_path}'"
            )
        existing = {index.name for index in entry.indexes}
        if entry.version == version:
            return sorted(existing)
        logger.info(
            "store_upgraded",
            extra={"store": name, "from_version": entry.version, "to_version": version},
        )
        entry.version = version

    for field in schema.search_fields:
        if field in existing:
            continue
        await conn.execute(CreateIndex(_build_index(table, field), if_not_exists=True))
        entry.indexes.append(
            StoreIndexEntry(store_name=name, name=field, key_path=field, unique=False)
        )
        existing.add(field)
        logger.info("index_created", extra={"store": name, "index": field})

    return sorted(existing)
