"""Record service facade.

Coordinates the codec and the object store for everything the UI does:
list, search, save, remove, export and replace-import. The service keeps no
cache; every call goes to the store, and every write is one transaction.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

from shelf.config.models import ShelfConfig
from shelf.db.engine import Database
from shelf.errors import (
    InvalidSearchField,
    RecordNotFound,
    RecordValidationError,
    ValidationReason,
)
from shelf.records.codec import RecordCodec
from shelf.records.session import EditSession
from shelf.schema import Record, Schema
from shelf.store import Add, Clear, ObjectStore, open_store

logger = logging.getLogger(__name__)


def _stringify(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a successful save."""

    record: Record
    session: EditSession


class RecordService:
    """Async facade for record lifecycle operations."""

    def __init__(
        self,
        store: ObjectStore,
        codec: RecordCodec,
        *,
        database_name: str = "UniversalDB",
    ) -> None:
        self._store = store
        self._codec = codec
        self._database_name = database_name

    @property
    def schema(self) -> Schema:
        return self._codec.schema

    @property
    def codec(self) -> RecordCodec:
        return self._codec

    @property
    def store(self) -> ObjectStore:
        return self._store

    async def close(self) -> None:
        await self._store.database.disconnect()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_all(self) -> list[Record]:
        return await self._store.get_all()

    async def get(self, key: int) -> Record:
        record = await self._store.get(key)
        if record is None:
            raise RecordNotFound(key)
        return record

    async def search(self, field: str, term: str) -> list[Record]:
        """Records whose `field` contains `term`, ignoring case.

        A blank term returns every record.

        Raises:
            InvalidSearchField: If `field` is not one of the schema's
                search fields.
        """
        if not self.schema.is_search_field(field):
            raise InvalidSearchField(field, list(self.schema.search_fields))

        needle = term.strip().casefold()
        if not needle:
            return await self.list_all()

        records = await self._store.scan_index(field)
        return [r for r in records if needle in _stringify(r.get(field)).casefold()]

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    async def begin_edit(self, key: int) -> EditSession:
        """Load a record and open an edit session bound to it."""
        record = await self.get(key)
        return EditSession.for_record(record, self.schema)

    async def save(
        self,
        field_values: Mapping[str, str | None],
        session: EditSession | None = None,
    ) -> SaveResult:
        """Validate form values and write the record.

        Creates a record when the session has no bound identifier, otherwise
        replaces the bound record entirely. Nothing is written if validation
        fails.

        Raises:
            RecordValidationError: If the form values are invalid.
            StorageWriteError: If the write fails.
        """
        session = session or EditSession.new()
        if not session.is_editing:
            raise ValueError("No edit in progress")

        record = self._codec.decode_for_save(
            field_values,
            session.bound_id,
            image=session.pending_image,
            stored_image=session.stored_image,
        )
        key = await self._store.put(record)
        record[self.schema.key_path] = key

        logger.info(
            "record_saved",
            extra={"record.id": key, "created": session.is_new},
        )
        return SaveResult(record=record, session=session.cancel())

    async def remove(self, key: int) -> None:
        """Delete a record. Confirmation is the caller's job."""
        await self._store.delete(key)
        logger.info("record_removed", extra={"record.id": key})

    # ------------------------------------------------------------------
    # Bulk export / import
    # ------------------------------------------------------------------

    def export_filename(self, today: date | None = None) -> str:
        """Export file name for `today`, defaulting to the current UTC date."""
        today = today or datetime.now(UTC).date()
        return f"{self._database_name}_export_{today.isoformat()}.json"

    async def export_all(self) -> str | None:
        """Serialize every record as a pretty-printed JSON array.

        Returns None when there is nothing to export.
        """
        records = await self.list_all()
        if not records:
            return None
        logger.info("records_exported", extra={"count": len(records)})
        return json.dumps(records, indent=2, ensure_ascii=False)

    async def import_replace(self, snapshot: str | bytes) -> int:
        """Replace every record with the contents of a JSON snapshot.

        The snapshot must be a JSON array of objects. Records are stored as
        given: they are not checked against required fields or the date
        bound, unknown fields are kept and missing fields stay missing.
        Clearing and inserting happen in one transaction.

        Returns:
            Number of records imported.

        Raises:
            RecordValidationError: If the snapshot is not a list of objects;
                the store is left untouched.
            StorageWriteError: If the batch fails (e.g. duplicate ids); the
                store is left untouched.
        """
        try:
            data = json.loads(snapshot)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise RecordValidationError(
                ValidationReason.NOT_A_SEQUENCE, detail=str(e)
            ) from e

        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise RecordValidationError(ValidationReason.NOT_A_SEQUENCE)

        await self._store.run_atomic([Clear(), *(Add(record) for record in data)])
        logger.info("records_imported", extra={"count": len(data)})
        return len(data)


async def create_record_service(config: ShelfConfig) -> RecordService:
    """Create a fully-wired RecordService.

    Opens (creating or upgrading) the configured store.

    Raises:
        StorageUnavailable: If the store cannot be opened.
    """
    database = Database(database_path=config.database_path)
    try:
        store = await open_store(
            database,
            config.store.name,
            config.store.version,
            config.schema_,
        )
    except Exception:
        await database.disconnect()
        raise
    return RecordService(
        store,
        RecordCodec(config.schema_),
        database_name=config.database_name,
    )
