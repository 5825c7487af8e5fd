"""Async SQLite engine for the record database."""

import json
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from functools import partial
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

logger = logging.getLogger(__name__)

# Seconds SQLite waits on a locked database before failing the statement
BUSY_TIMEOUT = 5


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT * 1000}")
    cursor.close()


class Database:
    """One SQLite database file holding object stores and their catalogue.

    The engine is created lazily by connect(); every unit of work goes
    through session(), which is a single transaction.
    """

    def __init__(self, database_path: Path):
        self._path = database_path
        self._url = URL.create("sqlite+aiosqlite", database=str(database_path))
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> None:
        """Create the engine, creating the parent directory if needed.

        Raises:
            OSError: If the parent directory cannot be created.
        """
        if self._engine is not None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._engine = create_async_engine(
            self._url,
            # Store non-ASCII text unescaped
            json_serializer=partial(json.dumps, ensure_ascii=False),
        )
        event.listen(self._engine.sync_engine, "connect", _set_sqlite_pragmas)
        self._sessions = async_sessionmaker(self._engine, expire_on_commit=False)
        logger.debug("database_connected", extra={"db.path": str(self._path)})

    async def disconnect(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session that commits on exit and rolls back on error.

        Usage:
            async with db.session() as session:
                await session.execute(...)
        """
        if self._sessions is None:
            raise RuntimeError("Database not initialized. Call connect() first.")
        async with self._sessions() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
