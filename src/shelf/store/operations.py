"""Write operations that can be batched into one atomic transaction."""

from __future__ import annotations

from dataclasses import dataclass

from shelf.schema import Record


@dataclass(frozen=True)
class Clear:
    """Remove every record from the store."""


@dataclass(frozen=True)
class Put:
    """Insert or replace a record by its identifier."""

    record: Record


@dataclass(frozen=True)
class Add:
    """Insert a record; fails if its identifier already exists."""

    record: Record


@dataclass(frozen=True)
class Delete:
    """Remove one record by identifier (no-op when absent)."""

    key: int


Operation = Clear | Put | Add | Delete
