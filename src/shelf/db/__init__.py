"""Database layer."""

from shelf.db.engine import Database
from shelf.db.models import Base, ObjectStoreEntry, StoreIndexEntry

__all__ = [
    # Engine
    "Database",
    # Models
    "Base",
    "ObjectStoreEntry",
    "StoreIndexEntry",
]
