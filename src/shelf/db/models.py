"""SQLAlchemy ORM models for the store catalogue.

Record tables themselves are not declared here: each object store gets a
table built at runtime from its name (see shelf.store.gateway). These
models only describe which stores and indexes exist.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all models."""


class ObjectStoreEntry(Base):
    """A provisioned object store and the schema version it was opened at."""

    __tablename__ = "object_stores"

    name: Mapped[str] = mapped_column(String, primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    key_path: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False
    )

    indexes: Mapped[list["StoreIndexEntry"]] = relationship(
        "StoreIndexEntry",
        back_populates="store",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class StoreIndexEntry(Base):
    """A secondary index on one field of an object store."""

    __tablename__ = "store_indexes"

    store_name: Mapped[str] = mapped_column(
        String, ForeignKey("object_stores.name"), primary_key=True
    )
    name: Mapped[str] = mapped_column(String, primary_key=True)
    key_path: Mapped[str] = mapped_column(String, nullable=False)
    unique: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, nullable=False
    )

    store: Mapped["ObjectStoreEntry"] = relationship(
        "ObjectStoreEntry", back_populates="indexes"
    )
