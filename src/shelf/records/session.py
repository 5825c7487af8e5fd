"""Edit session state.

An EditSession is a plain value owned by the caller: which record (if any)
the form is bound to and which image goes with it. Saving or cancelling
returns a new idle session; nothing is kept in module state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum

from shelf.schema import Record, Schema


class SessionState(StrEnum):
    """Whether a form is open: idle, or editing a new or stored record."""

    IDLE = "idle"
    EDITING = "editing"


@dataclass(frozen=True)
class EditSession:
    """Form state for one create or edit."""

    state: SessionState = SessionState.IDLE
    bound_id: int | None = None
    # Image currently persisted for the bound record
    stored_image: str | None = None
    # Image picked during this session, replaces stored_image on save
    pending_image: str | None = None

    @classmethod
    def idle(cls) -> EditSession:
        return cls()

    @classmethod
    def new(cls) -> EditSession:
        """Start creating a record."""
        return cls(state=SessionState.EDITING)

    @classmethod
    def for_record(cls, record: Record, schema: Schema) -> EditSession:
        """Start editing a stored record."""
        image_field = schema.image_field
        return cls(
            state=SessionState.EDITING,
            bound_id=record[schema.key_path],
            stored_image=record.get(image_field.name) if image_field else None,
        )

    @property
    def is_editing(self) -> bool:
        return self.state == SessionState.EDITING

    @property
    def is_new(self) -> bool:
        return self.is_editing and self.bound_id is None

    def with_image(self, data_uri: str) -> EditSession:
        if not self.is_editing:
            raise ValueError("No edit in progress")
        return replace(self, pending_image=data_uri)

    def cancel(self) -> EditSession:
        """Discard unsaved form state; the store is not touched."""
        return EditSession.idle()
