"""Tests for EditSession values."""

import pytest

from shelf.records import EditSession, SessionState


class TestEditSession:
    def test_default_is_idle(self):
        session = EditSession()
        assert session.state == SessionState.IDLE
        assert not session.is_editing
        assert not session.is_new

    def test_new_session(self):
        session = EditSession.new()
        assert session.is_editing
        assert session.is_new
        assert session.bound_id is None

    def test_for_record(self, dated_schema):
        session = EditSession.for_record({"id": 4, "photo": "data:x"}, dated_schema)

        assert session.is_editing
        assert not session.is_new
        assert session.bound_id == 4
        assert session.stored_image == "data:x"
        assert session.pending_image is None

    def test_for_record_without_image_field(self, small_schema):
        session = EditSession.for_record({"id": 2, "name": "x"}, small_schema)
        assert session.stored_image is None

    def test_with_image_returns_new_value(self):
        original = EditSession.new()
        updated = original.with_image("data:new")

        assert updated.pending_image == "data:new"
        assert original.pending_image is None

    def test_with_image_requires_edit(self):
        with pytest.raises(ValueError):
            EditSession.idle().with_image("data:new")

    def test_cancel_discards_state(self):
        session = EditSession.new().with_image("data:new").cancel()
        assert session == EditSession.idle()
