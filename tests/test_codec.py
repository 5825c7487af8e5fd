"""Tests for the record codec and value helpers."""

from datetime import UTC, date, datetime
from pathlib import Path

import pytest

from shelf.errors import RecordValidationError, ValidationReason
from shelf.records.codec import (
    DISPLAY_DATE_FORMAT,
    RecordCodec,
    decode_image,
    encode_image,
    format_timestamp,
    format_value,
    parse_timestamp,
    read_image,
)
from shelf.schema import FieldDescriptor, FieldKind

NOW = datetime(2024, 5, 6, 7, 8, 9, 123000, tzinfo=UTC)

PNG_URI = "data:image/png;base64,iVBORw0K"


@pytest.fixture
def codec(dated_schema) -> RecordCodec:
    return RecordCodec(dated_schema)


class TestTimestamps:
    def test_format_uses_utc_with_milliseconds(self):
        assert format_timestamp(NOW) == "2024-05-06T07:08:09.123Z"

    def test_format_treats_naive_as_utc(self):
        assert format_timestamp(datetime(2024, 1, 2)) == "2024-01-02T00:00:00.000Z"

    def test_parse_iso_with_offset(self):
        parsed = parse_timestamp("2024-01-02T01:00:00+02:00")
        assert parsed == datetime(2024, 1, 1, 23, 0, tzinfo=UTC)

    def test_parse_display_format(self):
        text = date(2024, 3, 5).strftime(DISPLAY_DATE_FORMAT)
        assert parse_timestamp(text).date() == date(2024, 3, 5)

    def test_parse_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_timestamp("next tuesday")


class TestDecodeForSave:
    def test_create_builds_full_record(self, codec):
        record = codec.decode_for_save(
            {"name": "Widget", "notes": "", "category": "A"}, now=NOW
        )

        assert record == {
            "id": None,
            "name": "Widget",
            "notes": None,
            "category": "A",
            "createdAt": "2024-05-06T07:08:09.123Z",
            "photo": None,
        }

    def test_missing_required_field(self, codec):
        with pytest.raises(RecordValidationError) as exc_info:
            codec.decode_for_save({"name": "   "})

        assert exc_info.value.field == "name"
        assert exc_info.value.reason == ValidationReason.MISSING_REQUIRED
        assert str(exc_info.value) == "Field 'name' is required"

    def test_absent_required_field(self, codec):
        with pytest.raises(RecordValidationError) as exc_info:
            codec.decode_for_save({})
        assert exc_info.value.field == "name"

    def test_text_is_kept_verbatim(self, codec):
        record = codec.decode_for_save({"name": "  padded  "})
        assert record["name"] == "  padded  "

    def test_supplied_date_is_normalised(self, codec):
        record = codec.decode_for_save(
            {"name": "x", "createdAt": "2023-12-31"}, now=NOW
        )
        assert record["createdAt"] == "2023-12-31T00:00:00.000Z"

    def test_date_at_upper_bound_accepted(self, codec):
        record = codec.decode_for_save({"name": "x", "createdAt": "9999-12-31"})
        assert record["createdAt"] == "9999-12-31T00:00:00.000Z"

    def test_date_after_max_date(self, dated_schema):
        codec = RecordCodec(dated_schema.model_copy(update={"max_date": date(2030, 1, 1)}))

        with pytest.raises(RecordValidationError) as exc_info:
            codec.decode_for_save({"name": "x", "createdAt": "2030-01-02"})

        assert exc_info.value.reason == ValidationReason.DATE_OUT_OF_RANGE
        assert exc_info.value.field == "createdAt"

    def test_offset_past_year_9999(self, codec):
        with pytest.raises(RecordValidationError) as exc_info:
            codec.decode_for_save(
                {"name": "x", "createdAt": "9999-12-31T23:00:00-05:00"}
            )
        assert exc_info.value.reason == ValidationReason.DATE_OUT_OF_RANGE

    def test_unparseable_date(self, codec):
        with pytest.raises(RecordValidationError) as exc_info:
            codec.decode_for_save({"name": "x", "createdAt": "soon"})
        assert exc_info.value.reason == ValidationReason.INVALID_DATE

    def test_edit_does_not_restamp(self, codec):
        record = codec.decode_for_save({"name": "x", "createdAt": ""}, bound_id=3, now=NOW)

        assert record["id"] == 3
        assert record["createdAt"] is None

    def test_new_image_wins(self, codec):
        record = codec.decode_for_save(
            {"name": "x"}, bound_id=1, image=PNG_URI, stored_image="data:old"
        )
        assert record["photo"] == PNG_URI

    def test_stored_image_carried_forward(self, codec):
        record = codec.decode_for_save({"name": "x"}, bound_id=1, stored_image=PNG_URI)
        assert record["photo"] == PNG_URI

    def test_form_values_for_identifier_and_image_ignored(self, codec):
        record = codec.decode_for_save({"name": "x", "id": "99", "photo": "junk"})
        assert record["id"] is None
        assert record["photo"] is None

    def test_unknown_form_keys_ignored(self, codec):
        record = codec.decode_for_save({"name": "x", "colour": "red"})
        assert "colour" not in record


class TestNumbers:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("4", 4), ("4.0", 4), ("4.5", 4.5), (" -2 ", -2), ("1e3", 1000), ("", None)],
    )
    def test_coercion(self, small_schema, raw, expected):
        record = RecordCodec(small_schema).decode_for_save({"name": "x", "rating": raw})
        assert record["rating"] == expected
        assert type(record["rating"]) is type(expected)

    @pytest.mark.parametrize("raw", ["four", "nan", "inf", "1,5"])
    def test_invalid(self, small_schema, raw):
        with pytest.raises(RecordValidationError) as exc_info:
            RecordCodec(small_schema).decode_for_save({"name": "x", "rating": raw})
        assert exc_info.value.reason == ValidationReason.INVALID_NUMBER
        assert exc_info.value.field == "rating"

    def test_range_hint_not_enforced(self, small_schema):
        record = RecordCodec(small_schema).decode_for_save({"name": "x", "rating": "42"})
        assert record["rating"] == 42


class TestEncodeForDisplay:
    def test_renders_strings(self, codec):
        stored = {
            "id": 7,
            "name": "Widget",
            "notes": None,
            "category": "B",
            "createdAt": "2024-03-05T22:15:00.000Z",
            "photo": PNG_URI,
        }

        assert codec.encode_for_display(stored) == {
            "id": "7",
            "name": "Widget",
            "notes": "",
            "category": "B",
            "createdAt": "2024-03-05",
            "photo": PNG_URI,
        }

    def test_missing_fields_become_empty(self, codec):
        encoded = codec.encode_for_display({"id": 1})
        assert encoded["name"] == ""
        assert encoded["createdAt"] == ""

    def test_unparseable_stored_date_passed_through(self, codec):
        assert codec.encode_for_display({"createdAt": "yesterday"})["createdAt"] == "yesterday"

    def test_display_values_decode_back(self, codec):
        stored = codec.decode_for_save(
            {"name": "Widget", "notes": "n", "category": "A", "createdAt": "2024-03-05"}
        )
        again = codec.decode_for_save(codec.encode_for_display(stored), bound_id=1)

        assert again["createdAt"] == "2024-03-05T00:00:00.000Z"
        assert again["name"] == "Widget"

    @pytest.mark.parametrize("day", ["1950-06-01", "2080-01-15", "1969-12-31"])
    def test_dates_outside_two_digit_window_survive_resave(self, codec, day):
        stored = codec.decode_for_save({"name": "Lamp", "createdAt": day})
        form = codec.encode_for_display(stored)
        form["name"] = "Desk lamp"

        again = codec.decode_for_save(form, bound_id=1)

        assert form["createdAt"] == day
        assert again["createdAt"] == f"{day}T00:00:00.000Z"


class TestImages:
    def test_encode_decode(self):
        uri = encode_image(b"\x89PNG", "image/png")

        assert uri.startswith("data:image/png;base64,")
        assert decode_image(uri) == ("image/png", b"\x89PNG")

    @pytest.mark.parametrize(
        "value", ["not a uri", "data:image/png,raw", "data:image/png;base64,!!!"]
    )
    def test_decode_rejects_invalid(self, value):
        with pytest.raises(ValueError):
            decode_image(value)

    def test_read_image(self, tmp_path: Path):
        path = tmp_path / "cover.png"
        path.write_bytes(b"\x89PNG\r\n")

        assert decode_image(read_image(path)) == ("image/png", b"\x89PNG\r\n")

    def test_read_image_rejects_other_files(self, tmp_path: Path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")

        with pytest.raises(ValueError, match="does not look like an image"):
            read_image(path)


class TestFormatValue:
    def test_placeholders(self):
        text = FieldDescriptor(name="t", kind=FieldKind.SHORT_TEXT)
        choice = FieldDescriptor(name="c", kind=FieldKind.SINGLE_CHOICE, options=("a",))

        assert format_value(None, text) == "Not set"
        assert format_value("", choice) == "Not selected"
        assert format_value("a", choice) == "a"

    def test_date_and_number(self):
        when = FieldDescriptor(name="w", kind=FieldKind.DATE)
        number = FieldDescriptor(name="n", kind=FieldKind.NUMBER)

        assert format_value("2024-03-05T10:00:00.000Z", when) == date(2024, 3, 5).strftime(
            DISPLAY_DATE_FORMAT
        )
        assert format_value(4.5, number) == "4.5"

    def test_image_summary(self):
        image = FieldDescriptor(name="i", kind=FieldKind.BINARY_IMAGE)

        assert format_value(encode_image(b"abc", "image/gif"), image) == "[image/gif, 3 bytes]"
        assert format_value("garbage", image) == "[image]"
