"""Conversion between raw form values and stored records.

Forms deal in strings; the store holds typed values. Decoding validates
required fields and the date bound, coerces per field kind and carries the
stored image forward when a save does not supply a new one. Encoding turns a
stored record back into strings for pre-populating a form.
"""

from __future__ import annotations

import base64
import binascii
import math
import mimetypes
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, assert_never

from shelf.errors import RecordValidationError, ValidationReason
from shelf.schema import FieldDescriptor, FieldKind, Record, Schema

DISPLAY_DATE_FORMAT = "%x"
UNSET_PLACEHOLDER = "Not set"
UNSELECTED_PLACEHOLDER = "Not selected"


def _is_blank(raw: str | None) -> bool:
    return raw is None or not str(raw).strip()


def format_timestamp(moment: datetime) -> str:
    """Render a datetime as a UTC ISO-8601 string with millisecond precision."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    text = moment.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_timestamp(raw: str) -> datetime:
    """Parse an ISO-8601 date/datetime or a locale-formatted date.

    Naive values are taken as UTC. Raises ValueError if neither format
    matches.
    """
    text = raw.strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        parsed = datetime.strptime(text, DISPLAY_DATE_FORMAT)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def _parse_number(raw: str) -> int | float:
    value = float(raw.strip())
    if not math.isfinite(value):
        raise ValueError(f"{raw!r} is not finite")
    return int(value) if value.is_integer() else value


def encode_image(data: bytes, mime_type: str) -> str:
    """Wrap raw image bytes in a base64 data URI."""
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


def decode_image(data_uri: str) -> tuple[str, bytes]:
    """Split a base64 data URI into (mime_type, bytes).

    Raises:
        ValueError: If the value is not a base64 data URI.
    """
    header, sep, payload = data_uri.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise ValueError("Not a base64 data URI")
    mime_type = header[len("data:") : -len(";base64")]
    try:
        return mime_type, base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e


def read_image(path: Path) -> str:
    """Read an image file into a data URI.

    Raises:
        ValueError: If the file type is not an image.
    """
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type is None or not mime_type.startswith("image/"):
        raise ValueError(f"{path.name} does not look like an image")
    return encode_image(path.read_bytes(), mime_type)


def format_value(value: Any, field: FieldDescriptor) -> str:
    """Render a stored value for a record listing."""
    if value is None:
        return UNSET_PLACEHOLDER
    kind = field.kind
    if kind == FieldKind.DATE:
        try:
            return parse_timestamp(str(value)).strftime(DISPLAY_DATE_FORMAT)
        except (ValueError, OverflowError):
            return str(value)
    if kind == FieldKind.SINGLE_CHOICE:
        return str(value) or UNSELECTED_PLACEHOLDER
    if kind == FieldKind.BINARY_IMAGE:
        try:
            mime_type, data = decode_image(str(value))
        except ValueError:
            return "[image]"
        return f"[{mime_type}, {len(data)} bytes]"
    return str(value)


class RecordCodec:
    """Maps form values to records and back for one schema."""

    def __init__(self, schema: Schema) -> None:
        self._schema = schema

    @property
    def schema(self) -> Schema:
        return self._schema

    def decode_for_save(
        self,
        field_values: Mapping[str, str | None],
        bound_id: int | None = None,
        *,
        image: str | None = None,
        stored_image: str | None = None,
        now: datetime | None = None,
    ) -> Record:
        """Build a complete record from raw form values.

        Args:
            field_values: Raw strings keyed by field name. Missing keys count
                as blank. Names outside the schema are ignored.
            bound_id: Identifier of the record being edited, None to create.
            image: Newly supplied image as a data URI.
            stored_image: Image currently stored for the record; kept when
                no new image is supplied.
            now: Creation time for new records (defaults to current time).

        Returns:
            A record with every schema field present.

        Raises:
            RecordValidationError: On a blank required field, an unparseable
                number or date, or a date after the schema's max_date.
        """
        values: dict[str, Any] = {}
        for field in self._schema.fields:
            if field.kind == FieldKind.IDENTIFIER:
                values[field.name] = bound_id
            elif field.kind == FieldKind.BINARY_IMAGE:
                values[field.name] = image if image is not None else stored_image
            else:
                values[field.name] = self._decode_field(
                    field, field_values.get(field.name)
                )

        stamp = self._schema.timestamp_field
        if bound_id is None and stamp is not None and values[stamp] is None:
            values[stamp] = format_timestamp(now or datetime.now(UTC))

        return self._schema.new_record(values)

    def _decode_field(self, field: FieldDescriptor, raw: str | None) -> Any:
        if _is_blank(raw):
            if field.required:
                raise RecordValidationError(
                    ValidationReason.MISSING_REQUIRED, field=field.name
                )
            return None
        text = str(raw)

        kind = field.kind
        if kind in (FieldKind.SHORT_TEXT, FieldKind.LONG_TEXT, FieldKind.SINGLE_CHOICE):
            return text
        if kind == FieldKind.NUMBER:
            try:
                return _parse_number(text)
            except ValueError:
                raise RecordValidationError(
                    ValidationReason.INVALID_NUMBER, field=field.name, detail=text
                ) from None
        if kind == FieldKind.DATE:
            try:
                moment = parse_timestamp(text)
            except ValueError:
                raise RecordValidationError(
                    ValidationReason.INVALID_DATE, field=field.name, detail=text
                ) from None
            except OverflowError:
                # Offset pushes the moment past year 9999
                raise RecordValidationError(
                    ValidationReason.DATE_OUT_OF_RANGE, field=field.name, detail=text
                ) from None
            if moment.date() > self._schema.max_date:
                raise RecordValidationError(
                    ValidationReason.DATE_OUT_OF_RANGE,
                    field=field.name,
                    detail=f"latest allowed is {self._schema.max_date.isoformat()}",
                )
            return format_timestamp(moment)
        if kind in (FieldKind.IDENTIFIER, FieldKind.BINARY_IMAGE):
            raise ValueError(f"Field '{field.name}' is not decoded from form input")
        assert_never(kind)

    def encode_for_display(self, record: Mapping[str, Any]) -> dict[str, str]:
        """Turn a stored record into form strings.

        Dates become ISO calendar dates (UTC) so they decode back to the
        same day; numbers their string form, unset values empty strings.
        Images are passed through as data URIs for the UI to render.
        """
        encoded: dict[str, str] = {}
        for field in self._schema.fields:
            value = record.get(field.name)
            if value is None:
                encoded[field.name] = ""
                continue
            kind = field.kind
            if kind == FieldKind.DATE:
                try:
                    encoded[field.name] = (
                        parse_timestamp(str(value)).date().isoformat()
                    )
                except (ValueError, OverflowError):
                    encoded[field.name] = str(value)
            elif kind in (
                FieldKind.IDENTIFIER,
                FieldKind.SHORT_TEXT,
                FieldKind.LONG_TEXT,
                FieldKind.SINGLE_CHOICE,
                FieldKind.NUMBER,
                FieldKind.BINARY_IMAGE,
            ):
                encoded[field.name] = str(value)
            else:
                assert_never(kind)
        return encoded
