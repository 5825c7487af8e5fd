"""Field schema for records.

The schema is configuration data: an ordered list of field descriptors plus
the names of the fields that get a search index. It drives both storage
provisioning (one index per search field) and form generation in the CLI.
"""

from __future__ import annotations

import re
from datetime import date
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

FIELD_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# Record type at the storage/UI boundary: field name -> stored value.
Record = dict[str, Any]


class FieldKind(StrEnum):
    """Closed set of field kinds understood by the codec."""

    IDENTIFIER = "identifier"
    SHORT_TEXT = "short-text"
    LONG_TEXT = "long-text"
    SINGLE_CHOICE = "single-choice"
    NUMBER = "number"
    DATE = "date"
    BINARY_IMAGE = "binary-image"


class FieldDescriptor(BaseModel):
    """A single field definition.

    min/max are display hints for number fields and are not enforced.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: FieldKind
    label: str = ""
    required: bool = False
    options: tuple[str, ...] | None = None
    min: float | None = None
    max: float | None = None

    @model_validator(mode="after")
    def _check_kind_attributes(self) -> FieldDescriptor:
        if not FIELD_NAME_PATTERN.match(self.name):
            raise ValueError(
                f"Field name '{self.name}' must start with a letter or underscore "
                "and contain only letters, digits and underscores"
            )
        if self.kind == FieldKind.SINGLE_CHOICE:
            if not self.options:
                raise ValueError(f"Field '{self.name}' needs options")
        elif self.options is not None:
            raise ValueError(f"Field '{self.name}' is not a choice field")
        if self.kind != FieldKind.NUMBER and (
            self.min is not None or self.max is not None
        ):
            raise ValueError(f"Field '{self.name}' is not a number field")
        if self.kind == FieldKind.IDENTIFIER and self.required:
            raise ValueError("The identifier is assigned by the store")
        return self

    @property
    def display_label(self) -> str:
        return self.label or self.name

    @property
    def editable(self) -> bool:
        """Whether the field appears on forms."""
        return self.kind != FieldKind.IDENTIFIER


class Schema(BaseModel):
    """Ordered field list plus search fields.

    Invariants are checked when the schema is loaded, so the rest of the
    code can assume names are unique, there is exactly one identifier, and
    every search field refers to an indexable field.
    """

    model_config = ConfigDict(frozen=True)

    fields: tuple[FieldDescriptor, ...]
    search_fields: tuple[str, ...] = ()
    # Date field stamped with the creation time when a record is created
    timestamp_field: str | None = None
    max_date: date = date(9999, 12, 31)

    @model_validator(mode="after")
    def _check_invariants(self) -> Schema:
        seen: set[str] = set()
        for descriptor in self.fields:
            if descriptor.name in seen:
                raise ValueError(f"Duplicate field name '{descriptor.name}'")
            seen.add(descriptor.name)

        identifiers = [f for f in self.fields if f.kind == FieldKind.IDENTIFIER]
        if len(identifiers) != 1:
            raise ValueError(
                f"Schema needs exactly one identifier field, found {len(identifiers)}"
            )

        by_name = {f.name: f for f in self.fields}
        if len(set(self.search_fields)) != len(self.search_fields):
            raise ValueError("Search fields must be unique")
        for name in self.search_fields:
            descriptor = by_name.get(name)
            if descriptor is None:
                raise ValueError(f"Search field '{name}' is not a declared field")
            if descriptor.kind in (FieldKind.IDENTIFIER, FieldKind.BINARY_IMAGE):
                raise ValueError(f"Field '{name}' cannot be indexed")

        if self.timestamp_field is not None:
            stamped = by_name.get(self.timestamp_field)
            if stamped is None or stamped.kind != FieldKind.DATE:
                raise ValueError(
                    f"Timestamp field '{self.timestamp_field}' must be a date field"
                )
        return self

    @property
    def identifier(self) -> FieldDescriptor:
        return next(f for f in self.fields if f.kind == FieldKind.IDENTIFIER)

    @property
    def key_path(self) -> str:
        """Name of the identifier field."""
        return self.identifier.name

    @property
    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    @property
    def editable_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.fields if f.editable]

    @property
    def image_field(self) -> FieldDescriptor | None:
        return next((f for f in self.fields if f.kind == FieldKind.BINARY_IMAGE), None)

    def get_field(self, name: str) -> FieldDescriptor | None:
        return next((f for f in self.fields if f.name == name), None)

    def is_search_field(self, name: str) -> bool:
        return name in self.search_fields

    def new_record(self, values: dict[str, Any] | None = None) -> Record:
        """Build a record holding exactly the schema's fields.

        Missing fields are set to None so every stored record has the same
        keys. Unknown names raise ValueError.
        """
        values = values or {}
        unknown = set(values) - set(self.field_names)
        if unknown:
            raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")
        return {name: values.get(name) for name in self.field_names}


def default_schema() -> Schema:
    """Schema of the stock record collection."""
    return Schema(
        fields=(
            FieldDescriptor(name="id", kind=FieldKind.IDENTIFIER, label="ID"),
            FieldDescriptor(
                name="name", kind=FieldKind.SHORT_TEXT, label="Name", required=True
            ),
            FieldDescriptor(
                name="description", kind=FieldKind.LONG_TEXT, label="Description"
            ),
            FieldDescriptor(
                name="category",
                kind=FieldKind.SINGLE_CHOICE,
                label="Category",
                options=("Category 1", "Category 2", "Category 3"),
            ),
            FieldDescriptor(
                name="rating", kind=FieldKind.NUMBER, label="Rating", min=1, max=5
            ),
            FieldDescriptor(name="createdAt", kind=FieldKind.DATE, label="Created"),
            FieldDescriptor(name="image", kind=FieldKind.BINARY_IMAGE, label="Image"),
        ),
        search_fields=("name", "description", "category"),
        timestamp_field="createdAt",
    )


__all__ = [
    "FIELD_NAME_PATTERN",
    "FieldDescriptor",
    "FieldKind",
    "Record",
    "Schema",
    "default_schema",
]
