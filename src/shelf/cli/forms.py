"""Schema-driven forms for the terminal.

A form is a mapping of field name to raw string, exactly what the codec
decodes. Values come from --set options or from interactive prompts
pre-populated with the record being edited.
"""

from __future__ import annotations

from collections.abc import Mapping

import typer
from rich.prompt import Prompt

from shelf.schema import FieldDescriptor, FieldKind, Schema


def _form_fields(schema: Schema) -> list[FieldDescriptor]:
    """Fields the user types values for (images come from files)."""
    return [f for f in schema.editable_fields if f.kind != FieldKind.BINARY_IMAGE]


def parse_assignments(assignments: list[str], schema: Schema) -> dict[str, str]:
    """Parse repeated ``--set name=value`` options.

    Raises:
        typer.BadParameter: On malformed pairs or fields that are not on
            the form.
    """
    allowed = {f.name for f in _form_fields(schema)}
    values: dict[str, str] = {}
    for assignment in assignments:
        name, sep, value = assignment.partition("=")
        name = name.strip()
        if not sep:
            raise typer.BadParameter(
                f"Expected name=value, got '{assignment}'", param_hint="--set"
            )
        if name not in allowed:
            raise typer.BadParameter(
                f"Unknown field '{name}'. Fields: {', '.join(sorted(allowed))}",
                param_hint="--set",
            )
        values[name] = value
    return values


def _prompt_label(field: FieldDescriptor) -> str:
    label = field.display_label
    if field.required:
        label = f"{label} *"
    if field.kind == FieldKind.NUMBER and (field.min is not None or field.max is not None):
        low = "" if field.min is None else f"{field.min:g}"
        high = "" if field.max is None else f"{field.max:g}"
        label = f"{label} ({low}..{high})"
    return label


def prompt_form(schema: Schema, defaults: Mapping[str, str]) -> dict[str, str]:
    """Ask for every form field, offering `defaults` as pre-filled answers."""
    values: dict[str, str] = {}
    for field in _form_fields(schema):
        default = defaults.get(field.name, "")
        if field.kind == FieldKind.SINGLE_CHOICE and field.options:
            choices = list(field.options)
            if not field.required:
                choices.append("")
            values[field.name] = Prompt.ask(
                _prompt_label(field),
                choices=choices,
                default=default if default in choices else choices[0],
            )
        else:
            values[field.name] = Prompt.ask(
                _prompt_label(field), default=default, show_default=bool(default)
            )
    return values
