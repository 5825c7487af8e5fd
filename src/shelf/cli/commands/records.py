"""Record commands: list, show, search, add, edit, delete."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.table import Table

from shelf.cli.console import (
    confirm_or_cancel,
    console,
    create_table,
    dim,
    error,
    success,
)
from shelf.cli.context import get_config, run_with_service
from shelf.schema import FieldKind, Record, Schema


def _records_table(title: str, schema: Schema, records: list[Record]) -> Table:
    from shelf.records import format_value

    columns: list[tuple[str, str | dict]] = []
    for field in schema.fields:
        label = escape(field.display_label)
        if field.kind == FieldKind.IDENTIFIER:
            columns.append((label, {"style": "dim", "justify": "right"}))
        elif field.kind == FieldKind.LONG_TEXT:
            columns.append((label, {"max_width": 40}))
        elif field.kind == FieldKind.SHORT_TEXT:
            columns.append((label, "cyan"))
        else:
            columns.append((label, {}))

    table = create_table(escape(title), columns)
    for record in records:
        table.add_row(
            *(escape(format_value(record.get(f.name), f)) for f in schema.fields)
        )
    return table


def _load_image(path: Path | None) -> str | None:
    """Read --image into a data URI, exiting on unreadable files."""
    if path is None:
        return None
    from shelf.records import read_image

    try:
        return read_image(path.expanduser())
    except (OSError, ValueError) as e:
        error(f"Cannot use image {path}: {e}")
        raise typer.Exit(1) from None


def register(app: typer.Typer) -> None:
    """Register the record commands."""

    @app.command("list")
    def list_cmd(ctx: typer.Context) -> None:
        """List all records."""
        config = get_config(ctx.obj)

        records = run_with_service(config, lambda service: service.list_all())
        if not records:
            dim("No records found")
            return
        console.print(_records_table(config.app_title, config.schema_, records))
        dim(f"{len(records)} record(s)")

    @app.command("show")
    def show_cmd(
        ctx: typer.Context,
        record_id: Annotated[int, typer.Argument(help="Record ID")],
        image_out: Annotated[
            Path | None,
            typer.Option("--image-out", help="Write the record's image to this file"),
        ] = None,
    ) -> None:
        """Show one record."""
        from shelf.records import format_value
        from shelf.records.codec import decode_image

        config = get_config(ctx.obj)
        schema = config.schema_

        record = run_with_service(config, lambda service: service.get(record_id))

        console.print(f"[bold]Record {record_id}[/bold]")
        for field in schema.fields:
            value = escape(format_value(record.get(field.name), field))
            console.print(f"  [cyan]{escape(field.display_label)}:[/cyan] {value}", highlight=False)

        if image_out is not None:
            image_field = schema.image_field
            stored = record.get(image_field.name) if image_field else None
            if not stored:
                error("Record has no image")
                raise typer.Exit(1)
            try:
                _, data = decode_image(stored)
            except ValueError as e:
                error(f"Stored image is unreadable: {e}")
                raise typer.Exit(1) from None
            image_out.expanduser().write_bytes(data)
            success(f"Image written to {image_out}")

    @app.command("search")
    def search_cmd(
        ctx: typer.Context,
        field: Annotated[str, typer.Argument(help="Search field name")],
        term: Annotated[str, typer.Argument(help="Text to look for")] = "",
    ) -> None:
        """Find records whose field contains the given text (case-insensitive)."""
        config = get_config(ctx.obj)

        records = run_with_service(config, lambda service: service.search(field, term))
        if not records:
            dim("No matching records")
            return
        console.print(
            _records_table(f"{config.app_title}: {field} ~ '{term}'", config.schema_, records)
        )
        dim(f"{len(records)} match(es)")

    @app.command("add")
    def add_cmd(
        ctx: typer.Context,
        assignments: Annotated[
            list[str] | None,
            typer.Option("--set", "-s", help="Field value as name=value (repeatable)"),
        ] = None,
        image: Annotated[
            Path | None,
            typer.Option("--image", help="Image file to attach"),
        ] = None,
        interactive: Annotated[
            bool,
            typer.Option("--interactive", "-i", help="Prompt for every field"),
        ] = False,
    ) -> None:
        """Create a record. Prompts for fields unless --set is given."""
        from shelf.cli.forms import parse_assignments, prompt_form
        from shelf.records import EditSession

        config = get_config(ctx.obj)
        schema = config.schema_

        values = parse_assignments(assignments or [], schema)
        if interactive or not values:
            values = prompt_form(schema, values)

        session = EditSession.new()
        image_uri = _load_image(image)
        if image_uri is not None:
            session = session.with_image(image_uri)

        result = run_with_service(config, lambda service: service.save(values, session))
        success(f"Created record {result.record[schema.key_path]}")

    @app.command("edit")
    def edit_cmd(
        ctx: typer.Context,
        record_id: Annotated[int, typer.Argument(help="Record ID")],
        assignments: Annotated[
            list[str] | None,
            typer.Option("--set", "-s", help="Field value as name=value (repeatable)"),
        ] = None,
        image: Annotated[
            Path | None,
            typer.Option("--image", help="Replace the attached image"),
        ] = None,
        interactive: Annotated[
            bool,
            typer.Option("--interactive", "-i", help="Prompt for every field"),
        ] = False,
    ) -> None:
        """Edit a record. Fields not given keep their stored values."""
        from shelf.cli.forms import parse_assignments, prompt_form
        from shelf.records import EditSession, RecordService

        config = get_config(ctx.obj)
        schema = config.schema_

        overrides = parse_assignments(assignments or [], schema)
        image_uri = _load_image(image)

        async def _edit(service: RecordService):
            record = await service.get(record_id)
            session = EditSession.for_record(record, schema)
            values = service.codec.encode_for_display(record)
            values.update(overrides)
            if interactive or not (overrides or image_uri):
                values = prompt_form(schema, values)
            if image_uri is not None:
                session = session.with_image(image_uri)
            return await service.save(values, session)

        run_with_service(config, _edit)
        success(f"Updated record {record_id}")

    @app.command("delete")
    def delete_cmd(
        ctx: typer.Context,
        record_id: Annotated[int, typer.Argument(help="Record ID")],
        force: Annotated[
            bool,
            typer.Option("--force", "-f", help="Skip confirmation"),
        ] = False,
    ) -> None:
        """Delete a record."""
        from shelf.records import RecordService

        config = get_config(ctx.obj)

        async def _delete(service: RecordService) -> bool:
            await service.get(record_id)
            if not confirm_or_cancel(f"Delete record {record_id}?", force):
                return False
            await service.remove(record_id)
            return True

        if run_with_service(config, _delete):
            success(f"Deleted record {record_id}")
