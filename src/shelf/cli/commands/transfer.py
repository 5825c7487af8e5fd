"""Bulk export and replace-import commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from shelf.cli.console import confirm_or_cancel, console, error, success, warning
from shelf.cli.context import get_config, run_with_service


def register(app: typer.Typer) -> None:
    """Register the export and import commands."""

    @app.command("export")
    def export_cmd(
        ctx: typer.Context,
        output: Annotated[
            Path | None,
            typer.Option(
                "--output",
                "-o",
                help="Output file (default: $SHELF_HOME/exports/<db>_export_<date>.json)",
            ),
        ] = None,
        stdout: Annotated[
            bool,
            typer.Option("--stdout", help="Print the JSON instead of writing a file"),
        ] = False,
    ) -> None:
        """Export all records as a JSON array."""
        from shelf.records import RecordService

        config = get_config(ctx.obj)

        async def _export(service: RecordService) -> tuple[str | None, str]:
            return await service.export_all(), service.export_filename()

        payload, filename = run_with_service(config, _export)
        if payload is None:
            warning("Nothing to export")
            return

        if stdout:
            console.print(payload, markup=False, highlight=False, soft_wrap=True)
            return

        if output is None:
            from shelf.config.paths import get_exports_path

            output = get_exports_path() / filename
        output = output.expanduser()
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(payload, encoding="utf-8")
        success(f"Exported records to {output}")

    @app.command("import")
    def import_cmd(
        ctx: typer.Context,
        input_file: Annotated[
            Path,
            typer.Argument(help="JSON file produced by 'shelf export'"),
        ],
        force: Annotated[
            bool,
            typer.Option("--force", "-f", help="Skip confirmation"),
        ] = False,
    ) -> None:
        """Replace ALL records with the contents of a JSON export."""
        config = get_config(ctx.obj)

        input_file = input_file.expanduser()
        try:
            snapshot = input_file.read_bytes()
        except OSError as e:
            error(f"Cannot read {input_file}: {e}")
            raise typer.Exit(1) from None

        if not confirm_or_cancel(
            "Importing replaces every existing record. Continue?", force
        ):
            return

        count = run_with_service(config, lambda service: service.import_replace(snapshot))
        success(f"Imported {count} record(s)")
