"""Configuration, schema and path commands."""

from pathlib import Path
from typing import Annotated

import click
import typer
from rich.markup import escape

from shelf.cli.console import console, create_table, dim, error, success
from shelf.cli.context import get_config


def register(app: typer.Typer) -> None:
    """Register the init, config, schema and info commands."""

    @app.command()
    def init(
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: $SHELF_HOME/config.toml)",
            ),
        ] = None,
        force: Annotated[
            bool,
            typer.Option("--force", "-f", help="Overwrite an existing file"),
        ] = False,
    ) -> None:
        """Create a config file with the default schema."""
        from shelf.config import get_config_path, get_default_config
        from shelf.config.writer import ConfigWriter

        config_path = path.expanduser() if path else get_config_path()
        writer = ConfigWriter(config_path)

        if not writer.write_template(get_default_config(), overwrite=force):
            error(f"Config file already exists at {config_path}")
            console.print("Use --force to overwrite it")
            raise typer.Exit(1)

        success(f"Created config file at {config_path}")
        dim("Edit [schema] to change fields, then run: shelf schema")

    @app.command()
    def config(
        action: Annotated[
            str | None,
            typer.Argument(help="Action: show, validate, bump"),
        ] = None,
        path: Annotated[
            Path | None,
            typer.Option(
                "--path",
                "-p",
                help="Path to config file (default: $SHELF_HOME/config.toml)",
            ),
        ] = None,
    ) -> None:
        """Manage configuration."""
        if action is None:
            ctx = click.get_current_context()
            click.echo(ctx.get_help())
            raise typer.Exit(0)

        from pydantic import ValidationError
        from rich.syntax import Syntax

        from shelf.config import ConfigError, get_config_path, load_config
        from shelf.config.writer import ConfigWriter

        expanded_path = path.expanduser() if path else get_config_path()

        if action == "show":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                console.print("Run 'shelf init' to create one")
                raise typer.Exit(1)

            content = expanded_path.read_text(encoding="utf-8")
            syntax = Syntax(content, "toml", theme="monokai", line_numbers=True)
            console.print(f"[bold]Config file: {escape(str(expanded_path))}[/bold]\n")
            console.print(syntax)

        elif action == "validate":
            try:
                config_obj = load_config(expanded_path)
            except FileNotFoundError as e:
                error(str(e))
                raise typer.Exit(1) from None
            except ConfigError as e:
                error(str(e))
                raise typer.Exit(1) from None
            except ValidationError as e:
                error("Configuration validation failed:")
                console.print()
                for err in e.errors():
                    loc = ".".join(str(x) for x in err["loc"])
                    console.print(f"  [yellow]{escape(loc)}[/yellow]: {escape(err['msg'])}")
                raise typer.Exit(1) from None

            table = create_table(
                "Configuration Summary", [("Setting", "cyan"), ("Value", "green")]
            )
            table.add_row("Title", escape(config_obj.app_title))
            table.add_row("Database", escape(str(config_obj.database_path)))
            table.add_row(
                "Store", f"{escape(config_obj.store.name)} (version {config_obj.store.version})"
            )
            table.add_row("Fields", str(len(config_obj.schema_.fields)))
            table.add_row("Search fields", ", ".join(config_obj.schema_.search_fields))

            success("Configuration is valid!")
            console.print()
            console.print(table)

        elif action == "bump":
            if not expanded_path.exists():
                error(f"Config file not found: {expanded_path}")
                raise typer.Exit(1)

            try:
                current = load_config(expanded_path).store.version
            except (ConfigError, ValidationError) as e:
                error(f"Invalid configuration: {e}")
                raise typer.Exit(1) from None

            ConfigWriter(expanded_path).set_store_version(current + 1)
            success(f"Store version bumped to {current + 1}")
            dim("New search field indexes are created the next time the store opens")

        else:
            error(f"Unknown action: {action}")
            console.print("Valid actions: show, validate, bump")
            raise typer.Exit(1)

    @app.command()
    def schema(ctx: typer.Context) -> None:
        """Show the record schema in use."""
        from shelf.schema import FieldKind

        config_obj = get_config(ctx.obj)
        record_schema = config_obj.schema_

        table = create_table(
            f"{config_obj.app_title} schema",
            [
                ("Field", "cyan"),
                ("Label", ""),
                ("Kind", "magenta"),
                ("Required", {"justify": "center"}),
                ("Search", {"justify": "center"}),
                ("Details", "dim"),
            ],
        )
        for field in record_schema.fields:
            details: list[str] = []
            if field.options:
                details.append(" | ".join(field.options))
            if field.kind == FieldKind.NUMBER and (field.min is not None or field.max is not None):
                low = "" if field.min is None else f"{field.min:g}"
                high = "" if field.max is None else f"{field.max:g}"
                details.append(f"{low}..{high}")
            if field.name == record_schema.timestamp_field:
                details.append("stamped on create")
            if field.kind == FieldKind.DATE:
                details.append(f"until {record_schema.max_date.isoformat()}")
            table.add_row(
                escape(field.name),
                escape(field.label),
                field.kind.value,
                "yes" if field.required else "",
                "yes" if record_schema.is_search_field(field.name) else "",
                escape(", ".join(details)),
            )
        console.print(table)

    @app.command()
    def info(ctx: typer.Context) -> None:
        """Show where Shelf keeps its files."""
        from shelf.config.paths import get_all_paths

        config_obj = get_config(ctx.obj)
        paths = get_all_paths()
        if ctx.obj:
            paths["config"] = ctx.obj
        paths["database"] = config_obj.database_path

        table = create_table("Shelf paths", [("Item", "cyan"), ("Path", "")])
        for key, value in paths.items():
            table.add_row(key.title(), escape(str(value)))
        table.add_row(
            "Store",
            escape(f"{config_obj.store.name} (version {config_obj.store.version})"),
        )
        console.print(table)
