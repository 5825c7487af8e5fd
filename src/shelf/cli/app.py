"""Main CLI application."""

from pathlib import Path
from typing import Annotated

import typer

from shelf.cli.commands import config, records, transfer

app = typer.Typer(
    name="shelf",
    help="Shelf - schema-driven local record manager",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log store activity to the console",
        ),
    ] = False,
    log_file: Annotated[
        bool,
        typer.Option(
            "--log-file",
            envvar="SHELF_LOG_FILE",
            help="Also write JSONL logs under $SHELF_HOME/logs",
        ),
    ] = False,
) -> None:
    """Manage records in a local, schema-configured store."""
    from shelf.logging import configure_logging

    configure_logging(
        level="INFO" if verbose else None,
        use_rich=True,
        log_to_file=log_file,
    )
    ctx.obj = config_path


records.register(app)
transfer.register(app)
config.register(app)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
