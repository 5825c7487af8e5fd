"""Shared console output for CLI commands.

Messages passed to the helpers below are plain text: record values and
paths can contain square brackets, so they are escaped before styling.
"""

from __future__ import annotations

from typing import Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()


def _styled(style: str, msg: str) -> None:
    console.print(f"[{style}]{escape(msg)}[/{style}]")


def error(msg: str) -> None:
    _styled("red", msg)


def warning(msg: str) -> None:
    _styled("yellow", msg)


def success(msg: str) -> None:
    _styled("green", msg)


def dim(msg: str) -> None:
    _styled("dim", msg)


def create_table(
    title: str,
    columns: list[tuple[str, str | dict[str, Any]]],
) -> Table:
    """Build a rich Table.

    Each column is (header, style) or (header, add_column kwargs).
    """
    table = Table(title=title)
    for header, spec in columns:
        kwargs = spec if isinstance(spec, dict) else {"style": spec}
        table.add_column(header, **kwargs)
    return table


def confirm_or_cancel(prompt: str, force: bool) -> bool:
    """Ask before a destructive action; --force skips the question."""
    if force or typer.confirm(prompt):
        return True
    dim("Cancelled")
    return False
