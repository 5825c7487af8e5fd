"""CLI command modules."""

from shelf.cli.commands import config, records, transfer

__all__ = [
    "config",
    "records",
    "transfer",
]
