"""Config loading and service lifecycle for CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import typer
from pydantic import ValidationError

from shelf.cli.console import error
from shelf.config import ConfigError, ShelfConfig, load_config
from shelf.errors import ShelfError, StorageUnavailable
from shelf.records import RecordService, create_record_service

T = TypeVar("T")


def get_config(config_path: Path | None = None) -> ShelfConfig:
    """Load config or exit with a readable error."""
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        error(str(e))
        raise typer.Exit(1) from None
    except (ConfigError, ValidationError) as e:
        error(f"Invalid configuration: {e}")
        raise typer.Exit(1) from None


def run_with_service(
    config: ShelfConfig,
    operation: Callable[[RecordService], Awaitable[T]],
) -> T:
    """Open the record service, run one operation, close the service.

    Store errors are printed and turned into exit code 1.
    """

    async def _main() -> T:
        service = await create_record_service(config)
        try:
            return await operation(service)
        finally:
            await service.close()

    try:
        return asyncio.run(_main())
    except StorageUnavailable as e:
        error(f"Storage unavailable: {e}")
        raise typer.Exit(1) from None
    except ShelfError as e:
        error(str(e))
        raise typer.Exit(1) from None
