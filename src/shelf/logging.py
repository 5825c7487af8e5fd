"""Centralized logging configuration for Shelf.

The CLI calls configure_logging() once at startup; library modules only
create loggers with logging.getLogger(__name__).

Logging Levels:
- DEBUG: Database connects, store opens, batch commits
- INFO: Record saves/removals, imports, exports, store provisioning
- WARNING: Failed reads or writes (the error is also raised to the caller)
- ERROR: Store could not be opened

Events are short snake_case messages with context in `extra`, e.g.
logger.info("record_saved", extra={"record.id": 3}).
"""

import json
import logging
import os
import time
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any, TextIO

LOG_LEVEL_ENV_VAR = "SHELF_LOG_LEVEL"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
DEFAULT_LEVEL = "WARNING"

# Days a JSONL log file is kept before pruning
DEFAULT_LOG_RETENTION_DAYS = 7

# Third-party loggers kept at WARNING whatever the configured level
NOISY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite")

# Attributes every LogRecord has; anything else came from `extra`
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "component"}


def record_extras(record: logging.LogRecord) -> dict[str, Any]:
    """Collect the fields passed via `extra=` on a log call."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }


def _component(name: str) -> str:
    # shelf.store.gateway -> store, sqlalchemy.engine -> sqlalchemy
    head, _, rest = name.partition(".")
    if head == "shelf" and rest:
        return rest.split(".", 1)[0]
    return head


def _resolve_level(level: str | None) -> str:
    chosen = (level or os.environ.get(LOG_LEVEL_ENV_VAR) or DEFAULT_LEVEL).upper()
    return chosen if chosen in LEVELS else DEFAULT_LEVEL


def prune_old_logs(
    logs_dir: Path,
    retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    suffix: str = ".jsonl",
) -> int:
    """Delete `*suffix` files in logs_dir not modified within retention_days.

    Returns:
        Number of files deleted.
    """
    if not logs_dir.is_dir():
        return 0

    cutoff = time.time() - retention_days * 86400
    deleted = 0
    for path in logs_dir.glob(f"*{suffix}"):
        try:
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink()
                deleted += 1
        except OSError:
            # Removed or locked by another process
            continue
    return deleted


class JSONLHandler(logging.Handler):
    """Write one JSON object per log record to logs_dir/YYYY-MM-DD.jsonl.

    A new file is opened when the UTC date changes, and old files are
    pruned at that point.
    """

    def __init__(
        self,
        logs_dir: Path,
        retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    ):
        super().__init__()
        logs_dir.mkdir(parents=True, exist_ok=True)
        self._logs_dir = logs_dir
        self._retention_days = retention_days
        self._day: date | None = None
        self._stream: TextIO | None = None

    def _stream_for_today(self) -> TextIO:
        today = datetime.now(UTC).date()
        if self._stream is None or self._day != today:
            if self._stream is not None:
                self._stream.close()
            self._day = today
            path = self._logs_dir / f"{today.isoformat()}.jsonl"
            self._stream = path.open("a", encoding="utf-8")
            prune_old_logs(self._logs_dir, self._retention_days)
        return self._stream

    def _entry(self, record: logging.LogRecord) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "component": _component(record.name),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            formatter = self.formatter or logging.Formatter()
            entry["exception"] = formatter.formatException(record.exc_info)
        if extras := record_extras(record):
            entry["extra"] = extras
        return entry

    def emit(self, record: logging.LogRecord) -> None:
        try:
            line = json.dumps(self._entry(record), default=str, ensure_ascii=False)
            stream = self._stream_for_today()
            stream.write(line + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        super().close()


class ComponentFormatter(logging.Formatter):
    """Formatter exposing `%(component)s`, the short subsystem name.

    shelf.store.gateway -> store, shelf.records.service -> records.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.component = _component(record.name)
        return super().format(record)


def _console_handler(use_rich: bool) -> logging.Handler:
    if use_rich:
        from rich.logging import RichHandler

        handler: logging.Handler = RichHandler(
            show_path=False,
            markup=False,
            rich_tracebacks=False,
        )
        handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
        return handler

    handler = logging.StreamHandler()
    handler.setFormatter(
        ComponentFormatter(
            "%(asctime)s %(levelname)-8s %(component)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    return handler


def configure_logging(
    level: str | None = None,
    use_rich: bool = False,
    log_to_file: bool = False,
) -> None:
    """Configure the root logger for Shelf.

    Args:
        level: DEBUG, INFO, WARNING or ERROR (any case). Falls back to
            SHELF_LOG_LEVEL, then WARNING; unknown names mean WARNING.
        use_rich: Render console output with rich.
        log_to_file: Also append JSONL entries under $SHELF_HOME/logs/.
    """
    from shelf.config.paths import get_logs_path

    log_level = getattr(logging, _resolve_level(level))

    handlers = [_console_handler(use_rich)]
    if log_to_file:
        handlers.append(JSONLHandler(get_logs_path()))

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
