"""Structured logging for spoilerdown.

Every module logs through ``get_logger(__name__)`` with snake_case event
names and key/value context, e.g. ``log.warning("entity_fetch_failed",
entity_type="arc", entity_id=5)``.

Two sinks are available:

- the console, rendered by Rich on stderr; ``-v`` shows INFO, ``-vv`` DEBUG
- ``<log_dir>/debug.jsonl``, one JSON object per event at every level,
  enabled by ``--log-dir``
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger, Processor

JSONL_FILENAME = "debug.jsonl"

# Kept at WARNING whatever the verbosity; their DEBUG output buries render events.
QUIET_LOGGERS = ("httpx", "httpcore", "markdown_it", "asyncio")

_CONSOLE_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


@dataclass
class _LoggingState:
    configured: bool = False
    file_handler: logging.FileHandler | None = None
    logs_dir: Path | None = None


_state = _LoggingState()


def _event_entry(record: logging.LogRecord) -> dict[str, Any]:
    """Flatten a log record, including structlog's event dict, into one mapping."""
    entry: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "level": record.levelname,
        "logger": record.name,
    }
    if not isinstance(record.msg, dict):
        entry["message"] = record.getMessage()
        return entry

    context = {k: v for k, v in record.msg.items() if k not in ("level", "timestamp")}
    entry["message"] = context.pop("event", "")
    entry.update(context)
    return entry


class JSONLFileHandler(logging.FileHandler):
    """Appends each record to the file as a single JSON line."""

    def emit(self, record: logging.LogRecord) -> None:
        # Closed handlers can stay attached to the root logger until the next reconfigure.
        if self.stream is None:
            return
        try:
            self.stream.write(json.dumps(_event_entry(record), default=str) + "\n")
            self.flush()
        except Exception:
            self.handleError(record)


def _console_handler(verbosity: int) -> RichHandler:
    debug = verbosity >= 2
    return RichHandler(
        console=Console(stderr=True),
        level=_CONSOLE_LEVELS[min(max(verbosity, 0), len(_CONSOLE_LEVELS) - 1)],
        markup=False,
        show_time=verbosity >= 1,
        show_path=debug,
        rich_tracebacks=True,
        tracebacks_show_locals=debug,
    )


def configure_logging(verbosity: int = 0, log_dir: Path | None = None) -> None:
    """Configure stdlib logging and structlog.

    Safe to call repeatedly; an open JSONL file from an earlier call is closed.

    Args:
        verbosity: Console level. 0 shows warnings, 1 info, 2 or more debug.
        log_dir: Directory for ``debug.jsonl``. Created if missing.
    """
    close_file_logging()

    handlers: list[logging.Handler] = [_console_handler(verbosity)]
    _state.logs_dir = log_dir
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        _state.file_handler = JSONLFileHandler(log_dir / JSONL_FILENAME, mode="a")
        _state.file_handler.setLevel(logging.DEBUG)
        handlers.append(_state.file_handler)

    # The root logger must let DEBUG through whenever any sink wants it;
    # each handler applies its own level.
    wants_debug = verbosity > 0 or log_dir is not None
    root_level = logging.DEBUG if wants_debug else logging.WARNING
    logging.basicConfig(level=root_level, format="%(message)s", handlers=handlers, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        cache_logger_on_first_use=True,
    )
    _state.configured = True


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Return a structlog logger, configuring defaults on first use."""
    if not _state.configured:
        configure_logging()
    logger: FilteringBoundLogger = structlog.get_logger(name)
    return logger


def get_logs_dir() -> Path | None:
    """Directory receiving ``debug.jsonl``, or None when file logging is off."""
    return _state.logs_dir


def close_file_logging() -> None:
    """Flush and close the JSONL sink, if one is open."""
    handler, _state.file_handler = _state.file_handler, None
    if handler is not None:
        handler.close()
