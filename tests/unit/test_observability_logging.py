"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from spoilerdown.observability import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)

if TYPE_CHECKING:
    from pathlib import Path


def test_configure_logging_sets_level_warning() -> None:
    """Default verbosity (0) sets WARNING level."""
    configure_logging(verbosity=0)

    assert logging.getLogger().level == logging.WARNING


def test_configure_logging_verbose_lowers_root_level() -> None:
    """verbosity=1 opens the root logger; the console handler filters to INFO."""
    configure_logging(verbosity=1)

    assert logging.getLogger().level == logging.DEBUG


def test_get_logger_auto_configures() -> None:
    """get_logger configures logging if not already done."""
    import spoilerdown.observability.logging as log_module

    log_module._state.configured = False

    logger = get_logger("test")

    assert log_module._state.configured is True
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")


def test_configure_logging_quiets_dependency_loggers() -> None:
    """HTTP and parser loggers stay at WARNING even at -vv."""
    configure_logging(verbosity=2)

    for name in ("httpx", "httpcore", "markdown_it"):
        assert logging.getLogger(name).level == logging.WARNING


def test_configure_logging_with_log_dir(tmp_path: Path) -> None:
    """A log directory is created and reported."""
    logs_dir = tmp_path / "logs"
    configure_logging(verbosity=0, log_dir=logs_dir)

    assert logs_dir.exists()
    assert get_logs_dir() == logs_dir
    close_file_logging()


def test_configure_logging_without_log_dir(tmp_path: Path) -> None:
    """Without a log directory nothing is written to disk."""
    configure_logging(verbosity=0)

    assert get_logs_dir() is None
    assert list(tmp_path.iterdir()) == []


def test_reconfiguration_closes_previous_handler(tmp_path: Path) -> None:
    """Reconfiguring logging closes the previous file handler."""
    import spoilerdown.observability.logging as log_module

    configure_logging(verbosity=0, log_dir=tmp_path)
    first_handler = log_module._state.file_handler
    assert first_handler is not None

    configure_logging(verbosity=0, log_dir=tmp_path)

    assert first_handler.stream is None or first_handler.stream.closed
    assert log_module._state.file_handler is not None
    close_file_logging()
    assert log_module._state.file_handler is None


def test_jsonl_file_handler_writes_structlog_context(tmp_path: Path) -> None:
    """Event name and key/value context land in debug.jsonl."""
    configure_logging(verbosity=2, log_dir=tmp_path)

    logger = get_logger("test.context")
    logger.info("embeds_extracted", count=2, prefix="SPOILERDOWNEMBEDQ")

    close_file_logging()

    log_file = tmp_path / "debug.jsonl"
    assert log_file.exists()

    entries = [json.loads(line) for line in log_file.read_text().splitlines()]
    matching = [e for e in entries if e.get("message") == "embeds_extracted"]
    assert matching, "Log entry with structlog context not found in JSONL"
    assert matching[0]["count"] == 2
    assert matching[0]["prefix"] == "SPOILERDOWNEMBEDQ"
    assert matching[0]["level"] == "INFO"
