"""Observability module for spoilerdown.

Provides structured logging with a Rich console sink and an optional JSONL file.
"""

from spoilerdown.observability.logging import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)

__all__ = [
    "close_file_logging",
    "configure_logging",
    "get_logger",
    "get_logs_dir",
]
