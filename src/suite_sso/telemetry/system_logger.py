"""System logger for operational events.

Singleton logger for everything that is not a session outcome record:
bootstrap timeouts, unreachable Hub, storage failures, secondary sign-in
failures.

Logging strategy:
- Console (stderr): INFO and above, human-readable
- File (system.jsonl): WARNING and above, JSONL, added once config is loaded
  via configure_system_logger_file()

Messages are dicts with at least an "event" key:
    get_system_logger().warning({"event": "hub_unreachable", "message": "..."})
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "configure_system_logger_file",
    "get_system_logger",
]

import logging
import sys
from pathlib import Path

from suite_sso.constants import APP_NAME
from suite_sso.utils.logging.iso_formatter import ISO8601Formatter
from suite_sso.utils.logging.logger_setup import ensure_log_directory


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for stderr.

    Prints the "message" field of dict records, falling back to "event".
    """

    def format(self, record: logging.LogRecord) -> str:
        if isinstance(record.msg, dict):
            msg = record.msg.get("message") or record.msg.get("event", "")
            return f"{record.levelname}: {msg}"
        return f"{record.levelname}: {record.getMessage()}"


_system_logger: logging.Logger | None = None
_file_handler_configured: bool = False


def get_system_logger() -> logging.Logger:
    """Get the singleton system logger, creating it with a stderr handler."""
    global _system_logger

    if _system_logger is not None:
        return _system_logger

    _system_logger = logging.getLogger(f"{APP_NAME}.system")
    _system_logger.setLevel(logging.DEBUG)
    _system_logger.propagate = False

    for handler in _system_logger.handlers:
        handler.close()
    _system_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.INFO)
    stderr_handler.setFormatter(ConsoleFormatter())
    _system_logger.addHandler(stderr_handler)

    return _system_logger


def configure_system_logger_file(log_path: Path, log_level: int = logging.WARNING) -> None:
    """Add the JSONL file handler to the system logger (once per process).

    Args:
        log_path: Path to system.jsonl.
        log_level: Minimum level written to the file. WARNING by default;
            DEBUG logging configuration lowers it so every step is kept.
    """
    global _file_handler_configured

    if _file_handler_configured:
        return

    logger = get_system_logger()

    try:
        ensure_log_directory(log_path)
    except OSError:
        return  # stderr still works

    file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(ISO8601Formatter())
    logger.addHandler(file_handler)

    _file_handler_configured = True
