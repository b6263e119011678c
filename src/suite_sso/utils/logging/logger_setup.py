"""Logger setup for file-backed JSONL loggers."""

from __future__ import annotations

__all__ = ["ensure_log_directory", "setup_jsonl_logger"]

import logging
from pathlib import Path

from suite_sso.utils.file_helpers import set_secure_permissions
from suite_sso.utils.logging.iso_formatter import ISO8601Formatter


def ensure_log_directory(log_file: Path) -> None:
    """Create the parent directory of a log file, owner-only.

    Raises:
        PermissionError: If the directory cannot be created due to permissions.
        OSError: If directory creation fails for other reasons.
    """
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        raise PermissionError(f"Cannot create log directory {log_file.parent}: {e}") from e
    except OSError as e:
        raise OSError(f"Failed to create log directory {log_file.parent}: {e}") from e
    set_secure_permissions(log_file.parent, is_directory=True)


def setup_jsonl_logger(
    logger_name: str,
    log_file: Path,
    log_level: int = logging.INFO,
) -> logging.Logger:
    """Set up a non-propagating logger that appends JSONL to ``log_file``.

    Calling this twice for the same name replaces the previous handlers, so
    re-initialising a runtime never duplicates lines.

    Args:
        logger_name: Name for the logger (e.g., "suite-sso.session").
        log_file: Path to the log file.
        log_level: Logging level (default: INFO).

    Returns:
        Configured logger instance.
    """
    ensure_log_directory(log_file)

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_level)
    logger.propagate = False

    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(ISO8601Formatter())
    logger.addHandler(file_handler)

    set_secure_permissions(log_file)
    return logger
