"""JSONL formatting with ISO 8601 timestamps."""

from __future__ import annotations

__all__ = ["ISO8601Formatter"]

import json
import logging
from datetime import datetime, timezone


class ISO8601Formatter(logging.Formatter):
    """Format records as one JSON object per line, timestamped in UTC.

    Structured callers pass a dict as the log message; plain strings are
    wrapped as ``{"message": ...}``. Every entry starts with ``time`` and
    ``level`` so logs from several applications can be merged and sorted.

    Example line:
        {"time": "2026-10-18T10:48:37.123Z", "level": "WARNING", "event": "bootstrap_timeout", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        if isinstance(record.msg, dict):
            log_data = dict(record.msg)
        else:
            log_data = {"message": record.getMessage()}

        if record.exc_info and "traceback" not in log_data:
            log_data["traceback"] = self.formatException(record.exc_info)

        entry = {"time": timestamp, "level": record.levelname, **log_data}
        # default=str keeps datetimes and enums from breaking a log write
        return json.dumps(entry, default=str)
