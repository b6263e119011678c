"""Session event logger.

Records one JSONL line per protocol outcome to session.jsonl:
- bootstrap_completed / bootstrap_timeout / bootstrap_failed
- session_revoked (revalidation found the session gone)
- bridge_completed
- signed_out

User ids are hashed before writing so the log can be shared when debugging
cross-app issues without exposing accounts.

A SessionEventLogger without a file logger is a no-op sink, which is what
tests and the CLI get unless logging is configured.
"""

from __future__ import annotations

__all__ = [
    "SessionEvent",
    "SessionEventLogger",
    "create_session_logger",
    "hash_user_id",
]

import hashlib
import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel

from suite_sso.constants import APP_NAME
from suite_sso.telemetry.system_logger import get_system_logger
from suite_sso.utils.logging.logger_setup import setup_jsonl_logger

SessionEventType = Literal[
    "bootstrap_completed",
    "bootstrap_timeout",
    "bootstrap_failed",
    "session_revoked",
    "session_refreshed",
    "bridge_completed",
    "signed_out",
]


class SessionEvent(BaseModel):
    """One session protocol outcome (session.jsonl).

    'time' is not a field: ISO8601Formatter adds it when the line is written.
    """

    event_type: SessionEventType
    status: Literal["Success", "Failure", "Skipped"]
    origin: str
    app: str | None = None
    is_hub: bool | None = None

    user_id: str | None = None  # hashed before writing
    source: str | None = None
    dev_mode: bool | None = None
    duration_ms: float | None = None

    error_type: str | None = None
    error_message: str | None = None
    message: str | None = None


def hash_user_id(user_id: str) -> str:
    """Return a short, stable, non-reversible tag for a user id."""
    digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
    return f"sha256:{digest[:12]}"


class SessionEventLogger:
    """Typed writer for SessionEvent records.

    Usage:
        session_logger = create_session_logger(log_dir)
        session_logger.log(SessionEvent(event_type="signed_out", status="Success", origin=...))
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger

    @property
    def enabled(self) -> bool:
        return self._logger is not None

    def log(self, event: SessionEvent) -> None:
        """Write an event. Write failures go to the system logger, never raise."""
        if self._logger is None:
            return

        data = event.model_dump(exclude_none=True)
        if "user_id" in data:
            data["user_id"] = hash_user_id(data["user_id"])

        try:
            self._logger.info(data)
        except Exception as e:
            get_system_logger().warning(
                {
                    "event": "session_log_write_failed",
                    "message": f"Failed to write session event: {e}",
                    "error_type": type(e).__name__,
                }
            )


def create_session_logger(log_dir: Path | None) -> SessionEventLogger:
    """Create a session logger writing to ``<log_dir>/session.jsonl``.

    Returns a disabled logger when ``log_dir`` is None or cannot be created.
    """
    if log_dir is None:
        return SessionEventLogger()

    try:
        logger = setup_jsonl_logger(f"{APP_NAME}.session", log_dir / "session.jsonl")
    except OSError as e:
        get_system_logger().warning(
            {
                "event": "session_log_unavailable",
                "message": f"Session event log disabled: {e}",
                "error_type": type(e).__name__,
            }
        )
        return SessionEventLogger()

    return SessionEventLogger(logger)
