"""Telemetry for suite-sso.

- system_logger: Operational events (stderr + system.jsonl)
- session_logger: Protocol outcomes (session.jsonl)
"""

from suite_sso.telemetry.session_logger import (
    SessionEvent,
    SessionEventLogger,
    create_session_logger,
)
from suite_sso.telemetry.system_logger import (
    configure_system_logger_file,
    get_system_logger,
)

__all__ = [
    "SessionEvent",
    "SessionEventLogger",
    "configure_system_logger_file",
    "create_session_logger",
    "get_system_logger",
]
