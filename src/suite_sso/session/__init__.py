"""Local session state: cookie record and device cache."""

from suite_sso.session.device_cache import DeviceSessionCache
from suite_sso.session.record_store import SessionRecordStore, SessionTimeout, SessionValidation

__all__ = [
    "DeviceSessionCache",
    "SessionRecordStore",
    "SessionTimeout",
    "SessionValidation",
]
