"""Device session cache for environments where cookies cannot be shared.

On loopback and LAN hosts every app runs on its own port, and cookies set on
one port are not sent to another. The cache keeps the last known session
value in origin-scoped device storage so the next bootstrap can hand it back
to the backend.

Entries expire 8 hours after their last write or refresh. There is no
locking: two processes writing at once resolve as last-writer-wins, which is
acceptable because the backend re-validates every value it is sent.
"""

from __future__ import annotations

__all__ = ["DeviceSessionCache"]

import time
from collections.abc import Callable

from suite_sso.constants import (
    DEVICE_SESSION_KEY,
    DEVICE_SESSION_TTL_SECONDS,
    DEVICE_TIMESTAMP_KEY,
)
from suite_sso.exceptions import StorageError
from suite_sso.storage.device_storage import DeviceStorage
from suite_sso.telemetry.system_logger import get_system_logger


class DeviceSessionCache:
    """Session value plus write timestamp (epoch ms) with an absolute TTL."""

    def __init__(
        self,
        storage: DeviceStorage,
        *,
        ttl_seconds: int = DEVICE_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._ttl_ms = ttl_seconds * 1000
        self._clock = clock
        self._logger = get_system_logger()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def store(self, value: str) -> None:
        """Write ``value`` with a fresh timestamp.

        Raises:
            StorageError: If the backend cannot be written.
        """
        self._storage.set(DEVICE_SESSION_KEY, value)
        self._storage.set(DEVICE_TIMESTAMP_KEY, str(self._now_ms()))

    def read(self) -> str | None:
        """Return the cached value if younger than the TTL.

        Stale or corrupt entries are purged as a side effect. An unreadable
        backend counts as an empty cache.
        """
        try:
            value = self._storage.get(DEVICE_SESSION_KEY)
            stamp = self._storage.get(DEVICE_TIMESTAMP_KEY)
        except StorageError as e:
            self._logger.warning(
                {
                    "event": "device_cache_unreadable",
                    "message": "Device cache unreadable, treating as empty",
                    "error": str(e),
                }
            )
            return None

        if value is None or stamp is None:
            return None

        try:
            written_ms = int(stamp)
        except ValueError:
            self._logger.debug({"event": "device_cache_corrupt", "message": "Unparsable timestamp, purging"})
            self.clear()
            return None

        age_ms = self._now_ms() - written_ms
        if age_ms > self._ttl_ms:
            self._logger.debug(
                {
                    "event": "device_cache_expired",
                    "message": "Cached session older than TTL, purging",
                    "age_seconds": age_ms // 1000,
                }
            )
            self.clear()
            return None

        return value

    def refresh(self) -> None:
        """Re-stamp an existing entry. No-op when the cache is empty."""
        try:
            if self._storage.get(DEVICE_SESSION_KEY) is None:
                return
            self._storage.set(DEVICE_TIMESTAMP_KEY, str(self._now_ms()))
        except StorageError as e:
            self._logger.warning(
                {"event": "device_cache_refresh_failed", "message": "Could not refresh timestamp", "error": str(e)}
            )

    def clear(self) -> None:
        try:
            self._storage.delete(DEVICE_SESSION_KEY)
            self._storage.delete(DEVICE_TIMESTAMP_KEY)
        except StorageError as e:
            self._logger.warning(
                {"event": "device_cache_clear_failed", "message": "Could not clear device cache", "error": str(e)}
            )

    def has_entry(self) -> bool:
        try:
            return self._storage.get(DEVICE_SESSION_KEY) is not None
        except StorageError:
            return False
