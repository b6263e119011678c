"""Session cookie plus the client-local timeout record.

The cookie lives in an ``httpx.Cookies`` jar shared with the HTTP client, so
it is sent with every same-origin request exactly like a browser cookie. The
timeout record (expiry, last activity) lives in device storage next to it.

A readable cookie alone is not a valid session: validity also requires a
timeout record that has not expired.
"""

from __future__ import annotations

__all__ = [
    "SessionRecordStore",
    "SessionTimeout",
    "SessionValidation",
]

import time
from collections.abc import Callable
from dataclasses import dataclass
from http.cookiejar import Cookie

import httpx

from suite_sso.constants import (
    SECONDS_PER_DAY,
    SESSION_COOKIE_MAX_AGE_SECONDS,
    SESSION_COOKIE_NAME,
    SESSION_COOKIE_PATH,
    SESSION_COOKIE_SAMESITE,
    SESSION_EXPIRING_SOON_SECONDS,
    SESSION_EXPIRY_KEY,
    SESSION_LAST_ACTIVITY_KEY,
    SESSION_REFRESH_RATIO,
)
from suite_sso.exceptions import StorageError
from suite_sso.storage.device_storage import DeviceStorage
from suite_sso.telemetry.system_logger import get_system_logger


@dataclass(frozen=True)
class SessionTimeout:
    """Expiry and last-activity timestamps, in epoch seconds."""

    expiry: float
    last_activity: float
    max_age: int = SESSION_COOKIE_MAX_AGE_SECONDS

    def remaining(self, now: float) -> float:
        return self.expiry - now

    def is_expired(self, now: float) -> bool:
        return now > self.expiry

    def needs_refresh(self, now: float) -> bool:
        # Exactly at the threshold is still fresh
        return (now - self.last_activity) > SESSION_REFRESH_RATIO * self.max_age

    def expiring_soon(self, now: float) -> bool:
        return self.remaining(now) < SESSION_EXPIRING_SOON_SECONDS


@dataclass(frozen=True)
class SessionValidation:
    """Result of SessionRecordStore.validate()."""

    valid: bool
    expired: bool
    needs_refresh: bool
    has_cookie: bool
    expiring_soon: bool = False


class SessionRecordStore:
    """Read, write and validate the local session record. No network.

    Args:
        cookies: Jar shared with the HTTP client.
        storage: Device storage holding the timeout record.
        host: Origin hostname, used for host-only cookies.
        cookie_domain: Parent domain (``.example.com``) or None for host-only.
        secure: Set the Secure attribute.
        max_age: Cookie lifetime in seconds.
        clock: Returns the current time in epoch seconds.
    """

    def __init__(
        self,
        cookies: httpx.Cookies,
        storage: DeviceStorage,
        *,
        host: str,
        cookie_domain: str | None = None,
        secure: bool = True,
        max_age: int = SESSION_COOKIE_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cookies = cookies
        self._storage = storage
        self._host = host
        self._cookie_domain = cookie_domain
        self._secure = secure
        self._max_age = max_age
        self._clock = clock
        self._logger = get_system_logger()

    @property
    def max_age_days(self) -> float:
        return self._max_age / SECONDS_PER_DAY

    @property
    def domain(self) -> str:
        return self._cookie_domain or _host_only_domain(self._host)

    # ------------------------------------------------------------------
    # Cookie
    # ------------------------------------------------------------------

    def set(self, cookie_value: str) -> None:
        """Write the session cookie with the suite-wide attributes."""
        domain = self.domain
        cookie = Cookie(
            version=0,
            name=SESSION_COOKIE_NAME,
            value=cookie_value,
            port=None,
            port_specified=False,
            domain=domain,
            domain_specified=self._cookie_domain is not None,
            domain_initial_dot=domain.startswith("."),
            path=SESSION_COOKIE_PATH,
            path_specified=True,
            secure=self._secure,
            expires=int(self._clock() + self._max_age),
            discard=False,
            comment=None,
            comment_url=None,
            rest={"SameSite": SESSION_COOKIE_SAMESITE},
        )
        self._cookies.jar.set_cookie(cookie)

    def get(self) -> str | None:
        for cookie in self._cookies.jar:
            if cookie.name == SESSION_COOKIE_NAME and cookie.domain == self.domain:
                if cookie.is_expired(int(self._clock())):
                    return None
                return cookie.value
        return None

    def remove(self) -> None:
        try:
            self._cookies.jar.clear(self.domain, SESSION_COOKIE_PATH, SESSION_COOKIE_NAME)
        except KeyError:
            pass  # not set

    def set_cookie_header(self) -> str | None:
        """Render the stored cookie as a ``Set-Cookie`` header value."""
        value = self.get()
        if value is None:
            return None
        parts = [
            f"{SESSION_COOKIE_NAME}={value}",
            f"Max-Age={self._max_age}",
            f"Path={SESSION_COOKIE_PATH}",
        ]
        if self._cookie_domain:
            parts.append(f"Domain={self._cookie_domain}")
        if self._secure:
            parts.append("Secure")
        parts.append(f"SameSite={SESSION_COOKIE_SAMESITE}")
        return "; ".join(parts)

    # ------------------------------------------------------------------
    # Timeout record
    # ------------------------------------------------------------------

    def timeout(self) -> SessionTimeout | None:
        """Current timeout record, or None if absent, unreadable or corrupt."""
        try:
            expiry_raw = self._storage.get(SESSION_EXPIRY_KEY)
            activity_raw = self._storage.get(SESSION_LAST_ACTIVITY_KEY)
        except StorageError as e:
            self._logger.warning(
                {
                    "event": "session_record_unreadable",
                    "message": "Timeout record unreadable, treating as no session",
                    "error": str(e),
                }
            )
            return None

        if expiry_raw is None:
            return None
        try:
            expiry = int(expiry_raw) / 1000
            last_activity = int(activity_raw) / 1000 if activity_raw is not None else expiry - self._max_age
        except ValueError:
            self._logger.warning(
                {
                    "event": "session_record_corrupt",
                    "message": "Timeout record is not numeric, treating as no session",
                }
            )
            return None
        return SessionTimeout(expiry=expiry, last_activity=last_activity, max_age=self._max_age)

    def initialize(self, cookie_value: str) -> SessionTimeout:
        """Establish a session locally: cookie, expiry, last activity."""
        now = self._clock()
        self.set(cookie_value)
        timeout = SessionTimeout(expiry=now + self._max_age, last_activity=now, max_age=self._max_age)
        self._write_ms(SESSION_EXPIRY_KEY, timeout.expiry)
        self._write_ms(SESSION_LAST_ACTIVITY_KEY, now)
        return timeout

    def update_last_activity(self) -> None:
        """Activity tick. No-op without a timeout record."""
        if self.timeout() is None:
            return
        self._write_ms(SESSION_LAST_ACTIVITY_KEY, self._clock())

    def validate(self) -> SessionValidation:
        has_cookie = self.get() is not None
        timeout = self.timeout()
        if timeout is None:
            return SessionValidation(
                valid=False,
                expired=False,
                needs_refresh=False,
                has_cookie=has_cookie,
            )

        now = self._clock()
        expired = timeout.is_expired(now)
        return SessionValidation(
            valid=has_cookie and not expired,
            expired=expired,
            needs_refresh=timeout.needs_refresh(now),
            has_cookie=has_cookie,
            expiring_soon=timeout.expiring_soon(now),
        )

    def clear(self) -> None:
        """Remove the cookie and the timeout record together."""
        self.remove()
        for key in (SESSION_EXPIRY_KEY, SESSION_LAST_ACTIVITY_KEY):
            try:
                self._storage.delete(key)
            except StorageError as e:
                self._logger.warning(
                    {
                        "event": "session_record_clear_failed",
                        "message": f"Could not delete {key}",
                        "error": str(e),
                    }
                )

    def _write_ms(self, key: str, seconds: float) -> None:
        try:
            self._storage.set(key, str(int(seconds * 1000)))
        except StorageError as e:
            self._logger.warning(
                {
                    "event": "session_record_write_failed",
                    "message": f"Could not write {key}",
                    "error": str(e),
                }
            )


def _host_only_domain(host: str) -> str:
    """Domain under which the cookie jar files a host-only cookie for ``host``.

    The jar matches dotless hosts (``localhost``) by their effective name
    ``localhost.local`` and IPv6 literals in brackets; a cookie stored under
    the bare name would never be sent.
    """
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    if "." not in host:
        return f"{host}.local"
    return host
