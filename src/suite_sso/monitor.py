"""Session monitor: expiry checks, idle refresh and Hub revalidation.

Two periodic loops run while an identity is hydrated:

    session tick      every origin: sign out when the local record has
                      expired, refresh the session cookie once the user has
                      been idle for most of its lifetime, record activity
    hub revalidation  local-development Spokes only: ask the Hub whether the
                      session still exists

On loopback and LAN hosts each Spoke holds its own copy of the session (from
the device cache), so signing out in one app does not reach the others by
cookie. Revalidation closes that gap and signs out locally when the Hub has
no session.

Network failures never sign anyone out: an unreachable Hub or a failed
refresh keeps the session.
"""

from __future__ import annotations

__all__ = ["SessionMonitor"]

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from suite_sso.constants import DEFAULT_REVALIDATE_INTERVAL_SECONDS, DEFAULT_SESSION_CHECK_INTERVAL_SECONDS
from suite_sso.exceptions import HubUnavailableError, SignInError, SuiteAPIError
from suite_sso.identity import IdTokenSource
from suite_sso.telemetry.session_logger import SessionEvent, SessionEventLogger
from suite_sso.telemetry.system_logger import get_system_logger

if TYPE_CHECKING:
    from suite_sso.client import SuiteAuthClient
    from suite_sso.coordinator import BootstrapCoordinator
    from suite_sso.environment import EnvironmentResolver
    from suite_sso.identity import AuthState, TokenSignIn
    from suite_sso.session.record_store import SessionRecordStore, SessionValidation


class SessionMonitor:
    """Keeps a hydrated session honest after bootstrap.

    Args:
        client: HTTP client bound to this origin.
        auth: Shared identity holder.
        record_store: Session cookie and timeout record.
        coordinator: Performs the local sign-out.
        resolver: Environment classification of this origin.
        sign_in: Identity provider; refresh needs it to be an IdTokenSource.
        interval_seconds: Hub revalidation cadence.
        session_check_interval_seconds: Session tick cadence.
    """

    def __init__(
        self,
        client: "SuiteAuthClient",
        auth: "AuthState",
        record_store: "SessionRecordStore",
        coordinator: "BootstrapCoordinator",
        resolver: "EnvironmentResolver",
        *,
        sign_in: "TokenSignIn | None" = None,
        interval_seconds: float = DEFAULT_REVALIDATE_INTERVAL_SECONDS,
        session_check_interval_seconds: float = DEFAULT_SESSION_CHECK_INTERVAL_SECONDS,
        session_logger: SessionEventLogger | None = None,
    ) -> None:
        self._client = client
        self._auth = auth
        self._record_store = record_store
        self._coordinator = coordinator
        self._resolver = resolver
        self._sign_in = sign_in
        self._interval = interval_seconds
        self._session_interval = session_check_interval_seconds
        self._session_logger = session_logger or SessionEventLogger()
        self._logger = get_system_logger()
        self._session_task: asyncio.Task[None] | None = None
        self._revalidate_task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._session_task is not None and not self._session_task.done()

    @property
    def revalidating(self) -> bool:
        return self._revalidate_task is not None and not self._revalidate_task.done()

    @property
    def applies(self) -> bool:
        """Hub revalidation only makes sense on local-development Spokes."""
        return self._resolver.is_local_development() and not self._resolver.is_hub()

    def touch(self) -> None:
        """Record user activity."""
        self._record_store.update_last_activity()

    async def check(self) -> "SessionValidation":
        """Validate the local record; sign out locally if it has expired."""
        validation = self._record_store.validate()
        if validation.expired and self._auth.user is not None:
            self._logger.info({"event": "session_expired", "message": "Local session expired, signing out"})
            await self._coordinator.force_local_sign_out()
        return validation

    async def tick(self) -> "SessionValidation":
        """One session round: expiry check, refresh when idle too long, activity.

        Without a hydrated identity this only reports the record's state.
        """
        if self._auth.user is None:
            return self._record_store.validate()

        validation = await self.check()
        if validation.expired:
            return validation
        if validation.needs_refresh:
            await self.refresh_once()
        self.touch()
        return validation

    async def refresh_once(self) -> bool:
        """Trade a fresh ID token for a new session cookie.

        Returns:
            True if the session record was re-initialized. False when the
            identity provider cannot mint tokens or the refresh failed.
        """
        user = self._auth.user
        if user is None or not isinstance(self._sign_in, IdTokenSource):
            return False

        started = time.perf_counter()
        try:
            id_token = await self._sign_in.get_id_token(force_refresh=True)
            if not id_token:
                return False
            result = await self._client.create_session(id_token)
        except (SignInError, SuiteAPIError) as e:
            self._logger.debug({"event": "session_refresh_failed", "message": str(e)})
            return False

        # Signed out while the refresh was in flight
        if self._auth.user is None:
            return False

        self._record_store.initialize(result.session_cookie)
        self._logger.info({"event": "session_refreshed", "message": "Idle session refreshed"})
        self._log_event("session_refreshed", user.uid, "idle_refresh", started)
        return True

    async def revalidate_once(self) -> bool | None:
        """Ask the Hub whether the session still exists.

        Returns:
            True if it does, False if it was revoked (local sign-out done),
            None if there was nothing to check or the Hub was unreachable.
        """
        user = self._auth.user
        if user is None or not self.applies:
            return None

        started = time.perf_counter()
        try:
            status = await self._client.hub_session_status(self._resolver.resolve_hub_base_url())
        except HubUnavailableError as e:
            self._logger.debug({"event": "hub_revalidation_unavailable", "message": str(e)})
            return None

        if status.authenticated:
            return True

        # Signed out elsewhere while we were waiting
        if self._auth.user is None:
            return False

        await self._coordinator.force_local_sign_out()
        self._logger.info(
            {
                "event": "session_revoked",
                "message": "Hub reports no session, signed out locally",
            }
        )
        self._log_event("session_revoked", user.uid, "hub_revalidation", started)
        return False

    def start(self) -> None:
        """Start the session tick loop, plus Hub revalidation where it applies."""
        if not self.running:
            self._session_task = asyncio.create_task(
                self._every(self._session_interval, self.tick, "session_check_failed")
            )
        if self.applies and not self.revalidating:
            self._revalidate_task = asyncio.create_task(
                self._every(self._interval, self.revalidate_once, "hub_revalidation_failed")
            )

    async def stop(self) -> None:
        for task in (self._session_task, self._revalidate_task):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._session_task = None
        self._revalidate_task = None

    async def _every(self, interval: float, step: Callable[[], Awaitable[Any]], failure_event: str) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await step()
            except Exception as e:
                self._logger.warning(
                    {
                        "event": failure_event,
                        "message": f"Monitor tick failed: {e}",
                        "error_type": type(e).__name__,
                    }
                )

    def _log_event(self, event_type: str, user_id: str, source: str, started: float) -> None:
        self._session_logger.log(
            SessionEvent(
                event_type=event_type,
                status="Success",
                origin=self._resolver.origin.base_url,
                app=self._resolver.app_slug(),
                is_hub=self._resolver.is_hub(),
                user_id=user_id,
                source=source,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
        )
