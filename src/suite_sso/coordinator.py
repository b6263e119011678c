"""Bootstrap coordinator: recover or validate the session once per load.

State machine (single slot, owned by the coordinator instance):

    IDLE --run()--> RUNNING --> COMPLETE
      ^                            |
      +------ rerun()/teardown() --+

The IDLE -> RUNNING transition is a compare-and-set performed before the
first ``await``, so two overlapping ``run()`` calls on one event loop cannot
both start a bootstrap.

Every run has a generation number. The soft timeout forces COMPLETE, cancels
the in-flight request task and advances the generation; every hydration step
re-checks the generation after each ``await``, so a response that arrives
late is discarded instead of applied.

Failures never propagate: the run always ends in COMPLETE, with or without
an identity on AuthState.
"""

from __future__ import annotations

__all__ = [
    "BootstrapCoordinator",
    "RunStatus",
]

import asyncio
import time
from collections.abc import Callable, Coroutine
from enum import Enum
from typing import TYPE_CHECKING, Any

from suite_sso.constants import DEFAULT_BOOTSTRAP_TIMEOUT_SECONDS
from suite_sso.exceptions import SessionDecodeError, StorageError, SuiteAPIError
from suite_sso.identity import decode_dev_session
from suite_sso.telemetry.session_logger import SessionEvent, SessionEventLogger
from suite_sso.telemetry.system_logger import get_system_logger

if TYPE_CHECKING:
    from suite_sso.client import SuiteAuthClient
    from suite_sso.environment import EnvironmentResolver
    from suite_sso.identity import AuthState, HydrationSource, TokenSignIn
    from suite_sso.models import BootstrapResult, SuiteUser
    from suite_sso.session.device_cache import DeviceSessionCache
    from suite_sso.session.record_store import SessionRecordStore


class RunStatus(str, Enum):
    """Externally observable coordinator status."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"


StatusListener = Callable[[RunStatus], None]


class BootstrapCoordinator:
    """Runs the bootstrap protocol for one application instance.

    Args:
        client: HTTP client bound to this origin.
        auth: Shared identity holder.
        record_store: Session cookie and timeout record.
        device_cache: Cross-port session cache.
        resolver: Environment classification of this origin.
        sign_in: Identity-provider sign-in for custom tokens. Without one,
            production responses hydrate from the user snapshot only.
        timeout_seconds: Soft timeout for one bootstrap round trip.
        session_logger: Outcome log (no-op when disabled).
    """

    def __init__(
        self,
        client: "SuiteAuthClient",
        auth: "AuthState",
        record_store: "SessionRecordStore",
        device_cache: "DeviceSessionCache",
        resolver: "EnvironmentResolver",
        *,
        sign_in: "TokenSignIn | None" = None,
        timeout_seconds: float = DEFAULT_BOOTSTRAP_TIMEOUT_SECONDS,
        session_logger: SessionEventLogger | None = None,
    ) -> None:
        self._client = client
        self._auth = auth
        self._record_store = record_store
        self._device_cache = device_cache
        self._resolver = resolver
        self._sign_in = sign_in
        self._timeout = timeout_seconds
        self._session_logger = session_logger or SessionEventLogger()
        self._logger = get_system_logger()

        self._status = RunStatus.IDLE
        self._generation = 0
        self._inflight: asyncio.Task[None] | None = None
        self._listeners: list[StatusListener] = []

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def generation(self) -> int:
        return self._generation

    def add_status_listener(self, listener: StatusListener) -> Callable[[], None]:
        """Call ``listener`` on every status transition. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_status(self, status: RunStatus) -> None:
        if status is self._status:
            return
        self._status = status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as e:
                self._logger.warning(
                    {
                        "event": "status_listener_failed",
                        "message": "Coordinator status listener raised",
                        "error": str(e),
                        "error_type": type(e).__name__,
                    }
                )

    def _try_begin(self) -> int | None:
        """Compare-and-set IDLE -> RUNNING. Returns the new generation, or None."""
        if self._status is not RunStatus.IDLE:
            return None
        self._generation += 1
        self._set_status(RunStatus.RUNNING)
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self._status is RunStatus.RUNNING

    def _complete(self, generation: int) -> None:
        if self._is_current(generation):
            self._set_status(RunStatus.COMPLETE)

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    async def run(self) -> RunStatus:
        """Execute the protocol once. A second call after COMPLETE is a no-op."""
        if self._auth.sso_in_progress:
            self._logger.debug({"event": "bootstrap_skipped", "message": "SSO exchange in progress"})
            return self._status

        generation = self._try_begin()
        if generation is None:
            return self._status

        started = time.perf_counter()
        revalidating = self._auth.user is not None
        try:
            if revalidating:
                await self._with_soft_timeout(self._revalidate(generation), generation, started)
            else:
                await self._with_soft_timeout(self._full_bootstrap(generation), generation, started)
        except Exception as e:
            self._logger.warning(
                {
                    "event": "bootstrap_failed",
                    "message": f"Bootstrap failed, continuing unauthenticated: {e}",
                    "error_type": type(e).__name__,
                }
            )
            self._log_event(
                "bootstrap_failed",
                "Failure",
                started,
                error_type=type(e).__name__,
                error_message=str(e),
            )
        finally:
            self._complete(generation)
            if self._inflight is not None and self._inflight.done():
                self._inflight = None

        return self._status

    async def rerun(self) -> RunStatus:
        """Start a fresh run as a new load would.

        No-op while a run is active or while a cross-app SSO import is in
        progress; the bridge re-runs once it has cleared the flag.
        """
        if self._status is RunStatus.RUNNING or self._auth.sso_in_progress:
            return self._status
        self._set_status(RunStatus.IDLE)
        return await self.run()

    def teardown(self) -> None:
        """Abandon any in-flight run and return to IDLE."""
        self._generation += 1
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None
        self._set_status(RunStatus.IDLE)

    # ------------------------------------------------------------------
    # Soft timeout
    # ------------------------------------------------------------------

    async def _with_soft_timeout(
        self,
        work: Coroutine[Any, Any, None],
        generation: int,
        started: float,
    ) -> None:
        task: asyncio.Task[None] = asyncio.ensure_future(work)
        self._inflight = task
        try:
            done, _ = await asyncio.wait({task}, timeout=self._timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task not in done:
            # Force COMPLETE first, then invalidate whatever the task still does
            self._complete(generation)
            self._generation += 1
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            self._logger.info(
                {
                    "event": "bootstrap_timeout",
                    "message": f"Bootstrap exceeded {self._timeout}s, continuing without it",
                }
            )
            self._log_event("bootstrap_timeout", "Skipped", started)
            return

        if task.cancelled():
            return
        task.result()

    # ------------------------------------------------------------------
    # Protocol steps
    # ------------------------------------------------------------------

    async def _revalidate(self, generation: int) -> None:
        """An identity is already hydrated: ask the backend whether it still holds."""
        started = time.perf_counter()
        try:
            result = await self._client.bootstrap()
        except SuiteAPIError as e:
            self._logger.info(
                {
                    "event": "revalidation_unavailable",
                    "message": f"Revalidation request failed, keeping local identity: {e}",
                }
            )
            return

        if not self._is_current(generation):
            return

        if result.authenticated:
            self._device_cache.refresh()
            self._log_event("bootstrap_completed", "Success", started, source=result.source, message="revalidated")
            return

        user = self._auth.user
        await self.force_local_sign_out()
        self._logger.info({"event": "session_revoked", "message": "Session revoked elsewhere, signed out locally"})
        self._log_event(
            "session_revoked",
            "Success",
            started,
            user_id=user.uid if user else None,
        )

    async def _full_bootstrap(self, generation: int) -> None:
        started = time.perf_counter()
        cached = self._device_cache.read()
        result = await self._client.bootstrap(session_cookie=cached)

        if not self._is_current(generation):
            self._logger.debug({"event": "bootstrap_result_discarded", "message": "Late bootstrap result ignored"})
            return

        if not result.authenticated:
            if cached is not None or self._device_cache.has_entry():
                self._device_cache.clear()
            self._log_event("bootstrap_completed", "Success", started, message="unauthenticated")
            return

        if result.dev_mode:
            await self._hydrate_development(result, generation)
        else:
            await self._hydrate_production(result, generation)

        user = self._auth.user
        self._log_event(
            "bootstrap_completed",
            "Success",
            started,
            user_id=user.uid if user else None,
            source=result.source,
            dev_mode=bool(result.dev_mode),
        )

    async def _hydrate_development(self, result: "BootstrapResult", generation: int) -> None:
        # Cache first: other ports of this host read it even when decoding fails
        if result.session_cookie:
            try:
                self._device_cache.store(result.session_cookie)
            except StorageError as e:
                self._logger.warning(
                    {"event": "device_cache_store_failed", "message": f"Could not cache session: {e}"}
                )
        else:
            self._device_cache.refresh()

        user: SuiteUser | None = result.user
        via: HydrationSource = "snapshot"
        if user is None and result.session_cookie:
            try:
                user = decode_dev_session(result.session_cookie)
                via = "dev_session"
            except SessionDecodeError as e:
                self._logger.warning(
                    {
                        "event": "dev_session_undecodable",
                        "message": f"Development session could not be decoded, continuing: {e}",
                    }
                )

        if user is not None:
            self._auth.hydrate(user, via)

        if result.custom_token and self._sign_in is not None:
            # Secondary: enables storage-dependent features, identity is already hydrated
            try:
                await self._sign_in.sign_in_with_custom_token(result.custom_token)
            except Exception as e:
                self._logger.warning(
                    {
                        "event": "secondary_sign_in_failed",
                        "message": f"Custom token sign-in failed in development, continuing: {e}",
                        "error_type": type(e).__name__,
                    }
                )

    async def _hydrate_production(self, result: "BootstrapResult", generation: int) -> None:
        user: SuiteUser | None = result.user
        via: HydrationSource = "snapshot"

        if result.custom_token and self._sign_in is not None:
            signed_in = await self._sign_in.sign_in_with_custom_token(result.custom_token)
            if not self._is_current(generation):
                return
            if signed_in is not None:
                user = signed_in
                via = "token_exchange"

        if result.session_cookie:
            self._record_store.initialize(result.session_cookie)

        if user is not None:
            self._auth.hydrate(user, via)
        else:
            self._logger.warning(
                {
                    "event": "bootstrap_no_identity",
                    "message": "Authenticated response carried neither a usable token nor a user",
                }
            )

    async def force_local_sign_out(self) -> None:
        """Drop every local trace of the session. Never raises."""
        if self._sign_in is not None:
            try:
                await self._sign_in.sign_out()
            except Exception as e:
                self._logger.warning(
                    {
                        "event": "identity_sign_out_failed",
                        "message": f"Identity provider sign-out failed: {e}",
                        "error_type": type(e).__name__,
                    }
                )
        self._auth.clear()
        self._record_store.clear()
        self._device_cache.clear()

    def _log_event(self, event_type: str, status: str, started: float, **fields: Any) -> None:
        self._session_logger.log(
            SessionEvent(
                event_type=event_type,
                status=status,
                origin=self._resolver.origin.base_url,
                app=self._resolver.app_slug(),
                is_hub=self._resolver.is_hub(),
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                **fields,
            )
        )
