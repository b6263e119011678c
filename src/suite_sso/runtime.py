"""Session runtime: one application instance's session machinery.

Builds and owns one of each component for a single origin and sequences
them the way a page load does:

    init()      coordinator.run() -> bridge.run() (Spokes, nothing found)
                -> monitor.start() (when enabled)
    sign_out()  Hub sign-out and own-origin session DELETE (global)
                -> local sign-out -> coordinator reset
    teardown()  stop monitor, abandon in-flight run, close the HTTP client

Example:
    async with SessionRuntime("http://localhost:3001", AppConfig()) as runtime:
        snapshot = await runtime.init()
        if snapshot.authenticated:
            print(snapshot.user.email)
"""

from __future__ import annotations

__all__ = ["SessionRuntime"]

import logging
import time
from collections.abc import Callable

import httpx

from suite_sso.bridge import BridgeOutcome, SSOBridge
from suite_sso.client import SuiteAuthClient
from suite_sso.config import AppConfig, LoggingConfig
from suite_sso.coordinator import BootstrapCoordinator
from suite_sso.environment import EnvironmentResolver
from suite_sso.exceptions import SuiteAPIError
from suite_sso.identity import AuthSnapshot, AuthState, TokenSignIn
from suite_sso.monitor import SessionMonitor
from suite_sso.session.device_cache import DeviceSessionCache
from suite_sso.session.record_store import SessionRecordStore
from suite_sso.storage.device_storage import DeviceStorage, create_device_storage
from suite_sso.telemetry.session_logger import SessionEvent, SessionEventLogger, create_session_logger
from suite_sso.telemetry.system_logger import configure_system_logger_file, get_system_logger


def setup_logging(logging_config: LoggingConfig) -> SessionEventLogger:
    """Attach file logging per config and return the session event logger."""
    if not logging_config.enabled:
        return SessionEventLogger()

    log_dir = logging_config.resolved_dir()
    level = logging.DEBUG if logging_config.log_level == "DEBUG" else logging.WARNING
    configure_system_logger_file(log_dir / "system.jsonl", level)
    return create_session_logger(log_dir)


class SessionRuntime:
    """Session bootstrap for one application origin.

    Args:
        origin: Any URL on the application's origin.
        config: Application configuration. Defaults to ``AppConfig()``.
        storage: Device storage override (default: from ``config.storage``).
        sign_in: Identity-provider sign-in for custom tokens.
        transport: httpx transport override (tests, custom networking).
        clock: Epoch-seconds clock for session timestamps.
        session_logger: Outcome log override (default: from ``config.logging``).
        on_bridge_complete: Called once per bridge run.
    """

    def __init__(
        self,
        origin: str,
        config: AppConfig | None = None,
        *,
        storage: DeviceStorage | None = None,
        sign_in: TokenSignIn | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
        session_logger: SessionEventLogger | None = None,
        on_bridge_complete: Callable[[BridgeOutcome], None] | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self.resolver = EnvironmentResolver(origin, self.config.suite)
        base_url = self.resolver.origin.base_url
        bootstrap = self.config.bootstrap

        self.session_logger = session_logger or setup_logging(self.config.logging)
        self.storage = storage or create_device_storage(self.config.storage, base_url)
        self.client = SuiteAuthClient(
            base_url,
            timeout=bootstrap.http_timeout_seconds,
            transport=transport,
        )
        self.auth = AuthState()
        self.sign_in = sign_in
        self.record_store = SessionRecordStore(
            self.client.cookies,
            self.storage,
            host=self.resolver.origin.host,
            cookie_domain=self.resolver.cookie_domain(),
            # A Secure cookie is never sent over plain http
            secure=bootstrap.cookie_secure and self.resolver.origin.scheme == "https",
            clock=clock,
        )
        self.device_cache = DeviceSessionCache(self.storage, clock=clock)
        self.coordinator = BootstrapCoordinator(
            self.client,
            self.auth,
            self.record_store,
            self.device_cache,
            self.resolver,
            sign_in=sign_in,
            timeout_seconds=bootstrap.timeout_seconds,
            session_logger=self.session_logger,
        )
        self.bridge = SSOBridge(
            self.client,
            self.auth,
            self.device_cache,
            self.coordinator,
            self.resolver,
            sign_in=sign_in,
            enabled=bootstrap.bridge_enabled,
            on_complete=on_bridge_complete,
            session_logger=self.session_logger,
        )
        self.monitor = SessionMonitor(
            self.client,
            self.auth,
            self.record_store,
            self.coordinator,
            self.resolver,
            sign_in=sign_in,
            interval_seconds=bootstrap.revalidate_interval_seconds,
            session_check_interval_seconds=bootstrap.session_check_interval_seconds,
            session_logger=self.session_logger,
        )
        self._logger = get_system_logger()

    async def __aenter__(self) -> "SessionRuntime":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.teardown()

    @property
    def is_hub(self) -> bool:
        return self.resolver.is_hub()

    async def init(self) -> AuthSnapshot:
        """Run the load sequence. Never raises; returns the resulting identity."""
        await self.coordinator.run()

        if self.auth.user is None and not self.resolver.is_hub() and self.config.bootstrap.bridge_enabled:
            await self.bridge.run()

        if self.config.bootstrap.monitor_enabled and self.auth.user is not None:
            self.monitor.start()

        return self.auth.snapshot()

    async def sign_out(self, global_: bool = True) -> None:
        """Sign out of this application, and of the whole suite when ``global_``.

        Hub sign-out is best effort: local state is cleared even if the Hub
        cannot be reached. A global sign-out on a Spoke also asks its own
        backend to clear the session cookie, which on loopback and LAN hosts
        is separate from the Hub's.
        """
        user = self.auth.user
        hub_error: str | None = None

        if global_:
            try:
                await self.client.hub_sign_out(self.resolver.resolve_hub_base_url())
            except SuiteAPIError as e:
                hub_error = str(e)
                self._logger.warning(
                    {
                        "event": "hub_sign_out_failed",
                        "message": f"Hub sign-out failed, signing out locally only: {e}",
                    }
                )
            # On the Hub the call above already hit this origin
            if not self.resolver.is_hub():
                try:
                    await self.client.delete_session()
                except SuiteAPIError as e:
                    self._logger.warning(
                        {
                            "event": "session_delete_failed",
                            "message": f"Own-origin session clear failed, continuing: {e}",
                        }
                    )

        await self.monitor.stop()
        await self.coordinator.force_local_sign_out()
        self.coordinator.teardown()
        self.bridge.reset()

        self.session_logger.log(
            SessionEvent(
                event_type="signed_out",
                status="Failure" if hub_error else "Success",
                origin=self.resolver.origin.base_url,
                app=self.resolver.app_slug(),
                is_hub=self.resolver.is_hub(),
                user_id=user.uid if user else None,
                source="global" if global_ else "local",
                error_message=hub_error,
            )
        )

    async def teardown(self) -> None:
        await self.monitor.stop()
        self.coordinator.teardown()
        await self.client.aclose()
