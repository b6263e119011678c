"""SSO bridge: import the Auth Hub's live session into a Spoke.

Best-effort fallback after a bootstrap that found nothing. Only Spokes run
it; the Hub owns the session and has nothing to import.

Flow:
    1. GET <hub>/api/auth/sso-status
    2. authenticated with a session value -> POST /api/auth/custom-token here
    3a. development response -> cache the session, rerun the coordinator
    3b. production response  -> sign in with the custom token

Every failure ends the bridge quietly. The completion callback fires exactly
once per run, whatever happened.
"""

from __future__ import annotations

__all__ = [
    "BridgeOutcome",
    "BridgeStatus",
    "SSOBridge",
]

import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Literal

from suite_sso.exceptions import HubUnavailableError, StorageError, SuiteAPIError
from suite_sso.telemetry.session_logger import SessionEvent, SessionEventLogger
from suite_sso.telemetry.system_logger import get_system_logger

if TYPE_CHECKING:
    from suite_sso.client import SuiteAuthClient
    from suite_sso.coordinator import BootstrapCoordinator
    from suite_sso.environment import EnvironmentResolver
    from suite_sso.identity import AuthState, TokenSignIn
    from suite_sso.session.device_cache import DeviceSessionCache


class BridgeStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETE = "complete"


BridgeResult = Literal[
    "skipped",
    "hub_unauthenticated",
    "hub_unavailable",
    "exchange_failed",
    "imported_dev_session",
    "signed_in",
    "failed",
]


@dataclass(frozen=True)
class BridgeOutcome:
    """What one bridge run did.

    Attributes:
        result: Terminal branch taken.
        authenticated: AuthState holds an identity after the run.
        reason: Short human-readable detail (skip reason, error text).
    """

    result: BridgeResult
    authenticated: bool
    reason: str | None = None


CompletionCallback = Callable[[BridgeOutcome], None]


class SSOBridge:
    """Spoke-side import of the Hub's session.

    Args:
        client: HTTP client bound to this origin.
        auth: Shared identity holder.
        device_cache: Where development sessions are handed to the coordinator.
        coordinator: Rerun after a development session is cached.
        resolver: Environment classification of this origin.
        sign_in: Identity-provider sign-in for production custom tokens.
        enabled: Master switch (config ``bootstrap.bridge_enabled``).
        on_complete: Called exactly once per run with the outcome.
    """

    def __init__(
        self,
        client: "SuiteAuthClient",
        auth: "AuthState",
        device_cache: "DeviceSessionCache",
        coordinator: "BootstrapCoordinator",
        resolver: "EnvironmentResolver",
        *,
        sign_in: "TokenSignIn | None" = None,
        enabled: bool = True,
        on_complete: CompletionCallback | None = None,
        session_logger: SessionEventLogger | None = None,
    ) -> None:
        self._client = client
        self._auth = auth
        self._device_cache = device_cache
        self._coordinator = coordinator
        self._resolver = resolver
        self._sign_in = sign_in
        self._enabled = enabled
        self._on_complete = on_complete
        self._session_logger = session_logger or SessionEventLogger()
        self._logger = get_system_logger()
        self._status = BridgeStatus.IDLE

    @property
    def status(self) -> BridgeStatus:
        return self._status

    def reset(self) -> None:
        """Allow the bridge to run again (new load)."""
        if self._status is not BridgeStatus.RUNNING:
            self._status = BridgeStatus.IDLE

    async def run(self) -> BridgeOutcome:
        """Run the bridge once. Never raises."""
        if not self._enabled:
            return self._skip("disabled")
        if self._resolver.is_hub():
            return self._skip("origin is the auth hub")
        if self._auth.user is not None:
            return self._skip("identity already present")
        if self._status is not BridgeStatus.IDLE:
            return self._skip("already ran")
        self._status = BridgeStatus.RUNNING

        started = time.perf_counter()
        outcome = BridgeOutcome(result="failed", authenticated=False)
        try:
            outcome = await self._bridge()
        except Exception as e:
            self._logger.warning(
                {
                    "event": "sso_bridge_failed",
                    "message": f"SSO bridge failed: {e}",
                    "error_type": type(e).__name__,
                }
            )
            outcome = BridgeOutcome(result="failed", authenticated=self._auth.user is not None, reason=str(e))
        finally:
            self._auth.sso_in_progress = False
            self._status = BridgeStatus.COMPLETE
            self._log_outcome(outcome, started)
            self._notify(outcome)
        return outcome

    async def _bridge(self) -> BridgeOutcome:
        hub_url = self._resolver.resolve_hub_base_url()
        try:
            hub = await self._client.hub_session_status(hub_url)
        except HubUnavailableError as e:
            self._logger.info({"event": "sso_bridge_hub_unavailable", "message": str(e), "hub_url": hub_url})
            return BridgeOutcome(result="hub_unavailable", authenticated=False, reason=str(e))

        if not hub.authenticated or not hub.session_cookie:
            self._logger.debug({"event": "sso_bridge_no_session", "hub_url": hub_url})
            return BridgeOutcome(result="hub_unauthenticated", authenticated=False)

        self._auth.sso_in_progress = True
        try:
            exchange = await self._client.exchange_token(hub.session_cookie)
        except SuiteAPIError as e:
            self._logger.info({"event": "sso_bridge_exchange_failed", "message": str(e)})
            return BridgeOutcome(result="exchange_failed", authenticated=False, reason=str(e))

        if exchange.is_development:
            return await self._import_development_session(exchange.session_cookie or "")

        if self._sign_in is None:
            return BridgeOutcome(
                result="failed",
                authenticated=False,
                reason="no sign-in provider configured for custom tokens",
            )

        if self._auth.user is not None:
            # Bootstrap won the race; never override it
            return BridgeOutcome(result="skipped", authenticated=True, reason="identity already present")

        user = await self._sign_in.sign_in_with_custom_token(exchange.custom_token or "")
        if user is not None and self._auth.user is None:
            self._auth.hydrate(user, "token_exchange")
        return BridgeOutcome(result="signed_in", authenticated=self._auth.user is not None)

    async def _import_development_session(self, session_value: str) -> BridgeOutcome:
        try:
            self._device_cache.store(session_value)
        except StorageError as e:
            self._logger.warning({"event": "sso_bridge_cache_failed", "message": str(e)})
            return BridgeOutcome(result="failed", authenticated=False, reason=str(e))

        # Lift the in-progress guard so the coordinator is allowed to run
        self._auth.sso_in_progress = False
        await self._coordinator.rerun()
        return BridgeOutcome(result="imported_dev_session", authenticated=self._auth.user is not None)

    def _skip(self, reason: str) -> BridgeOutcome:
        self._logger.debug({"event": "sso_bridge_skipped", "reason": reason})
        outcome = BridgeOutcome(result="skipped", authenticated=self._auth.user is not None, reason=reason)
        self._notify(outcome)
        return outcome

    def _notify(self, outcome: BridgeOutcome) -> None:
        if self._on_complete is None:
            return
        try:
            self._on_complete(outcome)
        except Exception as e:
            self._logger.warning(
                {
                    "event": "sso_bridge_callback_failed",
                    "message": f"Bridge completion callback raised: {e}",
                    "error_type": type(e).__name__,
                }
            )

    def _log_outcome(self, outcome: BridgeOutcome, started: float) -> None:
        user = self._auth.user
        self._session_logger.log(
            SessionEvent(
                event_type="bridge_completed",
                status="Success" if outcome.authenticated else "Failure",
                origin=self._resolver.origin.base_url,
                app=self._resolver.app_slug(),
                is_hub=False,
                user_id=user.uid if user else None,
                source=outcome.result,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
                message=outcome.reason,
            )
        )
