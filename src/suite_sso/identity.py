"""Hydrated identity and token-exchange sign-in.

AuthState is the one place the current identity lives for an application
instance. The coordinator, bridge and monitor write to it; the host
application reads it and subscribes to changes.

Sign-in with a custom token is delegated to the host's identity provider
through the TokenSignIn protocol, and idle refresh through IdTokenSource.
CustomTokenSignIn is a self-contained implementation that reads the token's
claims without verifying the signature (verification is the identity
provider's job, not this package's).
"""

from __future__ import annotations

__all__ = [
    "AuthSnapshot",
    "AuthState",
    "CustomTokenSignIn",
    "HydrationSource",
    "IdTokenSource",
    "TokenSignIn",
    "decode_dev_session",
    "encode_dev_session",
]

import base64
import binascii
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal, Protocol, runtime_checkable

import jwt
from pydantic import ValidationError

from suite_sso.exceptions import SessionDecodeError, SignInError
from suite_sso.models import SuiteUser
from suite_sso.telemetry.system_logger import get_system_logger

HydrationSource = Literal["snapshot", "dev_session", "token_exchange"]

AuthListener = Callable[["AuthSnapshot"], None]


@dataclass(frozen=True)
class AuthSnapshot:
    """Immutable view of AuthState at one instant."""

    user: SuiteUser | None
    hydrated_via: HydrationSource | None
    sso_in_progress: bool

    @property
    def authenticated(self) -> bool:
        return self.user is not None


class AuthState:
    """Current identity of one application instance.

    Listeners are called synchronously after every change. A listener that
    raises is logged and skipped; it never breaks the caller.
    """

    def __init__(self) -> None:
        self._user: SuiteUser | None = None
        self._hydrated_via: HydrationSource | None = None
        self._sso_in_progress = False
        self._listeners: list[AuthListener] = []
        self._logger = get_system_logger()

    @property
    def user(self) -> SuiteUser | None:
        return self._user

    @property
    def hydrated_via(self) -> HydrationSource | None:
        return self._hydrated_via

    @property
    def sso_in_progress(self) -> bool:
        return self._sso_in_progress

    @sso_in_progress.setter
    def sso_in_progress(self, value: bool) -> None:
        if self._sso_in_progress != value:
            self._sso_in_progress = value
            self._notify()

    def hydrate(self, user: SuiteUser, via: HydrationSource) -> None:
        self._user = user
        self._hydrated_via = via
        self._notify()

    def clear(self) -> None:
        if self._user is None and self._hydrated_via is None:
            return
        self._user = None
        self._hydrated_via = None
        self._notify()

    def snapshot(self) -> AuthSnapshot:
        return AuthSnapshot(
            user=self._user,
            hydrated_via=self._hydrated_via,
            sso_in_progress=self._sso_in_progress,
        )

    def subscribe(self, listener: AuthListener) -> Callable[[], None]:
        """Register a change listener. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                self._logger.warning(
                    {
                        "event": "auth_listener_failed",
                        "message": "Auth state listener raised",
                        "error": str(e),
                        "error_type": type(e).__name__,
                    }
                )


@runtime_checkable
class TokenSignIn(Protocol):
    """Identity-provider sign-in used after a token exchange.

    Implemented by the host application (wrapping its identity provider SDK).
    """

    async def sign_in_with_custom_token(self, token: str) -> SuiteUser | None:
        """Sign in locally with a custom token.

        Returns:
            The signed-in user, or None if the provider does not expose one.

        Raises:
            SignInError: If the provider rejects the token.
        """
        ...

    async def sign_out(self) -> None:
        """Sign out of the local identity provider."""
        ...


@runtime_checkable
class IdTokenSource(Protocol):
    """Optional identity-provider capability used to refresh an idle session.

    A TokenSignIn that also implements this lets the session monitor trade a
    fresh ID token for a new ``__session`` value before the old one expires.
    """

    async def get_id_token(self, force_refresh: bool = False) -> str | None:
        """Current ID token, or None when no provider user is signed in.

        Raises:
            SignInError: If the provider cannot mint a token.
        """
        ...


class CustomTokenSignIn:
    """TokenSignIn that takes the identity from the custom token's claims.

    Accepts identity-provider style custom tokens, where the subject is in
    ``uid`` and additional claims are nested under ``claims``, as well as
    plain JWTs carrying ``sub`` or ``user_id``.
    """

    def __init__(self) -> None:
        self._current: SuiteUser | None = None

    @property
    def current_user(self) -> SuiteUser | None:
        return self._current

    async def sign_in_with_custom_token(self, token: str) -> SuiteUser | None:
        try:
            claims: dict[str, Any] = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            raise SignInError(f"Custom token is not a decodable JWT: {e}") from e

        nested = claims.get("claims")
        extra: dict[str, Any] = nested if isinstance(nested, dict) else {}
        uid = claims.get("uid") or claims.get("sub") or claims.get("user_id")
        if not uid:
            raise SignInError("Custom token carries no uid, sub or user_id claim")

        email = extra.get("email") or claims.get("email") or ""
        try:
            user = SuiteUser.model_validate({**extra, "uid": str(uid), "email": email})
        except ValidationError as e:
            raise SignInError(f"Custom token claims are not a valid user: {e}") from e

        self._current = user
        return user

    async def sign_out(self) -> None:
        self._current = None


def decode_dev_session(value: str) -> SuiteUser:
    """Decode a development session value (base64 of the user JSON).

    Raises:
        SessionDecodeError: If the value is not base64 JSON with a uid.
    """
    padded = value + "=" * (-len(value) % 4)
    try:
        raw = base64.b64decode(padded, validate=False)
        data = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise SessionDecodeError(f"Session value is not base64 JSON: {e}") from e

    if not isinstance(data, dict) or not data.get("uid"):
        raise SessionDecodeError("Session value has no uid")
    try:
        return SuiteUser.model_validate(data)
    except ValidationError as e:
        raise SessionDecodeError(f"Session value is not a valid user: {e}") from e


def encode_dev_session(user: SuiteUser) -> str:
    """Inverse of decode_dev_session, as the development backend encodes it."""
    return base64.b64encode(json.dumps(user.to_wire()).encode("utf-8")).decode("ascii")
