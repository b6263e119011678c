"""Wire models for the session bootstrap protocol.

Field names are snake_case in Python and camelCase on the wire, matching
what member applications' backends send. Serialize with
``model_dump(by_alias=True, exclude_none=True)``.

Endpoints:
    POST /api/auth/fast-bootstrap   BootstrapRequest -> BootstrapResult
    GET  <hub>/api/auth/sso-status  -> HubSessionStatus
    POST /api/auth/custom-token     TokenExchangeRequest -> TokenExchangeResult
    POST /api/auth/session          SessionCreateRequest -> SessionCreateResult
    DELETE /api/auth/session        (this origin and the Hub)
"""

from __future__ import annotations

__all__ = [
    "BootstrapRequest",
    "BootstrapResult",
    "HubSessionStatus",
    "SessionCreateRequest",
    "SessionCreateResult",
    "SuiteUser",
    "TokenExchangeRequest",
    "TokenExchangeResult",
]

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class SuiteUser(_WireModel):
    """Identity snapshot shared across the suite.

    Unknown fields from the backend are kept (``extra="allow"``) so apps can
    read their own profile extensions without a model change here.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    uid: str = Field(min_length=1)
    email: str = ""
    display_name: str | None = Field(default=None, alias="displayName")
    photo_url: str | None = Field(default=None, alias="photoURL")
    icon_url: str | None = Field(default=None, alias="iconURL")
    preferences: dict[str, Any] | None = None
    apps: dict[str, bool] | None = None
    subscription_status: str | None = Field(default=None, alias="subscriptionStatus")
    suite_access: bool | None = Field(default=None, alias="suiteAccess")


class BootstrapRequest(_WireModel):
    """Body of the bootstrap request.

    ``session_cookie`` is only sent when recovering from the device cache.
    """

    session_cookie: str | None = Field(default=None, alias="sessionCookie")


class BootstrapResult(_WireModel):
    """Single value returned by one bootstrap request.

    Invariant: an unauthenticated result carries no payload. Anything the
    backend sent alongside ``authenticated: false`` is dropped here so callers
    never act on it.
    """

    authenticated: bool
    session_cookie: str | None = Field(default=None, alias="sessionCookie")
    custom_token: str | None = Field(default=None, alias="customToken")
    user: SuiteUser | None = None
    dev_mode: bool | None = Field(default=None, alias="devMode")
    source: str | None = None

    @model_validator(mode="after")
    def _strip_unauthenticated_payload(self) -> "BootstrapResult":
        if not self.authenticated:
            self.session_cookie = None
            self.custom_token = None
            self.user = None
            self.dev_mode = None
            self.source = None
        return self

    @classmethod
    def unauthenticated(cls) -> "BootstrapResult":
        return cls(authenticated=False)


class HubSessionStatus(_WireModel):
    """Hub's answer to the live-session query."""

    authenticated: bool
    session_cookie: str | None = Field(default=None, alias="sessionCookie")

    @model_validator(mode="after")
    def _strip_unauthenticated_payload(self) -> "HubSessionStatus":
        if not self.authenticated:
            self.session_cookie = None
        return self


class TokenExchangeRequest(_WireModel):
    """Body of the token-exchange request."""

    session_cookie: str = Field(alias="sessionCookie", min_length=1)


class TokenExchangeResult(_WireModel):
    """Token-exchange response.

    Production: ``{"customToken": "..."}``
    Development: ``{"devMode": true, "sessionCookie": "..."}``
    """

    custom_token: str | None = Field(default=None, alias="customToken")
    dev_mode: bool = Field(default=False, alias="devMode")
    session_cookie: str | None = Field(default=None, alias="sessionCookie")

    @model_validator(mode="after")
    def _require_credential(self) -> "TokenExchangeResult":
        if not self.custom_token and not (self.dev_mode and self.session_cookie):
            raise ValueError("response carries neither customToken nor a devMode sessionCookie")
        return self

    @property
    def is_development(self) -> bool:
        return bool(self.dev_mode and self.session_cookie)


class SessionCreateRequest(_WireModel):
    """Body of the session refresh request: a fresh identity-provider ID token."""

    id_token: str = Field(alias="idToken", min_length=1)


class SessionCreateResult(_WireModel):
    """Session refresh response carrying the new ``__session`` value."""

    session_cookie: str = Field(alias="sessionCookie", min_length=1)
