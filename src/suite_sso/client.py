"""HTTP client for the session bootstrap endpoints.

One ``httpx.AsyncClient`` per application origin. Its cookie jar is the
origin's cookie jar: SessionRecordStore writes the ``__session`` cookie into
it and every request sends it, like a browser with ``credentials: include``.

Every transport, status and payload failure is raised as a SuiteAPIError
subclass; callers never see raw httpx or pydantic exceptions.
"""

from __future__ import annotations

__all__ = ["SuiteAuthClient"]

import json
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from suite_sso.constants import (
    APP_NAME,
    BOOTSTRAP_PATH,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    HUB_SESSION_STATUS_PATH,
    HUB_SIGN_OUT_PATH,
    SESSION_PATH,
    TOKEN_EXCHANGE_PATH,
)
from suite_sso.exceptions import HubUnavailableError, SuiteAPIError, TokenExchangeError
from suite_sso.models import (
    BootstrapRequest,
    BootstrapResult,
    HubSessionStatus,
    SessionCreateRequest,
    SessionCreateResult,
    TokenExchangeRequest,
    TokenExchangeResult,
)
from suite_sso.telemetry.system_logger import get_system_logger

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class SuiteAuthClient:
    """Async client for bootstrap, Hub live session, token exchange and session endpoints.

    Usage:
        async with SuiteAuthClient("http://localhost:3001") as client:
            result = await client.bootstrap()
    """

    def __init__(
        self,
        base_url: str,
        *,
        cookies: httpx.Cookies | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            cookies=cookies,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json", "User-Agent": APP_NAME},
        )
        # httpx copies the jar on construction; keep the client's as the shared one
        self.cookies: httpx.Cookies = self._client.cookies
        self._logger = get_system_logger()

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "SuiteAuthClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def bootstrap(self, session_cookie: str | None = None) -> BootstrapResult:
        """POST /api/auth/fast-bootstrap on this origin.

        Args:
            session_cookie: Device-cached session value to recover from.

        Raises:
            SuiteAPIError: On transport failure, non-2xx, or invalid body.
        """
        body = BootstrapRequest(session_cookie=session_cookie).to_wire()
        response = await self._request("POST", BOOTSTRAP_PATH, SuiteAPIError, json=body)
        return self._parse(response, BootstrapResult, BOOTSTRAP_PATH, SuiteAPIError)

    async def hub_session_status(self, hub_url: str) -> HubSessionStatus:
        """GET <hub>/api/auth/sso-status.

        Raises:
            HubUnavailableError: On transport failure, non-2xx, or invalid body.
        """
        url = f"{hub_url.rstrip('/')}{HUB_SESSION_STATUS_PATH}"
        response = await self._request("GET", url, HubUnavailableError)
        return self._parse(response, HubSessionStatus, url, HubUnavailableError)

    async def exchange_token(self, session_cookie: str) -> TokenExchangeResult:
        """POST /api/auth/custom-token on this origin.

        Raises:
            TokenExchangeError: On transport failure, non-2xx, or a body with
                neither a custom token nor a dev session.
        """
        body = TokenExchangeRequest(session_cookie=session_cookie).to_wire()
        response = await self._request("POST", TOKEN_EXCHANGE_PATH, TokenExchangeError, json=body)
        return self._parse(response, TokenExchangeResult, TOKEN_EXCHANGE_PATH, TokenExchangeError)

    async def create_session(self, id_token: str) -> SessionCreateResult:
        """POST /api/auth/session on this origin to refresh the session cookie.

        Raises:
            SuiteAPIError: On transport failure, non-2xx, or a body without
                a session value.
        """
        body = SessionCreateRequest(id_token=id_token).to_wire()
        response = await self._request("POST", SESSION_PATH, SuiteAPIError, json=body)
        return self._parse(response, SessionCreateResult, SESSION_PATH, SuiteAPIError)

    async def delete_session(self) -> None:
        """DELETE /api/auth/session on this origin (server-side cookie clear).

        Raises:
            SuiteAPIError: On transport failure or non-2xx.
        """
        await self._request("DELETE", SESSION_PATH, SuiteAPIError)

    async def hub_sign_out(self, hub_url: str) -> None:
        """DELETE <hub>/api/auth/session.

        Raises:
            HubUnavailableError: On transport failure or non-2xx.
        """
        url = f"{hub_url.rstrip('/')}{HUB_SIGN_OUT_PATH}"
        await self._request("DELETE", url, HubUnavailableError)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        error_cls: type[SuiteAPIError],
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise error_cls(f"{method} {url} timed out", endpoint=url) from e
        except httpx.HTTPError as e:
            raise error_cls(f"{method} {url} failed: {e}", endpoint=url) from e

        if response.is_error:
            self._logger.debug(
                {
                    "event": "suite_api_error_status",
                    "method": method,
                    "endpoint": url,
                    "status_code": response.status_code,
                }
            )
            raise error_cls(
                f"{method} {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
                endpoint=url,
            )
        return response

    @staticmethod
    def _parse(
        response: httpx.Response,
        model: type[_ModelT],
        endpoint: str,
        error_cls: type[SuiteAPIError],
    ) -> _ModelT:
        try:
            return model.model_validate(response.json())
        except json.JSONDecodeError as e:
            raise error_cls(
                f"{endpoint} returned invalid JSON",
                status_code=response.status_code,
                endpoint=endpoint,
            ) from e
        except ValidationError as e:
            raise error_cls(
                f"{endpoint} returned an unexpected body: {e.error_count()} validation error(s)",
                status_code=response.status_code,
                endpoint=endpoint,
            ) from e
