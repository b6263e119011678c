"""Shared fixtures: fake clock, fake identity provider, routed HTTP transport."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx
import pytest

from suite_sso.config import AppConfig, BootstrapConfig, LoggingConfig, StorageConfig
from suite_sso.identity import encode_dev_session
from suite_sso.models import SuiteUser
from suite_sso.runtime import SessionRuntime
from suite_sso.storage.device_storage import MemoryStorage

SPOKE = "http://localhost:3001"
HUB = "http://localhost:3000"
BOOTSTRAP_URL = f"{SPOKE}/api/auth/fast-bootstrap"
EXCHANGE_URL = f"{SPOKE}/api/auth/custom-token"
HUB_STATUS_URL = f"{HUB}/api/auth/sso-status"
HUB_SIGN_OUT_URL = f"{HUB}/api/auth/session"
SESSION_URL = f"{SPOKE}/api/auth/session"


class FakeClock:
    """Settable epoch-seconds clock."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSignIn:
    """TokenSignIn and IdTokenSource double that records calls."""

    def __init__(
        self,
        user: SuiteUser | None = None,
        error: Exception | None = None,
        id_token: str | None = None,
    ) -> None:
        self.user = user
        self.error = error
        self.tokens: list[str] = []
        self.sign_outs = 0
        self.id_token = id_token
        self.id_token_requests = 0

    async def sign_in_with_custom_token(self, token: str) -> SuiteUser | None:
        self.tokens.append(token)
        if self.error is not None:
            raise self.error
        return self.user

    async def sign_out(self) -> None:
        self.sign_outs += 1

    async def get_id_token(self, force_refresh: bool = False) -> str | None:
        self.id_token_requests += 1
        return self.id_token


@dataclass
class Route:
    status: int = 200
    json: Any = None
    delay: float = 0.0
    error: type[httpx.HTTPError] | None = None


class Routes:
    """Request handler for httpx.MockTransport keyed by (method, full URL)."""

    def __init__(self) -> None:
        self._routes: dict[tuple[str, str], Route] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, url: str, **kwargs: Any) -> None:
        self._routes[(method, url)] = Route(**kwargs)

    def calls(self, method: str, url: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and str(r.url) == url]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, str(request.url)))
        if route is None:
            return httpx.Response(404, json={"error": "not found"})
        if route.delay:
            await asyncio.sleep(route.delay)
        if route.error is not None:
            raise route.error("simulated failure", request=request)
        return httpx.Response(route.status, json=route.json)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def routes() -> Routes:
    return Routes()


@pytest.fixture
def user() -> SuiteUser:
    return SuiteUser(uid="user-123", email="ada@example.com", display_name="Ada")


@pytest.fixture
def dev_session(user: SuiteUser) -> str:
    return encode_dev_session(user)


@pytest.fixture
def sign_in(user: SuiteUser) -> FakeSignIn:
    return FakeSignIn(user=user)


@pytest.fixture
def test_config() -> AppConfig:
    """Config with file logging off and in-memory storage."""
    return AppConfig(
        bootstrap=BootstrapConfig(timeout_seconds=0.5),
        storage=StorageConfig(backend="memory"),
        logging=LoggingConfig(enabled=False),
    )


@pytest.fixture
def make_runtime(
    test_config: AppConfig,
    routes: Routes,
    storage: MemoryStorage,
    clock: FakeClock,
    sign_in: FakeSignIn,
) -> Callable[..., SessionRuntime]:
    """Factory for runtimes wired to the routed transport and shared fakes."""

    def factory(origin: str = SPOKE, **overrides: Any) -> SessionRuntime:
        kwargs: dict[str, Any] = {
            "storage": storage,
            "sign_in": sign_in,
            "transport": routes.transport(),
            "clock": clock,
        }
        kwargs.update(overrides)
        config = kwargs.pop("config", test_config)
        runtime = SessionRuntime(origin, config, **kwargs)
        return runtime

    return factory
