"""Tests for the load and sign-out sequences of SessionRuntime."""

import json
from pathlib import Path

import httpx
import pytest

from conftest import BOOTSTRAP_URL, HUB, HUB_SIGN_OUT_URL, HUB_STATUS_URL, SESSION_URL
from suite_sso.config import AppConfig, BootstrapConfig, LoggingConfig, StorageConfig
from suite_sso.coordinator import RunStatus
from suite_sso.runtime import SessionRuntime, setup_logging
from suite_sso.telemetry.session_logger import create_session_logger


@pytest.fixture
def dev_bootstrap(routes, dev_session, user):
    routes.add(
        "POST",
        BOOTSTRAP_URL,
        json={
            "authenticated": True,
            "devMode": True,
            "sessionCookie": dev_session,
            "user": user.to_wire(),
        },
    )


class TestInit:
    """Tests for coordinator -> bridge -> monitor sequencing."""

    @pytest.mark.asyncio
    async def test_bootstrap_hydrates_without_bridge(self, make_runtime, routes, dev_bootstrap, user):
        runtime = make_runtime()

        snapshot = await runtime.init()

        assert snapshot.authenticated is True
        assert snapshot.user == user
        assert runtime.coordinator.status is RunStatus.COMPLETE
        assert routes.calls("GET", HUB_STATUS_URL) == []

    @pytest.mark.asyncio
    async def test_empty_bootstrap_runs_bridge(self, make_runtime, routes):
        routes.add("POST", BOOTSTRAP_URL, json={"authenticated": False})
        routes.add("GET", HUB_STATUS_URL, json={"authenticated": False})
        runtime = make_runtime()

        snapshot = await runtime.init()

        assert snapshot.authenticated is False
        assert len(routes.calls("GET", HUB_STATUS_URL)) == 1

    @pytest.mark.asyncio
    async def test_hub_never_bridges(self, make_runtime, routes):
        """A failing bootstrap on the Hub ends unauthenticated without a Hub query."""
        runtime = make_runtime(HUB)

        snapshot = await runtime.init()

        assert runtime.is_hub is True
        assert snapshot.authenticated is False
        assert routes.calls("GET", HUB_STATUS_URL) == []

    @pytest.mark.asyncio
    async def test_monitor_started_when_enabled(self, make_runtime, dev_bootstrap):
        config = AppConfig(
            bootstrap=BootstrapConfig(timeout_seconds=0.5, monitor_enabled=True),
            storage=StorageConfig(backend="memory"),
            logging=LoggingConfig(enabled=False),
        )
        runtime = make_runtime(config=config)

        await runtime.init()

        assert runtime.monitor.running is True
        await runtime.teardown()
        assert runtime.monitor.running is False

    @pytest.mark.asyncio
    async def test_monitor_not_started_by_default(self, make_runtime, dev_bootstrap):
        runtime = make_runtime()

        await runtime.init()

        assert runtime.monitor.running is False

    def test_plain_http_cookie_is_not_secure(self, make_runtime):
        runtime = make_runtime()
        runtime.record_store.set("abc")

        [cookie] = list(runtime.client.cookies.jar)
        assert cookie.secure is False


class TestSignOut:
    """Tests for global and local sign-out."""

    @pytest.mark.asyncio
    async def test_global_sign_out(self, make_runtime, routes, dev_bootstrap, storage, sign_in, tmp_path: Path):
        routes.add("DELETE", HUB_SIGN_OUT_URL, json={"ok": True})
        runtime = make_runtime(session_logger=create_session_logger(tmp_path))
        await runtime.init()

        await runtime.sign_out()

        assert len(routes.calls("DELETE", HUB_SIGN_OUT_URL)) == 1
        assert runtime.auth.user is None
        assert runtime.record_store.get() is None
        assert runtime.device_cache.read() is None
        assert sign_in.sign_outs == 1
        assert runtime.coordinator.status is RunStatus.IDLE

        events = [json.loads(line) for line in (tmp_path / "session.jsonl").read_text().splitlines()]
        assert events[-1]["event_type"] == "signed_out"
        assert events[-1]["status"] == "Success"
        assert events[-1]["source"] == "global"

    @pytest.mark.asyncio
    async def test_global_sign_out_clears_own_origin_session(self, make_runtime, routes, dev_bootstrap):
        """A Spoke also asks its own backend to clear the session cookie."""
        routes.add("DELETE", HUB_SIGN_OUT_URL, json={"ok": True})
        routes.add("DELETE", SESSION_URL, json={"ok": True})
        runtime = make_runtime()
        await runtime.init()

        await runtime.sign_out()

        assert len(routes.calls("DELETE", HUB_SIGN_OUT_URL)) == 1
        assert len(routes.calls("DELETE", SESSION_URL)) == 1
        assert runtime.auth.user is None

    @pytest.mark.asyncio
    async def test_own_origin_clear_failure_still_signs_out(
        self, make_runtime, routes, dev_bootstrap, tmp_path: Path
    ):
        routes.add("DELETE", HUB_SIGN_OUT_URL, json={"ok": True})
        routes.add("DELETE", SESSION_URL, error=httpx.ConnectError)
        runtime = make_runtime(session_logger=create_session_logger(tmp_path))
        await runtime.init()

        await runtime.sign_out()

        assert runtime.auth.user is None
        assert runtime.device_cache.read() is None
        events = [json.loads(line) for line in (tmp_path / "session.jsonl").read_text().splitlines()]
        assert events[-1]["status"] == "Success"

    @pytest.mark.asyncio
    async def test_hub_sign_out_issues_one_delete(self, make_runtime, routes):
        routes.add("DELETE", HUB_SIGN_OUT_URL, json={"ok": True})
        runtime = make_runtime(HUB)

        await runtime.sign_out()

        assert [r.method for r in routes.requests] == ["DELETE"]

    @pytest.mark.asyncio
    async def test_local_sign_out_skips_hub(self, make_runtime, routes, dev_bootstrap):
        runtime = make_runtime()
        await runtime.init()

        await runtime.sign_out(global_=False)

        assert routes.calls("DELETE", HUB_SIGN_OUT_URL) == []
        assert routes.calls("DELETE", SESSION_URL) == []
        assert runtime.auth.user is None

    @pytest.mark.asyncio
    async def test_unreachable_hub_still_clears_locally(self, make_runtime, routes, dev_bootstrap):
        routes.add("DELETE", HUB_SIGN_OUT_URL, error=httpx.ConnectError)
        runtime = make_runtime()
        await runtime.init()

        await runtime.sign_out()

        assert runtime.auth.user is None
        assert runtime.device_cache.read() is None

    @pytest.mark.asyncio
    async def test_rerun_after_sign_out_bootstraps_again(self, make_runtime, routes, dev_bootstrap):
        routes.add("DELETE", HUB_SIGN_OUT_URL, json={"ok": True})
        runtime = make_runtime()
        await runtime.init()
        await runtime.sign_out()

        snapshot = await runtime.init()

        assert snapshot.authenticated is True
        assert len(routes.calls("POST", BOOTSTRAP_URL)) == 2


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_async_with_closes_client(self, make_runtime):
        async with make_runtime() as runtime:
            pass

        assert runtime.client._client.is_closed

    @pytest.mark.asyncio
    async def test_default_construction(self, storage):
        """A runtime builds from defaults plus storage without touching the network."""
        async with SessionRuntime(
            "http://localhost:3002",
            AppConfig(logging=LoggingConfig(enabled=False)),
            storage=storage,
        ) as runtime:
            assert runtime.resolver.app_slug() == "journal"
            assert runtime.sign_in is None


class TestSetupLogging:
    def test_disabled_logging(self):
        assert setup_logging(LoggingConfig(enabled=False)).enabled is False
