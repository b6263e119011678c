"""Tests for the session cookie and timeout record."""

from unittest.mock import MagicMock

import httpx
import pytest

from conftest import FakeClock
from suite_sso.constants import (
    SESSION_COOKIE_MAX_AGE_SECONDS,
    SESSION_COOKIE_NAME,
    SESSION_EXPIRY_KEY,
    SESSION_LAST_ACTIVITY_KEY,
)
from suite_sso.exceptions import StorageError
from suite_sso.session.record_store import SessionRecordStore, SessionTimeout
from suite_sso.storage.device_storage import MemoryStorage

MAX_AGE = SESSION_COOKIE_MAX_AGE_SECONDS


@pytest.fixture
def cookies() -> httpx.Cookies:
    return httpx.Cookies()


@pytest.fixture
def store(cookies: httpx.Cookies, storage: MemoryStorage, clock: FakeClock) -> SessionRecordStore:
    return SessionRecordStore(
        cookies,
        storage,
        host="notes.example.com",
        cookie_domain=".example.com",
        secure=True,
        clock=clock,
    )


class TestCookie:
    """Tests for cookie set/get/remove."""

    def test_set_scopes_cookie_to_parent_domain(self, store, cookies):
        """The cookie carries the suite-wide attributes."""
        store.set("abc")

        [cookie] = list(cookies.jar)
        assert cookie.name == SESSION_COOKIE_NAME
        assert cookie.value == "abc"
        assert cookie.domain == ".example.com"
        assert cookie.path == "/"
        assert cookie.secure is True
        assert cookie.get_nonstandard_attr("SameSite") == "Lax"

    def test_lifetime_is_max_age_in_days(self, store, cookies, clock):
        """Expiry is max-age from now; 14 days in day units."""
        store.set("abc")

        [cookie] = list(cookies.jar)
        assert cookie.expires == int(clock() + MAX_AGE)
        assert store.max_age_days == 14

    def test_get_and_remove(self, store):
        store.set("abc")
        assert store.get() == "abc"

        store.remove()
        assert store.get() is None

    def test_remove_without_cookie_is_noop(self, store):
        store.remove()
        assert store.get() is None

    def test_host_only_cookie_without_domain(self, cookies, storage, clock):
        """Loopback hosts get a host-only cookie."""
        store = SessionRecordStore(cookies, storage, host="localhost", secure=False, clock=clock)

        store.set("abc")

        [cookie] = list(cookies.jar)
        assert cookie.domain == "localhost.local"
        assert cookie.domain_specified is False
        assert store.get() == "abc"

    @pytest.mark.asyncio
    async def test_host_only_cookie_is_sent_to_loopback(self, storage):
        """The host-only cookie travels with requests to the local origin."""
        seen: list[str] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("cookie", ""))
            return httpx.Response(200, json={})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            store = SessionRecordStore(client.cookies, storage, host="localhost", secure=False)
            store.set("abc")
            await client.get("http://localhost:3001/api/auth/fast-bootstrap")

        assert seen == ["__session=abc"]

    def test_set_cookie_header(self, store):
        store.set("abc")

        header = store.set_cookie_header()

        assert header == f"__session=abc; Max-Age={MAX_AGE}; Path=/; Domain=.example.com; Secure; SameSite=Lax"

    def test_set_cookie_header_without_cookie(self, store):
        assert store.set_cookie_header() is None


class TestTimeoutMath:
    """Boundary tests for SessionTimeout."""

    def test_is_expired_only_after_expiry(self):
        timeout = SessionTimeout(expiry=1000.0, last_activity=0.0)

        assert timeout.is_expired(1000.0) is False
        assert timeout.is_expired(1000.001) is True

    def test_needs_refresh_boundary_is_strict(self):
        """Exactly 75% of max-age idle is not yet stale; just after is."""
        timeout = SessionTimeout(expiry=MAX_AGE, last_activity=0.0)
        threshold = 0.75 * MAX_AGE

        assert timeout.needs_refresh(threshold) is False
        assert timeout.needs_refresh(threshold + 0.001) is True

    def test_expiring_soon_boundary_is_strict(self):
        """Exactly 300 s remaining is not expiring soon."""
        timeout = SessionTimeout(expiry=10_000.0, last_activity=0.0)

        assert timeout.expiring_soon(10_000.0 - 300) is False
        assert timeout.expiring_soon(10_000.0 - 299.999) is True


class TestValidate:
    """Tests for validate() combining cookie and timeout record."""

    def test_initialized_session_is_valid(self, store):
        store.initialize("abc")

        result = store.validate()

        assert result.valid is True
        assert result.has_cookie is True
        assert result.expired is False
        assert result.needs_refresh is False
        assert result.expiring_soon is False

    def test_cookie_without_timeout_record_is_invalid(self, store):
        """A readable cookie alone is not a valid session."""
        store.set("abc")

        result = store.validate()

        assert result.has_cookie is True
        assert result.valid is False

    def test_expired_record(self, store, cookies, clock):
        """Past the timeout expiry the session is expired even if the cookie is still present."""
        store.initialize("abc")
        clock.advance(MAX_AGE + 1)
        # Cookie jars drop expired cookies; emulate a server-refreshed cookie
        store.set("abc")

        result = store.validate()

        assert result.expired is True
        assert result.valid is False
        assert result.has_cookie is True

    def test_idle_session_needs_refresh(self, store, clock):
        store.initialize("abc")
        clock.advance(0.75 * MAX_AGE + 1)

        result = store.validate()

        assert result.needs_refresh is True
        assert result.valid is True

    def test_activity_tick_resets_refresh(self, store, clock):
        store.initialize("abc")
        clock.advance(0.75 * MAX_AGE + 1)

        store.update_last_activity()

        assert store.validate().needs_refresh is False

    def test_initialize_stores_epoch_ms(self, store, storage, clock):
        store.initialize("abc")

        assert storage.get(SESSION_EXPIRY_KEY) == str(int((clock() + MAX_AGE) * 1000))
        assert storage.get(SESSION_LAST_ACTIVITY_KEY) == str(int(clock() * 1000))

    def test_update_last_activity_without_record_is_noop(self, store, storage):
        store.update_last_activity()

        assert storage.get(SESSION_LAST_ACTIVITY_KEY) is None

    def test_clear_removes_cookie_and_record(self, store, storage):
        store.initialize("abc")

        store.clear()

        assert store.get() is None
        assert storage.get(SESSION_EXPIRY_KEY) is None
        assert store.validate().valid is False

    def test_corrupt_record_is_no_session(self, store, storage):
        store.set("abc")
        storage.set(SESSION_EXPIRY_KEY, "not-a-number")

        assert store.timeout() is None
        assert store.validate().valid is False

    def test_storage_failure_is_no_session(self, cookies, clock):
        """An unreadable backend reads as no session rather than raising."""
        broken = MagicMock()
        broken.get.side_effect = StorageError("keychain locked")
        store = SessionRecordStore(cookies, broken, host="localhost", clock=clock)

        result = store.validate()

        assert result.valid is False
