"""Tests for protocol wire models."""

import pytest
from pydantic import ValidationError

from suite_sso.models import (
    BootstrapRequest,
    BootstrapResult,
    HubSessionStatus,
    SuiteUser,
    TokenExchangeResult,
)


class TestSuiteUser:
    def test_camel_case_aliases(self):
        user = SuiteUser.model_validate(
            {"uid": "u1", "email": "a@b.c", "displayName": "A", "photoURL": "https://img", "suiteAccess": True}
        )

        assert user.display_name == "A"
        assert user.photo_url == "https://img"
        assert user.suite_access is True

    def test_to_wire_uses_aliases_and_drops_none(self):
        user = SuiteUser(uid="u1", email="a@b.c", display_name="A")

        assert user.to_wire() == {"uid": "u1", "email": "a@b.c", "displayName": "A"}

    def test_unknown_fields_are_kept(self):
        user = SuiteUser.model_validate({"uid": "u1", "theme": "dark"})

        assert user.to_wire()["theme"] == "dark"

    def test_uid_required(self):
        with pytest.raises(ValidationError):
            SuiteUser.model_validate({"uid": "", "email": "a@b.c"})


class TestBootstrapResult:
    """An unauthenticated result never carries a payload."""

    def test_unauthenticated_payload_is_dropped(self):
        result = BootstrapResult.model_validate(
            {
                "authenticated": False,
                "sessionCookie": "leftover",
                "customToken": "tok",
                "user": {"uid": "u1"},
                "devMode": True,
                "source": "cookie",
            }
        )

        assert result.session_cookie is None
        assert result.custom_token is None
        assert result.user is None
        assert result.dev_mode is None
        assert result.to_wire() == {"authenticated": False}

    def test_authenticated_dev_result(self):
        result = BootstrapResult.model_validate(
            {"authenticated": True, "devMode": True, "sessionCookie": "abc", "user": {"uid": "u1"}}
        )

        assert result.dev_mode is True
        assert result.user is not None
        assert result.user.uid == "u1"

    def test_unauthenticated_factory(self):
        assert BootstrapResult.unauthenticated().authenticated is False

    def test_extra_fields_ignored(self):
        result = BootstrapResult.model_validate({"authenticated": True, "unexpected": 1})

        assert "unexpected" not in result.to_wire()


class TestRequests:
    def test_bootstrap_request_without_cookie_is_empty(self):
        assert BootstrapRequest().to_wire() == {}

    def test_bootstrap_request_with_cookie(self):
        assert BootstrapRequest(session_cookie="abc").to_wire() == {"sessionCookie": "abc"}


class TestHubSessionStatus:
    def test_unauthenticated_drops_cookie(self):
        status = HubSessionStatus.model_validate({"authenticated": False, "sessionCookie": "x"})

        assert status.session_cookie is None


class TestTokenExchangeResult:
    def test_production_token(self):
        result = TokenExchangeResult.model_validate({"customToken": "tok"})

        assert result.custom_token == "tok"
        assert result.is_development is False

    def test_development_session(self):
        result = TokenExchangeResult.model_validate({"devMode": True, "sessionCookie": "abc"})

        assert result.is_development is True

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"devMode": True},
            {"sessionCookie": "abc"},
            {"customToken": ""},
        ],
    )
    def test_requires_a_credential(self, body: dict):
        with pytest.raises(ValidationError):
            TokenExchangeResult.model_validate(body)
