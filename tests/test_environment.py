"""Tests for Hub/Spoke classification and Hub URL resolution."""

import pytest

from suite_sso.config import SuiteConfig
from suite_sso.environment import EnvironmentResolver, Origin


@pytest.fixture
def suite() -> SuiteConfig:
    return SuiteConfig(apex_domain="example.com")


class TestOrigin:
    def test_parse_drops_path_and_default_port(self):
        origin = Origin.parse("https://notes.example.com/workspace?tab=1")

        assert origin.port == 443
        assert origin.base_url == "https://notes.example.com"

    def test_parse_keeps_explicit_port(self):
        assert Origin.parse("http://localhost:3001/").base_url == "http://localhost:3001"

    def test_ipv6_loopback(self):
        assert Origin.parse("http://[::1]:3001").base_url == "http://[::1]:3001"

    def test_rejects_non_http(self):
        with pytest.raises(ValueError):
            Origin.parse("ftp://example.com")


class TestHubResolution:
    """Hub base URL by host class."""

    @pytest.mark.parametrize(
        "origin, expected",
        [
            ("http://localhost:3001", "http://localhost:3000"),
            ("http://127.0.0.1:3005", "http://localhost:3000"),
            ("http://[::1]:3002", "http://localhost:3000"),
            ("http://192.168.1.20:3003", "http://192.168.1.20:3000"),
            ("https://example.com", "https://example.com"),
            ("https://www.example.com", "https://www.example.com"),
            ("https://notes.example.com", "https://www.example.com"),
            ("https://my-branch.preview.vercel.app", "https://www.example.com"),
        ],
    )
    def test_resolve_hub_base_url(self, suite, origin, expected):
        assert EnvironmentResolver(origin, suite).resolve_hub_base_url() == expected

    def test_custom_hub_url(self):
        suite = SuiteConfig(apex_domain="example.com", hub_url="https://auth.example.com/")

        resolver = EnvironmentResolver("https://notes.example.com", suite)

        assert resolver.resolve_hub_base_url() == "https://auth.example.com"

    def test_custom_local_hub_port(self):
        suite = SuiteConfig(local_hub_port=4000)

        assert EnvironmentResolver("http://localhost:3001", suite).resolve_hub_base_url() == "http://localhost:4000"


class TestIsHub:
    """Hub detection."""

    @pytest.mark.parametrize(
        "origin, expected",
        [
            ("http://localhost:3000", True),
            ("http://localhost:3001", False),
            ("http://192.168.1.20:3000", True),
            ("https://example.com", True),
            ("https://www.example.com", True),
            ("https://notes.example.com", False),
            ("https://preview.vercel.app", False),
        ],
    )
    def test_is_hub(self, suite, origin, expected):
        assert EnvironmentResolver(origin, suite).is_hub() is expected

    def test_subdomain_spoke_is_not_hub(self, suite):
        """A production subdomain is a Spoke whose Hub is the canonical Hub URL."""
        resolver = EnvironmentResolver("https://notes.example.com", suite)

        assert resolver.is_hub() is False
        assert resolver.resolve_hub_base_url() == "https://www.example.com"


class TestCookieDomainAndSlug:
    @pytest.mark.parametrize(
        "origin, expected",
        [
            ("https://notes.example.com", ".example.com"),
            ("https://www.example.com", ".example.com"),
            ("http://localhost:3001", None),
            ("http://192.168.1.20:3001", None),
            ("https://preview.vercel.app", None),
        ],
    )
    def test_cookie_domain(self, suite, origin, expected):
        assert EnvironmentResolver(origin, suite).cookie_domain() == expected

    @pytest.mark.parametrize(
        "origin, expected",
        [
            ("http://localhost:3000", "main"),
            ("http://localhost:3001", "notes"),
            ("https://journal.example.com", "journal"),
            ("https://www.example.com", "main"),
            ("http://localhost:9999", None),
            ("https://unknown.example.com", None),
        ],
    )
    def test_app_slug(self, suite, origin, expected):
        assert EnvironmentResolver(origin, suite).app_slug() == expected

    def test_local_development(self, suite):
        assert EnvironmentResolver("http://localhost:3001", suite).is_local_development() is True
        assert EnvironmentResolver("https://notes.example.com", suite).is_local_development() is False

    def test_describe(self, suite):
        info = EnvironmentResolver("http://localhost:3002", suite).describe()

        assert info == {
            "origin": "http://localhost:3002",
            "host_class": "loopback",
            "is_hub": False,
            "hub_url": "http://localhost:3000",
            "cookie_domain": None,
            "app": "journal",
            "local_development": True,
        }
