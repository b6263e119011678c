"""Environment detection: is this origin the Auth Hub or a Spoke?

Every other component asks this module; none of them inspect hostnames.
Classification uses only the origin's hostname and port.

Host classes:
    loopback   localhost / 127.0.0.1 / ::1           local development
    lan        private IPv4 (192.168.x.x, 10.x.x.x)  device testing on a LAN
    apex       <apex> or www.<apex>                  the production Hub
    suite      <anything>.<apex>                     production Spokes
    other      preview deployments, unknown hosts

Hub base URL:
    loopback -> http://localhost:<local_hub_port>
    lan      -> http://<same ip>:<local_hub_port>
    apex     -> this origin (we are the Hub)
    suite    -> canonical production Hub
    other    -> canonical production Hub
"""

from __future__ import annotations

__all__ = [
    "EnvironmentResolver",
    "HostClass",
    "Origin",
]

import ipaddress
from dataclasses import dataclass
from typing import Literal

import httpx

from suite_sso.config import SuiteConfig
from suite_sso.constants import LOOPBACK_HOSTS

HostClass = Literal["loopback", "lan", "apex", "suite", "other"]

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True)
class Origin:
    """Scheme, host and effective port of an application origin."""

    scheme: str
    host: str
    port: int

    @classmethod
    def parse(cls, url: str) -> "Origin":
        """Parse an origin from any URL on that origin.

        Raises:
            ValueError: If the URL has no http(s) scheme or no host.
        """
        parsed = httpx.URL(url)
        if parsed.scheme not in _DEFAULT_PORTS or not parsed.host:
            raise ValueError(f"Not an http(s) origin: {url!r}")
        port = parsed.port or _DEFAULT_PORTS[parsed.scheme]
        return cls(scheme=parsed.scheme, host=parsed.host.lower(), port=port)

    @property
    def has_default_port(self) -> bool:
        return _DEFAULT_PORTS.get(self.scheme) == self.port

    @property
    def base_url(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.has_default_port:
            return f"{self.scheme}://{host}"
        return f"{self.scheme}://{host}:{self.port}"

    def __str__(self) -> str:
        return self.base_url


class EnvironmentResolver:
    """Pure classifier for one origin within the suite.

    Usage:
        resolver = EnvironmentResolver("https://notes.example.com", config.suite)
        resolver.is_hub()                 # False
        resolver.resolve_hub_base_url()   # "https://www.example.com"
    """

    def __init__(self, origin: str | Origin, suite: SuiteConfig | None = None) -> None:
        self.origin = origin if isinstance(origin, Origin) else Origin.parse(origin)
        self._suite = suite or SuiteConfig()

    @property
    def suite(self) -> SuiteConfig:
        return self._suite

    def host_class(self) -> HostClass:
        host = self.origin.host
        apex = self._suite.apex_domain

        if host in LOOPBACK_HOSTS:
            return "loopback"
        if _is_private_ipv4(host):
            return "lan"
        if host == apex or host == f"www.{apex}":
            return "apex"
        if host.endswith(f".{apex}"):
            return "suite"
        return "other"

    def is_local_development(self) -> bool:
        """True on loopback and LAN hosts, where cookies are per-port."""
        return self.host_class() in ("loopback", "lan")

    def resolve_hub_base_url(self) -> str:
        """Base URL of the Auth Hub as seen from this origin."""
        host_class = self.host_class()
        hub_port = self._suite.local_hub_port

        if host_class == "loopback":
            return f"http://localhost:{hub_port}"
        if host_class == "lan":
            return f"http://{self.origin.host}:{hub_port}"
        if host_class == "apex":
            return self.origin.base_url
        return self._suite.canonical_hub_url

    def is_hub(self) -> bool:
        """True iff this origin is the Auth Hub."""
        host_class = self.host_class()
        if host_class in ("loopback", "lan"):
            return self.origin.port == self._suite.local_hub_port
        return host_class == "apex"

    def cookie_domain(self) -> str | None:
        """Domain attribute for the session cookie.

        ``.<apex>`` for production hosts so every subdomain shares it; None
        (host-only cookie) everywhere else.
        """
        if self.host_class() in ("apex", "suite"):
            return f".{self._suite.apex_domain}"
        return None

    def app_slug(self) -> str | None:
        """Registry slug of the application served from this origin, if known."""
        host_class = self.host_class()
        apps = self._suite.apps

        if host_class in ("loopback", "lan"):
            for slug, entry in apps.items():
                if entry.dev_port == self.origin.port:
                    return slug
            return None

        if host_class == "apex":
            for slug, entry in apps.items():
                if entry.subdomain is None:
                    return slug
            return None

        if host_class == "suite":
            label = self.origin.host[: -len(self._suite.apex_domain) - 1]
            for slug, entry in apps.items():
                if entry.subdomain == label:
                    return slug

        return None

    def describe(self) -> dict[str, object]:
        """Classification summary (CLI output, log context)."""
        return {
            "origin": self.origin.base_url,
            "host_class": self.host_class(),
            "is_hub": self.is_hub(),
            "hub_url": self.resolve_hub_base_url(),
            "cookie_domain": self.cookie_domain(),
            "app": self.app_slug(),
            "local_development": self.is_local_development(),
        }


def _is_private_ipv4(host: str) -> bool:
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return address.version == 4 and address.is_private and not address.is_loopback
