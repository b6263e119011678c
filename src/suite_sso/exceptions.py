"""Custom exceptions for suite-sso.

Exceptions are raised by the transport and storage layers and caught at the
public entry points of the coordinator, bridge and monitor, which convert them
into terminal states. Nothing in this hierarchy is meant to reach the host
application's UI layer.

Hierarchy:
    SuiteSSOError
    ├── ConfigurationError: Invalid or missing configuration
    ├── StorageError: Device storage backend failed
    ├── SessionDecodeError: Development session value could not be decoded
    ├── SignInError: Token-exchange sign-in failed
    └── SuiteAPIError: Protocol endpoint failed
        ├── HubUnavailableError: Auth Hub could not be reached
        └── TokenExchangeError: Spoke token exchange failed

Usage:
    from suite_sso.exceptions import SuiteAPIError, StorageError
"""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "HubUnavailableError",
    "SessionDecodeError",
    "SignInError",
    "StorageError",
    "SuiteAPIError",
    "SuiteSSOError",
    "TokenExchangeError",
]


class SuiteSSOError(Exception):
    """Base class for all suite-sso errors."""

    pass


class ConfigurationError(SuiteSSOError):
    """Configuration is invalid or missing."""

    pass


class StorageError(SuiteSSOError):
    """Device storage backend could not read, write or delete a key."""

    pass


class SessionDecodeError(SuiteSSOError):
    """A development session value is not base64-encoded user JSON."""

    pass


class SignInError(SuiteSSOError):
    """Token-exchange sign-in with a custom token failed."""

    pass


class SuiteAPIError(SuiteSSOError):
    """A protocol endpoint failed or returned an unusable response.

    Attributes:
        status_code: HTTP status code, if a response was received.
        endpoint: URL or path that failed.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{type(self).__name__}({str(self)!r}, status_code={self.status_code!r}, "
            f"endpoint={self.endpoint!r})"
        )


class HubUnavailableError(SuiteAPIError):
    """The Auth Hub's live-session endpoint could not be reached."""

    pass


class TokenExchangeError(SuiteAPIError):
    """The Spoke's token-exchange endpoint failed."""

    pass
