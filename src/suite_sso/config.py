"""Application configuration for suite-sso.

All sections have defaults, so ``AppConfig()`` is a working local-development
configuration. ``suite-sso init`` writes a config file to the OS-appropriate
location (via click.get_app_dir); the CLI accepts ``--config`` to override.

Example usage:
    config = AppConfig.load_from_file(get_config_path())
    config.save_to_file(config_path)
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_APPS",
    "DEFAULT_LOG_DIR",
    "AppConfig",
    "AppEntry",
    "BootstrapConfig",
    "LoggingConfig",
    "StorageConfig",
    "SuiteConfig",
    "get_config_path",
]

import json
import os
import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from suite_sso.constants import (
    APP_NAME,
    DEFAULT_APEX_DOMAIN,
    DEFAULT_BOOTSTRAP_TIMEOUT_SECONDS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_LOCAL_HUB_PORT,
    DEFAULT_REVALIDATE_INTERVAL_SECONDS,
    DEFAULT_SESSION_CHECK_INTERVAL_SECONDS,
    MAX_BOOTSTRAP_TIMEOUT_SECONDS,
    MIN_BOOTSTRAP_TIMEOUT_SECONDS,
)
from suite_sso.utils.file_helpers import (
    get_app_dir,
    load_validated_json,
    require_file_exists,
    write_json_atomic,
)


def _get_platform_log_dir() -> str:
    """Platform-appropriate base log directory (unexpanded).

    - macOS: ~/Library/Logs
    - Linux: $XDG_STATE_HOME or ~/.local/state
    - Windows: ~/AppData/Local
    """
    if sys.platform == "darwin":
        return "~/Library/Logs"
    elif sys.platform == "win32":
        return "~/AppData/Local"
    else:
        return os.environ.get("XDG_STATE_HOME", "~/.local/state")


DEFAULT_LOG_DIR = _get_platform_log_dir()


def get_config_path() -> Path:
    """Default config file location."""
    return get_app_dir() / "config.json"


# =============================================================================
# Suite topology
# =============================================================================


class AppEntry(BaseModel):
    """One member application of the suite.

    Attributes:
        dev_port: Port the app listens on in local development.
        subdomain: Production subdomain under the apex (None for the Hub).
    """

    dev_port: int = Field(ge=1, le=65535)
    subdomain: str | None = None


# Hub is "main": served from the apex (and www) in production, port 3000 locally
DEFAULT_APPS: dict[str, AppEntry] = {
    "main": AppEntry(dev_port=3000, subdomain=None),
    "notes": AppEntry(dev_port=3001, subdomain="notes"),
    "journal": AppEntry(dev_port=3002, subdomain="journal"),
    "todo": AppEntry(dev_port=3003, subdomain="todo"),
    "health": AppEntry(dev_port=3004, subdomain="health"),
    "album": AppEntry(dev_port=3005, subdomain="album"),
    "habits": AppEntry(dev_port=3006, subdomain="habits"),
    "display": AppEntry(dev_port=3007, subdomain="display"),
    "fit": AppEntry(dev_port=3008, subdomain="fit"),
    "projects": AppEntry(dev_port=3009, subdomain="projects"),
    "workflow": AppEntry(dev_port=3010, subdomain="workflow"),
    "calendar": AppEntry(dev_port=3014, subdomain="calendar"),
    "subs": AppEntry(dev_port=3015, subdomain="subs"),
    "admin": AppEntry(dev_port=3020, subdomain="admin"),
}


class SuiteConfig(BaseModel):
    """Suite topology used by the environment resolver.

    Attributes:
        apex_domain: Parent domain of every production app (cookie scope).
        hub_url: Canonical production Hub URL. Defaults to https://www.<apex>.
        local_hub_port: Port of the Hub in local development.
        apps: Member applications keyed by slug.
    """

    apex_domain: str = Field(default=DEFAULT_APEX_DOMAIN, min_length=3)
    hub_url: str | None = Field(default=None, pattern=r"^https?://")
    local_hub_port: int = Field(default=DEFAULT_LOCAL_HUB_PORT, ge=1, le=65535)
    apps: dict[str, AppEntry] = Field(default_factory=lambda: dict(DEFAULT_APPS))

    @field_validator("apex_domain")
    @classmethod
    def _normalize_apex(cls, value: str) -> str:
        return value.strip().lower().lstrip(".")

    @property
    def canonical_hub_url(self) -> str:
        return (self.hub_url or f"https://www.{self.apex_domain}").rstrip("/")


# =============================================================================
# Bootstrap behavior
# =============================================================================


class BootstrapConfig(BaseModel):
    """Bootstrap, bridge and monitor settings.

    Attributes:
        timeout_seconds: Soft timeout for the full bootstrap request.
        http_timeout_seconds: Transport timeout for every request.
        bridge_enabled: Run the SSO bridge on Spokes when bootstrap finds nothing.
        monitor_enabled: Start the session monitor after init (expiry checks,
            idle refresh, and Hub revalidation on local-development Spokes).
        revalidate_interval_seconds: Hub revalidation cadence.
        session_check_interval_seconds: Expiry check and idle refresh cadence.
        cookie_secure: Mark the session cookie Secure. Disable only for
            plain-http local development where cookies must be sent.
    """

    timeout_seconds: float = Field(
        default=DEFAULT_BOOTSTRAP_TIMEOUT_SECONDS,
        ge=MIN_BOOTSTRAP_TIMEOUT_SECONDS,
        le=MAX_BOOTSTRAP_TIMEOUT_SECONDS,
    )
    http_timeout_seconds: float = Field(default=DEFAULT_HTTP_TIMEOUT_SECONDS, gt=0, le=120)
    bridge_enabled: bool = True
    monitor_enabled: bool = False
    revalidate_interval_seconds: int = Field(default=DEFAULT_REVALIDATE_INTERVAL_SECONDS, ge=5, le=3600)
    session_check_interval_seconds: int = Field(default=DEFAULT_SESSION_CHECK_INTERVAL_SECONDS, ge=5, le=3600)
    cookie_secure: bool = True


# =============================================================================
# Storage and logging
# =============================================================================


class StorageConfig(BaseModel):
    """Device storage backend selection.

    Attributes:
        backend: "auto" prefers the OS keychain and falls back to a file.
        path: Directory for the file backend (default: user data dir).
    """

    backend: Literal["auto", "keychain", "file", "memory"] = "auto"
    path: str | None = None


class LoggingConfig(BaseModel):
    """Logging configuration.

    Logs go to <log_dir>/suite-sso/:
        system.jsonl    operational warnings and errors
        session.jsonl   protocol outcomes (hashed user ids)

    Attributes:
        log_dir: Base directory. Platform-specific default.
        log_level: DEBUG also writes every step to system.jsonl.
        enabled: Write log files at all (stderr logging is always on).
    """

    log_dir: str = Field(default=DEFAULT_LOG_DIR, min_length=1)
    log_level: Literal["DEBUG", "INFO"] = "INFO"
    enabled: bool = True

    def resolved_dir(self) -> Path:
        return Path(self.log_dir).expanduser() / APP_NAME


class AppConfig(BaseModel):
    """Main configuration for suite-sso.

    Attributes:
        suite: Suite topology (apex domain, Hub, member apps).
        bootstrap: Bootstrap/bridge/monitor behavior.
        storage: Device storage backend.
        logging: Log file settings.
    """

    suite: SuiteConfig = Field(default_factory=SuiteConfig)
    bootstrap: BootstrapConfig = Field(default_factory=BootstrapConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def save_to_file(self, config_path: Path) -> None:
        """Save configuration as JSON with owner-only permissions."""
        write_json_atomic(config_path, self.model_dump(mode="json"))

    @classmethod
    def load_from_file(cls, config_path: Path) -> "AppConfig":
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file is invalid.
        """
        require_file_exists(config_path, file_type="configuration")
        return load_validated_json(
            config_path,
            cls,
            file_type="config",
            recovery_hint="Run 'suite-sso init --force' to reconfigure.",
        )

    @classmethod
    def load_or_default(cls, config_path: Path | None = None) -> "AppConfig":
        """Load the config file if present, defaults otherwise."""
        path = config_path or get_config_path()
        if not path.exists():
            return cls()
        return cls.load_from_file(path)

    def to_json(self) -> str:
        return json.dumps(self.model_dump(mode="json"), indent=2)
