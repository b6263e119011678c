"""Application-wide constants for suite-sso.

Constants that define protocol behavior shared by every member application.
For user-configurable settings per deployment, see config.py.
"""

import os

__all__ = [
    # Application identity
    "APP_NAME",
    "DEFAULT_STORAGE_DIR",
    # Session cookie
    "SESSION_COOKIE_NAME",
    "SESSION_COOKIE_MAX_AGE_SECONDS",
    "SESSION_COOKIE_PATH",
    "SESSION_COOKIE_SAMESITE",
    "SECONDS_PER_DAY",
    # Session timeout record
    "SESSION_EXPIRY_KEY",
    "SESSION_LAST_ACTIVITY_KEY",
    "SESSION_REFRESH_RATIO",
    "SESSION_EXPIRING_SOON_SECONDS",
    # Device session cache
    "DEVICE_SESSION_KEY",
    "DEVICE_TIMESTAMP_KEY",
    "DEVICE_SESSION_TTL_SECONDS",
    # Bootstrap
    "DEFAULT_BOOTSTRAP_TIMEOUT_SECONDS",
    "MIN_BOOTSTRAP_TIMEOUT_SECONDS",
    "MAX_BOOTSTRAP_TIMEOUT_SECONDS",
    "DEFAULT_HTTP_TIMEOUT_SECONDS",
    "DEFAULT_REVALIDATE_INTERVAL_SECONDS",
    "DEFAULT_SESSION_CHECK_INTERVAL_SECONDS",
    # Environment
    "DEFAULT_APEX_DOMAIN",
    "DEFAULT_LOCAL_HUB_PORT",
    "LOOPBACK_HOSTS",
    # Endpoints
    "BOOTSTRAP_PATH",
    "HUB_SESSION_STATUS_PATH",
    "TOKEN_EXCHANGE_PATH",
    "SESSION_PATH",
    "HUB_SIGN_OUT_PATH",
]

from platformdirs import user_data_dir

# ============================================================================
# Application Identity
# ============================================================================

APP_NAME: str = "suite-sso"

# Device storage lives in the per-user data dir, not the config dir, so that
# `suite-sso cache clear` never touches configuration.
DEFAULT_STORAGE_DIR: str = os.path.realpath(user_data_dir(APP_NAME))

# ============================================================================
# Session Cookie
# ============================================================================

SESSION_COOKIE_NAME: str = "__session"

# 14 days, the longest lifetime identity providers issue for session cookies
SESSION_COOKIE_MAX_AGE_SECONDS: int = 14 * 24 * 60 * 60

SESSION_COOKIE_PATH: str = "/"
SESSION_COOKIE_SAMESITE: str = "Lax"
SECONDS_PER_DAY: int = 86400

# ============================================================================
# Session Timeout Record (client-local, independent of cookie expiry)
# ============================================================================

SESSION_EXPIRY_KEY: str = "__session_expiry"
SESSION_LAST_ACTIVITY_KEY: str = "__session_last_activity"

# needs_refresh once idle for more than this fraction of max-age
SESSION_REFRESH_RATIO: float = 0.75

# expiring_soon once fewer than this many seconds remain
SESSION_EXPIRING_SOON_SECONDS: int = 300

# ============================================================================
# Device Session Cache (non-production cross-port bridge)
# ============================================================================

DEVICE_SESSION_KEY: str = "__cross_app_session"
DEVICE_TIMESTAMP_KEY: str = "__cross_app_timestamp"
DEVICE_SESSION_TTL_SECONDS: int = 8 * 60 * 60

# ============================================================================
# Bootstrap
# ============================================================================

# Soft timeout: status is forced to COMPLETE, the request is abandoned
DEFAULT_BOOTSTRAP_TIMEOUT_SECONDS: float = 1.5
MIN_BOOTSTRAP_TIMEOUT_SECONDS: float = 0.1
MAX_BOOTSTRAP_TIMEOUT_SECONDS: float = 30.0

# Transport-level timeout for bridge, exchange and sign-out calls
DEFAULT_HTTP_TIMEOUT_SECONDS: float = 10.0

# Hub revalidation cadence for local development spokes
DEFAULT_REVALIDATE_INTERVAL_SECONDS: int = 30

# Expiry check and idle refresh cadence, every origin
DEFAULT_SESSION_CHECK_INTERVAL_SECONDS: int = 60

# ============================================================================
# Environment
# ============================================================================

DEFAULT_APEX_DOMAIN: str = "example.com"
DEFAULT_LOCAL_HUB_PORT: int = 3000
LOOPBACK_HOSTS: frozenset[str] = frozenset({"localhost", "127.0.0.1", "::1", "[::1]"})

# ============================================================================
# Endpoints
# ============================================================================

BOOTSTRAP_PATH: str = "/api/auth/fast-bootstrap"
HUB_SESSION_STATUS_PATH: str = "/api/auth/sso-status"
TOKEN_EXCHANGE_PATH: str = "/api/auth/custom-token"
SESSION_PATH: str = "/api/auth/session"
HUB_SIGN_OUT_PATH: str = SESSION_PATH
