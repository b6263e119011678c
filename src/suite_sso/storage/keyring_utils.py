"""Keyring availability probe."""

from __future__ import annotations

__all__ = ["is_keyring_available"]

from suite_sso.constants import APP_NAME
from suite_sso.telemetry.system_logger import get_system_logger


def is_keyring_available(test_service_suffix: str = "probe") -> bool:
    """Check that a real keyring backend can store and return a secret.

    Runs a write/read/delete cycle under ``{APP_NAME}-{suffix}``. Any error,
    including DBus failures on headless Linux, means "unavailable".
    """
    logger = get_system_logger()

    try:
        import keyring
        from keyring.backends.fail import Keyring as FailKeyring
        from keyring.errors import KeyringError
    except ImportError as e:
        logger.debug({"event": "keyring_unavailable", "reason": "import_error", "error": str(e)})
        return False

    backend = keyring.get_keyring()
    if isinstance(backend, FailKeyring):
        logger.debug(
            {
                "event": "keyring_unavailable",
                "reason": "fail_backend",
                "message": "No usable keyring backend found",
            }
        )
        return False

    service = f"{APP_NAME}-{test_service_suffix}"
    try:
        keyring.set_password(service, "availability-check", "ok")
        result = keyring.get_password(service, "availability-check")
        keyring.delete_password(service, "availability-check")
    except KeyringError as e:
        logger.debug(
            {
                "event": "keyring_unavailable",
                "reason": "keyring_error",
                "error": str(e),
                "error_type": type(e).__name__,
            }
        )
        return False
    except Exception as e:
        logger.debug(
            {
                "event": "keyring_unavailable",
                "reason": "unexpected_error",
                "error": str(e),
                "error_type": type(e).__name__,
            }
        )
        return False

    return result == "ok"
