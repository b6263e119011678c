"""Origin-scoped key/value storage on the local device.

Plays the role browser localStorage plays for a web app: small string values,
visible to every process of the same application origin on this device, not
shared between origins.

Backends:
1. KeychainStorage: OS keychain via keyring (session values are credentials)
2. FileStorage: one JSON file per origin in the user data dir, owner-only
3. MemoryStorage: process-local, for tests and ephemeral runs

No locking: concurrent writers are last-writer-wins.
"""

from __future__ import annotations

__all__ = [
    "DeviceStorage",
    "FileStorage",
    "KeychainStorage",
    "MemoryStorage",
    "create_device_storage",
    "namespace_for_origin",
]

import json
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from suite_sso.constants import APP_NAME, DEFAULT_STORAGE_DIR
from suite_sso.exceptions import StorageError
from suite_sso.utils.file_helpers import write_json_atomic

if TYPE_CHECKING:
    from suite_sso.config import StorageConfig


def namespace_for_origin(origin: str) -> str:
    """Filesystem- and keyring-safe namespace for an origin URL.

    >>> namespace_for_origin("http://localhost:3001")
    'http_localhost_3001'
    """
    return re.sub(r"[^a-zA-Z0-9]+", "_", origin).strip("_").lower()


class DeviceStorage(ABC):
    """Abstract string key/value store scoped to one origin."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the value for ``key``, or None if unset.

        Raises:
            StorageError: If the backend cannot be read.
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``.

        Raises:
            StorageError: If the backend cannot be written.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``. Missing keys are not an error.

        Raises:
            StorageError: If the backend cannot be written.
        """

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable backend/location string for status output."""


class MemoryStorage(DeviceStorage):
    """Dict-backed storage; shared only by objects holding the same instance."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    @property
    def description(self) -> str:
        return "memory"

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class FileStorage(DeviceStorage):
    """One JSON object per origin at ``<directory>/<namespace>.json``.

    Every operation re-reads the file so separate processes for the same
    origin observe each other's writes.
    """

    def __init__(self, namespace: str, directory: Path | None = None) -> None:
        base = directory or Path(DEFAULT_STORAGE_DIR)
        self._path = base / f"{namespace}.json"

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read device storage {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Device storage {self._path} is not a JSON object")
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        try:
            write_json_atomic(self._path, data)
        except OSError as e:
            raise StorageError(f"Failed to write device storage {self._path}: {e}") from e

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key not in data:
            return
        del data[key]
        try:
            write_json_atomic(self._path, data)
        except OSError as e:
            raise StorageError(f"Failed to write device storage {self._path}: {e}") from e

    @property
    def description(self) -> str:
        return f"file:{self._path}"


class KeychainStorage(DeviceStorage):
    """OS keychain storage; service ``suite-sso:<namespace>``, username = key.

    - macOS: Keychain
    - Windows: Credential Locker
    - Linux: Secret Service (GNOME Keyring, KDE Wallet)
    """

    def __init__(self, namespace: str) -> None:
        self._service = f"{APP_NAME}:{namespace}"

    def get(self, key: str) -> str | None:
        import keyring

        try:
            return keyring.get_password(self._service, key)
        except Exception as e:
            raise StorageError(f"Failed to access keychain: {e}") from e

    def set(self, key: str, value: str) -> None:
        import keyring

        try:
            keyring.set_password(self._service, key, value)
        except Exception as e:
            raise StorageError(f"Failed to save to keychain: {e}") from e

    def delete(self, key: str) -> None:
        import keyring
        from keyring.errors import PasswordDeleteError

        try:
            keyring.delete_password(self._service, key)
        except PasswordDeleteError:
            pass  # already absent
        except Exception as e:
            raise StorageError(f"Failed to delete from keychain: {e}") from e

    @property
    def description(self) -> str:
        return f"keychain:{self._service}"


def create_device_storage(config: "StorageConfig", origin: str) -> DeviceStorage:
    """Create the configured backend for ``origin``.

    "auto" prefers the keychain and falls back to a file when no keyring
    backend works (headless Linux, CI containers).
    """
    from suite_sso.storage.keyring_utils import is_keyring_available

    namespace = namespace_for_origin(origin)
    directory = Path(config.path).expanduser() if config.path else None

    if config.backend == "memory":
        return MemoryStorage()
    if config.backend == "file":
        return FileStorage(namespace, directory)
    if config.backend == "keychain":
        return KeychainStorage(namespace)

    if is_keyring_available():
        return KeychainStorage(namespace)
    return FileStorage(namespace, directory)
