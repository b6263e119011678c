"""Tests for device storage backends and backend selection."""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from suite_sso.config import StorageConfig
from suite_sso.exceptions import StorageError
from suite_sso.storage.device_storage import (
    FileStorage,
    KeychainStorage,
    MemoryStorage,
    create_device_storage,
    namespace_for_origin,
)


class TestNamespace:
    def test_origin_namespace(self):
        assert namespace_for_origin("http://localhost:3001") == "http_localhost_3001"

    def test_distinct_ports_distinct_namespaces(self):
        assert namespace_for_origin("http://localhost:3001") != namespace_for_origin("http://localhost:3002")


class TestMemoryStorage:
    def test_set_get_delete(self):
        storage = MemoryStorage()

        storage.set("k", "v")
        assert storage.get("k") == "v"

        storage.delete("k")
        assert storage.get("k") is None

    def test_delete_missing_is_noop(self):
        MemoryStorage().delete("missing")


class TestFileStorage:
    """Tests for the JSON file backend."""

    def test_round_trip_persists_to_disk(self, tmp_path: Path):
        storage = FileStorage("http_localhost_3001", tmp_path)

        storage.set("__cross_app_session", "abc")

        assert json.loads(storage.path.read_text()) == {"__cross_app_session": "abc"}
        assert FileStorage("http_localhost_3001", tmp_path).get("__cross_app_session") == "abc"

    def test_origins_do_not_share_files(self, tmp_path: Path):
        FileStorage("http_localhost_3001", tmp_path).set("k", "one")

        assert FileStorage("http_localhost_3002", tmp_path).get("k") is None

    def test_delete(self, tmp_path: Path):
        storage = FileStorage("ns", tmp_path)
        storage.set("a", "1")
        storage.set("b", "2")

        storage.delete("a")

        assert storage.get("a") is None
        assert storage.get("b") == "2"

    def test_missing_file_reads_empty(self, tmp_path: Path):
        assert FileStorage("ns", tmp_path).get("k") is None

    def test_corrupt_file_raises_storage_error(self, tmp_path: Path):
        storage = FileStorage("ns", tmp_path)
        storage.path.write_text("{not json")

        with pytest.raises(StorageError):
            storage.get("k")

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_is_owner_only(self, tmp_path: Path):
        storage = FileStorage("ns", tmp_path)
        storage.set("k", "v")

        assert storage.path.stat().st_mode & 0o777 == 0o600


class TestKeychainStorage:
    """Tests for the keyring backend (keyring mocked)."""

    def test_uses_origin_scoped_service(self):
        with patch("keyring.set_password") as set_password:
            KeychainStorage("http_localhost_3001").set("k", "v")

        set_password.assert_called_once_with("suite-sso:http_localhost_3001", "k", "v")

    def test_get_wraps_backend_errors(self):
        with patch("keyring.get_password", side_effect=RuntimeError("dbus down")):
            with pytest.raises(StorageError, match="keychain"):
                KeychainStorage("ns").get("k")

    def test_delete_missing_is_noop(self):
        from keyring.errors import PasswordDeleteError

        with patch("keyring.delete_password", side_effect=PasswordDeleteError("missing")):
            KeychainStorage("ns").delete("k")


class TestCreateDeviceStorage:
    """Tests for backend selection."""

    def test_memory(self):
        assert isinstance(create_device_storage(StorageConfig(backend="memory"), "http://localhost:3001"), MemoryStorage)

    def test_file_uses_configured_path(self, tmp_path: Path):
        storage = create_device_storage(StorageConfig(backend="file", path=str(tmp_path)), "http://localhost:3001")

        assert isinstance(storage, FileStorage)
        assert storage.path == tmp_path / "http_localhost_3001.json"

    def test_auto_prefers_keychain(self):
        with patch("suite_sso.storage.keyring_utils.is_keyring_available", return_value=True):
            storage = create_device_storage(StorageConfig(), "http://localhost:3001")

        assert isinstance(storage, KeychainStorage)

    def test_auto_falls_back_to_file(self, tmp_path: Path):
        with patch("suite_sso.storage.keyring_utils.is_keyring_available", return_value=False):
            storage = create_device_storage(StorageConfig(path=str(tmp_path)), "http://localhost:3001")

        assert isinstance(storage, FileStorage)


class TestKeyringAvailability:
    def test_fail_backend_is_unavailable(self):
        from keyring.backends.fail import Keyring as FailKeyring

        from suite_sso.storage.keyring_utils import is_keyring_available

        with patch("keyring.get_keyring", return_value=FailKeyring()):
            assert is_keyring_available() is False

    def test_working_backend_is_available(self):
        from suite_sso.storage.keyring_utils import is_keyring_available

        backend = MagicMock()
        with (
            patch("keyring.get_keyring", return_value=backend),
            patch("keyring.set_password"),
            patch("keyring.get_password", return_value="ok"),
            patch("keyring.delete_password"),
        ):
            assert is_keyring_available() is True
