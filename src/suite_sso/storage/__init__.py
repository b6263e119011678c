"""Device storage backends (localStorage equivalents)."""

from suite_sso.storage.device_storage import (
    DeviceStorage,
    FileStorage,
    KeychainStorage,
    MemoryStorage,
    create_device_storage,
    namespace_for_origin,
)

__all__ = [
    "DeviceStorage",
    "FileStorage",
    "KeychainStorage",
    "MemoryStorage",
    "create_device_storage",
    "namespace_for_origin",
]
