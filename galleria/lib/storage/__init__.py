"""Pluggable remote object stores for uploaded images."""

from galleria.lib.storage.base import StorageBackend, StoredObject
from galleria.lib.storage.local import LocalStorageBackend
from galleria.lib.storage.manager import StorageManager, create_storage_backend

__all__ = [
    "LocalStorageBackend",
    "StorageBackend",
    "StorageManager",
    "StoredObject",
    "create_storage_backend",
]
