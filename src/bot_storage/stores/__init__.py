"""Storage backends for bot configuration records."""

from bot_storage.stores.base import StorageBackend
from bot_storage.stores.file import FileBackend

__all__ = ["FileBackend", "StorageBackend"]
