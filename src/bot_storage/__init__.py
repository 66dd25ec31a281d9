"""bot_storage — backend-agnostic persistence for bot configuration records.

One core record holds framework-wide settings; one guild record holds each
guild's settings.  :func:`select_backend` picks the file backend or the
MongoDB backend once at startup; everything else talks to the returned
:class:`StorageBackend`.
"""

from bot_storage.config import StorageConfig, StorageKind
from bot_storage.exceptions import (
    BackendUnavailableError,
    SchemaValidationError,
    StorageError,
)
from bot_storage.records import (
    CORE_ARRAY_FIELDS,
    CORE_ID,
    GUILD_ARRAY_FIELDS,
    CoreRecord,
    GuildRecord,
)
from bot_storage.result import ConstructionResult
from bot_storage.selector import select_backend, try_remote
from bot_storage.stores import FileBackend, StorageBackend

__all__ = [
    "CORE_ARRAY_FIELDS",
    "CORE_ID",
    "GUILD_ARRAY_FIELDS",
    "BackendUnavailableError",
    "ConstructionResult",
    "CoreRecord",
    "FileBackend",
    "GuildRecord",
    "SchemaValidationError",
    "StorageBackend",
    "StorageConfig",
    "StorageError",
    "StorageKind",
    "select_backend",
    "try_remote",
]
