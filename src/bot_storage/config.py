"""Storage configuration consumed by the backend selector.

Values may come from keyword arguments, ``BOT_STORAGE_*`` environment
variables, or a ``.env`` file.  The application builds one
:class:`StorageConfig` at startup and passes it to
:func:`bot_storage.selector.select_backend`.
"""

from __future__ import annotations

from enum import IntEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageKind(IntEnum):
    """Configuration discriminant selecting the storage backend."""

    FILE = 0
    MONGO = 1


class StorageConfig(BaseSettings):
    """Storage settings.

    Attributes:
        db: Backend discriminant (0 = file, 1 = MongoDB).  Unrecognized
            values fall back to the file backend.
        path: SQLite file used by the file backend (``":memory:"`` for tests).
        mongo_uri: MongoDB connection string, credentials included.
        database: MongoDB database name.
        server_selection_timeout_ms: How long the MongoDB driver waits for a
            reachable server before giving up.
    """

    model_config = SettingsConfigDict(env_prefix="BOT_STORAGE_", env_file=".env", extra="ignore")

    db: int = Field(default=StorageKind.FILE, description="Backend discriminant")
    path: str = Field(default="bot_storage.db", description="SQLite database file")
    mongo_uri: str = Field(default="mongodb://localhost:27017", description="MongoDB connection string")
    database: str = Field(default="bot", min_length=1, description="MongoDB database name")
    server_selection_timeout_ms: int = Field(default=5000, gt=0)

    @property
    def kind(self) -> StorageKind | None:
        """The selected :class:`StorageKind`, or ``None`` if ``db`` is unrecognized."""
        try:
            return StorageKind(self.db)
        except ValueError:
            return None
