"""FileBackend — durable, single-file storage backend using aiosqlite."""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

import aiosqlite

from bot_storage._internal.clock import Clock, SystemClock
from bot_storage.exceptions import BackendUnavailableError, SchemaValidationError, StorageError
from bot_storage.records import CoreRecord, GuildRecord, Record, validate_values
from bot_storage.stores.base import StorageBackend

if TYPE_CHECKING:
    from bot_storage.config import StorageConfig

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

_CREATE_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS core (
        id         TEXT NOT NULL PRIMARY KEY,
        document   TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS guilds (
        guild_id   TEXT NOT NULL PRIMARY KEY,
        document   TEXT NOT NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
)

# record type -> (table, key column)
_TABLES: dict[type[Record], tuple[str, str]] = {
    CoreRecord: ("core", "id"),
    GuildRecord: ("guilds", "guild_id"),
}


class FileBackend(StorageBackend):
    """Persistent backend storing each record as a JSON document in one SQLite file.

    All writes are serialized through a single :class:`asyncio.Lock`, so
    concurrent ``init_*`` calls for the same key create one row.  The
    primary key on each table covers writers in other processes.

    Parameters:
        db_path: Path to the SQLite database file.  Use ``":memory:"``
                 for an in-memory database (useful for testing).
        clock:   Source of the ``created_at`` / ``updated_at`` bookkeeping
                 timestamps.
    """

    name = "file"

    def __init__(self, db_path: str = "bot_storage.db", *, clock: Clock | None = None) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None
        self._clock = clock or SystemClock()
        self._connect_lock = asyncio.Lock()
        self._write_lock = asyncio.Lock()

    @classmethod
    def from_config(cls, config: StorageConfig, *, clock: Clock | None = None) -> FileBackend:
        return cls(config.path, clock=clock)

    @property
    def path(self) -> str:
        return self._db_path

    @contextmanager
    def _errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.OperationalError as exc:
            raise BackendUnavailableError(self.name, operation, str(exc)) from exc
        except sqlite3.Error as exc:
            raise StorageError(operation, str(exc)) from exc

    async def _connect(self) -> aiosqlite.Connection:
        async with self._connect_lock:
            if self._db is None:
                with self._errors("connect"):
                    db = await aiosqlite.connect(self._db_path)
                try:
                    with self._errors("create_tables"):
                        for statement in _CREATE_TABLES:
                            await db.execute(statement)
                        await db.commit()
                except StorageError:
                    await db.close()
                    raise
                self._db = db
                logger.info("Opened file storage at %s", self._db_path)
        return self._db

    async def open(self) -> None:
        await self._connect()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    # ── row access ───────────────────────────────────────────

    async def _get(self, model: type[R], key: str, operation: str) -> R | None:
        table, column = _TABLES[model]
        db = await self._connect()
        with self._errors(operation):
            cursor = await db.execute(
                f"SELECT document FROM {table} WHERE {column} = ?",
                (key,),
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        try:
            document = json.loads(row[0])
        except json.JSONDecodeError as exc:
            raise SchemaValidationError(operation, f"stored {table} document is not JSON: {exc}") from exc
        record: R = model.from_document(document, operation)
        return record

    async def _insert_if_absent(self, record: Record, operation: str) -> bool:
        """Insert *record* unless its key exists.  Caller holds the write lock."""
        table, column = _TABLES[type(record)]
        now = self._clock.now().isoformat()
        db = await self._connect()
        with self._errors(operation):
            cursor = await db.execute(
                f"INSERT OR IGNORE INTO {table} ({column}, document, created_at, updated_at) "
                "VALUES (?, ?, ?, ?)",
                (record.key, json.dumps(record.to_document()), now, now),
            )
            await db.commit()
        return cursor.rowcount == 1

    async def _write(self, record: Record, operation: str) -> None:
        """Create or overwrite the row for *record*.  Caller holds the write lock."""
        table, column = _TABLES[type(record)]
        now = self._clock.now().isoformat()
        db = await self._connect()
        with self._errors(operation):
            await db.execute(
                f"INSERT INTO {table} ({column}, document, created_at, updated_at) "
                "VALUES (?, ?, ?, ?) "
                f"ON CONFLICT({column}) DO UPDATE SET "
                "document = excluded.document, updated_at = excluded.updated_at",
                (record.key, json.dumps(record.to_document()), now, now),
            )
            await db.commit()

    # ── shared operations ────────────────────────────────────

    async def _init(self, default: R, operation: str) -> R:
        model = type(default)
        async with self._write_lock:
            existing = await self._get(model, default.key, operation)
            if existing is not None:
                return existing
            if await self._insert_if_absent(default, operation):
                logger.debug("Created %s record %r", model.__name__, default.key)
                return default
            # another process inserted between our read and write
            stored = await self._get(model, default.key, operation)
        if stored is None:
            raise StorageError(operation, f"{model.__name__} {default.key!r} vanished after insert")
        return stored

    async def _replace_field(self, default: R, field: str, values: list[str], operation: str) -> R:
        model = type(default)
        name = model.resolve_array_field(field, operation)
        replacement = validate_values(values, operation, name)
        async with self._write_lock:
            current = await self._get(model, default.key, operation) or default
            updated = current.model_copy(update={name: replacement})
            await self._write(updated, operation)
        return updated

    # ── core record ──────────────────────────────────────────

    async def fetch_core(self) -> CoreRecord | None:
        return await self._get(CoreRecord, CoreRecord.defaults().key, "fetch_core")

    async def init_core(self) -> CoreRecord:
        return await self._init(CoreRecord.defaults(), "init_core")

    async def update_core_field(self, field: str, values: list[str]) -> CoreRecord:
        return await self._replace_field(CoreRecord.defaults(), field, values, "update_core_field")

    # ── guild records ────────────────────────────────────────

    async def fetch_guild(self, guild_id: str) -> GuildRecord | None:
        return await self._get(GuildRecord, guild_id, "fetch_guild")

    async def init_guild(self, guild_id: str) -> GuildRecord:
        return await self._init(GuildRecord.defaults(guild_id, "init_guild"), "init_guild")

    async def update_guild_field(self, guild_id: str, field: str, values: list[str]) -> GuildRecord:
        default = GuildRecord.defaults(guild_id, "update_guild_field")
        return await self._replace_field(default, field, values, "update_guild_field")

    async def save_guild_record(
        self,
        guild_id: str,
        record: GuildRecord | Mapping[str, Any],
    ) -> GuildRecord:
        operation = "save_guild_record"
        partial = GuildRecord.partial_document(guild_id, record, operation)
        async with self._write_lock:
            current = await self._get(GuildRecord, guild_id, operation)
            if current is None:
                current = GuildRecord.defaults(guild_id, operation)
            merged: GuildRecord = GuildRecord.from_document(
                {**current.to_document(), **partial}, operation
            )
            await self._write(merged, operation)
        return merged

    # ── full saves ───────────────────────────────────────────

    async def save_record(self, record: CoreRecord | GuildRecord) -> CoreRecord | GuildRecord:
        operation = "save_record"
        if not isinstance(record, (CoreRecord, GuildRecord)):
            raise SchemaValidationError(operation, f"cannot save {type(record).__name__}")
        checked = type(record).from_document(record.to_document(), operation)
        async with self._write_lock:
            await self._write(checked, operation)
        return checked

