"""MongoBackend — remote document storage backend using motor."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

try:
    from motor.motor_asyncio import AsyncIOMotorClient
    from pymongo import ASCENDING, ReturnDocument
    from pymongo.errors import ConnectionFailure, PyMongoError
except ImportError as exc:
    raise ImportError(
        "MongoBackend requires the 'motor' package. "
        "Install it with: pip install bot-storage[mongo]"
    ) from exc

from bot_storage._internal.clock import Clock, SystemClock
from bot_storage.exceptions import BackendUnavailableError, SchemaValidationError, StorageError
from bot_storage.records import CoreRecord, GuildRecord, Record, validate_values
from bot_storage.stores.base import StorageBackend

if TYPE_CHECKING:
    from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

    from bot_storage.config import StorageConfig

logger = logging.getLogger(__name__)

CORE_COLLECTION = "core"
GUILD_COLLECTION = "guilds"


class MongoBackend(StorageBackend):
    """Backend storing records in a MongoDB database.

    Every write is a single ``find_one_and_update`` with ``upsert=True``;
    defaults are applied with ``$setOnInsert``.  Together with the unique
    indexes created in :meth:`open`, the server guarantees at most one
    document per key even across processes.

    Parameters:
        database: Motor database handle.
        client:   Owning client, closed by :meth:`close` when given.
        clock:    Source of the ``createdAt`` / ``updatedAt`` bookkeeping
                  fields.
    """

    name = "mongodb"

    def __init__(
        self,
        database: AsyncIOMotorDatabase,
        *,
        client: AsyncIOMotorClient | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._client = client
        self._database = database
        self._core: AsyncIOMotorCollection = database[CORE_COLLECTION]
        self._guilds: AsyncIOMotorCollection = database[GUILD_COLLECTION]
        self._clock = clock or SystemClock()

    @classmethod
    async def connect(cls, config: StorageConfig, *, clock: Clock | None = None) -> MongoBackend:
        """Create a client from *config*, check the server is reachable and register indexes.

        Raises:
            BackendUnavailableError: If the URI is invalid, the server cannot
                be reached, or index creation fails.
        """
        try:
            client: AsyncIOMotorClient = AsyncIOMotorClient(
                config.mongo_uri,
                serverSelectionTimeoutMS=config.server_selection_timeout_ms,
            )
        except PyMongoError as exc:
            raise BackendUnavailableError(cls.name, "connect", str(exc)) from exc

        backend = cls(client[config.database], client=client, clock=clock)
        try:
            await backend.open()
        except BackendUnavailableError:
            await backend.close()
            raise
        except StorageError as exc:
            await backend.close()
            raise BackendUnavailableError(cls.name, "connect", str(exc)) from exc
        logger.info("Connected to MongoDB database %r", config.database)
        return backend

    async def open(self) -> None:
        await self._call("ping", self._database.command("ping"))
        await self._call("create_index", self._core.create_index([("id", ASCENDING)], unique=True))
        await self._call(
            "create_index",
            self._guilds.create_index([("guildID", ASCENDING)], unique=True),
        )

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    async def _call(self, operation: str, awaitable: Any) -> Any:
        try:
            return await awaitable
        except ConnectionFailure as exc:
            raise BackendUnavailableError(self.name, operation, str(exc)) from exc
        except PyMongoError as exc:
            raise StorageError(operation, str(exc)) from exc

    # ── shared operations ────────────────────────────────────

    def _collection(self, model: type[Record]) -> AsyncIOMotorCollection:
        return self._core if model is CoreRecord else self._guilds

    async def _fetch(self, model: type[Record], key: str, operation: str) -> Any:
        document = await self._call(
            operation,
            self._collection(model).find_one({model.key_alias(): key}),
        )
        if document is None:
            return None
        return model.from_document(document, operation)

    async def _upsert(
        self,
        default: Record,
        assigned: Mapping[str, Any],
        operation: str,
    ) -> Any:
        """Set *assigned* on the record keyed like *default*, inserting defaults if absent.

        One round trip: ``$set`` carries the assigned fields, ``$setOnInsert``
        carries every default the ``$set`` does not already cover.
        """
        model = type(default)
        now = self._clock.now()
        on_insert = {k: v for k, v in default.to_document().items() if k not in assigned}
        on_insert["createdAt"] = now
        update: dict[str, Any] = {"$setOnInsert": on_insert}
        if assigned:
            update["$set"] = {**assigned, "updatedAt": now}
        else:
            on_insert["updatedAt"] = now

        document = await self._call(
            operation,
            self._collection(model).find_one_and_update(
                {model.key_alias(): default.key},
                update,
                upsert=True,
                return_document=ReturnDocument.AFTER,
            ),
        )
        if document is None:
            raise StorageError(operation, f"upsert of {model.__name__} {default.key!r} returned nothing")
        return model.from_document(document, operation)

    async def _replace_field(self, default: Record, field: str, values: list[str], operation: str) -> Any:
        model = type(default)
        name = model.resolve_array_field(field, operation)
        replacement = validate_values(values, operation, name)
        return await self._upsert(default, {model.alias(name): replacement}, operation)

    # ── core record ──────────────────────────────────────────

    async def fetch_core(self) -> CoreRecord | None:
        record: CoreRecord | None = await self._fetch(CoreRecord, CoreRecord.defaults().key, "fetch_core")
        return record

    async def init_core(self) -> CoreRecord:
        record: CoreRecord = await self._upsert(CoreRecord.defaults(), {}, "init_core")
        return record

    async def update_core_field(self, field: str, values: list[str]) -> CoreRecord:
        record: CoreRecord = await self._replace_field(
            CoreRecord.defaults(), field, values, "update_core_field"
        )
        return record

    # ── guild records ────────────────────────────────────────

    async def fetch_guild(self, guild_id: str) -> GuildRecord | None:
        record: GuildRecord | None = await self._fetch(GuildRecord, guild_id, "fetch_guild")
        return record

    async def init_guild(self, guild_id: str) -> GuildRecord:
        default = GuildRecord.defaults(guild_id, "init_guild")
        record: GuildRecord = await self._upsert(default, {}, "init_guild")
        return record

    async def update_guild_field(self, guild_id: str, field: str, values: list[str]) -> GuildRecord:
        default = GuildRecord.defaults(guild_id, "update_guild_field")
        record: GuildRecord = await self._replace_field(default, field, values, "update_guild_field")
        return record

    async def save_guild_record(
        self,
        guild_id: str,
        record: GuildRecord | Mapping[str, Any],
    ) -> GuildRecord:
        operation = "save_guild_record"
        partial = GuildRecord.partial_document(guild_id, record, operation)
        partial.pop("guildID")
        saved: GuildRecord = await self._upsert(GuildRecord.defaults(guild_id, operation), partial, operation)
        return saved

    # ── full saves ───────────────────────────────────────────

    async def save_record(self, record: CoreRecord | GuildRecord) -> CoreRecord | GuildRecord:
        operation = "save_record"
        if not isinstance(record, (CoreRecord, GuildRecord)):
            raise SchemaValidationError(operation, f"cannot save {type(record).__name__}")
        model = type(record)
        document = model.from_document(record.to_document(), operation).to_document()
        document.pop(model.key_alias())
        saved: CoreRecord | GuildRecord = await self._upsert(
            model.from_document({model.key_alias(): record.key}, operation),
            document,
            operation,
        )
        return saved
