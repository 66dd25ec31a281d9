"""StorageBackend — the record contract every backend implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from types import TracebackType

    from bot_storage.records import CoreRecord, GuildRecord


class StorageBackend(ABC):
    """Abstract base for all storage backends.

    Backends persist exactly two kinds of record: the singleton
    :class:`~bot_storage.records.CoreRecord` and one
    :class:`~bot_storage.records.GuildRecord` per guild.  Every method is a
    round trip to storage; nothing is cached.

    ``fetch_*`` never creates.  ``init_*`` and ``update_*`` create missing
    records with schema defaults, atomically per key.  Array updates replace
    the whole field.  Saves are blind overwrites of the fields they carry.
    """

    name: str = "base"

    # ── lifecycle ────────────────────────────────────────────

    async def open(self) -> None:
        """Make the backend ready for use.  Default is a no-op."""

    async def close(self) -> None:
        """Release connections.  Default is a no-op."""

    async def __aenter__(self) -> StorageBackend:
        await self.open()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ── core record ──────────────────────────────────────────

    @abstractmethod
    async def fetch_core(self) -> CoreRecord | None:
        """Return the core record, or ``None`` if it was never created."""
        ...

    @abstractmethod
    async def init_core(self) -> CoreRecord:
        """Return the core record, creating it with defaults if absent."""
        ...

    @abstractmethod
    async def update_core_field(self, field: str, values: list[str]) -> CoreRecord:
        """Replace one array field of the core record, creating it if absent."""
        ...

    # ── guild records ────────────────────────────────────────

    @abstractmethod
    async def fetch_guild(self, guild_id: str) -> GuildRecord | None:
        """Return the guild's record, or ``None`` if it was never created."""
        ...

    @abstractmethod
    async def init_guild(self, guild_id: str) -> GuildRecord:
        """Return the guild's record, creating it with defaults if absent."""
        ...

    @abstractmethod
    async def update_guild_field(self, guild_id: str, field: str, values: list[str]) -> GuildRecord:
        """Replace one array field of a guild record, creating it if absent."""
        ...

    @abstractmethod
    async def save_guild_record(
        self,
        guild_id: str,
        record: GuildRecord | Mapping[str, Any],
    ) -> GuildRecord:
        """Write every field carried by *record* under *guild_id*.

        Missing fields keep their stored values, or take schema defaults
        when the record is created.
        """
        ...

    # ── full saves ───────────────────────────────────────────

    @abstractmethod
    async def save_record(self, record: CoreRecord | GuildRecord) -> CoreRecord | GuildRecord:
        """Write back every field of a previously fetched record."""
        ...
