"""Record schemas shared by every storage backend.

Two document shapes exist: the singleton :class:`CoreRecord` (framework-wide
settings, always keyed by :data:`CORE_ID`) and one :class:`GuildRecord` per
guild.  Python attributes are snake_case; stored documents use the camelCase
aliases so a document written by one backend reads back unchanged from
another.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from bot_storage.exceptions import SchemaValidationError

CORE_ID = "1"

CORE_ARRAY_FIELDS: tuple[str, ...] = ("banned_users", "banned_guilds", "prefix")

GUILD_ARRAY_FIELDS: tuple[str, ...] = (
    "prefix",
    "modules",
    "commands",
    "events",
    "ignored_users",
    "ignored_roles",
    "ignored_channels",
    "mod_roles",
    "mod_users",
)

_STRING_LIST: TypeAdapter[list[str]] = TypeAdapter(list[str])


class Record(BaseModel):
    """Base for stored records.

    Unknown keys are ignored so backend bookkeeping (``_id``, timestamps)
    never leaks into a record.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", validate_assignment=True)

    key_field: ClassVar[str]
    array_fields: ClassVar[tuple[str, ...]]

    @property
    def key(self) -> str:
        """Value of the record's unique key."""
        return getattr(self, self.key_field)

    @classmethod
    def alias(cls, name: str) -> str:
        """Return the stored document key for attribute *name*."""
        return cls.model_fields[name].alias or name

    @classmethod
    def key_alias(cls) -> str:
        return cls.alias(cls.key_field)

    @classmethod
    def resolve_array_field(cls, field: str, operation: str) -> str:
        """Map *field* (attribute name or stored alias) to an updatable attribute name."""
        for name in cls.array_fields:
            if field == name or field == cls.alias(name):
                return name
        raise SchemaValidationError(
            operation,
            f"'{field}' is not an updatable field of {cls.__name__}; "
            f"expected one of: {', '.join(cls.array_fields)}",
            field=field,
        )

    @classmethod
    def from_document(cls, document: Mapping[str, Any], operation: str) -> Any:
        if not isinstance(document, Mapping):
            raise SchemaValidationError(
                operation,
                f"expected a {cls.__name__} document, got {type(document).__name__}",
            )
        try:
            return cls.model_validate(dict(document))
        except ValidationError as exc:
            raise SchemaValidationError(operation, str(exc)) from exc

    def to_document(self, *, exclude_unset: bool = False) -> dict[str, Any]:
        """Return the alias-keyed, JSON-compatible document for this record."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=exclude_unset)


class CoreRecord(Record):
    """Framework-wide configuration.  Exactly zero or one exists."""

    key_field: ClassVar[str] = "id"
    array_fields: ClassVar[tuple[str, ...]] = CORE_ARRAY_FIELDS

    id: Literal["1"] = Field(default=CORE_ID, frozen=True)
    prefix: list[str] = Field(default_factory=list)
    banned_users: list[str] = Field(default_factory=list, alias="bannedUsers")
    banned_guilds: list[str] = Field(default_factory=list, alias="bannedGuilds")

    @classmethod
    def defaults(cls) -> CoreRecord:
        return cls()


class GuildRecord(Record):
    """Per-guild configuration, keyed by ``guildID``."""

    key_field: ClassVar[str] = "guild_id"
    array_fields: ClassVar[tuple[str, ...]] = GUILD_ARRAY_FIELDS

    guild_id: str = Field(alias="guildID", min_length=1, frozen=True)
    prefix: list[str] = Field(default_factory=list)
    modules: list[str] = Field(default_factory=list)
    commands: list[str] = Field(default_factory=list)
    events: list[str] = Field(default_factory=list)
    ignored_users: list[str] = Field(default_factory=list, alias="ignoredUsers")
    ignored_roles: list[str] = Field(default_factory=list, alias="ignoredRoles")
    ignored_channels: list[str] = Field(default_factory=list, alias="ignoredChannels")
    mod_only: bool = Field(default=False, alias="modOnly")
    mod_roles: list[str] = Field(default_factory=list, alias="modRoles")
    mod_users: list[str] = Field(default_factory=list, alias="modUsers")

    @classmethod
    def defaults(cls, guild_id: str, operation: str = "defaults") -> GuildRecord:
        """Return a record for *guild_id* with every other field at its default."""
        record: GuildRecord = cls.from_document({"guildID": guild_id}, operation)
        return record

    @classmethod
    def partial_document(
        cls,
        guild_id: str,
        record: GuildRecord | Mapping[str, Any],
        operation: str,
    ) -> dict[str, Any]:
        """Validate *record* and return the document fields to write.

        A :class:`GuildRecord` is a whole record and yields every field.  A
        mapping yields only the keys it carries, so the caller can keep
        stored values (or apply defaults on insert).  The key is always
        rewritten to *guild_id*.
        """
        if isinstance(record, GuildRecord):
            document = record.to_document()
        elif isinstance(record, Mapping):
            data = {k: v for k, v in record.items() if k not in ("guild_id", "guildID")}
            try:
                parsed = cls.model_validate({**data, "guildID": guild_id})
            except ValidationError as exc:
                raise SchemaValidationError(operation, str(exc)) from exc
            document = parsed.to_document(exclude_unset=True)
        else:
            raise SchemaValidationError(
                operation,
                f"expected GuildRecord or mapping, got {type(record).__name__}",
            )
        document["guildID"] = guild_id
        return document


def validate_values(values: Any, operation: str, field: str) -> list[str]:
    """Return *values* as a fresh ``list[str]`` or raise :class:`SchemaValidationError`."""
    try:
        return _STRING_LIST.validate_python(values)
    except ValidationError as exc:
        raise SchemaValidationError(operation, str(exc), field=field) from exc
