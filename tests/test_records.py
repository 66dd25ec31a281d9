"""Tests for the record schemas."""

import pytest
from pydantic import ValidationError

from bot_storage import CORE_ID, CoreRecord, GuildRecord, SchemaValidationError
from bot_storage.records import validate_values


class TestCoreRecord:
    def test_defaults(self):
        core = CoreRecord.defaults()
        assert core.id == CORE_ID == "1"
        assert core.prefix == []
        assert core.banned_users == []
        assert core.banned_guilds == []

    def test_document_uses_aliases(self):
        doc = CoreRecord(banned_users=["42"]).to_document()
        assert doc == {"id": "1", "prefix": [], "bannedUsers": ["42"], "bannedGuilds": []}

    def test_id_is_fixed(self):
        with pytest.raises(ValidationError):
            CoreRecord(id="2")

    def test_defaults_do_not_share_lists(self):
        a = CoreRecord.defaults()
        b = CoreRecord.defaults()
        a.banned_users.append("1")
        assert b.banned_users == []


class TestGuildRecord:
    def test_defaults(self):
        guild = GuildRecord.defaults("123")
        assert guild.guild_id == "123"
        for name in GuildRecord.array_fields:
            assert getattr(guild, name) == []
        assert guild.mod_only is False

    def test_populate_by_alias_and_ignore_bookkeeping(self):
        guild = GuildRecord.from_document(
            {"_id": "abc", "guildID": "123", "ignoredRoles": ["r"], "createdAt": "2024-01-01"},
            "test",
        )
        assert guild.guild_id == "123"
        assert guild.ignored_roles == ["r"]
        assert "_id" not in guild.to_document()
        assert "createdAt" not in guild.to_document()

    def test_guild_id_immutable(self):
        guild = GuildRecord.defaults("123")
        with pytest.raises(ValidationError):
            guild.guild_id = "456"

    def test_assignment_is_validated(self):
        guild = GuildRecord.defaults("123")
        with pytest.raises(ValidationError):
            guild.prefix = [1, 2]

    def test_empty_guild_id_rejected(self):
        with pytest.raises(SchemaValidationError):
            GuildRecord.defaults("")

    def test_wrong_field_type_raises_schema_error(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            GuildRecord.from_document({"guildID": "1", "modules": "music"}, "load")
        assert exc_info.value.operation == "load"


class TestResolveArrayField:
    def test_attribute_name(self):
        assert CoreRecord.resolve_array_field("banned_guilds", "op") == "banned_guilds"

    def test_alias(self):
        assert CoreRecord.resolve_array_field("bannedGuilds", "op") == "banned_guilds"
        assert GuildRecord.resolve_array_field("ignoredChannels", "op") == "ignored_channels"

    def test_non_array_field_rejected(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            GuildRecord.resolve_array_field("mod_only", "update_guild_field")
        assert exc_info.value.field == "mod_only"

    def test_key_field_rejected(self):
        with pytest.raises(SchemaValidationError):
            GuildRecord.resolve_array_field("guildID", "update_guild_field")

    def test_unknown_field_rejected(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            CoreRecord.resolve_array_field("owners", "update_core_field")
        assert "owners" in str(exc_info.value)


class TestValidateValues:
    def test_accepts_strings(self):
        assert validate_values(["!", "?"], "op", "prefix") == ["!", "?"]

    def test_accepts_tuple_and_returns_new_list(self):
        values = ("a", "b")
        result = validate_values(values, "op", "modules")
        assert result == ["a", "b"]
        assert isinstance(result, list)

    def test_rejects_bare_string(self):
        with pytest.raises(SchemaValidationError):
            validate_values("!?", "op", "prefix")

    def test_rejects_non_string_items(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_values(["!", 3], "op", "prefix")
        assert exc_info.value.field == "prefix"


class TestPartialDocument:
    def test_mapping_keeps_only_given_fields(self):
        doc = GuildRecord.partial_document("g1", {"modules": ["music"], "modOnly": True}, "save")
        assert doc == {"guildID": "g1", "modules": ["music"], "modOnly": True}

    def test_mapping_key_is_overridden(self):
        doc = GuildRecord.partial_document("g1", {"guildID": "other", "prefix": ["?"]}, "save")
        assert doc["guildID"] == "g1"

    def test_full_record_yields_every_field(self):
        record = GuildRecord(guild_id="g1", prefix=["!"])
        doc = GuildRecord.partial_document("g1", record, "save")
        assert doc == record.to_document()
        assert doc["modules"] == []
        assert doc["modOnly"] is False

    def test_invalid_mapping(self):
        with pytest.raises(SchemaValidationError):
            GuildRecord.partial_document("g1", {"events": [None]}, "save")

    def test_invalid_type(self):
        with pytest.raises(SchemaValidationError):
            GuildRecord.partial_document("g1", ["prefix"], "save")  # type: ignore[arg-type]


@pytest.mark.parametrize("document", [5, [1, 2], None, "guild"])
def test_from_document_rejects_non_mapping(document):
    with pytest.raises(SchemaValidationError) as exc_info:
        GuildRecord.from_document(document, "load")
    assert exc_info.value.operation == "load"
