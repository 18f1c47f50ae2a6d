"""Tests for commandeer/database/guild_settings.py"""

import pytest

from commandeer.commands import CommandGroup, command
from commandeer.database import DatabaseManager, GuildSettingsStore

GUILD_ID = 123456789
OTHER_GUILD_ID = 987654321


@pytest.fixture
def ping(registry):
    @command("ping", "util", "Replies with pong")
    async def ping_command(ctx, args):
        return None

    return registry.register_command(ping_command)


@pytest.fixture
def guarded(registry):
    @command("help", "util", "Shows help", guarded=True)
    async def help_command(ctx, args):
        return None

    return registry.register_command(help_command)


@pytest.fixture
async def db_manager():
    manager = DatabaseManager("sqlite:///:memory:")
    await manager.create_tables()
    yield manager
    await manager.close()


class TestPrefixes:
    """Test per-guild prefix overrides."""

    @pytest.mark.asyncio
    async def test_default_and_override(self, guild_settings):
        assert guild_settings.get_prefix(GUILD_ID, "!") == "!"

        await guild_settings.set_prefix(GUILD_ID, "?")

        assert guild_settings.get_prefix(GUILD_ID, "!") == "?"
        assert guild_settings.get_prefix(OTHER_GUILD_ID, "!") == "!"

    @pytest.mark.asyncio
    async def test_empty_prefix_kept(self, guild_settings):
        await guild_settings.set_prefix(GUILD_ID, "")
        assert guild_settings.get_prefix(GUILD_ID, "!") == ""

    @pytest.mark.asyncio
    async def test_none_restores_default(self, guild_settings):
        await guild_settings.set_prefix(GUILD_ID, "?")
        await guild_settings.set_prefix(GUILD_ID, None)

        assert guild_settings.get_prefix(GUILD_ID, "!") == "!"


class TestEnabledState:
    """Test enabling and disabling commands and groups."""

    @pytest.mark.asyncio
    async def test_disable_command_in_guild(self, guild_settings, ping, emitted):
        await guild_settings.set_command_enabled(GUILD_ID, ping, False)

        assert guild_settings.is_command_enabled(GUILD_ID, ping) is False
        assert guild_settings.is_command_enabled(OTHER_GUILD_ID, ping) is True
        assert emitted == [("command_status_change", (GUILD_ID, ping, False))]

    @pytest.mark.asyncio
    async def test_global_state_used_without_override(self, guild_settings, ping):
        await guild_settings.set_command_enabled(None, ping, False)

        assert ping.globally_enabled is False
        assert guild_settings.is_command_enabled(GUILD_ID, ping) is False

        await guild_settings.set_command_enabled(GUILD_ID, ping, True)
        assert guild_settings.is_command_enabled(GUILD_ID, ping) is True

    @pytest.mark.asyncio
    async def test_group_state(self, guild_settings, registry, ping):
        group = registry.groups["util"]

        await guild_settings.set_group_enabled(GUILD_ID, group, False)

        assert guild_settings.is_group_enabled(GUILD_ID, group) is False
        assert ping.is_enabled_in(GUILD_ID, guild_settings) is False
        assert ping.is_enabled_in(GUILD_ID, guild_settings, bypass_group=True) is True
        assert ping.is_enabled_in(OTHER_GUILD_ID, guild_settings) is True

    @pytest.mark.asyncio
    async def test_guarded_command_cannot_be_disabled(self, guild_settings, guarded, emitted):
        with pytest.raises(ValueError):
            await guild_settings.set_command_enabled(GUILD_ID, guarded, False)

        assert guarded.is_enabled_in(GUILD_ID, guild_settings) is True
        assert emitted == []

    @pytest.mark.asyncio
    async def test_guarded_group_cannot_be_disabled(self, guild_settings):
        with pytest.raises(ValueError):
            await guild_settings.set_group_enabled(None, CommandGroup("core", guarded=True), False)

    @pytest.mark.asyncio
    async def test_clear_guild(self, guild_settings, ping):
        await guild_settings.set_prefix(GUILD_ID, "?")
        await guild_settings.set_command_enabled(GUILD_ID, ping, False)

        await guild_settings.clear_guild(GUILD_ID)

        assert guild_settings.get_prefix(GUILD_ID, "!") == "!"
        assert guild_settings.is_command_enabled(GUILD_ID, ping) is True


class TestPersistence:
    """Test settings survive a reload from the database."""

    @pytest.mark.asyncio
    async def test_settings_reloaded(self, db_manager, registry, ping):
        store = GuildSettingsStore(db_manager)
        await store.set_prefix(GUILD_ID, "$")
        await store.set_command_enabled(GUILD_ID, ping, False)
        await store.set_group_enabled(OTHER_GUILD_ID, registry.groups["util"], False)

        reloaded = GuildSettingsStore(db_manager)
        await reloaded.load()

        assert reloaded.get_prefix(GUILD_ID, "!") == "$"
        assert reloaded.is_command_enabled(GUILD_ID, ping) is False
        assert reloaded.is_group_enabled(OTHER_GUILD_ID, registry.groups["util"]) is False

    @pytest.mark.asyncio
    async def test_updates_existing_rows(self, db_manager, ping):
        store = GuildSettingsStore(db_manager)
        await store.set_prefix(GUILD_ID, "$")
        await store.set_prefix(GUILD_ID, "%")
        await store.set_command_enabled(GUILD_ID, ping, False)
        await store.set_command_enabled(GUILD_ID, ping, True)

        reloaded = GuildSettingsStore(db_manager)
        await reloaded.load()

        assert reloaded.get_prefix(GUILD_ID, "!") == "%"
        assert reloaded.is_command_enabled(GUILD_ID, ping) is True

    @pytest.mark.asyncio
    async def test_cleared_guild_not_reloaded(self, db_manager, ping):
        store = GuildSettingsStore(db_manager)
        await store.set_prefix(GUILD_ID, "$")
        await store.set_command_enabled(GUILD_ID, ping, False)
        await store.clear_guild(GUILD_ID)

        reloaded = GuildSettingsStore(db_manager)
        await reloaded.load()

        assert reloaded.get_prefix(GUILD_ID, "!") == "!"
        assert reloaded.is_command_enabled(GUILD_ID, ping) is True
