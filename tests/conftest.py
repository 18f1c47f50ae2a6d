"""Pytest configuration and shared fixtures."""

import itertools
import logging
from unittest.mock import AsyncMock, MagicMock

import hikari
import pytest

from commandeer.commands import CommandRegistry
from commandeer.core import EventSystem
from commandeer.core.dispatcher import CommandDispatcher
from commandeer.database import GuildSettingsStore

# Disable logging during tests
logging.disable(logging.CRITICAL)

BOT_ID = 12345
OWNER_ID = 999999999
GUILD_ID = 123456789
CHANNEL_ID = 444444444

_ids = itertools.count(700000000)


def make_sent_message(channel_id=CHANNEL_ID):
    """A message the bot sent, as returned by hikari."""
    message = MagicMock(spec=hikari.Message)
    message.id = hikari.Snowflake(next(_ids))
    message.channel_id = channel_id
    message.guild_id = None
    message.delete = AsyncMock()
    message.edit = AsyncMock(side_effect=lambda *args, **kwargs: message)
    return message


def make_reply_event(content, author_id=111111111, channel_id=CHANNEL_ID):
    """A MessageCreateEvent as returned by GatewayBot.wait_for."""
    event = MagicMock()
    event.author_id = author_id
    event.channel_id = channel_id
    event.message = MagicMock()
    event.message.content = content
    return event


@pytest.fixture
def mock_hikari_bot():
    """Mock Hikari bot instance."""
    bot = MagicMock(spec=hikari.GatewayBot)
    bot.cache = MagicMock()
    bot.rest = MagicMock()
    bot.get_me = MagicMock(
        return_value=MagicMock(
            id=BOT_ID,
            username="TestBot",
            display_name="TestBot",
        )
    )
    bot.wait_for = AsyncMock()

    # Mock cache methods
    bot.cache.get_guild = MagicMock(return_value=None)
    bot.cache.get_member = MagicMock(return_value=None)
    bot.cache.get_user = MagicMock(return_value=None)
    bot.cache.get_guild_channel = MagicMock(return_value=None)
    bot.cache.get_role = MagicMock(return_value=None)
    bot.cache.get_members_view_for_guild = MagicMock(return_value={})
    bot.cache.get_guild_channels_view_for_guild = MagicMock(return_value={})
    bot.cache.get_roles_view_for_guild = MagicMock(return_value={})

    # Mock REST methods
    bot.rest.create_message = AsyncMock(side_effect=lambda channel, *args, **kwargs: make_sent_message(channel))
    bot.rest.fetch_user = AsyncMock(return_value=None)
    bot.rest.fetch_member = AsyncMock()
    bot.rest.fetch_roles = AsyncMock(return_value=[])
    bot.rest.fetch_channel = AsyncMock()
    bot.rest.fetch_message = AsyncMock()

    return bot


@pytest.fixture
def registry():
    """Registry with the default argument types and a utility group."""
    registry = CommandRegistry()
    registry.register_default_types()
    registry.register_group("util", "Utility")
    return registry


@pytest.fixture
def event_system():
    return EventSystem()


@pytest.fixture
def emitted(event_system):
    """Records every command lifecycle event as ``(name, args)``."""
    events = []

    def recorder(name):
        def record(*args):
            events.append((name, args))

        record.__name__ = f"record_{name}"
        return record

    for name in (
        "command_block",
        "command_cancel",
        "command_error",
        "command_message_update",
        "command_run",
        "command_status_change",
        "command_unknown",
    ):
        event_system.add_listener(name, recorder(name))
    return events


@pytest.fixture
def guild_settings(event_system):
    return GuildSettingsStore(events=event_system)


@pytest.fixture
def dispatcher(mock_hikari_bot, registry, event_system, guild_settings):
    return CommandDispatcher(
        mock_hikari_bot,
        registry,
        event_system,
        guild_settings,
        prefix="!",
        owner_ids={OWNER_ID},
        command_editable_duration=30,
        non_command_editable=True,
    )


@pytest.fixture
def mock_user():
    """Mock Discord user."""
    user = MagicMock(spec=hikari.User)
    user.id = hikari.Snowflake(111111111)
    user.username = "testuser"
    user.display_name = "Test User"
    user.is_bot = False
    user.mention = "<@111111111>"
    user.send = AsyncMock(side_effect=lambda *args, **kwargs: make_sent_message(555555555))
    return user


@pytest.fixture
def make_message(mock_user):
    """Factory for incoming chat messages."""

    def factory(content, guild_id=GUILD_ID, author=None, message_id=None):
        message = MagicMock(spec=hikari.Message)
        message.id = hikari.Snowflake(message_id or next(_ids))
        message.content = content
        message.author = author or mock_user
        message.member = None
        message.guild_id = guild_id
        message.channel_id = CHANNEL_ID
        message.webhook_id = None
        message.respond = AsyncMock(side_effect=lambda *args, **kwargs: make_sent_message())
        return message

    return factory


@pytest.fixture
def mock_context(mock_hikari_bot, mock_user, dispatcher):
    """Mock command context for argument and type tests."""
    ctx = MagicMock()
    ctx.app = mock_hikari_bot
    ctx.dispatcher = dispatcher
    ctx.author = mock_user
    ctx.guild_id = GUILD_ID
    ctx.channel_id = CHANNEL_ID
    ctx.send_prompt = AsyncMock(side_effect=lambda embed: make_sent_message())
    ctx.wait_for_reply = AsyncMock(return_value=None)
    ctx.reply = AsyncMock(side_effect=lambda *args, **kwargs: make_sent_message())
    return ctx


def reply(content):
    """A reply message as returned by CommandContext.wait_for_reply."""
    message = MagicMock()
    message.content = content
    return message


@pytest.fixture
def reply_message():
    """Factory for replies returned by ``wait_for_reply``."""
    return reply


@pytest.fixture
def reply_event():
    """Factory for events returned by ``GatewayBot.wait_for``."""
    return make_reply_event


@pytest.fixture
def sent_message():
    """Factory for messages sent by the bot."""
    return make_sent_message
