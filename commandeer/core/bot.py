import logging
from collections.abc import Callable, Iterable
from typing import Any

import hikari

from config.settings import settings

from ..commands.registry import CommandRegistry
from ..database import DatabaseManager, GuildSettingsStore
from ..middleware import ErrorHandlerMiddleware, LoggingMiddleware
from .dispatcher import CommandDispatcher
from .event_system import EventSystem

logger = logging.getLogger(__name__)

DEFAULT_INTENTS = (
    hikari.Intents.ALL_MESSAGES
    | hikari.Intents.GUILD_MEMBERS
    | hikari.Intents.GUILDS
    | hikari.Intents.MESSAGE_CONTENT
)


class CommandBot:
    """
    A hikari gateway bot wired to a command registry and dispatcher.

    Messages, message edits and slash command interactions are forwarded to
    the :class:`CommandDispatcher`. On startup the database tables are created,
    the guild settings are loaded and commands flagged as application commands
    are synced to Discord.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        prefix: str | None = None,
        owner_ids: Iterable[int] | None = None,
        database_url: str | None = None,
        use_database: bool = True,
        intents: hikari.Intents = DEFAULT_INTENTS,
        register_default_types: bool = True,
    ) -> None:
        token = token if token is not None else settings.discord_token
        if not token:
            raise ValueError("A Discord bot token is required. Set DISCORD_TOKEN or pass one explicitly.")

        self.hikari_bot = hikari.GatewayBot(token=token, intents=intents)

        self.db = DatabaseManager(database_url) if use_database else None
        self.event_system = EventSystem()
        self.event_system.add_middleware(LoggingMiddleware())
        self.event_system.add_middleware(ErrorHandlerMiddleware())
        self.guild_settings = GuildSettingsStore(self.db, self.event_system)

        self.registry = CommandRegistry()
        if register_default_types:
            self.registry.register_default_types()

        self.dispatcher = CommandDispatcher(
            self.hikari_bot,
            self.registry,
            self.event_system,
            self.guild_settings,
            prefix=prefix,
            owner_ids=set(owner_ids) if owner_ids is not None else None,
        )

        self.is_ready = False
        self._startup_tasks: list[Callable] = []
        self._setup_event_listeners()

    @property
    def rest(self) -> hikari.api.RESTClient:
        return self.hikari_bot.rest

    @property
    def cache(self) -> hikari.api.Cache:
        return self.hikari_bot.cache

    def _setup_event_listeners(self) -> None:
        self.hikari_bot.subscribe(hikari.StartedEvent, self.on_started)
        self.hikari_bot.subscribe(hikari.ShardReadyEvent, self.on_ready)
        self.hikari_bot.subscribe(hikari.StoppingEvent, self.on_stopping)
        self.hikari_bot.subscribe(hikari.MessageCreateEvent, self.on_message_create)
        self.hikari_bot.subscribe(hikari.MessageUpdateEvent, self.on_message_update)
        self.hikari_bot.subscribe(hikari.InteractionCreateEvent, self.on_interaction_create)
        self.hikari_bot.subscribe(hikari.GuildLeaveEvent, self.on_guild_leave)

    async def on_started(self, event: hikari.StartedEvent) -> None:
        logger.info("Bot has started, initializing systems...")
        await self._initialize_systems()

    async def on_ready(self, event: hikari.ShardReadyEvent) -> None:
        if not self.is_ready:
            logger.info(f"Bot is ready! Logged in as {event.my_user}")
            self.dispatcher.clear_command_patterns()
            await self.event_system.emit("bot_ready", self)
            self.is_ready = True

    async def on_stopping(self, event: hikari.StoppingEvent) -> None:
        logger.info("Bot is stopping...")
        await self._cleanup()

    async def on_message_create(self, event: hikari.MessageCreateEvent) -> None:
        await self.dispatcher.handle_message(event.message)

    async def on_message_update(self, event: hikari.MessageUpdateEvent) -> None:
        message = event.message
        if message.content is hikari.UNDEFINED:
            return
        if message.author is hikari.UNDEFINED:
            message = await self.rest.fetch_message(message.channel_id, message.id)

        old_content = event.old_message.content if event.old_message is not None else None
        await self.dispatcher.handle_message(message, edited=True, old_content=old_content)

    async def on_interaction_create(self, event: hikari.InteractionCreateEvent) -> None:
        await self.dispatcher.handle_interaction(event.interaction)

    async def on_guild_leave(self, event: hikari.GuildLeaveEvent) -> None:
        await self.guild_settings.clear_guild(event.guild_id)

    async def _initialize_systems(self) -> None:
        if self.db is not None:
            await self.db.create_tables()
            await self.guild_settings.load()
            logger.info("Database initialized")

        await self.sync_application_commands()

        for task in self._startup_tasks:
            await task()

        logger.info("All systems initialized successfully")

    async def sync_application_commands(self, guild: hikari.SnowflakeishOr[hikari.PartialGuild] | None = None) -> None:
        """Register every command flagged as an application command with Discord."""
        commands = [command for command in self.registry.commands.values() if command.application_command]
        if not commands:
            return

        application = await self.rest.fetch_application()
        builders = [command.build_application_command(self.rest) for command in commands]
        await self.rest.set_application_commands(
            application, builders, guild=guild if guild is not None else hikari.UNDEFINED
        )
        logger.info(f"Synced {len(builders)} application commands")

    async def _cleanup(self) -> None:
        await self.event_system.emit("bot_stopping", self)
        self.dispatcher.clear_results()
        for command in self.registry.commands.values():
            command.clear_throttles()
        if self.db is not None:
            await self.db.close()
        logger.info("Cleanup completed")

    def add_startup_task(self, task: Callable) -> None:
        self._startup_tasks.append(task)

    def register_commands(self, commands: Iterable[Any]) -> "CommandBot":
        self.registry.register_commands(commands)
        return self

    def run(self) -> None:
        try:
            logger.info("Starting Discord bot...")
            self.hikari_bot.run()
        except KeyboardInterrupt:
            logger.info("Bot stopped by user")
