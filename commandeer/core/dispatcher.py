"""Routes incoming messages and interactions to commands."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

import hikari

from config.settings import settings

from ..commands.base import Command, CommandBlockData, CommandBlockReason
from ..commands.collector import ArgumentCollectorResult
from ..commands.parsing import split_args
from ..database.guild_settings import GuildSettingsStore
from ..errors import CommandFormatError, FriendlyError
from .context import CommandContext, InteractionContext, MessageContext, Responses
from .event_system import EventSystem
from .utils import escape_regex, maybe_await, missing_permissions

if TYPE_CHECKING:
    from ..commands.registry import CommandRegistry

logger = logging.getLogger(__name__)

DEPRECATED_COLOR = hikari.Color(0xF1C40F)

PREFIXLESS_PATTERN = re.compile(r"^([^\s]+)", re.IGNORECASE)


@dataclass
class Inhibition:
    """Returned by an inhibitor to block a command, optionally with a response to send."""

    reason: str
    response: Awaitable[hikari.Message | None] | None = None


Inhibitor = Callable[[CommandContext], Union[Inhibition, str, bool, None, Awaitable[Any]]]


class CommandDispatcher:
    """
    Turns chat messages and application command interactions into command runs.

    For every event that resolves to a command exactly one of ``command_block``,
    ``command_cancel``, ``command_error`` (usage errors) or ``command_run`` is
    emitted. A command body that fails after ``command_run`` also emits
    ``command_error``.
    """

    def __init__(
        self,
        app: hikari.GatewayBot,
        registry: CommandRegistry,
        events: EventSystem | None = None,
        guild_settings: GuildSettingsStore | None = None,
        *,
        prefix: str | None = None,
        owner_ids: set[int] | None = None,
        command_editable_duration: float | None = None,
        non_command_editable: bool | None = None,
    ) -> None:
        self.app = app
        self.registry = registry
        self.events = events or EventSystem()
        self.guild_settings = guild_settings or GuildSettingsStore(events=self.events)
        self.default_prefix = settings.bot_prefix if prefix is None else prefix
        self.owner_ids = set(settings.owner_ids if owner_ids is None else owner_ids)
        self.command_editable_duration = (
            settings.command_editable_duration if command_editable_duration is None else command_editable_duration
        )
        self.non_command_editable = (
            settings.non_command_editable if non_command_editable is None else non_command_editable
        )

        self.inhibitors: list[Inhibitor] = []
        self._command_patterns: dict[str | None, re.Pattern[str]] = {}
        self._results: dict[int, MessageContext | None] = {}
        self._result_timers: dict[int, asyncio.TimerHandle] = {}
        self._awaiting: set[tuple[int, int]] = set()

    # Inhibitors

    def add_inhibitor(self, inhibitor: Inhibitor) -> bool:
        if not callable(inhibitor):
            raise TypeError("The inhibitor must be callable.")
        if inhibitor in self.inhibitors:
            return False
        self.inhibitors.append(inhibitor)
        return True

    def remove_inhibitor(self, inhibitor: Inhibitor) -> bool:
        if not callable(inhibitor):
            raise TypeError("The inhibitor must be callable.")
        if inhibitor not in self.inhibitors:
            return False
        self.inhibitors.remove(inhibitor)
        return True

    async def inhibit(self, ctx: CommandContext) -> Inhibition | None:
        """Run the inhibitors in order; the first truthy result blocks the command."""
        for inhibitor in self.inhibitors:
            result = await maybe_await(inhibitor(ctx))
            if not result:
                continue
            if isinstance(result, str):
                result = Inhibition(result)
            if not isinstance(result, Inhibition):
                raise TypeError(
                    f'Inhibitor "{getattr(inhibitor, "__name__", inhibitor)}" had an invalid result, '
                    "it must be a string or an Inhibition."
                )
            await self.events.emit("command_block", ctx, result.reason, result)
            return result
        return None

    # Awaiting input

    @contextmanager
    def awaiting_input(self, user_id: int, channel_id: int) -> Iterator[None]:
        """Mark a user as answering a prompt in a channel for the duration of the block."""
        key = (user_id, channel_id)
        self._awaiting.add(key)
        try:
            yield
        finally:
            self._awaiting.discard(key)

    def is_awaiting(self, user_id: int, channel_id: int) -> bool:
        return (user_id, channel_id) in self._awaiting

    # Prefixes

    def prefix_for(self, guild_id: int | None) -> str | None:
        if guild_id is None:
            return self.default_prefix
        return self.guild_settings.get_prefix(guild_id, self.default_prefix)

    def build_command_pattern(self, prefix: str | None) -> re.Pattern[str]:
        """Build (and cache) the pattern matching ``<prefix>command`` or ``@bot [prefix] command``."""
        me = self.app.get_me()
        bot_id = me.id if me else 0
        if prefix:
            escaped = escape_regex(prefix)
            pattern = re.compile(rf"^(<@!?{bot_id}>\s+(?:{escaped}\s*)?|{escaped}\s*)([^\s]+)", re.IGNORECASE)
        else:
            pattern = re.compile(rf"(^<@!?{bot_id}>\s+)([^\s]+)", re.IGNORECASE)

        if me is not None:
            self._command_patterns[prefix] = pattern
        logger.debug(f'Built command pattern for prefix "{prefix}": {pattern.pattern}')
        return pattern

    def clear_command_patterns(self) -> None:
        self._command_patterns.clear()

    # Messages

    def should_handle_message(self, message: hikari.Message, *, edited: bool = False, old_content: str | None = None) -> bool:
        author = message.author
        if author is None or author is hikari.UNDEFINED or message.webhook_id is not None:
            return False

        me = self.app.get_me()
        if author.is_bot or (me is not None and author.id == me.id):
            return False
        if self.is_awaiting(author.id, message.channel_id):
            return False
        if edited and old_content is not None and message.content == old_content:
            return False
        return True

    def parse_message(self, message: hikari.Message) -> MessageContext | None:
        """Find the command a message invokes, returning a context for it or ``None`` if it isn't a command."""
        content = message.content or ""
        ctx = MessageContext(self, message)

        for command in self.registry.commands.values():
            for pattern in command.patterns:
                match = pattern.search(content)
                if match:
                    return ctx.init_command(command, None, match)

        prefix = self.prefix_for(message.guild_id)
        pattern = self._command_patterns.get(prefix) or self.build_command_pattern(prefix)
        result = self._match_default(ctx, pattern, 2)
        if result is None and message.guild_id is None:
            result = self._match_default(ctx, PREFIXLESS_PATTERN, 1, prefixless=True)
        return result

    def _match_default(
        self, ctx: MessageContext, pattern: re.Pattern[str], name_group: int, prefixless: bool = False
    ) -> MessageContext | None:
        content = ctx.content
        match = pattern.match(content)
        if not match:
            return None

        commands = self.registry.find_commands(match.group(name_group), exact=True)
        if len(commands) != 1 or not commands[0].default_handling:
            return ctx.init_command(self.registry.unknown_command, content if prefixless else match.group(1))

        consumed = len(match.group(1)) + (len(match.group(2)) if name_group == 2 else 0)
        return ctx.init_command(commands[0], content[consumed:])

    async def handle_message(
        self, message: hikari.Message, *, edited: bool = False, old_content: str | None = None
    ) -> None:
        """
        Handle a new or edited chat message.

        Args:
            message: The message that was created or edited
            edited: Whether this is an edit of a message seen before
            old_content: The content before the edit, if known
        """
        if not self.should_handle_message(message, edited=edited, old_content=old_content):
            return

        if edited and message.id not in self._results:
            return
        old_ctx = self._results.get(message.id)

        ctx = self.parse_message(message)
        if ctx is not None and old_ctx is not None:
            ctx.adopt_responses(old_ctx)

        responses: Responses = None
        if ctx is not None:
            responses = await self._handle_command_message(ctx)
            await ctx.finalize(responses)
        elif old_ctx is not None:
            await old_ctx.finalize(None)

        if ctx is not None and edited:
            await self.events.emit("command_message_update", message, ctx)

        self._cache_result(message, ctx, edited)

    async def _handle_command_message(self, ctx: MessageContext) -> Responses:
        inhibition = await self.inhibit(ctx)
        if inhibition is not None:
            return await inhibition.response if inhibition.response is not None else None

        command = ctx.command
        if command is None:
            await self.events.emit("command_unknown", ctx)
            return None

        if not command.is_enabled_in(ctx.guild_id, self.guild_settings):
            if command.unknown:
                await self.events.emit("command_unknown", ctx)
                return None
            return await self._block(ctx, command, CommandBlockReason.DISABLED)

        return await self.run_message_command(ctx)

    async def run_message_command(self, ctx: MessageContext) -> Responses:
        """Run the gates, collect arguments and invoke the command a message resolved to."""
        command = ctx.command
        blocked, response = await self._check_gates(ctx, command)
        if blocked:
            return response

        await self._send_deprecation_notice(ctx, command)

        args: Any = ctx.pattern_matches
        result: ArgumentCollectorResult | None = None
        if args is None and command.args_collector is not None:
            collector_args = command.args_collector.args
            count = 0 if collector_args[-1].infinite else len(collector_args)
            provided = split_args((ctx.arg_string or "").strip(), count, command.args_single_quotes)

            result = await command.args_collector.obtain(ctx, provided)
            if result.cancelled is not None:
                if not result.prompts:
                    error = CommandFormatError(ctx)
                    await self.events.emit("command_error", command, error, ctx, provided, False, result)
                    return await ctx.reply(str(error))

                await self.events.emit("command_cancel", command, result.cancelled, ctx, result)
                return await ctx.reply("Cancelled command.")
            args = result.values

        if args is None:
            args = ctx.parse_args()

        location = f"{ctx.guild_id}:{ctx.channel_id}" if ctx.guild_id else f"DM:{ctx.author.id}"
        logger.debug(f'Running message command "{command.group_id}:{command.member_name}" at "{location}"')
        returned = await self._invoke(ctx, command, args, ctx.pattern_matches is not None, result)
        return returned if returned is not None else list(ctx.sent)

    def _cache_result(self, message: hikari.Message, ctx: MessageContext | None, edited: bool) -> None:
        if self.command_editable_duration <= 0:
            return
        if ctx is None and not self.non_command_editable:
            self._forget(message.id)
            return

        self._results[message.id] = ctx
        if not edited:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                return
            timer = self._result_timers.pop(message.id, None)
            if timer is not None:
                timer.cancel()
            self._result_timers[message.id] = loop.call_later(
                self.command_editable_duration, self._forget, message.id
            )

    def _forget(self, message_id: int) -> None:
        self._results.pop(message_id, None)
        timer = self._result_timers.pop(message_id, None)
        if timer is not None:
            timer.cancel()

    def clear_results(self) -> None:
        for message_id in list(self._result_timers):
            self._forget(message_id)
        self._results.clear()

    # Interactions

    async def handle_interaction(self, interaction: hikari.PartialInteraction) -> None:
        """Handle an application command interaction."""
        if not isinstance(interaction, hikari.CommandInteraction):
            return
        if interaction.command_type is not hikari.CommandType.SLASH:
            return

        command = self.registry.commands.get(interaction.command_name)
        if command is None:
            logger.debug(f"No command registered for interaction {interaction.command_name}")
            return

        ctx = InteractionContext(self, interaction)
        ctx.command = command

        inhibition = await self.inhibit(ctx)
        if inhibition is not None:
            if inhibition.response is not None:
                await inhibition.response
            return

        if not command.is_enabled_in(ctx.guild_id, self.guild_settings):
            await self._block(ctx, command, CommandBlockReason.DISABLED)
            return

        blocked, _ = await self._check_gates(ctx, command)
        if blocked:
            return

        await self._send_deprecation_notice(ctx, command)
        await ctx.defer()

        subcommands, values = ctx.parse_options()
        args, rejection = await self._interaction_args(ctx, command, values)
        if subcommands:
            args["subcommand"] = subcommands[-1]
        if rejection is not None:
            error = FriendlyError(rejection)
            await self.events.emit("command_error", command, error, ctx, args, False, None)
            await ctx.reply(str(error))
            return

        location = f"{ctx.guild_id}:{ctx.channel_id}" if ctx.guild_id else f"DM:{ctx.author.id}"
        logger.debug(f'Running slash command "{command.group_id}:{command.member_name}" at "{location}"')
        await self._invoke(ctx, command, args, False, None)

    async def _interaction_args(
        self, ctx: InteractionContext, command: Command, values: dict[str, Any]
    ) -> tuple[dict[str, Any], str | None]:
        if not command.arguments:
            return dict(values), None

        args: dict[str, Any] = {}
        for argument in command.arguments:
            value = values.get(argument.key)
            if value is None:
                if argument.required:
                    return args, f"Please provide a value for {argument.label}."
                args[argument.key] = await argument.resolve_default(ctx)
                continue

            if isinstance(value, str) and argument.option_type is hikari.OptionType.STRING:
                valid = await argument.validate(value, ctx)
                if valid is not True:
                    return args, valid or f"You provided an invalid {argument.label}."
                value = await argument.parse(value, ctx)
            elif argument.type is not None and argument.type.id == "user":
                value = getattr(value, "user", value)

            args[argument.key] = [value] if argument.infinite and not isinstance(value, list) else value
        return args, None

    # Shared

    async def _check_gates(self, ctx: CommandContext, command: Command) -> tuple[bool, Responses]:
        """Run the usage policy checks in order, returning whether the command was blocked and the response."""
        interaction = isinstance(ctx, InteractionContext)
        client_permissions = ctx.client_permissions()

        if client_permissions is not None:
            can_view = client_permissions & hikari.Permissions.VIEW_CHANNEL
            if can_view and not client_permissions & hikari.Permissions.SEND_MESSAGES:
                await self._block(ctx, command, CommandBlockReason.SEND_MESSAGES)
                return True, await self._notify_missing_access(ctx, "Send Messages")
            if interaction and not client_permissions & hikari.Permissions.USE_APPLICATION_COMMANDS:
                await self._block(ctx, command, CommandBlockReason.USE_APPLICATION_COMMANDS)
                return True, await self._notify_missing_access(ctx, "Use Application Commands")

        if command.dm_only and ctx.guild_id is not None:
            return True, await self._block(ctx, command, CommandBlockReason.DM_ONLY)
        if (command.guild_only or command.guild_owner_only) and ctx.guild_id is None:
            return True, await self._block(ctx, command, CommandBlockReason.GUILD_ONLY)
        if command.owner_only and not ctx.is_owner():
            return True, await self._block(ctx, command, CommandBlockReason.OWNER_ONLY)
        if command.guild_owner_only and not ctx.is_owner():
            guild = ctx.get_guild()
            if guild is None or guild.owner_id != ctx.author.id:
                return True, await self._block(ctx, command, CommandBlockReason.GUILD_OWNER_ONLY)
        if command.nsfw and not ctx.is_nsfw_channel():
            return True, await self._block(ctx, command, CommandBlockReason.NSFW)

        has_permission = command.has_permission(ctx)
        if has_permission is not True:
            if isinstance(has_permission, CommandBlockReason):
                return True, await self._block(ctx, command, has_permission)
            data = CommandBlockData(missing=list(has_permission))
            return True, await self._block(ctx, command, CommandBlockReason.USER_PERMISSIONS, data)

        if client_permissions is not None and command.client_permissions:
            missing = missing_permissions(client_permissions, command.client_permissions)
            if missing:
                data = CommandBlockData(missing=missing)
                return True, await self._block(ctx, command, CommandBlockReason.CLIENT_PERMISSIONS, data)

        if not ctx.is_owner():
            remaining = command.throttle_remaining(ctx.author.id)
            if remaining is not None:
                data = CommandBlockData(throttle=command.throttle(ctx.author.id), remaining=remaining)
                return True, await self._block(ctx, command, CommandBlockReason.THROTTLING, data)

        return False, None

    async def _block(
        self,
        ctx: CommandContext,
        command: Command,
        reason: CommandBlockReason,
        data: CommandBlockData | None = None,
    ) -> hikari.Message | None:
        data = data or CommandBlockData()
        await self.events.emit("command_block", ctx, reason, data)
        return await command.on_block(ctx, reason, data)

    async def _notify_missing_access(self, ctx: CommandContext, permission: str) -> hikari.Message | None:
        guild = ctx.get_guild()
        guild_name = guild.name if guild else "this server"
        try:
            return await ctx.direct(
                f"It seems like I cannot **{permission}** in this channel: <#{ctx.channel_id}>\n"
                f"Please try in another channel, or contact the admins of **{guild_name}** to solve this issue."
            )
        except hikari.ForbiddenError:
            logger.debug(f"Could not notify user {ctx.author.id} about missing {permission} permission")
            return None

    async def _send_deprecation_notice(self, ctx: CommandContext, command: Command) -> None:
        if not command.deprecated:
            return
        embed = hikari.Embed(color=DEPRECATED_COLOR)
        replacement = (
            f"Please start using the `{command.deprecated_replacement}` command from now on."
            if command.deprecated_replacement
            else "It may be removed in the future."
        )
        embed.add_field(f"The `{command.name}` command has been marked as deprecated!", replacement)
        await self.app.rest.create_message(ctx.channel_id, embed=embed)

    async def _invoke(
        self,
        ctx: CommandContext,
        command: Command,
        args: Any,
        from_pattern: bool,
        result: ArgumentCollectorResult | None,
    ) -> Responses:
        if not ctx.is_owner():
            command.record_usage(ctx.author.id)

        task = asyncio.ensure_future(command.run(ctx, args, from_pattern, result))
        await self.events.emit("command_run", command, task, ctx, args, from_pattern, result)

        try:
            returned = await task
            if returned is not None and not isinstance(returned, (hikari.Message, list)):
                raise TypeError(
                    f"Command {command.name}'s run() returned an unknown type ({type(returned).__name__}). "
                    "Command run methods must return a Message, a list of Messages, or None."
                )
            return returned
        except Exception as error:
            await self.events.emit("command_error", command, error, ctx, args, from_pattern, result)
            if isinstance(error, FriendlyError):
                return await ctx.reply(str(error))
            return await command.on_error(error, ctx, args, from_pattern, result)
