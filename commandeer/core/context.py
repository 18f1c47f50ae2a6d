"""Invocation contexts wrapping the hikari message or interaction that triggered a command."""

from __future__ import annotations

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Union

import hikari

from ..commands.parsing import split_args, strip_wrapping_quotes
from .utils import calculate_member_permissions

if TYPE_CHECKING:
    from ..commands.base import Command
    from ..commands.registry import CommandRegistry
    from .dispatcher import CommandDispatcher

logger = logging.getLogger(__name__)

DM_KEY = "dm"

ResponseKey = Union[int, str]
Responses = Union[hikari.Message, list[Any], None]


class CommandContext(ABC):
    """The uniform surface commands, arguments and types see for an invocation."""

    def __init__(self, dispatcher: CommandDispatcher, command: Command | None = None) -> None:
        self.dispatcher = dispatcher
        self.command = command

    @property
    def app(self) -> hikari.GatewayBot:
        return self.dispatcher.app

    @property
    def registry(self) -> CommandRegistry:
        return self.dispatcher.registry

    @property
    @abstractmethod
    def author(self) -> hikari.User:
        pass

    @property
    @abstractmethod
    def member(self) -> hikari.Member | None:
        pass

    @property
    @abstractmethod
    def channel_id(self) -> hikari.Snowflake:
        pass

    @property
    @abstractmethod
    def guild_id(self) -> hikari.Snowflake | None:
        pass

    @property
    def prefix(self) -> str | None:
        return self.dispatcher.prefix_for(self.guild_id)

    @property
    def me(self) -> hikari.OwnUser | None:
        return self.app.get_me()

    def is_owner(self) -> bool:
        return self.author.id in self.dispatcher.owner_ids

    def get_guild(self) -> hikari.GatewayGuild | None:
        if self.guild_id is None:
            return None
        return self.app.cache.get_guild(self.guild_id)

    def get_channel(self) -> hikari.GuildChannel | None:
        if self.guild_id is None:
            return None
        return self.app.cache.get_guild_channel(self.channel_id)

    def is_nsfw_channel(self) -> bool:
        channel = self.get_channel()
        return bool(getattr(channel, "is_nsfw", False))

    def author_permissions(self) -> hikari.Permissions:
        """Effective permissions of the invoking member in the invocation channel."""
        guild = self.get_guild()
        member = self.member
        if guild is None or member is None:
            return hikari.Permissions.NONE
        return calculate_member_permissions(member, guild, self.get_channel())

    def client_permissions(self) -> hikari.Permissions | None:
        """Effective permissions of the bot in the invocation channel, ``None`` outside guilds."""
        guild = self.get_guild()
        me = self.me
        if guild is None or me is None:
            return None
        member = self.app.cache.get_member(guild.id, me.id)
        if member is None:
            return None
        return calculate_member_permissions(member, guild, self.get_channel())

    @abstractmethod
    async def reply(
        self, content: hikari.UndefinedOr[Any] = hikari.UNDEFINED, *, embed: hikari.UndefinedOr[hikari.Embed] = hikari.UNDEFINED
    ) -> hikari.Message:
        """Reply in the invocation channel."""

    async def direct(
        self, content: hikari.UndefinedOr[Any] = hikari.UNDEFINED, *, embed: hikari.UndefinedOr[hikari.Embed] = hikari.UNDEFINED
    ) -> hikari.Message:
        """Send a direct message to the invoking user."""
        return await self.author.send(content, embed=embed)

    async def send_prompt(self, embed: hikari.Embed) -> hikari.Message:
        """Send an argument prompt; prompts are not tracked as command responses."""
        return await self.app.rest.create_message(self.channel_id, embed=embed)

    async def wait_for_reply(self, timeout: float | None) -> hikari.Message | None:
        """Wait for the invoking user's next message in this channel, or ``None`` on timeout."""
        author_id = self.author.id
        channel_id = self.channel_id
        try:
            event = await self.app.wait_for(
                hikari.MessageCreateEvent,
                timeout=timeout,
                predicate=lambda event: event.author_id == author_id and event.channel_id == channel_id,
            )
        except asyncio.TimeoutError:
            return None
        return event.message


class MessageContext(CommandContext):
    """Context for a command triggered by a chat message.

    Keeps track of the responses sent for the message so that, when the
    message is edited and run again, the old responses are edited in place
    and extra ones are deleted.
    """

    def __init__(self, dispatcher: CommandDispatcher, message: hikari.Message) -> None:
        super().__init__(dispatcher)
        self.message = message
        self.is_command = False
        self.arg_string: str | None = None
        self.pattern_matches: re.Match[str] | None = None
        self.responses: dict[ResponseKey, list[Any]] | None = None
        self.response_positions: dict[ResponseKey, int] | None = None
        self._response_keys: dict[int, ResponseKey] = {}
        self.sent: list[hikari.Message] = []

    def __repr__(self) -> str:
        command = self.command.name if self.command else None
        return f"<MessageContext message={self.message.id} command={command!r}>"

    @property
    def author(self) -> hikari.User:
        return self.message.author

    @property
    def member(self) -> hikari.Member | None:
        member = self.message.member
        if member is None and self.guild_id is not None:
            member = self.app.cache.get_member(self.guild_id, self.author.id)
        return member

    @property
    def channel_id(self) -> hikari.Snowflake:
        return self.message.channel_id

    @property
    def guild_id(self) -> hikari.Snowflake | None:
        return self.message.guild_id

    @property
    def content(self) -> str:
        return self.message.content or ""

    def init_command(self, command: Command | None, arg_string: str | None = None, pattern_matches: re.Match[str] | None = None) -> MessageContext:
        self.is_command = True
        self.command = command
        self.arg_string = arg_string
        self.pattern_matches = pattern_matches
        return self

    def parse_args(self) -> str | list[str]:
        """Split the argument string according to the command's ``args_type``."""
        arg_string = self.arg_string or ""
        if self.command is None or self.command.args_type == "single":
            single_quotes = self.command.args_single_quotes if self.command else True
            return strip_wrapping_quotes(arg_string.strip(), single_quotes)
        return split_args(arg_string, self.command.args_count, self.command.args_single_quotes)

    async def reply(
        self, content: hikari.UndefinedOr[Any] = hikari.UNDEFINED, *, embed: hikari.UndefinedOr[hikari.Embed] = hikari.UNDEFINED
    ) -> hikari.Message:
        return await self.respond("reply", content, embed=embed)

    async def say(
        self, content: hikari.UndefinedOr[Any] = hikari.UNDEFINED, *, embed: hikari.UndefinedOr[hikari.Embed] = hikari.UNDEFINED
    ) -> hikari.Message:
        return await self.respond("plain", content, embed=embed)

    async def direct(
        self, content: hikari.UndefinedOr[Any] = hikari.UNDEFINED, *, embed: hikari.UndefinedOr[hikari.Embed] = hikari.UNDEFINED
    ) -> hikari.Message:
        return await self.respond("direct", content, embed=embed)

    async def respond(
        self,
        kind: str,
        content: hikari.UndefinedOr[Any] = hikari.UNDEFINED,
        *,
        embed: hikari.UndefinedOr[hikari.Embed] = hikari.UNDEFINED,
        from_edit: bool = False,
    ) -> hikari.Message:
        """Send a response, or edit the matching earlier response when re-running after an edit."""
        key = self._key_for(kind)
        if self.responses is not None and not from_edit:
            return await self._edit_current_response(key, kind, content, embed)

        if kind == "direct":
            response = await self.author.send(content, embed=embed)
        elif kind == "reply" and self.guild_id is not None:
            response = await self.message.respond(content, embed=embed, reply=self.message)
        else:
            response = await self.message.respond(content, embed=embed)

        self._response_keys[response.id] = key
        self.sent.append(response)
        return response

    async def _edit_current_response(
        self, key: ResponseKey, kind: str, content: Any, embed: hikari.UndefinedOr[hikari.Embed]
    ) -> hikari.Message:
        responses = self.responses.setdefault(key, [])
        position = self.response_positions.get(key, -1) + 1
        self.response_positions[key] = position

        existing = responses[position] if position < len(responses) else None
        if isinstance(existing, list):
            existing = existing[0] if existing else None
        if existing is None:
            return await self.respond(kind, content, embed=embed, from_edit=True)

        response = await existing.edit(
            content if content is not hikari.UNDEFINED else None,
            embed=embed if embed is not hikari.UNDEFINED else None,
        )
        self._response_keys[response.id] = key
        self.sent.append(response)
        return response

    async def finalize(self, responses: Responses) -> None:
        """Record the responses of this run, deleting earlier responses that were not reused."""
        if self.responses is not None:
            await self.delete_remaining_responses()

        self.responses = {}
        self.response_positions = {}
        if responses is None:
            return

        for response in responses if isinstance(responses, list) else [responses]:
            first = response[0] if isinstance(response, list) else response
            if first is None:
                continue
            key = self._response_keys.get(first.id, first.channel_id)
            self.responses.setdefault(key, []).append(response)
            self.response_positions.setdefault(key, -1)

    async def delete_remaining_responses(self) -> None:
        for key, responses in (self.responses or {}).items():
            start = self.response_positions.get(key, -1) + 1
            for response in responses[start:]:
                for message in response if isinstance(response, list) else [response]:
                    try:
                        await message.delete()
                    except hikari.NotFoundError:
                        logger.debug(f"Response {message.id} was already deleted")

    def adopt_responses(self, other: MessageContext) -> None:
        """Take over the responses of the context that handled the previous version of the message."""
        self.responses = other.responses
        self.response_positions = other.response_positions
        self._response_keys.update(other._response_keys)

    def _key_for(self, kind: str) -> ResponseKey:
        if kind == "direct" or self.guild_id is None:
            return DM_KEY
        return self.channel_id


class InteractionContext(CommandContext):
    """Context for a command triggered by an application command interaction."""

    def __init__(self, dispatcher: CommandDispatcher, interaction: hikari.CommandInteraction) -> None:
        super().__init__(dispatcher)
        self.interaction = interaction
        self.deferred = False
        self.replied = False

    def __repr__(self) -> str:
        return f"<InteractionContext interaction={self.interaction.id} command={self.interaction.command_name!r}>"

    @property
    def author(self) -> hikari.User:
        return self.interaction.user

    @property
    def member(self) -> hikari.InteractionMember | None:
        return self.interaction.member

    @property
    def channel_id(self) -> hikari.Snowflake:
        return self.interaction.channel_id

    @property
    def guild_id(self) -> hikari.Snowflake | None:
        return self.interaction.guild_id

    def author_permissions(self) -> hikari.Permissions:
        if self.interaction.member is None:
            return hikari.Permissions.NONE
        return self.interaction.member.permissions

    def client_permissions(self) -> hikari.Permissions | None:
        if self.guild_id is None:
            return None
        return self.interaction.app_permissions

    def parse_options(self) -> tuple[list[str], dict[str, Any]]:
        """
        Flatten the interaction options.

        Returns:
            The subcommand path and the option values keyed by option name, with
            users, members, roles and channels resolved to their objects
        """
        subcommands: list[str] = []
        values: dict[str, Any] = {}
        options = list(self.interaction.options or [])

        while options:
            option = options.pop(0)
            if option.type in (hikari.OptionType.SUB_COMMAND, hikari.OptionType.SUB_COMMAND_GROUP):
                subcommands.append(option.name)
                options = list(option.options or [])
                continue
            values[option.name.replace("-", "_")] = self._resolve_option(option)

        return subcommands, values

    def _resolve_option(self, option: hikari.CommandInteractionOption) -> Any:
        resolved = self.interaction.resolved
        if resolved is None or option.value is None:
            return option.value

        snowflake = hikari.Snowflake(option.value) if option.type in (
            hikari.OptionType.USER,
            hikari.OptionType.ROLE,
            hikari.OptionType.CHANNEL,
            hikari.OptionType.MENTIONABLE,
        ) else None

        if option.type is hikari.OptionType.USER or option.type is hikari.OptionType.MENTIONABLE:
            found = resolved.members.get(snowflake) or resolved.users.get(snowflake)
            if found is None and option.type is hikari.OptionType.MENTIONABLE:
                found = resolved.roles.get(snowflake)
            return found
        if option.type is hikari.OptionType.ROLE:
            return resolved.roles.get(snowflake)
        if option.type is hikari.OptionType.CHANNEL:
            return self.app.cache.get_guild_channel(snowflake) or resolved.channels.get(snowflake)
        return option.value

    async def defer(self, ephemeral: bool = False) -> None:
        flags = hikari.MessageFlag.EPHEMERAL if ephemeral else hikari.MessageFlag.NONE
        await self.interaction.create_initial_response(hikari.ResponseType.DEFERRED_MESSAGE_CREATE, flags=flags)
        self.deferred = True

    async def reply(
        self, content: hikari.UndefinedOr[Any] = hikari.UNDEFINED, *, embed: hikari.UndefinedOr[hikari.Embed] = hikari.UNDEFINED
    ) -> hikari.Message:
        if self.replied:
            return await self.interaction.execute(content, embed=embed)
        self.replied = True
        if self.deferred:
            return await self.interaction.edit_initial_response(content, embed=embed)
        await self.interaction.create_initial_response(hikari.ResponseType.MESSAGE_CREATE, content, embed=embed)
        return await self.interaction.fetch_initial_response()

    async def send_prompt(self, embed: hikari.Embed) -> hikari.Message:
        return await self.reply(embed=embed)
