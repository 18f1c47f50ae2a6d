"""Argument types that resolve Discord entities from mentions, IDs or names."""

from __future__ import annotations

import logging
import re
from abc import abstractmethod
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

import hikari

from ..core.utils import disambiguation, escape_markdown
from .base import ArgumentType

if TYPE_CHECKING:
    from ..commands.argument import Argument
    from ..core.context import CommandContext

logger = logging.getLogger(__name__)

USER_MENTION = re.compile(r"^(?:<@!?)?(\d+)>?$")
ROLE_MENTION = re.compile(r"^(?:<@&)?(\d+)>?$")
CHANNEL_MENTION = re.compile(r"^(?:<#)?(\d+)>?$")
EMOJI_MENTION = re.compile(r"^(?:<a?:\w+:)?(\d+)>?$")
INVITE_URL = re.compile(r"^(?:https?://)?(?:www\.)?(?:discord(?:app)?\.com/invite|discord\.gg)/([\w-]+)/?$", re.IGNORECASE)

# Above this many matches the user is asked to be more specific instead of shown a list
MAX_DISAMBIGUATION_ITEMS = 15


class SearchableArgumentType(ArgumentType):
    """Shared mention/ID/name resolution for entity types.

    A value is first matched against ``mention_pattern``; otherwise the
    candidates are searched by name (case-insensitive substring), and an
    exact name match is preferred when the substring search is ambiguous.
    Objects fetched during ``validate`` are kept until the following ``parse``.
    """

    mention_pattern: re.Pattern[str] = USER_MENTION
    plural: str = "items"
    guild_only: bool = True

    def __init__(self, type_id: str) -> None:
        super().__init__(type_id)
        self._fetched: dict[int, Any] = {}

    @abstractmethod
    async def fetch_by_id(self, ctx: CommandContext, snowflake: int) -> Any | None:
        pass

    @abstractmethod
    def candidates(self, ctx: CommandContext) -> Iterable[Any]:
        pass

    def names(self, item: Any) -> list[str]:
        return [item.name]

    def display(self, item: Any) -> str:
        return self.names(item)[0]

    def accepts(self, item: Any) -> bool:
        return True

    def resolve(self, item: Any) -> Any:
        return item

    def _in_choices(self, item: Any, argument: Argument) -> bool:
        if argument.choices is None:
            return True
        return str(item.id) in {str(choice) for choice in argument.choices}

    def _search(self, ctx: CommandContext, value: str) -> tuple[list[Any], list[Any]]:
        search = value.lower()
        inexact = [
            item
            for item in self.candidates(ctx)
            if self.accepts(item) and any(search in name.lower() for name in self.names(item))
        ]
        exact = [item for item in inexact if any(name.lower() == search for name in self.names(item))]
        return inexact, exact

    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        if self.guild_only and ctx.guild_id is None:
            return False

        match = self.mention_pattern.match(value)
        if match:
            item = await self.fetch_by_id(ctx, int(match.group(1)))
            if item is None or not self.accepts(item):
                return False
            if not self._in_choices(item, argument):
                return False
            self._fetched[item.id] = item
            return True

        inexact, exact = self._search(ctx, value)
        if not inexact:
            return False
        for pool in (inexact, exact):
            if len(pool) == 1:
                return self._in_choices(pool[0], argument)

        pool = exact or inexact
        if len(pool) <= MAX_DISAMBIGUATION_ITEMS:
            return disambiguation([escape_markdown(self.display(item)) for item in pool], self.plural)
        return f"Multiple {self.plural} found. Please be more specific."

    async def parse(self, value: str, ctx: CommandContext, argument: Argument) -> Any:
        match = self.mention_pattern.match(value)
        if match:
            snowflake = int(match.group(1))
            item = self._fetched.pop(snowflake, None)
            if item is None:
                item = await self.fetch_by_id(ctx, snowflake)
            return self.resolve(item) if item is not None else None

        inexact, exact = self._search(ctx, value)
        for pool in (inexact, exact):
            if len(pool) == 1:
                return self.resolve(pool[0])
        return None


class UserArgumentType(SearchableArgumentType):
    plural = "users"
    guild_only = False

    def __init__(self) -> None:
        super().__init__("user")

    async def fetch_by_id(self, ctx: CommandContext, snowflake: int) -> hikari.User | None:
        user = ctx.app.cache.get_user(snowflake)
        if user is not None:
            return user
        try:
            return await ctx.app.rest.fetch_user(snowflake)
        except hikari.NotFoundError:
            return None

    def candidates(self, ctx: CommandContext) -> Iterable[hikari.Member]:
        if ctx.guild_id is None:
            return []
        return ctx.app.cache.get_members_view_for_guild(ctx.guild_id).values()

    def names(self, item: Any) -> list[str]:
        names = [item.username]
        display_name = getattr(item, "display_name", None)
        if display_name and display_name != item.username:
            names.append(display_name)
        return names

    def resolve(self, item: Any) -> hikari.User:
        return getattr(item, "user", item)


class MemberArgumentType(UserArgumentType):
    plural = "members"
    guild_only = True

    def __init__(self) -> None:
        SearchableArgumentType.__init__(self, "member")

    async def fetch_by_id(self, ctx: CommandContext, snowflake: int) -> hikari.Member | None:
        member = ctx.app.cache.get_member(ctx.guild_id, snowflake)
        if member is not None:
            return member
        try:
            return await ctx.app.rest.fetch_member(ctx.guild_id, snowflake)
        except hikari.NotFoundError:
            return None

    def resolve(self, item: Any) -> hikari.Member:
        return item


class RoleArgumentType(SearchableArgumentType):
    mention_pattern = ROLE_MENTION
    plural = "roles"

    def __init__(self) -> None:
        super().__init__("role")

    async def fetch_by_id(self, ctx: CommandContext, snowflake: int) -> hikari.Role | None:
        role = ctx.app.cache.get_role(snowflake)
        if role is not None:
            return role if role.guild_id == ctx.guild_id else None

        roles = await ctx.app.rest.fetch_roles(ctx.guild_id)
        return next((role for role in roles if role.id == snowflake), None)

    def candidates(self, ctx: CommandContext) -> Iterable[hikari.Role]:
        return ctx.app.cache.get_roles_view_for_guild(ctx.guild_id).values()


class ChannelArgumentType(SearchableArgumentType):
    """Guild channels, optionally restricted to a set of channel types."""

    mention_pattern = CHANNEL_MENTION

    def __init__(
        self,
        type_id: str = "channel",
        channel_types: frozenset[hikari.ChannelType] | None = None,
        plural: str = "channels",
    ) -> None:
        super().__init__(type_id)
        self.channel_types = channel_types
        self.plural = plural

    async def fetch_by_id(self, ctx: CommandContext, snowflake: int) -> hikari.GuildChannel | None:
        channel = ctx.app.cache.get_guild_channel(snowflake)
        if channel is None:
            try:
                channel = await ctx.app.rest.fetch_channel(snowflake)
            except hikari.NotFoundError:
                return None

        if not isinstance(channel, hikari.GuildChannel) or channel.guild_id != ctx.guild_id:
            return None
        return channel

    def candidates(self, ctx: CommandContext) -> Iterable[hikari.GuildChannel]:
        return ctx.app.cache.get_guild_channels_view_for_guild(ctx.guild_id).values()

    def names(self, item: Any) -> list[str]:
        return [item.name or ""]

    def accepts(self, item: Any) -> bool:
        return self.channel_types is None or item.type in self.channel_types


def text_channel_type() -> ChannelArgumentType:
    return ChannelArgumentType(
        "text-channel",
        frozenset({hikari.ChannelType.GUILD_TEXT, hikari.ChannelType.GUILD_NEWS}),
        "text channels",
    )


def voice_channel_type() -> ChannelArgumentType:
    return ChannelArgumentType(
        "voice-channel",
        frozenset({hikari.ChannelType.GUILD_VOICE, hikari.ChannelType.GUILD_STAGE}),
        "voice channels",
    )


def category_channel_type() -> ChannelArgumentType:
    return ChannelArgumentType(
        "category-channel",
        frozenset({hikari.ChannelType.GUILD_CATEGORY}),
        "categories",
    )


def news_channel_type() -> ChannelArgumentType:
    return ChannelArgumentType("news-channel", frozenset({hikari.ChannelType.GUILD_NEWS}), "news channels")


def stage_channel_type() -> ChannelArgumentType:
    return ChannelArgumentType("stage-channel", frozenset({hikari.ChannelType.GUILD_STAGE}), "stage channels")


class ThreadChannelArgumentType(ChannelArgumentType):
    """Threads are cached apart from the other guild channels."""

    def __init__(self) -> None:
        super().__init__(
            "thread-channel",
            frozenset(
                {
                    hikari.ChannelType.GUILD_NEWS_THREAD,
                    hikari.ChannelType.GUILD_PUBLIC_THREAD,
                    hikari.ChannelType.GUILD_PRIVATE_THREAD,
                }
            ),
            "threads",
        )

    async def fetch_by_id(self, ctx: CommandContext, snowflake: int) -> hikari.GuildChannel | None:
        thread = ctx.app.cache.get_thread(snowflake)
        if thread is not None:
            return thread if thread.guild_id == ctx.guild_id else None
        return await super().fetch_by_id(ctx, snowflake)

    def candidates(self, ctx: CommandContext) -> Iterable[hikari.GuildThreadChannel]:
        return ctx.app.cache.get_threads_view_for_guild(ctx.guild_id).values()


class CustomEmojiArgumentType(SearchableArgumentType):
    """Custom emojis by ``<:name:id>``, ID, or name among the current guild's emojis."""

    mention_pattern = EMOJI_MENTION
    plural = "emojis"
    guild_only = False

    def __init__(self) -> None:
        super().__init__("custom-emoji")

    async def fetch_by_id(self, ctx: CommandContext, snowflake: int) -> hikari.KnownCustomEmoji | None:
        return ctx.app.cache.get_emoji(snowflake)

    def candidates(self, ctx: CommandContext) -> Iterable[hikari.KnownCustomEmoji]:
        if ctx.guild_id is None:
            return []
        return ctx.app.cache.get_emojis_view_for_guild(ctx.guild_id).values()


class InviteArgumentType(ArgumentType):
    """Invites by code or ``discord.gg`` link, fetched over REST."""

    def __init__(self) -> None:
        super().__init__("invite")
        self._fetched: dict[str, hikari.Invite] = {}

    @staticmethod
    def code_of(value: str) -> str:
        value = str(value).strip()
        match = INVITE_URL.match(value)
        return match.group(1) if match else value

    async def fetch(self, ctx: CommandContext, code: str) -> hikari.Invite | None:
        try:
            return await ctx.app.rest.fetch_invite(code)
        except (hikari.NotFoundError, hikari.BadRequestError):
            logger.debug(f"Invite {code} could not be fetched")
            return None

    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        code = self.code_of(value)
        if not code or "/" in code:
            return False
        invite = await self.fetch(ctx, code)
        if invite is None:
            return False
        self._fetched[code] = invite
        return True

    async def parse(self, value: str, ctx: CommandContext, argument: Argument) -> hikari.Invite | None:
        code = self.code_of(value)
        invite = self._fetched.pop(code, None)
        return invite if invite is not None else await self.fetch(ctx, code)
