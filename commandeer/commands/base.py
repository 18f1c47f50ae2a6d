"""Base command class and the policy every command declares."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import hikari

from ..core.utils import format_permissions, is_moderator, missing_permissions
from .argument import Argument, ArgumentInfo
from .collector import ArgumentCollector, ArgumentCollectorResult
from .throttling import Throttle, ThrottleManager, ThrottlingOptions

if TYPE_CHECKING:
    from ..core.context import CommandContext
    from ..database.guild_settings import GuildSettingsStore
    from .group import CommandGroup
    from .registry import CommandRegistry

logger = logging.getLogger(__name__)

ARGS_TYPES = ("single", "multiple")


class CommandBlockReason(str, Enum):
    DISABLED = "disabled"
    SEND_MESSAGES = "send_messages"
    USE_APPLICATION_COMMANDS = "use_application_commands"
    DM_ONLY = "dm_only"
    GUILD_ONLY = "guild_only"
    OWNER_ONLY = "owner_only"
    GUILD_OWNER_ONLY = "guild_owner_only"
    NSFW = "nsfw"
    USER_PERMISSIONS = "user_permissions"
    MOD_PERMISSIONS = "mod_permissions"
    CLIENT_PERMISSIONS = "client_permissions"
    THROTTLING = "throttling"


@dataclass
class CommandBlockData:
    missing: list[hikari.Permissions] = field(default_factory=list)
    throttle: Throttle | None = None
    remaining: float | None = None


class Command(ABC):
    """A command that can be triggered by a message or an application command interaction.

    Subclasses implement :meth:`run`. Everything else (where the command may
    be used, who may use it, how often, and which arguments it takes) is
    declared through the constructor.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        *,
        name: str,
        group: str,
        description: str,
        member_name: str | None = None,
        aliases: Sequence[str] = (),
        auto_aliases: bool = True,
        format: str | None = None,
        details: str | None = None,
        examples: Sequence[str] | None = None,
        dm_only: bool = False,
        guild_only: bool = False,
        guild_owner_only: bool = False,
        owner_only: bool = False,
        nsfw: bool = False,
        client_permissions: hikari.Permissions = hikari.Permissions.NONE,
        user_permissions: hikari.Permissions = hikari.Permissions.NONE,
        mod_permissions: bool = False,
        default_handling: bool = True,
        throttling: ThrottlingOptions | None = None,
        args: Sequence[ArgumentInfo | Argument] = (),
        args_prompt_limit: float | None = None,
        args_type: str = "single",
        args_count: int = 0,
        args_single_quotes: bool = True,
        patterns: Sequence[re.Pattern[str] | str] = (),
        guarded: bool = False,
        hidden: bool = False,
        unknown: bool = False,
        deprecated: bool = False,
        deprecated_replacement: str | None = None,
        application_command: bool = False,
        default_error_handling: bool = True,
    ) -> None:
        self.validate_info(name, group, aliases, args_type, args_count, throttling)

        self.registry = registry
        self.name = name
        self.aliases = list(aliases)
        if auto_aliases:
            for alias in [name, *aliases]:
                if "-" in alias and alias.replace("-", "") not in self.aliases:
                    self.aliases.append(alias.replace("-", ""))
        self.group_id = group
        self.group: CommandGroup | None = None
        self.member_name = member_name or name
        self.description = description
        self.details = details
        self.examples = list(examples) if examples else None
        self.dm_only = dm_only
        self.guild_only = guild_only
        self.guild_owner_only = guild_owner_only
        self.owner_only = owner_only
        self.nsfw = nsfw
        self.client_permissions = client_permissions
        self.user_permissions = user_permissions
        self.mod_permissions = mod_permissions
        self.default_handling = default_handling
        self.throttling = throttling
        self.args_collector = ArgumentCollector(registry, args, args_prompt_limit) if args else None
        self.format = format if format is not None else self._generate_format()
        self.args_type = args_type
        self.args_count = args_count
        self.args_single_quotes = args_single_quotes
        self.patterns = [re.compile(pattern) if isinstance(pattern, str) else pattern for pattern in patterns]
        self.guarded = guarded
        self.hidden = hidden
        self.unknown = unknown
        self.deprecated = deprecated
        self.deprecated_replacement = deprecated_replacement
        self.application_command = application_command
        self.default_error_handling = default_error_handling

        self._global_enabled = True
        self._throttles = ThrottleManager(throttling) if throttling else None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} group={self.group_id!r}>"

    @property
    def arguments(self) -> list[Argument]:
        return self.args_collector.args if self.args_collector else []

    @abstractmethod
    async def run(
        self,
        ctx: CommandContext,
        args: dict[str, Any] | list[str] | str | re.Match[str],
        from_pattern: bool = False,
        result: ArgumentCollectorResult | None = None,
    ) -> hikari.Message | list[hikari.Message] | None:
        """Run the command.

        Args:
            ctx: The context of the invocation
            args: Collected argument values, the raw argument string or tokens, or the pattern match
            from_pattern: Whether the command was triggered by one of its patterns
            result: The argument collection result, when arguments were collected

        Returns:
            The message(s) sent in response, if any
        """

    def has_permission(
        self, ctx: CommandContext, owner_override: bool = True
    ) -> bool | CommandBlockReason | list[hikari.Permissions]:
        """
        Check whether the invoking user may use this command.

        Returns:
            ``True`` if allowed, otherwise the block reason or the list of missing permissions
        """
        if not (self.owner_only or self.guild_owner_only or self.user_permissions or self.mod_permissions):
            return True

        is_owner = ctx.is_owner()
        if owner_override and is_owner:
            return True
        if self.owner_only and not is_owner:
            return CommandBlockReason.OWNER_ONLY

        guild = ctx.get_guild()
        if self.guild_owner_only and (guild is None or guild.owner_id != ctx.author.id):
            return CommandBlockReason.GUILD_OWNER_ONLY

        if ctx.guild_id is None or not (self.user_permissions or self.mod_permissions):
            return True

        permissions = ctx.author_permissions()
        if self.mod_permissions and is_moderator(permissions):
            return True

        missing = missing_permissions(permissions, self.user_permissions)
        if missing:
            return CommandBlockReason.MOD_PERMISSIONS if self.mod_permissions else missing
        if self.mod_permissions and not self.user_permissions:
            return CommandBlockReason.MOD_PERMISSIONS
        return True

    async def on_block(
        self, ctx: CommandContext, reason: CommandBlockReason, data: CommandBlockData | None = None
    ) -> hikari.Message | None:
        """Reply to the user with why the command was blocked."""
        data = data or CommandBlockData()
        name = self.name
        messages = {
            CommandBlockReason.DISABLED: f"The `{name}` command is disabled.",
            CommandBlockReason.DM_ONLY: f"The `{name}` command can only be used in direct messages.",
            CommandBlockReason.GUILD_ONLY: f"The `{name}` command can only be used in a server channel.",
            CommandBlockReason.GUILD_OWNER_ONLY: f"The `{name}` command can only be used by the server's owner.",
            CommandBlockReason.OWNER_ONLY: f"The `{name}` command can only be used by the bot's owner.",
            CommandBlockReason.NSFW: f"The `{name}` command can only be used in NSFW channels.",
            CommandBlockReason.MOD_PERMISSIONS: f"The `{name}` command can only be used by server moderators.",
        }

        if reason in messages:
            content = messages[reason]
        elif reason is CommandBlockReason.USER_PERMISSIONS:
            content = (
                f"The `{name}` command requires you to have the following permissions: "
                f"{', '.join(format_permissions(data.missing))}"
            )
        elif reason is CommandBlockReason.CLIENT_PERMISSIONS:
            content = (
                f"I need the following permissions for the `{name}` command to work: "
                f"{', '.join(format_permissions(data.missing))}"
            )
        elif reason is CommandBlockReason.THROTTLING:
            content = f"You may not use the `{name}` command again for another {data.remaining:.1f} seconds."
        else:
            return None

        return await ctx.reply(content)

    async def on_error(
        self,
        error: Exception,
        ctx: CommandContext,
        args: Any = None,
        from_pattern: bool = False,
        result: ArgumentCollectorResult | None = None,
    ) -> hikari.Message | None:
        """Reply with a generic failure message unless ``default_error_handling`` is off."""
        if not self.default_error_handling:
            return None
        return await ctx.reply(
            f"An error occurred while running the command: `{type(error).__name__}: {error}`\n"
            "You shouldn't ever receive an error like this."
        )

    def throttle(self, user_id: int) -> Throttle | None:
        """Get or start the user's throttle window, or ``None`` if the command isn't throttled."""
        if self._throttles is None:
            return None
        return self._throttles.get(user_id, create=True)

    def throttle_remaining(self, user_id: int) -> float | None:
        if self._throttles is None:
            return None
        return self._throttles.remaining(user_id)

    def record_usage(self, user_id: int) -> None:
        if self._throttles is not None:
            self._throttles.record_usage(user_id)

    def clear_throttles(self) -> None:
        if self._throttles is not None:
            self._throttles.clear()

    @property
    def globally_enabled(self) -> bool:
        return self._global_enabled

    def set_globally_enabled(self, enabled: bool) -> None:
        if self.guarded:
            raise ValueError(f"The {self.name} command is guarded.")
        self._global_enabled = enabled

    def is_enabled_in(
        self, guild_id: int | None, store: GuildSettingsStore | None = None, bypass_group: bool = False
    ) -> bool:
        """Check whether the command is enabled in a guild, or globally when ``guild_id`` is ``None``."""
        if self.guarded:
            return True

        group_enabled = bypass_group or self.group is None or self.group.is_enabled_in(guild_id, store)
        if not group_enabled:
            return False
        if guild_id is None or store is None:
            return self._global_enabled
        return store.is_command_enabled(guild_id, self)

    def is_usable(self, ctx: CommandContext | None = None) -> bool:
        """Check whether the command can currently be used in the given context."""
        if ctx is None:
            return self._global_enabled
        if self.dm_only and ctx.guild_id is not None:
            return False
        if self.guild_only and ctx.guild_id is None:
            return False
        return self.is_enabled_in(ctx.guild_id, ctx.dispatcher.guild_settings) and self.has_permission(ctx) is True

    def usage(self, arg_string: str | None = None, prefix: str | None = None, user: hikari.User | None = None) -> str:
        """Build a usage string for this command, e.g. ``!echo <text>`` or ``@Bot echo <text>``."""
        command = f"{self.name} {arg_string}" if arg_string else self.name
        return self.usage_for(command, prefix, user)

    @staticmethod
    def usage_for(command: str, prefix: str | None = None, user: hikari.User | None = None) -> str:
        nbcmd = command.replace(" ", "\xa0")
        if not prefix and not user:
            return f"``{nbcmd}``"

        prefix_part = ""
        if prefix:
            if len(prefix) > 1 and not prefix.endswith(" "):
                prefix += " "
            prefix_part = f"``{prefix.replace(' ', chr(0xA0))}{nbcmd}``"

        mention_part = ""
        if user:
            mention_part = f"``@{user.username.replace(' ', chr(0xA0))}\xa0{nbcmd}``"

        separator = " or " if prefix and user else ""
        return f"{prefix_part}{separator}{mention_part}"

    def build_application_command(self, rest: hikari.api.RESTClient) -> hikari.api.SlashCommandBuilder:
        """Create the slash command definition for this command from its arguments."""
        builder = rest.slash_command_builder(self.name, self.description[:100])
        for argument in self.arguments:
            builder.add_option(
                hikari.CommandOption(
                    type=argument.option_type,
                    name=argument.key,
                    description=argument.prompt[:100] or argument.label,
                    is_required=argument.required,
                )
            )
        return builder

    def _generate_format(self) -> str | None:
        if self.args_collector is None:
            return None
        parts = []
        for argument in self.args_collector.args:
            label = f"{argument.label}{'...' if argument.infinite else ''}"
            parts.append(f"<{label}>" if argument.required else f"[{label}]")
        return " ".join(parts)

    @staticmethod
    def validate_info(
        name: str,
        group: str,
        aliases: Sequence[str],
        args_type: str,
        args_count: int,
        throttling: ThrottlingOptions | None,
    ) -> None:
        if not isinstance(name, str) or not name:
            raise TypeError("Command name must be a non-empty string.")
        if name != name.lower() or any(char.isspace() for char in name):
            raise ValueError("Command name must be lowercase and contain no whitespace.")
        for alias in aliases:
            if not isinstance(alias, str) or alias != alias.lower() or not alias:
                raise ValueError("Command aliases must be non-empty lowercase strings.")
        if not isinstance(group, str) or group != group.lower() or not group:
            raise ValueError("Command group ID must be a non-empty lowercase string.")
        if args_type not in ARGS_TYPES:
            raise ValueError(f"Command args_type must be one of {', '.join(ARGS_TYPES)}.")
        if args_type == "multiple" and args_count < 0:
            raise ValueError("Command args_count must be a non-negative integer.")
        if throttling is not None and not isinstance(throttling, ThrottlingOptions):
            raise TypeError("Command throttling must be ThrottlingOptions.")
