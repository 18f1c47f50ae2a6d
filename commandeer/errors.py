"""Exceptions raised by the command framework."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .core.context import CommandContext


class FriendlyError(Exception):
    """An error whose message is safe to show to the user as-is."""


class CommandFormatError(FriendlyError):
    """Raised when a command was invoked with a malformed argument string."""

    def __init__(self, ctx: CommandContext) -> None:
        command = ctx.command
        if command is None:
            raise TypeError("Command cannot be None.")

        self.command = command
        in_guild = ctx.guild_id is not None
        prefix = ctx.prefix if in_guild else None
        user = ctx.me if in_guild else None
        usage = command.usage(command.format, prefix, user)
        help_usage = command.usage_for(f"help {command.name}", prefix, user)
        super().__init__(
            f"Invalid command usage. The `{command.name}` command's accepted format is: {usage}. "
            f"Use {help_usage} for more information."
        )
