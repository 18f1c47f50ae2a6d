"""Registry of commands, command groups and argument types."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from ..types import (
    ArgumentType,
    BooleanArgumentType,
    ChannelArgumentType,
    CommandArgumentType,
    CustomEmojiArgumentType,
    DateArgumentType,
    DurationArgumentType,
    FloatArgumentType,
    GroupArgumentType,
    IntegerArgumentType,
    InviteArgumentType,
    MemberArgumentType,
    RoleArgumentType,
    StringArgumentType,
    ThreadChannelArgumentType,
    TimeArgumentType,
    UserArgumentType,
    category_channel_type,
    news_channel_type,
    stage_channel_type,
    text_channel_type,
    voice_channel_type,
)
from .base import Command
from .decorators import FunctionCommand, is_command_function
from .group import CommandGroup

if TYPE_CHECKING:
    from ..core.context import CommandContext

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Holds every registered command, group and argument type.

    Names, aliases, group IDs and type IDs are unique; registering a duplicate
    raises ``ValueError``.
    """

    def __init__(self) -> None:
        self.commands: dict[str, Command] = {}
        self.groups: dict[str, CommandGroup] = {}
        self.types: dict[str, ArgumentType] = {}
        self.unknown_command: Command | None = None

    def __repr__(self) -> str:
        return f"<CommandRegistry commands={len(self.commands)} groups={len(self.groups)} types={len(self.types)}>"

    # Groups

    def register_group(self, group: CommandGroup | str, name: str | None = None, guarded: bool = False) -> CommandGroup:
        if isinstance(group, str):
            group = CommandGroup(group, name, guarded)
        if not isinstance(group, CommandGroup):
            raise TypeError(f"Invalid group object to register: {group!r}")

        existing = self.groups.get(group.id)
        if existing is not None:
            raise ValueError(f'A group with the ID "{group.id}" is already registered.')

        self.groups[group.id] = group
        logger.debug(f"Registered group {group.id}")
        return group

    def register_groups(self, groups: Iterable[CommandGroup | str | tuple[str, str]]) -> CommandRegistry:
        for group in groups:
            if isinstance(group, tuple):
                self.register_group(*group)
            else:
                self.register_group(group)
        return self

    # Commands

    def register_command(self, command: Command | type[Command] | Callable[..., Any]) -> Command:
        """Register a command instance, a command class, or a function decorated with ``@command``."""
        command = self._instantiate(command)

        for name in (command.name, *command.aliases):
            if self._name_taken(name):
                raise ValueError(f'A command with the name/alias "{name}" is already registered.')

        group = self.groups.get(command.group_id)
        if group is None:
            raise ValueError(f'Group "{command.group_id}" is not registered.')
        if any(existing.member_name == command.member_name for existing in group.commands.values()):
            raise ValueError(
                f'A command with the member name "{command.member_name}" is already registered in {group.id}'
            )
        if command.unknown and self.unknown_command is not None:
            raise ValueError("An unknown command is already registered.")

        command.group = group
        group.commands[command.name] = command
        self.commands[command.name] = command
        if command.unknown:
            self.unknown_command = command

        logger.debug(f"Registered command {group.id}:{command.member_name}")
        return command

    def register_commands(self, commands: Iterable[Command | type[Command] | Callable[..., Any]]) -> CommandRegistry:
        for command in commands:
            self.register_command(command)
        return self

    def reregister_command(self, command: Command | type[Command] | Callable[..., Any], old_command: Command) -> Command:
        """Replace a registered command with a new instance of the same command."""
        command = self._instantiate(command)

        if command.name != old_command.name:
            raise ValueError("Command name cannot change.")
        if command.group_id != old_command.group_id:
            raise ValueError("Command group cannot change.")
        if command.member_name != old_command.member_name:
            raise ValueError("Command member name cannot change.")
        if command.unknown and self.unknown_command not in (None, old_command):
            raise ValueError("An unknown command is already registered.")

        old_command.clear_throttles()
        command.group = self.resolve_group(command.group_id)
        command.group.commands[command.name] = command
        self.commands[command.name] = command
        if self.unknown_command is old_command:
            self.unknown_command = None
        if command.unknown:
            self.unknown_command = command

        logger.debug(f"Reregistered command {command.group_id}:{command.member_name}")
        return command

    def unregister_command(self, command: Command) -> None:
        self.commands.pop(command.name, None)
        if command.group is not None:
            command.group.commands.pop(command.name, None)
        if self.unknown_command is command:
            self.unknown_command = None
        command.clear_throttles()
        logger.debug(f"Unregistered command {command.group_id}:{command.member_name}")

    # Types

    def register_type(self, arg_type: ArgumentType | type[ArgumentType]) -> ArgumentType:
        if isinstance(arg_type, type) and issubclass(arg_type, ArgumentType):
            arg_type = arg_type()
        if not isinstance(arg_type, ArgumentType):
            raise TypeError(f"Invalid type object to register: {arg_type!r}")
        if arg_type.id in self.types:
            raise ValueError(f'An argument type with the ID "{arg_type.id}" is already registered.')

        self.types[arg_type.id] = arg_type
        logger.debug(f"Registered argument type {arg_type.id}")
        return arg_type

    def register_types(self, types: Iterable[ArgumentType | type[ArgumentType]]) -> CommandRegistry:
        for arg_type in types:
            self.register_type(arg_type)
        return self

    def register_default_types(self, enabled: Mapping[str, bool] | None = None) -> CommandRegistry:
        """Register the built-in argument types.

        Args:
            enabled: Maps type IDs to ``False`` to skip registering them
        """
        enabled = enabled or {}
        defaults: list[ArgumentType] = [
            StringArgumentType(),
            IntegerArgumentType(),
            FloatArgumentType(),
            BooleanArgumentType(),
            DurationArgumentType(),
            DateArgumentType(),
            TimeArgumentType(),
            UserArgumentType(),
            MemberArgumentType(),
            RoleArgumentType(),
            ChannelArgumentType(),
            text_channel_type(),
            voice_channel_type(),
            category_channel_type(),
            news_channel_type(),
            stage_channel_type(),
            ThreadChannelArgumentType(),
            CustomEmojiArgumentType(),
            InviteArgumentType(),
            CommandArgumentType(self),
            GroupArgumentType(self),
        ]
        for arg_type in defaults:
            if enabled.get(arg_type.id, True):
                self.register_type(arg_type)
        return self

    # Lookups

    def find_groups(self, search: str | None = None, exact: bool = False) -> list[CommandGroup]:
        """Find groups whose ID or name contains ``search``, preferring an exact match."""
        if not search:
            return list(self.groups.values())

        search = search.lower()
        if exact:
            return [group for group in self.groups.values() if group.id == search or group.name.lower() == search]

        matched = [group for group in self.groups.values() if search in group.id or search in group.name.lower()]
        for group in matched:
            if group.id == search or group.name.lower() == search:
                return [group]
        return matched

    def resolve_group(self, group: CommandGroup | str) -> CommandGroup:
        if isinstance(group, CommandGroup):
            return group
        if isinstance(group, str):
            groups = self.find_groups(group, exact=True)
            if len(groups) == 1:
                return groups[0]
        raise ValueError("Unable to resolve group.")

    def find_commands(
        self, search: str | None = None, exact: bool = False, ctx: CommandContext | None = None
    ) -> list[Command]:
        """
        Find commands by name, alias or ``group:member`` path.

        An inexact search matches substrings of names and aliases, but an
        exact name or alias match among the results is returned alone.

        Args:
            search: The text to search for; all commands (usable in ``ctx`` if given) when empty
            exact: Only return exact matches
            ctx: Context used to filter out unusable commands when listing all of them
        """
        if not search:
            if ctx is not None:
                return [command for command in self.commands.values() if command.is_usable(ctx)]
            return list(self.commands.values())

        search = search.lower()
        if exact:
            return [command for command in self.commands.values() if _exact_match(command, search)]

        matched = [
            command
            for command in self.commands.values()
            if search in command.name
            or f"{command.group_id}:{command.member_name}" == search
            or any(search in alias for alias in command.aliases)
        ]
        for command in matched:
            if command.name == search or search in command.aliases:
                return [command]
        return matched

    def resolve_command(self, command: Command | str) -> Command:
        if isinstance(command, Command):
            return command
        if isinstance(command, str):
            commands = self.find_commands(command, exact=True)
            if len(commands) == 1:
                return commands[0]
        raise ValueError("Unable to resolve command.")

    def _instantiate(self, command: Command | type[Command] | Callable[..., Any]) -> Command:
        if isinstance(command, type) and issubclass(command, Command):
            command = command(self)
        elif is_command_function(command):
            command = FunctionCommand(self, command, **command._command_info)
        if not isinstance(command, Command):
            raise TypeError(f"Invalid command object to register: {command!r}")
        return command

    def _name_taken(self, name: str) -> bool:
        return any(command.name == name or name in command.aliases for command in self.commands.values())


def _exact_match(command: Command, search: str) -> bool:
    return (
        command.name == search
        or search in command.aliases
        or f"{command.group_id}:{command.member_name}" == search
    )
