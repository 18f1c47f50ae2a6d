"""Argument types that resolve commands and groups from the registry."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any

from ..core.utils import disambiguation, escape_markdown
from .base import ArgumentType
from .entities import MAX_DISAMBIGUATION_ITEMS

if TYPE_CHECKING:
    from ..commands.argument import Argument
    from ..commands.registry import CommandRegistry
    from ..core.context import CommandContext


class _RegistryLookupType(ArgumentType):
    plural = "items"

    def __init__(self, registry: CommandRegistry, type_id: str) -> None:
        super().__init__(type_id)
        self.registry = registry

    @abstractmethod
    def find(self, value: str) -> list[Any]:
        pass

    def display(self, item: Any) -> str:
        return item.name

    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        found = self.find(value)
        if len(found) == 1:
            return True
        if not found:
            return False
        if len(found) <= MAX_DISAMBIGUATION_ITEMS:
            return disambiguation([escape_markdown(self.display(item)) for item in found], self.plural)
        return f"Multiple {self.plural} found. Please be more specific."

    async def parse(self, value: str, ctx: CommandContext, argument: Argument) -> Any:
        found = self.find(value)
        return found[0] if found else None


class CommandArgumentType(_RegistryLookupType):
    plural = "commands"

    def __init__(self, registry: CommandRegistry) -> None:
        super().__init__(registry, "command")

    def find(self, value: str) -> list[Any]:
        return self.registry.find_commands(value)


class GroupArgumentType(_RegistryLookupType):
    plural = "groups"

    def __init__(self, registry: CommandRegistry) -> None:
        super().__init__(registry, "group")

    def find(self, value: str) -> list[Any]:
        return self.registry.find_groups(value)
