"""Composite type that tries several registered types in order."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import ArgumentType

if TYPE_CHECKING:
    from ..commands.argument import Argument
    from ..commands.registry import CommandRegistry
    from ..core.context import CommandContext

UNION_SEPARATOR = "|"


class ArgumentUnionType(ArgumentType):
    """A union of argument types, e.g. ``"integer|string"``.

    The first member whose ``validate`` accepts the value wins, and the same
    member is used to parse it.
    """

    def __init__(self, registry: CommandRegistry, type_id: str) -> None:
        super().__init__(type_id)
        self.types: list[ArgumentType] = []
        for member_id in type_id.split(UNION_SEPARATOR):
            member = registry.types.get(member_id)
            if member is None:
                raise ValueError(f'Argument type "{member_id}" is not registered.')
            self.types.append(member)

    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        reasons = []
        for member in self.types:
            result = await member.validate(value, ctx, argument)
            if result is True:
                return True
            if isinstance(result, str) and result:
                reasons.append(result)

        return "\n".join(reasons) if reasons else False

    async def parse(self, value: str, ctx: CommandContext, argument: Argument) -> Any:
        for member in self.types:
            if await member.validate(value, ctx, argument) is True:
                return await member.parse(value, ctx, argument)

        raise ValueError(f"Couldn't parse value {value!r} with union type {self.id}.")

    def is_empty(self, value: Any, ctx: CommandContext, argument: Argument) -> bool:
        return any(member.is_empty(value, ctx, argument) for member in self.types)
