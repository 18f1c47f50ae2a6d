"""Decorator for declaring commands as plain async functions."""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import hikari

from .base import Command

if TYPE_CHECKING:
    from ..core.context import CommandContext
    from .collector import ArgumentCollectorResult
    from .registry import CommandRegistry

CommandCallback = Callable[..., Awaitable[Any]]


class FunctionCommand(Command):
    """A command whose body is an async function.

    Collected arguments are passed to the callback as keyword arguments; a raw
    argument string, token list or pattern match is passed positionally.
    """

    def __init__(self, registry: CommandRegistry, callback: CommandCallback, **info: Any) -> None:
        super().__init__(registry, **info)
        self.callback = callback

    async def run(
        self,
        ctx: CommandContext,
        args: dict[str, Any] | list[str] | str | re.Match[str],
        from_pattern: bool = False,
        result: ArgumentCollectorResult | None = None,
    ) -> hikari.Message | list[hikari.Message] | None:
        if isinstance(args, dict):
            return await self.callback(ctx, **args)
        return await self.callback(ctx, args)


def command(name: str, group: str, description: str = "", **options: Any) -> Callable[[CommandCallback], CommandCallback]:
    """
    Declare an async function as a command.

    The metadata is stored on the function and turned into a
    :class:`FunctionCommand` when the function is passed to
    :meth:`CommandRegistry.register_command`. ``options`` accepts every
    keyword argument of :class:`Command`.
    """

    def decorator(func: CommandCallback) -> CommandCallback:
        func._command_info = {
            "name": name,
            "group": group,
            "description": description or (func.__doc__ or "").strip().split("\n")[0],
            **options,
        }
        return func

    return decorator


def is_command_function(obj: Any) -> bool:
    return callable(obj) and hasattr(obj, "_command_info")
