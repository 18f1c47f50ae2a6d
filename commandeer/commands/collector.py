"""Sequential collection of several arguments."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import hikari

from config.settings import settings

from .argument import Argument, ArgumentInfo, CancelReason

if TYPE_CHECKING:
    from ..core.context import CommandContext
    from .registry import CommandRegistry

logger = logging.getLogger(__name__)


@dataclass
class ArgumentCollectorResult:
    values: dict[str, Any] | None = None
    cancelled: CancelReason | None = None
    prompts: list[hikari.Message] = field(default_factory=list)
    answers: list[hikari.Message] = field(default_factory=list)


class ArgumentCollector:
    """Obtains the values of an ordered list of arguments, one after another.

    Required arguments must come before optional ones and only the last
    argument may be infinite.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        args: Sequence[ArgumentInfo | Argument],
        prompt_limit: float | None = None,
    ) -> None:
        self.registry = registry
        if prompt_limit is None:
            prompt_limit = settings.prompt_limit
        self.prompt_limit = math.inf if prompt_limit is None else prompt_limit
        self.args: list[Argument] = []

        has_infinite = False
        has_optional = False
        keys: set[str] = set()
        for info in args:
            if has_infinite:
                raise ValueError("No other argument may come after an infinite argument.")

            argument = info if isinstance(info, Argument) else Argument(registry, info)
            if argument.key in keys:
                raise ValueError(f'Argument key "{argument.key}" is used more than once.')
            keys.add(argument.key)

            if not argument.required:
                has_optional = True
            elif has_optional:
                raise ValueError("Required arguments may not come after optional arguments.")

            if argument.infinite:
                has_infinite = True
            self.args.append(argument)

    async def obtain(
        self,
        ctx: CommandContext,
        provided: Sequence[str] = (),
        prompt_limit: float | None = None,
    ) -> ArgumentCollectorResult:
        """
        Obtain values for every argument, prompting where needed.

        While this runs, the invoking user is marked as awaiting input in the
        invocation channel so their replies are not dispatched as commands.

        Args:
            ctx: The context of the command invocation
            provided: Raw values already given with the command, in argument order
            prompt_limit: Overrides the collector's prompt limit for this call

        Returns:
            The collected values keyed by argument key, or the cancellation reason
        """
        limit = self.prompt_limit if prompt_limit is None else prompt_limit
        provided = list(provided)
        values: dict[str, Any] = {}
        prompts: list[hikari.Message] = []
        answers: list[hikari.Message] = []

        with ctx.dispatcher.awaiting_input(ctx.author.id, ctx.channel_id):
            for index, argument in enumerate(self.args):
                if argument.infinite:
                    value: Any = provided[index:]
                else:
                    value = provided[index] if index < len(provided) else None

                result = await argument.obtain(ctx, value, limit)
                prompts.extend(result.prompts)
                answers.extend(result.answers)

                if result.cancelled is not None:
                    logger.debug(f"Collection of argument {argument.key} cancelled: {result.cancelled.value}")
                    return ArgumentCollectorResult(cancelled=result.cancelled, prompts=prompts, answers=answers)

                values[argument.key] = result.value

        return ArgumentCollectorResult(values=values, prompts=prompts, answers=answers)
