"""Command arguments and the interactive prompting used to obtain their values."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import hikari

from config.settings import settings

from ..core.utils import clean_user_input, maybe_await
from ..types.base import ArgumentType
from ..types.union import UNION_SEPARATOR, ArgumentUnionType

if TYPE_CHECKING:
    from ..core.context import CommandContext
    from .registry import CommandRegistry

logger = logging.getLogger(__name__)

PROMPT_COLOR = hikari.Color(0x3498DB)
INVALID_COLOR = hikari.Color(0xED4245)

CANCEL_KEYWORD = "cancel"
FINISH_KEYWORD = "finish"

# Slash command option types used when a command is exposed as an application command
OPTION_TYPES = {
    "string": hikari.OptionType.STRING,
    "integer": hikari.OptionType.INTEGER,
    "float": hikari.OptionType.FLOAT,
    "boolean": hikari.OptionType.BOOLEAN,
    "user": hikari.OptionType.USER,
    "member": hikari.OptionType.USER,
    "role": hikari.OptionType.ROLE,
    "channel": hikari.OptionType.CHANNEL,
    "text-channel": hikari.OptionType.CHANNEL,
    "voice-channel": hikari.OptionType.CHANNEL,
    "category-channel": hikari.OptionType.CHANNEL,
    "news-channel": hikari.OptionType.CHANNEL,
    "stage-channel": hikari.OptionType.CHANNEL,
    "thread-channel": hikari.OptionType.CHANNEL,
}


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class CancelReason(str, Enum):
    """Why obtaining an argument stopped before producing a value."""

    USER = "user"
    TIME = "time"
    PROMPT_LIMIT = "prompt_limit"


@dataclass
class ArgumentResult:
    value: Any = None
    cancelled: CancelReason | None = None
    prompts: list[hikari.Message] = field(default_factory=list)
    answers: list[hikari.Message] = field(default_factory=list)


@dataclass
class ArgumentInfo:
    """Declarative description of a command argument.

    ``required`` is derived from ``default`` when left as ``None``: an argument
    without a default is required. ``default`` may be a callable taking
    ``(ctx, argument)``, sync or async, to compute the value lazily.
    """

    key: str
    prompt: str
    type: str | list[str] | None = None
    label: str | None = None
    error: str | None = None
    min: float | None = None
    max: float | None = None
    choices: list[Any] | None = None
    default: Any = MISSING
    required: bool | None = None
    infinite: bool = False
    wait: float | None = None
    skip_extra_date_validation: bool = False
    validate: Callable[..., Any] | None = None
    parse: Callable[..., Any] | None = None
    is_empty: Callable[..., bool] | None = None


class Argument:
    """A single argument of a command, bound to an argument type or custom validate/parse functions."""

    def __init__(self, registry: CommandRegistry, info: ArgumentInfo) -> None:
        self.validate_info(registry, info)

        self.key = info.key
        self.label = info.label or info.key
        self.prompt = info.prompt
        self.error = info.error
        self.type = self.resolve_type(registry, info.type)
        self.min = info.min
        self.max = info.max
        self.has_default = info.default is not MISSING
        self.default = info.default if self.has_default else None
        self.required = info.required if info.required is not None else not self.has_default
        self.skip_extra_date_validation = info.skip_extra_date_validation
        self.choices = (
            [choice.lower() if isinstance(choice, str) else choice for choice in info.choices]
            if info.choices is not None
            else None
        )
        self.infinite = info.infinite
        self.wait = info.wait if info.wait is not None else settings.argument_wait
        self._validator = info.validate
        self._parser = info.parse
        self._empty_checker = info.is_empty

    def __repr__(self) -> str:
        type_id = self.type.id if self.type else None
        return f"<Argument key={self.key!r} type={type_id!r} required={self.required}>"

    @property
    def timeout(self) -> float | None:
        """Seconds to wait for a reply, or ``None`` to wait forever."""
        if self.wait <= 0 or math.isinf(self.wait):
            return None
        return self.wait

    @property
    def option_type(self) -> hikari.OptionType:
        if self.type is None or isinstance(self.type, ArgumentUnionType):
            return hikari.OptionType.STRING
        return OPTION_TYPES.get(self.type.id, hikari.OptionType.STRING)

    async def resolve_default(self, ctx: CommandContext) -> Any:
        if callable(self.default):
            return await maybe_await(self.default(ctx, self))
        return self.default

    async def obtain(
        self, ctx: CommandContext, value: str | list[str] | None = None, prompt_limit: float = math.inf
    ) -> ArgumentResult:
        """
        Obtain a value for this argument, prompting the user when the given value is missing or invalid.

        Args:
            ctx: The context of the command invocation
            value: A pre-provided raw value, or a list of them for infinite arguments
            prompt_limit: Maximum number of prompts to send before giving up

        Returns:
            The result, which carries the cancellation reason if no value was obtained
        """
        empty = self.is_empty(value, ctx)
        if empty and not self.required:
            return ArgumentResult(value=await self.resolve_default(ctx))
        if self.infinite or isinstance(value, list):
            return await self.obtain_infinite(ctx, value, prompt_limit)

        prompts: list[hikari.Message] = []
        answers: list[hikari.Message] = []
        valid = await self.validate(value, ctx) if not empty else False

        while empty or valid is not True:
            if len(prompts) >= prompt_limit:
                return ArgumentResult(cancelled=CancelReason.PROMPT_LIMIT, prompts=prompts, answers=answers)

            embed = hikari.Embed(color=PROMPT_COLOR if empty and self.prompt else INVALID_COLOR)
            if not empty:
                embed.description = f"**{valid}**" if valid else f"You provided an invalid {self.label}. Please try again."
            embed.add_field(self.prompt, "Respond with `cancel` to cancel the command.")
            if self.timeout:
                embed.set_footer(f"The command will automatically be cancelled in {self.wait:g} seconds.")
            prompts.append(await ctx.send_prompt(embed))

            response = await ctx.wait_for_reply(self.timeout)
            if response is None:
                return ArgumentResult(cancelled=CancelReason.TIME, prompts=prompts, answers=answers)

            answers.append(response)
            value = response.content or ""
            if value.lower() == CANCEL_KEYWORD:
                return ArgumentResult(cancelled=CancelReason.USER, prompts=prompts, answers=answers)

            empty = self.is_empty(value, ctx)
            valid = await self.validate(value, ctx) if not empty else False

        return ArgumentResult(value=await self.parse(value or "", ctx), prompts=prompts, answers=answers)

    async def obtain_infinite(
        self, ctx: CommandContext, values: list[str] | None = None, prompt_limit: float = math.inf
    ) -> ArgumentResult:
        """Obtain any number of values, until ``finish`` is sent or the pre-provided values run out."""
        results: list[Any] = []
        prompts: list[hikari.Message] = []
        answers: list[hikari.Message] = []
        position = 0

        while True:
            value = values[position] if values and position < len(values) else None
            valid = await self.validate(value, ctx) if value else False
            attempts = 0

            while valid is not True:
                attempts += 1
                if attempts > prompt_limit:
                    return ArgumentResult(cancelled=CancelReason.PROMPT_LIMIT, prompts=prompts, answers=answers)

                if value:
                    embed = hikari.Embed(
                        color=INVALID_COLOR,
                        description=valid or (
                            f'You provided an invalid {self.label}, "{clean_user_input(value)}". Please try again.'
                        ),
                    )
                    embed.add_field(
                        self.prompt,
                        "**Don't type the whole command again!** Only what I ask for.\n"
                        "Respond with `cancel` to cancel the command, or `finish` to finish entry up to this point.",
                    )
                    if self.timeout:
                        embed.set_footer(f"The command will automatically be cancelled in {self.wait:g} seconds.")
                    prompts.append(await ctx.send_prompt(embed))
                elif not results:
                    embed = hikari.Embed(color=PROMPT_COLOR)
                    embed.add_field(
                        self.prompt,
                        "**Don't type the whole command again!** Only what I ask for.\n"
                        "Respond with `cancel` to cancel the command, or `finish` to finish entry.",
                    )
                    if self.timeout:
                        embed.set_footer(
                            f"The command will automatically be cancelled in {self.wait:g} seconds, unless you respond."
                        )
                    prompts.append(await ctx.send_prompt(embed))

                response = await ctx.wait_for_reply(self.timeout)
                if response is None:
                    return ArgumentResult(cancelled=CancelReason.TIME, prompts=prompts, answers=answers)

                answers.append(response)
                value = response.content or ""
                keyword = value.lower()
                if keyword == FINISH_KEYWORD:
                    return await self._finish(ctx, results, prompts, answers)
                if keyword == CANCEL_KEYWORD:
                    return ArgumentResult(cancelled=CancelReason.USER, prompts=prompts, answers=answers)

                valid = await self.validate(value, ctx)

            results.append(await self.parse(value or "", ctx))

            if values:
                position += 1
                if position == len(values):
                    return ArgumentResult(value=results, prompts=prompts, answers=answers)

    async def _finish(
        self,
        ctx: CommandContext,
        results: list[Any],
        prompts: list[hikari.Message],
        answers: list[hikari.Message],
    ) -> ArgumentResult:
        if results:
            return ArgumentResult(value=results, prompts=prompts, answers=answers)
        if self.has_default:
            return ArgumentResult(value=await self.resolve_default(ctx), prompts=prompts, answers=answers)
        return ArgumentResult(cancelled=CancelReason.USER, prompts=prompts, answers=answers)

    async def validate(self, value: str | None, ctx: CommandContext) -> bool | str:
        """Check a raw value, returning ``True`` or the reason it was rejected."""
        validator = self._validator or self.type.validate
        valid = await maybe_await(validator(value, ctx, self))
        if valid is True:
            return True
        return self.error or valid or False

    async def parse(self, value: str, ctx: CommandContext) -> Any:
        if self._parser is not None:
            return await maybe_await(self._parser(value, ctx, self))
        return await self.type.parse(value, ctx, self)

    def is_empty(self, value: Any, ctx: CommandContext) -> bool:
        if self._empty_checker is not None:
            return self._empty_checker(value, ctx, self)
        if self.type is not None:
            return self.type.is_empty(value, ctx, self)
        if isinstance(value, list):
            return len(value) == 0
        return not value

    @staticmethod
    def validate_info(registry: CommandRegistry, info: ArgumentInfo) -> None:
        if not isinstance(info.key, str) or not info.key:
            raise TypeError("Argument key must be a non-empty string.")
        if info.label is not None and not isinstance(info.label, str):
            raise TypeError("Argument label must be a string.")
        if not isinstance(info.prompt, str):
            raise TypeError("Argument prompt must be a string.")
        if info.error is not None and not isinstance(info.error, str):
            raise TypeError("Argument error must be a string.")
        if info.type is not None and not isinstance(info.type, (str, list)):
            raise TypeError("Argument type must be a string or a list of strings.")
        if info.type:
            type_ids = info.type if isinstance(info.type, list) else info.type.split(UNION_SEPARATOR)
            for type_id in type_ids:
                if type_id not in registry.types:
                    raise ValueError(f'Argument type "{type_id}" isn\'t registered.')
        if info.validate is not None and not callable(info.validate):
            raise TypeError("Argument validate must be callable.")
        if info.parse is not None and not callable(info.parse):
            raise TypeError("Argument parse must be callable.")
        if info.type is None and (info.validate is None or info.parse is None):
            raise ValueError("Argument must have both validate and parse since it doesn't have a type.")
        if info.wait is not None and (not isinstance(info.wait, (int, float)) or math.isnan(info.wait)):
            raise TypeError("Argument wait must be a number.")

    @staticmethod
    def resolve_type(registry: CommandRegistry, type_id: str | list[str] | None) -> ArgumentType | None:
        """Look up a type by ID, registering a union type the first time a combined ID is used."""
        if not type_id:
            return None
        if isinstance(type_id, list):
            type_id = UNION_SEPARATOR.join(type_id)
        if UNION_SEPARATOR not in type_id:
            return registry.types.get(type_id)

        existing = registry.types.get(type_id)
        if existing is not None:
            return existing
        union = ArgumentUnionType(registry, type_id)
        registry.register_type(union)
        logger.debug(f"Registered union argument type: {type_id}")
        return union
