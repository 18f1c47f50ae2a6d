"""A command framework for hikari bots with interactive argument prompting."""

from .errors import CommandFormatError, FriendlyError
from .types import ArgumentType
from .commands import (
    Argument,
    ArgumentCollector,
    ArgumentInfo,
    CancelReason,
    Command,
    CommandBlockReason,
    CommandGroup,
    CommandRegistry,
    ThrottlingOptions,
    command,
)
from .core import EventSystem
from .core.context import CommandContext, InteractionContext, MessageContext
from .core.dispatcher import CommandDispatcher, Inhibition
from .core.bot import CommandBot

__version__ = "0.1.0"

__all__ = [
    "Argument",
    "ArgumentCollector",
    "ArgumentInfo",
    "ArgumentType",
    "CancelReason",
    "Command",
    "CommandBlockReason",
    "CommandBot",
    "CommandContext",
    "CommandDispatcher",
    "CommandFormatError",
    "CommandGroup",
    "CommandRegistry",
    "EventSystem",
    "FriendlyError",
    "Inhibition",
    "InteractionContext",
    "MessageContext",
    "ThrottlingOptions",
    "command",
]
