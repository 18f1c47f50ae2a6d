"""Command system: arguments, collectors, commands and their registry."""

from .argument import Argument, ArgumentInfo, ArgumentResult, CancelReason
from .base import Command, CommandBlockData, CommandBlockReason
from .collector import ArgumentCollector, ArgumentCollectorResult
from .decorators import FunctionCommand, command
from .group import CommandGroup
from .parsing import split_args, strip_wrapping_quotes
from .registry import CommandRegistry
from .throttling import Throttle, ThrottleManager, ThrottlingOptions

__all__ = [
    "Argument",
    "ArgumentInfo",
    "ArgumentResult",
    "CancelReason",
    "ArgumentCollector",
    "ArgumentCollectorResult",
    "Command",
    "CommandBlockData",
    "CommandBlockReason",
    "CommandGroup",
    "CommandRegistry",
    "FunctionCommand",
    "command",
    "split_args",
    "strip_wrapping_quotes",
    "Throttle",
    "ThrottleManager",
    "ThrottlingOptions",
]
