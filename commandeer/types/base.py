"""Base class for argument types."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..commands.argument import Argument
    from ..core.context import CommandContext


class ArgumentType(ABC):
    """Describes how to validate, parse and detect emptiness of a raw argument value.

    Instances are registered once in a :class:`~commandeer.commands.registry.CommandRegistry`
    under their ``id`` and shared by every argument of that type.
    """

    def __init__(self, type_id: str) -> None:
        if not type_id or type_id != type_id.lower():
            raise ValueError("Argument type ID must be a non-empty lowercase string.")
        self.id = type_id

    @abstractmethod
    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        """Return ``True`` if the value is acceptable, otherwise ``False`` or a reason to show the user."""
        pass

    @abstractmethod
    async def parse(self, value: str, ctx: CommandContext, argument: Argument) -> Any:
        """Convert a value that last passed validation into its typed form."""
        pass

    def is_empty(self, value: Any, ctx: CommandContext, argument: Argument) -> bool:
        if isinstance(value, (list, tuple)):
            return len(value) == 0
        return value is None or value == ""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"
