"""Command groups."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..database.guild_settings import GuildSettingsStore
    from .base import Command


class CommandGroup:
    """A named collection of commands that can be enabled or disabled together."""

    def __init__(self, group_id: str, name: str | None = None, guarded: bool = False) -> None:
        if not isinstance(group_id, str) or not group_id or group_id != group_id.lower():
            raise ValueError("Group ID must be a non-empty lowercase string.")

        self.id = group_id
        self.name = name or group_id
        self.guarded = guarded
        self.commands: dict[str, Command] = {}
        self._global_enabled = True

    def __repr__(self) -> str:
        return f"<CommandGroup id={self.id!r} commands={len(self.commands)}>"

    @property
    def globally_enabled(self) -> bool:
        return self._global_enabled

    def set_globally_enabled(self, enabled: bool) -> None:
        if self.guarded:
            raise ValueError(f"The {self.id} group is guarded.")
        self._global_enabled = enabled

    def is_enabled_in(self, guild_id: int | None, store: GuildSettingsStore | None = None) -> bool:
        if self.guarded:
            return True
        if guild_id is None or store is None:
            return self._global_enabled
        return store.is_group_enabled(guild_id, self)
