"""Per-guild prefix and command/group enabled state."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import delete, select

from .models import CommandStatus, GroupStatus, GuildConfig

if TYPE_CHECKING:
    from ..commands.base import Command
    from ..commands.group import CommandGroup
    from ..core.event_system import EventSystem
    from .manager import DatabaseManager

logger = logging.getLogger(__name__)


class GuildSettingsStore:
    """
    In-memory view of guild configuration, optionally persisted to the database.

    Lookups are synchronous and served from the cache so the dispatcher can
    consult them on every message. Writes update the cache first and then the
    database when one is attached. A ``guild_id`` of ``None`` in the setters
    changes the global state of the command or group.
    """

    def __init__(self, db: DatabaseManager | None = None, events: EventSystem | None = None) -> None:
        self.db = db
        self.events = events
        self._prefixes: dict[int, str | None] = {}
        self._commands: dict[int, dict[str, bool]] = {}
        self._groups: dict[int, dict[str, bool]] = {}

    async def load(self) -> None:
        """Fill the cache from the database."""
        if self.db is None:
            return

        async with self.db.session() as session:
            configs = (await session.execute(select(GuildConfig))).scalars().all()
            command_rows = (await session.execute(select(CommandStatus))).scalars().all()
            group_rows = (await session.execute(select(GroupStatus))).scalars().all()

        for config in configs:
            if config.prefix is not None:
                self._prefixes[config.guild_id] = config.prefix
        for row in command_rows:
            self._commands.setdefault(row.guild_id, {})[row.command_name] = row.enabled
        for row in group_rows:
            self._groups.setdefault(row.guild_id, {})[row.group_id] = row.enabled

        logger.info(f"Loaded settings for {len(configs)} guilds")

    # Prefixes

    def get_prefix(self, guild_id: int, default: str | None = None) -> str | None:
        return self._prefixes.get(guild_id, default)

    async def set_prefix(self, guild_id: int, prefix: str | None) -> None:
        """Set a guild's prefix; ``None`` restores the default and ``""`` allows only mentions."""
        if prefix is None:
            self._prefixes.pop(guild_id, None)
        else:
            self._prefixes[guild_id] = prefix

        if self.db is not None:
            async with self.db.session() as session:
                config = await session.get(GuildConfig, guild_id)
                if config is None:
                    session.add(GuildConfig(guild_id=guild_id, prefix=prefix))
                else:
                    config.prefix = prefix

        logger.debug(f"Prefix for guild {guild_id} set to {prefix!r}")

    # Enabled state

    def is_command_enabled(self, guild_id: int, command: Command) -> bool:
        enabled = self._commands.get(guild_id, {}).get(command.name)
        return command.globally_enabled if enabled is None else enabled

    def is_group_enabled(self, guild_id: int, group: CommandGroup) -> bool:
        enabled = self._groups.get(guild_id, {}).get(group.id)
        return group.globally_enabled if enabled is None else enabled

    async def set_command_enabled(self, guild_id: int | None, command: Command, enabled: bool) -> None:
        if command.guarded:
            raise ValueError(f"The {command.name} command is guarded.")

        enabled = bool(enabled)
        if guild_id is None:
            command.set_globally_enabled(enabled)
        else:
            self._commands.setdefault(guild_id, {})[command.name] = enabled
            if self.db is not None:
                async with self.db.session() as session:
                    result = await session.execute(
                        select(CommandStatus).where(
                            CommandStatus.guild_id == guild_id, CommandStatus.command_name == command.name
                        )
                    )
                    row = result.scalar_one_or_none()
                    if row is None:
                        session.add(CommandStatus(guild_id=guild_id, command_name=command.name, enabled=enabled))
                    else:
                        row.enabled = enabled

        logger.info(f"Command {command.name} {'enabled' if enabled else 'disabled'} in {guild_id or 'all guilds'}")
        if self.events is not None:
            await self.events.emit("command_status_change", guild_id, command, enabled)

    async def set_group_enabled(self, guild_id: int | None, group: CommandGroup, enabled: bool) -> None:
        if group.guarded:
            raise ValueError(f"The {group.id} group is guarded.")

        enabled = bool(enabled)
        if guild_id is None:
            group.set_globally_enabled(enabled)
        else:
            self._groups.setdefault(guild_id, {})[group.id] = enabled
            if self.db is not None:
                async with self.db.session() as session:
                    result = await session.execute(
                        select(GroupStatus).where(GroupStatus.guild_id == guild_id, GroupStatus.group_id == group.id)
                    )
                    row = result.scalar_one_or_none()
                    if row is None:
                        session.add(GroupStatus(guild_id=guild_id, group_id=group.id, enabled=enabled))
                    else:
                        row.enabled = enabled

        logger.info(f"Group {group.id} {'enabled' if enabled else 'disabled'} in {guild_id or 'all guilds'}")
        if self.events is not None:
            await self.events.emit("command_status_change", guild_id, group, enabled)

    async def clear_guild(self, guild_id: int) -> None:
        """Forget everything stored for a guild."""
        self._prefixes.pop(guild_id, None)
        self._commands.pop(guild_id, None)
        self._groups.pop(guild_id, None)

        if self.db is not None:
            async with self.db.session() as session:
                await session.execute(delete(GuildConfig).where(GuildConfig.guild_id == guild_id))
                await session.execute(delete(CommandStatus).where(CommandStatus.guild_id == guild_id))
                await session.execute(delete(GroupStatus).where(GroupStatus.guild_id == guild_id))

        logger.debug(f"Cleared settings for guild {guild_id}")
