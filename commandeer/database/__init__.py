from .guild_settings import GuildSettingsStore
from .manager import DatabaseManager
from .models import Base, CommandStatus, GroupStatus, GuildConfig

__all__ = [
    "DatabaseManager",
    "GuildSettingsStore",
    "Base",
    "GuildConfig",
    "CommandStatus",
    "GroupStatus",
]
