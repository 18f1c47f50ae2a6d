"""Utility functions for the command framework."""

from __future__ import annotations

import inspect
import re
from collections.abc import Iterable
from typing import Any

import hikari

# Permissions that make a member count as a moderator
MODERATOR_PERMISSIONS = (
    hikari.Permissions.BAN_MEMBERS
    | hikari.Permissions.KICK_MEMBERS
    | hikari.Permissions.DEAFEN_MEMBERS
    | hikari.Permissions.MUTE_MEMBERS
    | hikari.Permissions.MOVE_MEMBERS
    | hikari.Permissions.MANAGE_CHANNELS
    | hikari.Permissions.MANAGE_GUILD
    | hikari.Permissions.MANAGE_MESSAGES
    | hikari.Permissions.MANAGE_NICKNAMES
    | hikari.Permissions.MANAGE_ROLES
    | hikari.Permissions.MANAGE_THREADS
    | hikari.Permissions.MANAGE_WEBHOOKS
    | hikari.Permissions.MODERATE_MEMBERS
)

_REGEX_SPECIALS = re.compile(r"[|\\{}()\[\]^$+*?.]")
_MARKDOWN_SPECIALS = re.compile(r"([\\*_~`|>])")


def calculate_member_permissions(
    member: hikari.Member, guild: hikari.Guild, channel: hikari.GuildChannel | None = None
) -> hikari.Permissions:
    """
    Calculate the effective permissions for a member in a guild or channel.

    Args:
        member: The guild member to calculate permissions for
        guild: The guild the member belongs to
        channel: Optional channel to include channel overwrites

    Returns:
        The calculated permissions for the member
    """
    if member.id == guild.owner_id:
        return ~hikari.Permissions.NONE

    # @everyone role has the same ID as the guild
    everyone_role = guild.get_role(guild.id)
    permissions = everyone_role.permissions if everyone_role else hikari.Permissions.NONE

    for role_id in member.role_ids:
        role = guild.get_role(role_id)
        if role:
            permissions |= role.permissions

    if permissions & hikari.Permissions.ADMINISTRATOR:
        return ~hikari.Permissions.NONE

    if channel and hasattr(channel, "permission_overwrites"):
        everyone_overwrite = channel.permission_overwrites.get(guild.id)
        if everyone_overwrite:
            permissions &= ~everyone_overwrite.deny
            permissions |= everyone_overwrite.allow

        allow = deny = hikari.Permissions.NONE
        for role_id in member.role_ids:
            role_overwrite = channel.permission_overwrites.get(role_id)
            if role_overwrite:
                allow |= role_overwrite.allow
                deny |= role_overwrite.deny
        permissions &= ~deny
        permissions |= allow

        # Member-specific overwrites have the highest priority
        member_overwrite = channel.permission_overwrites.get(member.id)
        if member_overwrite:
            permissions &= ~member_overwrite.deny
            permissions |= member_overwrite.allow

    return permissions


def missing_permissions(have: hikari.Permissions, required: hikari.Permissions) -> list[hikari.Permissions]:
    """Return the individual flags of ``required`` that are not present in ``have``."""
    return [flag for flag in required.split() if not have & flag]


def format_permission(permission: hikari.Permissions) -> str:
    """Turn a single permission flag into a readable name, e.g. ``MANAGE_MESSAGES`` -> ``Manage Messages``."""
    name = permission.name or str(permission)
    return name.replace("_", " ").title()


def format_permissions(permissions: Iterable[hikari.Permissions]) -> list[str]:
    return [format_permission(permission) for permission in permissions]


def is_moderator(permissions: hikari.Permissions) -> bool:
    return bool(permissions & (MODERATOR_PERMISSIONS | hikari.Permissions.ADMINISTRATOR))


def escape_regex(text: str) -> str:
    """Escape the characters ``|\\{}()[]^$+*?.`` in a string."""
    return _REGEX_SPECIALS.sub(lambda match: "\\" + match.group(0), text)


def escape_markdown(text: str) -> str:
    return _MARKDOWN_SPECIALS.sub(r"\\\1", text)


def disambiguation(items: Iterable[str], label: str) -> str:
    """Build the message shown when a search matched several items."""
    item_list = ",   ".join(f'"{item.replace(" ", chr(0xA0))}"' for item in items)
    return f"Multiple {label} found, please be more specific: {item_list}"


async def maybe_await(result: Any) -> Any:
    """Await ``result`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(result):
        return await result
    return result


def clean_user_input(text: str, limit: int = 1850) -> str:
    """Escape user provided text so it can be echoed back without pinging anyone."""
    escaped = escape_markdown(text).replace("@", "@\u200b")
    return escaped if len(escaped) < limit else "[too long to show]"
