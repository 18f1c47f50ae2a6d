from .base import ArgumentType
from .entities import (
    ChannelArgumentType,
    CustomEmojiArgumentType,
    InviteArgumentType,
    MemberArgumentType,
    RoleArgumentType,
    SearchableArgumentType,
    ThreadChannelArgumentType,
    UserArgumentType,
    category_channel_type,
    news_channel_type,
    stage_channel_type,
    text_channel_type,
    voice_channel_type,
)
from .meta import CommandArgumentType, GroupArgumentType
from .primitives import (
    BooleanArgumentType,
    DateArgumentType,
    DurationArgumentType,
    FloatArgumentType,
    IntegerArgumentType,
    StringArgumentType,
    TimeArgumentType,
)
from .union import UNION_SEPARATOR, ArgumentUnionType

__all__ = [
    "ArgumentType",
    "ArgumentUnionType",
    "UNION_SEPARATOR",
    "StringArgumentType",
    "IntegerArgumentType",
    "FloatArgumentType",
    "BooleanArgumentType",
    "DurationArgumentType",
    "DateArgumentType",
    "TimeArgumentType",
    "SearchableArgumentType",
    "UserArgumentType",
    "MemberArgumentType",
    "RoleArgumentType",
    "ChannelArgumentType",
    "text_channel_type",
    "voice_channel_type",
    "category_channel_type",
    "news_channel_type",
    "stage_channel_type",
    "ThreadChannelArgumentType",
    "CustomEmojiArgumentType",
    "InviteArgumentType",
    "CommandArgumentType",
    "GroupArgumentType",
]
