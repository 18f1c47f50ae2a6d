"""Argument types for plain values: text, numbers, booleans, durations and dates."""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from .base import ArgumentType

if TYPE_CHECKING:
    from ..commands.argument import Argument
    from ..core.context import CommandContext


def _format_choices(choices: list[Any]) -> str:
    return ", ".join(f"`{choice}`" for choice in choices)


def _check_number(number: float, argument: Argument) -> bool | str:
    if argument.choices is not None and number not in argument.choices:
        return f"Please enter one of the following options: {_format_choices(argument.choices)}"
    if argument.min is not None and number < argument.min:
        return f"Please enter a number above or exactly {argument.min}."
    if argument.max is not None and number > argument.max:
        return f"Please enter a number below or exactly {argument.max}."
    return True


class StringArgumentType(ArgumentType):
    def __init__(self) -> None:
        super().__init__("string")

    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        if argument.choices is not None and value.lower() not in argument.choices:
            return f"Please enter one of the following options: {_format_choices(argument.choices)}"
        if argument.min is not None and len(value) < argument.min:
            return f"Please keep the {argument.label} above or exactly {argument.min} characters."
        if argument.max is not None and len(value) > argument.max:
            return f"Please keep the {argument.label} below or exactly {argument.max} characters."
        return True

    async def parse(self, value: str, ctx: CommandContext, argument: Argument) -> str:
        return value

    def is_empty(self, value: Any, ctx: CommandContext, argument: Argument) -> bool:
        if isinstance(value, str):
            return not value.strip()
        return super().is_empty(value, ctx, argument)


class IntegerArgumentType(ArgumentType):
    def __init__(self) -> None:
        super().__init__("integer")

    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        try:
            number = int(str(value).strip())
        except ValueError:
            return False
        return _check_number(number, argument)

    async def parse(self, value: str, ctx: CommandContext, argument: Argument) -> int:
        return int(str(value).strip())


class FloatArgumentType(ArgumentType):
    def __init__(self) -> None:
        super().__init__("float")

    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        try:
            number = float(str(value).strip())
        except ValueError:
            return False
        if not math.isfinite(number):
            return False
        return _check_number(number, argument)

    async def parse(self, value: str, ctx: CommandContext, argument: Argument) -> float:
        return float(str(value).strip())


class BooleanArgumentType(ArgumentType):
    truthy = frozenset({"true", "t", "yes", "y", "on", "enable", "enabled", "1", "+"})
    falsy = frozenset({"false", "f", "no", "n", "off", "disable", "disabled", "0", "-"})

    def __init__(self) -> None:
        super().__init__("boolean")

    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        lowered = str(value).lower()
        return lowered in self.truthy or lowered in self.falsy

    async def parse(self, value: str, ctx: CommandContext, argument: Argument) -> bool:
        lowered = str(value).lower()
        if lowered in self.truthy:
            return True
        if lowered in self.falsy:
            return False
        raise ValueError(f"Unknown boolean value: {value!r}")


class DurationArgumentType(ArgumentType):
    """Parses durations such as ``90``, ``15m`` or ``1d 2h30m`` into a :class:`~datetime.timedelta`.

    A bare number is read as seconds. ``min`` and ``max`` on the argument are in seconds.
    """

    units = {
        "w": 604800,
        "d": 86400,
        "h": 3600,
        "m": 60,
        "s": 1,
    }
    _part = re.compile(r"(\d+(?:\.\d+)?)\s*([wdhms])", re.IGNORECASE)
    _full = re.compile(r"^(?:\s*\d+(?:\.\d+)?\s*[wdhms])+\s*$", re.IGNORECASE)

    def __init__(self) -> None:
        super().__init__("duration")

    def _to_seconds(self, value: str) -> float | None:
        value = str(value).strip()
        if re.fullmatch(r"\d+(?:\.\d+)?", value):
            return float(value)
        if not self._full.match(value):
            return None
        return sum(float(amount) * self.units[unit.lower()] for amount, unit in self._part.findall(value))

    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        seconds = self._to_seconds(value)
        if seconds is None or seconds <= 0:
            return "Please enter a valid duration format, such as `1h30m` or `45s`."
        if argument.min is not None and seconds < argument.min:
            return f"Please enter a duration greater than or exactly {timedelta(seconds=argument.min)}."
        if argument.max is not None and seconds > argument.max:
            return f"Please enter a duration lower than or exactly {timedelta(seconds=argument.max)}."
        return True

    async def parse(self, value: str, ctx: CommandContext, argument: Argument) -> timedelta:
        return timedelta(seconds=self._to_seconds(value) or 0)


class DateArgumentType(ArgumentType):
    """Parses ``DD/MM[/YYYY] [HH[:MM]] [am|pm] [+/-TZ]`` (or ``now``) into an aware :class:`~datetime.datetime`."""

    _regex = re.compile(
        r"^(?P<date>[0-3]?\d[/\-.,][01]?\d(?:[/\-.,]\d{2}(?:\d{2})?)?)?\s*"
        r"(?P<time>[0-2]?\d(?::[0-5]?\d)?)?\s*"
        r"(?P<ampm>[aApP]\.?[mM]\.?)?\s*"
        r"(?P<tz>[+-]\d\d?)?$"
    )
    max_future = timedelta(days=365)

    def __init__(self, type_id: str = "date") -> None:
        super().__init__(type_id)

    def _parse_date(self, value: str) -> datetime | None:
        value = str(value).strip()
        if value.lower() == "now":
            return datetime.now(timezone.utc)

        match = self._regex.match(value)
        if not match or not any(match.groupdict().values()):
            return None

        groups = match.groupdict()
        tz = timezone(timedelta(hours=int(groups["tz"]))) if groups["tz"] else timezone.utc
        now = datetime.now(tz)

        day, month, year = now.day, now.month, now.year
        if groups.get("date"):
            parts = [int(part) if i < 2 else (int(part) + 2000 if len(part) == 2 else int(part))
                     for i, part in enumerate(re.split(r"[/\-.,]", groups["date"]))]
            day, month = parts[0], parts[1]
            if len(parts) > 2:
                year = parts[2]

        hour, minute = now.hour, now.minute
        if groups["time"]:
            time_parts = [int(part) for part in groups["time"].split(":")]
            hour = time_parts[0]
            minute = time_parts[1] if len(time_parts) > 1 else 0

        if groups["ampm"]:
            if hour > 12:
                return None
            is_pm = groups["ampm"].lower().startswith("p")
            hour = hour % 12 + (12 if is_pm else 0)

        try:
            return datetime(year, month, day, hour, minute, tzinfo=tz)
        except ValueError:
            return None

    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        date = self._parse_date(value)
        if date is None:
            return "Please enter a valid date format. Use the `help` command for more information."
        if argument.skip_extra_date_validation:
            return True

        now = datetime.now(timezone.utc)
        if date <= now:
            return "Please enter a date that's in the future."
        if date > now + self.max_future:
            return "The max. usable date is `1 year` in the future. Please try again."
        return True

    async def parse(self, value: str, ctx: CommandContext, argument: Argument) -> datetime | None:
        return self._parse_date(value)


class TimeArgumentType(DateArgumentType):
    """Parses ``HH[:MM] [am|pm] [+/-TZ]`` (or ``now``) into a :class:`~datetime.datetime` on the current day."""

    _regex = re.compile(
        r"^(?P<time>[0-2]?\d(?::[0-5]?\d)?)?\s*"
        r"(?P<ampm>[aApP]\.?[mM]\.?)?\s*"
        r"(?P<tz>[+-]\d\d?)?$"
    )

    def __init__(self) -> None:
        super().__init__("time")

    async def validate(self, value: str, ctx: CommandContext, argument: Argument) -> bool | str:
        if self._parse_date(value) is None:
            return "Please enter a valid time format. Use the `help` command for more information."
        return True
