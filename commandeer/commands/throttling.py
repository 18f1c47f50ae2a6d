"""Per-user usage limits for commands."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThrottlingOptions:
    """Allow ``usages`` invocations per user within ``duration`` seconds."""

    usages: int
    duration: float

    def __post_init__(self) -> None:
        if not isinstance(self.usages, int) or self.usages < 1:
            raise ValueError("Throttling usages must be a positive integer.")
        if self.duration <= 0:
            raise ValueError("Throttling duration must be a positive number.")


@dataclass
class Throttle:
    start: float
    usages: int = 0
    timeout: asyncio.TimerHandle | None = None


class ThrottleManager:
    """Tracks one usage window per user for a single command.

    A window starts on a user's first use and is dropped once ``duration``
    seconds have passed, either by its expiry timer or when it is next looked at.
    """

    def __init__(self, options: ThrottlingOptions, clock: Callable[[], float] = time.monotonic) -> None:
        self.options = options
        self._clock = clock
        self._throttles: dict[int, Throttle] = {}

    def __len__(self) -> int:
        return len(self._throttles)

    def get(self, user_id: int, create: bool = False) -> Throttle | None:
        throttle = self._throttles.get(user_id)
        if throttle is not None and self._clock() - throttle.start >= self.options.duration:
            self._expire(user_id, throttle)
            throttle = None

        if throttle is None and create:
            throttle = Throttle(start=self._clock())
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                throttle.timeout = loop.call_later(self.options.duration, self._expire, user_id, throttle)
            self._throttles[user_id] = throttle
        return throttle

    def remaining(self, user_id: int) -> float | None:
        """Seconds until the user may use the command again, or ``None`` if they are not throttled."""
        throttle = self.get(user_id, create=True)
        if throttle.usages + 1 <= self.options.usages:
            return None
        return throttle.start + self.options.duration - self._clock()

    def record_usage(self, user_id: int) -> Throttle:
        throttle = self.get(user_id, create=True)
        throttle.usages += 1
        return throttle

    def reset(self, user_id: int) -> None:
        throttle = self._throttles.get(user_id)
        if throttle is not None:
            self._expire(user_id, throttle)

    def clear(self) -> None:
        for user_id, throttle in list(self._throttles.items()):
            self._expire(user_id, throttle)

    def _expire(self, user_id: int, throttle: Throttle) -> None:
        if self._throttles.get(user_id) is not throttle:
            return
        if throttle.timeout is not None:
            throttle.timeout.cancel()
        del self._throttles[user_id]
        logger.debug(f"Throttle window for user {user_id} expired")
