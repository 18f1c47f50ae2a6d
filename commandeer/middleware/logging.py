import logging
import time
from typing import Any

logger = logging.getLogger(__name__)


class LoggingMiddleware:
    def __init__(self) -> None:
        self.start_times: dict[int, float] = {}

    async def __call__(self, event_context: dict[str, Any], phase: str) -> None:
        event_name = event_context.get("event_name")
        key = id(event_context)

        if phase == "pre":
            self.start_times[key] = time.monotonic()
            logger.debug(f"Event started: {event_name}{self._describe(event_context)}")

        elif phase == "post":
            start_time = self.start_times.pop(key, None)
            if start_time is not None:
                duration = time.monotonic() - start_time
                logger.debug(f"Event completed: {event_name} (took {duration:.3f}s)")
            else:
                logger.debug(f"Event completed: {event_name}")

    @staticmethod
    def _describe(event_context: dict[str, Any]) -> str:
        for arg in event_context.get("args", ()):
            command = getattr(arg, "command", arg)
            name = getattr(command, "name", None)
            if isinstance(name, str) and hasattr(command, "group_id"):
                return f" [{command.group_id}:{name}]"
        return ""
