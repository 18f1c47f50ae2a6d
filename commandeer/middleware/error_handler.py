import logging
import traceback
from typing import Any

from ..errors import FriendlyError

logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware:
    """Logs failing command bodies and failing event listeners with their tracebacks."""

    async def __call__(self, event_context: dict[str, Any], phase: str) -> None:
        if phase != "post":
            return

        event_name = event_context.get("event_name", "unknown")
        if event_name == "command_error":
            args = event_context.get("args", ())
            command, error = (args[0], args[1]) if len(args) >= 2 else (None, None)
            if isinstance(error, BaseException) and not isinstance(error, FriendlyError):
                name = getattr(command, "name", "unknown")
                logger.error(f"Error running command {name}: {error}")
                logger.error("".join(traceback.format_exception(type(error), error, error.__traceback__)))

        error = event_context.get("error")
        if error is not None:
            logger.error(f"Error in event {event_name}: {error}")
            logger.error("".join(traceback.format_exception(type(error), error, error.__traceback__)))
