import asyncio
import logging
from collections.abc import Callable
from functools import wraps
from typing import Any

from .utils import maybe_await

logger = logging.getLogger(__name__)


class EventSystem:
    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable]] = {}
        self._middleware: list[Callable] = []

    def add_middleware(self, middleware: Callable) -> None:
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {_name(middleware)}")

    def remove_middleware(self, middleware: Callable) -> None:
        if middleware in self._middleware:
            self._middleware.remove(middleware)
            logger.debug(f"Removed middleware: {_name(middleware)}")

    def listen(self, event_name: str) -> Callable:
        def decorator(func: Callable) -> Callable:
            self.add_listener(event_name, func)
            return func

        return decorator

    def add_listener(self, event_name: str, callback: Callable) -> None:
        self._listeners.setdefault(event_name, []).append(callback)
        logger.debug(f"Added listener for {event_name}: {_name(callback)}")

    def remove_listener(self, event_name: str, callback: Callable) -> None:
        listeners = self._listeners.get(event_name)
        if listeners is None:
            return
        if callback in listeners:
            listeners.remove(callback)
            logger.debug(f"Removed listener for {event_name}: {_name(callback)}")
        else:
            logger.warning(f"Listener {_name(callback)} not found for {event_name}")

    def remove_all_listeners(self, event_name: str) -> None:
        if event_name in self._listeners:
            self._listeners[event_name].clear()
            logger.debug(f"Removed all listeners for {event_name}")

    def register_listeners(self, obj: Any) -> int:
        """Add every method of ``obj`` marked with :func:`event_listener`."""
        count = 0
        for attr_name in dir(obj):
            attr = getattr(obj, attr_name, None)
            event_name = getattr(attr, "_event_listener", None)
            if callable(attr) and event_name:
                self.add_listener(event_name, attr)
                count += 1
        return count

    async def emit(self, event_name: str, *args: Any, **kwargs: Any) -> None:
        """
        Call every listener of an event concurrently.

        Middleware runs before ("pre") and after ("post") the listeners for
        every emitted event. A listener failure is logged and recorded in the
        event context under ``error`` but never reaches the emitter.
        """
        event_context: dict[str, Any] = {
            "event_name": event_name,
            "args": args,
            "kwargs": kwargs,
            "stopped": False,
        }

        for middleware in self._middleware:
            try:
                result = await maybe_await(middleware(event_context, "pre"))
            except Exception as e:
                logger.error(f"Error in middleware {_name(middleware)}: {e}")
                continue
            if result is False or event_context.get("stopped"):
                logger.debug(f"Event {event_name} stopped by middleware")
                return

        listeners = list(self._listeners.get(event_name, []))
        if listeners:
            results = await asyncio.gather(
                *(self._execute_listener(listener, *args, **kwargs) for listener in listeners),
                return_exceptions=True,
            )
            for listener, result in zip(listeners, results):
                if isinstance(result, Exception):
                    logger.error(f"Error in listener {_name(listener)} for {event_name}: {result}")
                    event_context["error"] = result

        for middleware in self._middleware:
            try:
                await maybe_await(middleware(event_context, "post"))
            except Exception as e:
                logger.error(f"Error in middleware {_name(middleware)} (post): {e}")

    async def _execute_listener(self, listener: Callable, *args: Any, **kwargs: Any) -> None:
        await maybe_await(listener(*args, **kwargs))

    def get_listeners(self, event_name: str) -> list[Callable]:
        return self._listeners.get(event_name, []).copy()

    def get_all_events(self) -> list[str]:
        return list(self._listeners.keys())


def _name(func: Callable) -> str:
    return getattr(func, "__name__", type(func).__name__)


# Decorator for event listeners
def event_listener(event_name: str) -> Callable:
    def decorator(func: Callable) -> Callable:
        func._event_listener = event_name
        return func

    return decorator


# Middleware decorator
def middleware(func: Callable) -> Callable:
    @wraps(func)
    async def wrapper(event_context: dict[str, Any], phase: str) -> Any:
        return await maybe_await(func(event_context, phase))

    return wrapper
