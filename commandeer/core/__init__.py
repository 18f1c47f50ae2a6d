from .event_system import EventSystem, event_listener, middleware

__all__ = ["EventSystem", "event_listener", "middleware"]
