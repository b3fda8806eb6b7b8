"""
Client event names and the EventEmitter used to deliver them.

This module provides:
- TransportEvent, the names of every event WebSocketClient emits
- EventEmitter, a small synchronous observer registry

Listeners are called synchronously in registration order. A listener that
raises is logged and does not prevent later listeners from running, so one
faulty consumer cannot break the client's state machine.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from resilient_ws.utils.logger import get_logger

logger = get_logger(__name__)

Listener = Callable[..., Any]


class TransportEvent(str, Enum):
    """Events emitted by WebSocketClient, with their listener arguments."""

    OPEN = "open"  # ()
    MESSAGE = "message"  # (data)
    ERROR = "error"  # (error)
    CLOSE = "close"  # (code, reason)
    RECONNECTING = "reconnecting"  # (attempt, delay_ms)
    RECONNECT_FAILED = "reconnect-failed"  # (attempts)
    HEARTBEAT_TIMEOUT = "heartbeat-timeout"  # ()


EventName = Union[TransportEvent, str]


def _key(event: EventName) -> str:
    return event.value if isinstance(event, TransportEvent) else event


class EventEmitter:
    """
    Registry mapping event names to ordered lists of listeners.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}

    def on(self, event: EventName, listener: Optional[Listener] = None) -> Listener:
        """
        Register a listener for an event.

        Called without a listener, returns a decorator that registers the
        decorated function.
        """
        if listener is None:
            return lambda func: self.on(event, func)

        self._listeners.setdefault(_key(event), []).append(listener)
        return listener

    def once(self, event: EventName, listener: Listener) -> Listener:
        """Register a listener that is removed after its first call."""

        def wrapper(*args: Any) -> Any:
            self.off(event, wrapper)
            return listener(*args)

        wrapper.__wrapped__ = listener  # type: ignore[attr-defined]
        return self.on(event, wrapper)

    def off(self, event: EventName, listener: Listener) -> bool:
        """
        Remove the first registration of a listener.

        Returns:
            bool: True if a registration was removed
        """
        listeners = self._listeners.get(_key(event), [])
        for index, registered in enumerate(listeners):
            if registered is listener or getattr(registered, "__wrapped__", None) is listener:
                del listeners[index]
                return True
        return False

    def remove_all_listeners(self, event: Optional[EventName] = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(_key(event), None)

    def listener_count(self, event: EventName) -> int:
        return len(self._listeners.get(_key(event), []))

    def emit(self, event: EventName, *args: Any) -> bool:
        """
        Call every listener registered for an event with the given arguments.

        Args:
            event: The event name
            *args: Positional arguments passed to each listener

        Returns:
            bool: True if at least one listener was registered
        """
        name = _key(event)
        # Copy so listeners may (un)register during dispatch
        listeners = list(self._listeners.get(name, []))

        if not listeners:
            if name == TransportEvent.ERROR.value:
                logger.error(f"Unhandled 'error' event: {args[0] if args else None!r}")
            return False

        for listener in listeners:
            try:
                listener(*args)
            except Exception as e:
                logger.error(f"Error in listener for '{name}': {e}", exc_info=True)
        return True
