"""
Defines the boundary between WebSocketClient and a concrete socket.

A Socket represents exactly one connection attempt. It starts connecting when
it is created, reports progress through four event callbacks, and is never
reused after it closes. WebSocketClient obtains sockets from a SocketFactory,
so which implementation is used (the `websockets` adapter, a test double,
another library) is decided by whoever constructs the client.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from resilient_ws.utils.logger import get_logger
from resilient_ws.websocket.connection_state import ConnectionState

logger = get_logger(__name__)

OpenHandler = Callable[[], None]
MessageHandler = Callable[[Any], None]
ErrorHandler = Callable[[Exception], None]
CloseHandler = Callable[[int, str], None]


class Socket(ABC):
    """
    Abstract base class for a single WebSocket connection attempt.

    Implementations must:
    - Call `_fire_open()` once the handshake completes.
    - Call `_fire_message(data)` for each inbound message.
    - Call `_fire_error(exc)` for transport errors.
    - Call `_fire_close(code, reason)` exactly once when the connection ends,
      including when the handshake fails.
    """

    def __init__(self) -> None:
        self.on_open: Optional[OpenHandler] = None
        self.on_message: Optional[MessageHandler] = None
        self.on_error: Optional[ErrorHandler] = None
        self.on_close: Optional[CloseHandler] = None
        self._close_fired = False

    @property
    @abstractmethod
    def ready_state(self) -> ConnectionState:
        pass

    @abstractmethod
    def send(self, payload: Any) -> None:
        """
        Hand a payload to the connection.

        Raises:
            Exception: If the payload cannot be accepted right now
        """
        pass

    @abstractmethod
    def close(self, code: int = 1000, reason: str = "") -> None:
        """Start closing the connection. Must not raise if already closed."""
        pass

    def detach(self) -> None:
        """Drop all event handlers; later events are discarded."""
        self.on_open = None
        self.on_message = None
        self.on_error = None
        self.on_close = None

    def _fire_open(self) -> None:
        if self.on_open:
            self.on_open()

    def _fire_message(self, data: Any) -> None:
        if self.on_message:
            self.on_message(data)

    def _fire_error(self, error: Exception) -> None:
        if self.on_error:
            self.on_error(error)
        else:
            logger.debug(f"{self.__class__.__name__}: error with no handler: {error!r}")

    def _fire_close(self, code: int, reason: str) -> None:
        if self._close_fired:
            return
        self._close_fired = True
        if self.on_close:
            self.on_close(code, reason)


SocketFactory = Callable[[str, Dict[str, str]], Socket]
