"""
Socket implementation on top of the `websockets` asyncio client.

WebsocketsSocket turns the coroutine-based `websockets` API into the
callback-style Socket contract used by WebSocketClient:
- a background task performs the handshake and then reads messages,
- a second task drains an outgoing queue so `send()` never blocks,
- closure of either kind (handshake failure, peer close, local close) is
  reported through exactly one close callback.
"""

import asyncio
from typing import Any, Dict, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed

from resilient_ws.exceptions import NotOpenError
from resilient_ws.utils.logger import get_logger
from resilient_ws.websocket.connection_state import ConnectionState
from resilient_ws.websocket.socket import Socket, SocketFactory

logger = get_logger(__name__)

ABNORMAL_CLOSURE = 1006


class WebsocketsSocket(Socket):
    """
    A single connection attempt made with `websockets.asyncio.client.connect`.

    Must be created from code running inside an asyncio event loop; the
    handshake starts immediately in a background task.
    """

    def __init__(
        self,
        url: str,
        headers: Dict[str, str],
        open_timeout: Optional[float] = None,
        ping_interval: Optional[float] = None,
        **connect_kwargs: Any,
    ) -> None:
        """
        Args:
            url: The WebSocket server URL to connect to
            headers: HTTP headers sent with the opening handshake
            open_timeout: Handshake timeout in seconds (None leaves it to the client)
            ping_interval: Protocol-level keepalive pings in seconds (None disables them)
            **connect_kwargs: Extra keyword arguments for `websockets` connect()
        """
        super().__init__()
        self._url = url
        self._headers = headers
        self._connect_kwargs = dict(
            connect_kwargs, open_timeout=open_timeout, ping_interval=ping_interval
        )

        self._websocket: Optional[ClientConnection] = None
        self._ready_state = ConnectionState.CONNECTING
        self._outgoing: asyncio.Queue = asyncio.Queue()
        self._send_task: Optional[asyncio.Task] = None
        self._close_task: Optional[asyncio.Task] = None
        self._started = False
        self._connection_task: asyncio.Task = asyncio.get_running_loop().create_task(
            self._run()
        )

    @property
    def ready_state(self) -> ConnectionState:
        return self._ready_state

    @property
    def url(self) -> str:
        return self._url

    def send(self, payload: Any) -> None:
        if self._ready_state != ConnectionState.OPEN or self._websocket is None:
            raise NotOpenError(
                f"WebSocket is not open (state: {self._ready_state.name})",
                error_code="NOT_OPEN",
            )
        if not isinstance(payload, (str, bytes, bytearray, memoryview)):
            raise TypeError(
                f"payload must be str or bytes-like, got {type(payload).__name__}"
            )
        self._outgoing.put_nowait(payload)

    def close(self, code: int = 1000, reason: str = "") -> None:
        if self._ready_state in (ConnectionState.CLOSING, ConnectionState.CLOSED):
            return

        self._ready_state = ConnectionState.CLOSING
        if self._websocket is None:
            # Still in the handshake; abort it.
            self._connection_task.cancel()
            if not self._started:
                # The task never ran, so it cannot report the close itself.
                self._ready_state = ConnectionState.CLOSED
                self._fire_close(ABNORMAL_CLOSURE, "Connection attempt aborted")
        else:
            self._close_task = asyncio.get_running_loop().create_task(
                self._websocket.close(code, reason)
            )

    async def wait_closed(self) -> None:
        """Wait until the background connection task has finished."""
        await asyncio.gather(self._connection_task, return_exceptions=True)

    async def _run(self) -> None:
        self._started = True
        try:
            websocket = await connect(
                self._url, additional_headers=self._headers, **self._connect_kwargs
            )
        except asyncio.CancelledError:
            self._ready_state = ConnectionState.CLOSED
            self._fire_close(ABNORMAL_CLOSURE, "Connection attempt aborted")
            raise
        except Exception as exc:
            logger.warning(f"WebSocket handshake with {self._url} failed: {exc}")
            self._ready_state = ConnectionState.CLOSED
            self._fire_error(exc)
            self._fire_close(ABNORMAL_CLOSURE, str(exc) or exc.__class__.__name__)
            return

        self._websocket = websocket
        self._ready_state = ConnectionState.OPEN
        logger.info(f"Connected to WebSocket server → {self._url}")
        self._send_task = asyncio.create_task(self._send_loop(websocket))

        try:
            self._fire_open()
            async for message in websocket:
                self._fire_message(message)
        except ConnectionClosed as e:
            if e.rcvd is not None and e.rcvd.code == 1000:
                logger.info(f"WebSocket connection closed normally: {e}")
            else:
                logger.warning(f"WebSocket connection closed with error: {e}")
        except Exception as exc:
            logger.error(f"Unexpected error in receive loop: {exc}", exc_info=True)
            self._fire_error(exc)
            await websocket.close(1011, "Internal error")
        finally:
            self._ready_state = ConnectionState.CLOSED
            self._send_task.cancel()
            self._fire_close(
                websocket.close_code or ABNORMAL_CLOSURE, websocket.close_reason or ""
            )

    async def _send_loop(self, websocket: ClientConnection) -> None:
        while True:
            payload = await self._outgoing.get()
            try:
                await websocket.send(payload)
            except ConnectionClosed as exc:
                logger.warning(f"Send failed, connection closed: {exc}")
                self._fire_error(exc)
                return
            except Exception as exc:
                logger.error(f"Send failed: {exc}")
                self._fire_error(exc)


def websockets_socket_factory(**connect_kwargs: Any) -> SocketFactory:
    """
    Build a SocketFactory producing WebsocketsSocket instances.

    Keyword arguments are passed to every WebsocketsSocket.
    """

    def factory(url: str, headers: Dict[str, str]) -> Socket:
        return WebsocketsSocket(url, headers, **connect_kwargs)

    return factory
