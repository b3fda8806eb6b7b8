"""
Reconnecting WebSocket client.

This module provides the WebSocketClient class which:
- Maintains one logical, always-on connection over a replaceable Socket
- Reconnects automatically with capped exponential backoff
- Queues outbound messages while the connection is not open
- Detects silent link death with an application-level heartbeat
- Notifies listeners through an EventEmitter

The client is driven entirely by socket events and timer callbacks, all of
which run on a single event loop. Every transition completes, including the
cancellation of timers that it makes irrelevant, before its handler returns.
"""

import asyncio
from dataclasses import asdict, dataclass
from functools import partial
from typing import Any, Dict, List, Optional, Tuple

from resilient_ws.config.config import ClientOptions, Config
from resilient_ws.exceptions import (
    ConnectTimeoutError,
    NotOpenError,
    QueueFullError,
)
from resilient_ws.utils.logger import get_logger
from resilient_ws.websocket.connection_state import (
    ConnectionState,
    ConnectionStateValidator,
)
from resilient_ws.websocket.events.events import (
    EventEmitter,
    EventName,
    Listener,
    TransportEvent,
)
from resilient_ws.websocket.heartbeat import HeartbeatMonitor
from resilient_ws.websocket.message_queue import OutboundQueue, SendCallback
from resilient_ws.websocket.scheduler import AsyncioScheduler, Scheduler, Timer
from resilient_ws.websocket.socket import Socket, SocketFactory

logger = get_logger(__name__)

NORMAL_CLOSURE = 1000
ABNORMAL_CLOSURE = 1006


@dataclass(frozen=True)
class ConnectionStats:
    """Point-in-time snapshot of a client's connection health."""

    state: ConnectionState
    reconnect_attempts: int
    queued_messages: int
    last_pong_time: Optional[float]
    is_healthy: bool

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["state"] = self.state.name
        return data


class WebSocketClient:
    """
    Keeps a WebSocket connection alive across failures.

    Lifecycle: CLOSED -> CONNECTING -> OPEN -> (CLOSING ->) CLOSED, after which
    the client reconnects on its own until `close()` is called or
    `max_reconnect_attempts` consecutive attempts have failed.

    Resources are tied to states and released on the transition out of them:
    the connect-timeout timer belongs to CONNECTING and the heartbeat belongs
    to OPEN. The socket handle exists in every state except CLOSED.
    """

    def __init__(
        self,
        url: str,
        options: Optional[ClientOptions] = None,
        socket_factory: Optional[SocketFactory] = None,
        scheduler: Optional[Scheduler] = None,
        emitter: Optional[EventEmitter] = None,
    ) -> None:
        """
        Args:
            url: The WebSocket server URL to connect to
            options: Client options (defaults come from Config)
            socket_factory: Creates a Socket for (url, headers); defaults to
                the `websockets` adapter
            scheduler: Timer capability; defaults to the running asyncio loop
            emitter: Event sink for listeners; a new one is created if omitted
        """
        if socket_factory is None:
            from resilient_ws.websocket.websockets_socket import (
                websockets_socket_factory,
            )

            socket_factory = websockets_socket_factory()

        self._url = url
        self._options = options if options is not None else ClientOptions()
        self._socket_factory = socket_factory
        self._scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self._events = emitter if emitter is not None else EventEmitter()

        self._state = ConnectionState.CLOSED
        self._socket: Optional[Socket] = None
        self._connect_timer: Optional[Timer] = None

        self._reconnect_attempts = 0
        self._should_reconnect = False
        self._reconnect_timer: Optional[Timer] = None

        self._queue = OutboundQueue(self._options.max_queue_size)
        self._heartbeat = HeartbeatMonitor(
            self._scheduler,
            self._options.heartbeat_interval,
            self._options.heartbeat_timeout,
            is_open=lambda: self._state == ConnectionState.OPEN,
            on_timeout=self._handle_heartbeat_timeout,
        )

        self._state_waiters: List[Tuple[ConnectionState, asyncio.Future]] = []

    # --- State -------------------------------------------------------------

    def _set_state(self, new_state: ConnectionState) -> None:
        """
        Transition to `new_state`, releasing resources owned by the old state.

        Raises:
            StateTransitionError: If the transition is not allowed
        """
        old_state = self._state
        if old_state == new_state:
            return

        ConnectionStateValidator.validate(old_state, new_state)

        if old_state == ConnectionState.CONNECTING:
            self._clear_connect_timer()
        elif old_state == ConnectionState.OPEN:
            self._heartbeat.stop()

        self._state = new_state
        logger.info(f"WebSocket state transition: {old_state.name} → {new_state.name}")
        self._notify_state_waiters()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == ConnectionState.OPEN

    @property
    def is_closed(self) -> bool:
        return self._state == ConnectionState.CLOSED

    @property
    def is_closing(self) -> bool:
        return self._state == ConnectionState.CLOSING

    @property
    def is_connecting(self) -> bool:
        return self._state == ConnectionState.CONNECTING

    @property
    def url(self) -> str:
        return self._url

    @property
    def options(self) -> ClientOptions:
        return self._options

    @property
    def events(self) -> EventEmitter:
        return self._events

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    def on(self, event: EventName, listener: Optional[Listener] = None) -> Listener:
        return self._events.on(event, listener)

    def once(self, event: EventName, listener: Listener) -> Listener:
        return self._events.once(event, listener)

    def off(self, event: EventName, listener: Listener) -> bool:
        return self._events.off(event, listener)

    # --- Lifecycle ---------------------------------------------------------

    def connect(self) -> None:
        """
        Start a connection attempt. Does nothing if a socket already exists.
        """
        if self._socket is not None:
            logger.debug("connect() ignored: a connection attempt is already active")
            return

        self._should_reconnect = True
        self._clear_reconnect_timer()
        self._set_state(ConnectionState.CONNECTING)

        headers = self._options.merged_headers()
        logger.info(f"Connecting to {self._url}")
        try:
            socket = self._socket_factory(self._url, headers)
        except Exception:
            self._should_reconnect = False
            self._set_state(ConnectionState.CLOSED)
            raise
        self._socket = socket

        socket.on_open = partial(self._handle_open, socket)
        socket.on_message = partial(self._handle_message, socket)
        socket.on_error = partial(self._handle_error, socket)
        socket.on_close = partial(self._handle_close, socket)

        if self._options.connect_timeout_ms:
            self._connect_timer = self._scheduler.call_later(
                self._options.connect_timeout_ms,
                partial(self._handle_connect_timeout, socket),
            )

    def close(self, code: int = NORMAL_CLOSURE, reason: str = "") -> None:
        """
        Close the connection and stop reconnecting.

        A pending reconnect is cancelled even if no socket currently exists.
        Listeners receive a single `close(code, reason)` event when a socket
        was closed.
        """
        self._should_reconnect = False
        self._clear_reconnect_timer()

        socket = self._socket
        if socket is None:
            return

        self._heartbeat.stop()
        self._set_state(ConnectionState.CLOSING)
        self._release_socket()
        try:
            socket.close(code, reason)
        finally:
            self._set_state(ConnectionState.CLOSED)
            self._events.emit(TransportEvent.CLOSE, code, reason)

    def _release_socket(self) -> None:
        if self._socket is not None:
            self._socket.detach()
            self._socket = None

    # --- Socket events -----------------------------------------------------

    def _handle_open(self, socket: Socket) -> None:
        if socket is not self._socket:
            return

        self._set_state(ConnectionState.OPEN)
        self._reconnect_attempts = 0
        self._events.emit(TransportEvent.OPEN)
        self._flush_message_queue()
        if self._state == ConnectionState.OPEN and self._socket is socket:
            self._heartbeat.start()

    def _handle_message(self, socket: Socket, data: Any) -> None:
        if socket is not self._socket:
            return

        self._heartbeat.record_activity()
        self._events.emit(TransportEvent.MESSAGE, data)

    def _handle_error(self, socket: Socket, error: Exception) -> None:
        if socket is not self._socket:
            return

        logger.debug(f"Transport error: {error!r}")
        self._events.emit(TransportEvent.ERROR, error)

    def _handle_close(self, socket: Socket, code: int, reason: str) -> None:
        if socket is not self._socket:
            return

        self._set_state(ConnectionState.CLOSED)
        self._heartbeat.stop()
        self._release_socket()
        logger.info(f"WebSocket closed (code={code}, reason={reason!r})")
        self._events.emit(TransportEvent.CLOSE, code, reason)

        self._continue_reconnecting()

    def _continue_reconnecting(self) -> None:
        # A listener may already have called connect() or close().
        if not self._should_reconnect or self._socket is not None:
            return

        max_attempts = self._options.max_reconnect_attempts
        if self._reconnect_attempts < max_attempts:
            self._schedule_reconnect()
        else:
            logger.warning(
                f"Giving up on {self._url} after {self._reconnect_attempts} reconnect attempts"
            )
            self._events.emit(TransportEvent.RECONNECT_FAILED, self._reconnect_attempts)

    def _handle_connect_timeout(self, socket: Socket) -> None:
        self._connect_timer = None
        if socket is not self._socket or self._state != ConnectionState.CONNECTING:
            return

        timeout_ms = self._options.connect_timeout_ms
        logger.warning(f"Connection to {self._url} timed out after {timeout_ms}ms")
        # A timed-out attempt ends reconnection, as an explicit close does.
        self._should_reconnect = False
        self._release_socket()
        socket.close()
        self._events.emit(
            TransportEvent.ERROR,
            ConnectTimeoutError(
                f"Connection timeout after {timeout_ms}ms", error_code="CONNECT_TIMEOUT"
            ),
        )
        if self._socket is None and self._state == ConnectionState.CONNECTING:
            self._set_state(ConnectionState.CLOSED)
            self._events.emit(TransportEvent.CLOSE, ABNORMAL_CLOSURE, "Connection timeout")

    def _handle_heartbeat_timeout(self) -> None:
        socket = self._socket
        self._events.emit(TransportEvent.HEARTBEAT_TIMEOUT)
        if socket is not None and socket is self._socket:
            socket.close()

    # --- Reconnection ------------------------------------------------------

    def _backoff_delay(self) -> int:
        return min(
            self._options.reconnect_delay * 2**self._reconnect_attempts,
            self._options.max_reconnect_delay,
        )

    def _schedule_reconnect(self) -> None:
        self._clear_reconnect_timer()

        delay = self._backoff_delay()
        self._reconnect_attempts += 1
        logger.info(
            f"Reconnecting to {self._url} in {delay}ms "
            f"(attempt {self._reconnect_attempts}/{self._options.max_reconnect_attempts})"
        )
        self._reconnect_timer = self._scheduler.call_later(delay, self._reconnect)
        self._events.emit(TransportEvent.RECONNECTING, self._reconnect_attempts, delay)

    def _reconnect(self) -> None:
        self._reconnect_timer = None
        try:
            self.connect()
        except Exception as e:
            logger.warning(f"Reconnect attempt to {self._url} failed: {e!r}")
            self._should_reconnect = True
            self._events.emit(TransportEvent.ERROR, e)
            self._continue_reconnecting()

    def _clear_reconnect_timer(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None

    def _clear_connect_timer(self) -> None:
        if self._connect_timer is not None:
            self._connect_timer.cancel()
            self._connect_timer = None

    def reset_reconnect_attempts(self) -> None:
        """Clear the attempt counter, re-enabling reconnection after exhaustion."""
        self._reconnect_attempts = 0

    # --- Sending -----------------------------------------------------------

    def send(self, payload: Any, callback: Optional[SendCallback] = None) -> bool:
        """
        Send a payload, or queue it while the connection is not open.

        The callback receives None once the payload has been handed to the
        socket, or the exception explaining why it was not.

        Args:
            payload: The message to send
            callback: Optional completion callback taking an error or None

        Returns:
            bool: True if the payload was sent or accepted for later delivery
        """
        socket = self._socket
        if socket is None or self._state != ConnectionState.OPEN:
            if self._options.queue_messages:
                try:
                    self._queue.append(payload, callback)
                    return True
                except QueueFullError as e:
                    logger.warning(f"Message refused: {e}")
                    return self._fail_send(callback, e)
            return self._fail_send(
                callback,
                NotOpenError("WebSocket is not open", error_code="NOT_OPEN"),
            )

        try:
            socket.send(payload)
        except Exception as e:
            logger.warning(f"Send failed: {e!r}")
            return self._fail_send(callback, e)

        if callback:
            callback(None)
        return True

    @staticmethod
    def _fail_send(callback: Optional[SendCallback], error: Exception) -> bool:
        if callback:
            callback(error)
        return False

    def _flush_message_queue(self) -> None:
        if self._queue:
            logger.info(f"Flushing {len(self._queue)} queued message(s)")

        while self._queue and self._state == ConnectionState.OPEN:
            entry = self._queue.popleft()
            try:
                self.send(entry.payload, entry.callback)
            except Exception as e:
                logger.error(f"Send callback raised during queue flush: {e}", exc_info=True)

    # --- Diagnostics -------------------------------------------------------

    def get_connection_stats(self) -> ConnectionStats:
        last_pong_time = self._heartbeat.last_pong_time
        is_healthy = (
            last_pong_time is not None
            and (self._scheduler.now() - last_pong_time) < Config.HEALTHY_WINDOW_MS
        )
        return ConnectionStats(
            state=self._state,
            reconnect_attempts=self._reconnect_attempts,
            queued_messages=len(self._queue),
            last_pong_time=last_pong_time,
            is_healthy=is_healthy,
        )

    async def wait_for_state(
        self, target_state: ConnectionState, timeout: Optional[float] = None
    ) -> bool:
        """
        Wait for the client to reach a specific state.

        Args:
            target_state: The state to wait for
            timeout: Maximum time to wait in seconds (None for no timeout)

        Returns:
            bool: True if the target state was reached, False if timed out
        """
        if self._state == target_state:
            return True

        future = asyncio.get_running_loop().create_future()
        waiter = (target_state, future)
        self._state_waiters.append(waiter)
        try:
            await asyncio.wait_for(future, timeout=timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Timeout waiting for state {target_state.name}")
            return self._state == target_state
        finally:
            if waiter in self._state_waiters:
                self._state_waiters.remove(waiter)

    def _notify_state_waiters(self) -> None:
        for target_state, future in list(self._state_waiters):
            if target_state == self._state and not future.done():
                future.set_result(True)
