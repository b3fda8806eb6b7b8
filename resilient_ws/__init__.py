"""
resilient-ws: a WebSocket client that keeps its connection alive.

WebSocketClient reconnects with capped exponential backoff, queues outbound
messages while disconnected and detects silent link death with an
application-level heartbeat.
"""

from resilient_ws.config.config import ClientOptions, Config
from resilient_ws.exceptions import (
    ConfigurationError,
    ConnectTimeoutError,
    NotOpenError,
    QueueFullError,
    ResilientWSError,
    StateTransitionError,
    TransportError,
)
from resilient_ws.websocket.connection import ConnectionStats, WebSocketClient
from resilient_ws.websocket.connection_state import ConnectionState
from resilient_ws.websocket.events.events import EventEmitter, TransportEvent
from resilient_ws.websocket.scheduler import AsyncioScheduler, Scheduler, Timer
from resilient_ws.websocket.socket import Socket, SocketFactory
from resilient_ws.websocket.websockets_socket import (
    WebsocketsSocket,
    websockets_socket_factory,
)

__version__ = "0.1.0"

__all__ = [
    "AsyncioScheduler",
    "ClientOptions",
    "Config",
    "ConfigurationError",
    "ConnectTimeoutError",
    "ConnectionState",
    "ConnectionStats",
    "EventEmitter",
    "NotOpenError",
    "QueueFullError",
    "ResilientWSError",
    "Scheduler",
    "Socket",
    "SocketFactory",
    "StateTransitionError",
    "Timer",
    "TransportError",
    "TransportEvent",
    "WebSocketClient",
    "WebsocketsSocket",
    "websockets_socket_factory",
]
