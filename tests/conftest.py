"""
Shared test doubles for the connection layer.

FakeScheduler is a manual clock: timers only fire when a test advances time.
FakeSocket never touches the network; tests drive it through its simulate_*
methods, which fire the same callbacks a real socket would.
"""

import itertools
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from resilient_ws.config.config import ClientOptions
from resilient_ws.websocket.connection import WebSocketClient
from resilient_ws.websocket.connection_state import ConnectionState
from resilient_ws.websocket.events.events import EventEmitter, TransportEvent
from resilient_ws.websocket.scheduler import Scheduler, Timer
from resilient_ws.websocket.socket import Socket


class FakeTimer(Timer):
    _ids = itertools.count()

    def __init__(
        self, due: float, callback: Callable[[], None], interval: Optional[float] = None
    ) -> None:
        self.due = due
        self.callback = callback
        self.interval = interval
        self.seq = next(self._ids)
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class FakeScheduler(Scheduler):
    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._timers: List[FakeTimer] = []

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Timer:
        timer = FakeTimer(self._now + delay_ms, callback)
        self._timers.append(timer)
        return timer

    def call_repeating(self, interval_ms: float, callback: Callable[[], None]) -> Timer:
        timer = FakeTimer(self._now + interval_ms, callback, interval=interval_ms)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> List[FakeTimer]:
        return [t for t in self._timers if not t.cancelled]

    def advance(self, ms: float) -> None:
        """Move the clock forward, firing due timers in time order."""
        target = self._now + ms
        while True:
            due = [t for t in self._timers if not t.cancelled and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self._now = timer.due
            if timer.interval is None:
                self._timers.remove(timer)
            else:
                timer.due += timer.interval
            timer.callback()
        self._timers = [t for t in self._timers if not t.cancelled]
        self._now = target


class FakeSocket(Socket):
    def __init__(self, url: str, headers: Dict[str, str]) -> None:
        super().__init__()
        self.url = url
        self.headers = headers
        self.sent: List[Any] = []
        self.close_calls: List[Tuple[int, str]] = []
        self.send_error: Optional[Exception] = None
        self._ready_state = ConnectionState.CONNECTING

    @property
    def ready_state(self) -> ConnectionState:
        return self._ready_state

    def send(self, payload: Any) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(payload)

    def close(self, code: int = 1000, reason: str = "") -> None:
        self.close_calls.append((code, reason))
        if self._ready_state != ConnectionState.CLOSED:
            self._ready_state = ConnectionState.CLOSING

    def simulate_open(self) -> None:
        self._ready_state = ConnectionState.OPEN
        self._fire_open()

    def simulate_message(self, data: Any) -> None:
        self._fire_message(data)

    def simulate_error(self, error: Exception) -> None:
        self._fire_error(error)

    def simulate_close(self, code: int = 1006, reason: str = "") -> None:
        self._ready_state = ConnectionState.CLOSED
        self._fire_close(code, reason)


class SocketRecorder:
    """SocketFactory that keeps every FakeSocket it creates."""

    def __init__(self) -> None:
        self.sockets: List[FakeSocket] = []

    def __call__(self, url: str, headers: Dict[str, str]) -> FakeSocket:
        socket = FakeSocket(url, headers)
        self.sockets.append(socket)
        return socket

    @property
    def last(self) -> FakeSocket:
        return self.sockets[-1]


class EventRecorder:
    """Listens to every TransportEvent and records (name, args) in order."""

    def __init__(self, emitter: EventEmitter) -> None:
        self.events: List[Tuple[str, tuple]] = []
        for event in TransportEvent:
            emitter.on(event, self._make_listener(event.value))

    def _make_listener(self, name: str) -> Callable[..., None]:
        def listener(*args: Any) -> None:
            self.events.append((name, args))

        return listener

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def of(self, event: TransportEvent) -> List[tuple]:
        return [args for name, args in self.events if name == event.value]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def scheduler() -> FakeScheduler:
    """A manual clock starting at t=0ms."""
    return FakeScheduler()


@pytest.fixture
def sockets() -> SocketRecorder:
    return SocketRecorder()


@pytest.fixture
def emitter() -> EventEmitter:
    return EventEmitter()


@pytest.fixture
def recorder(emitter: EventEmitter) -> EventRecorder:
    return EventRecorder(emitter)


@pytest.fixture
def make_client(
    scheduler: FakeScheduler, sockets: SocketRecorder, emitter: EventEmitter
) -> Callable[..., WebSocketClient]:
    """Factory fixture building a WebSocketClient wired to the fakes."""

    def _make(**option_overrides: Any) -> WebSocketClient:
        return WebSocketClient(
            "wss://example.test/ws",
            options=ClientOptions(**option_overrides),
            socket_factory=sockets,
            scheduler=scheduler,
            emitter=emitter,
        )

    return _make


@pytest.fixture
def client(make_client: Callable[..., WebSocketClient]) -> WebSocketClient:
    """A client with default options."""
    return make_client()
