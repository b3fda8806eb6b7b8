"""
Timer primitives used by WebSocketClient.

The client never sleeps or creates tasks itself; it asks a Scheduler for
one-shot and repeating timers and for the current time. AsyncioScheduler is
the default implementation on top of the running asyncio event loop. All
durations and timestamps are in milliseconds.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional

from resilient_ws.utils.logger import get_logger

logger = get_logger(__name__)


class Timer(ABC):
    """Handle for a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the timer. Safe to call more than once."""
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):
    """Clock and timer capability consumed by the client."""

    @abstractmethod
    def now(self) -> float:
        """Current time in milliseconds on a monotonic clock."""
        pass

    @abstractmethod
    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Timer:
        """Run `callback` once after `delay_ms` milliseconds."""
        pass

    @abstractmethod
    def call_repeating(self, interval_ms: float, callback: Callable[[], None]) -> Timer:
        """Run `callback` every `interval_ms` milliseconds until cancelled."""
        pass


class _AsyncioTimer(Timer):
    def __init__(self) -> None:
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    If no loop is given, the running loop is looked up on each call, so the
    scheduler must then be used from code running inside the loop.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop if self._loop is not None else asyncio.get_running_loop()

    def now(self) -> float:
        return self.loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Timer:
        timer = _AsyncioTimer()

        def fire() -> None:
            timer._handle = None
            if not timer.cancelled:
                callback()

        timer._handle = self.loop.call_later(max(delay_ms, 0) / 1000.0, fire)
        return timer

    def call_repeating(self, interval_ms: float, callback: Callable[[], None]) -> Timer:
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        timer = _AsyncioTimer()
        loop = self.loop

        def fire() -> None:
            if timer.cancelled:
                return
            # Re-arm before running so the callback may cancel the timer.
            timer._handle = loop.call_later(interval_ms / 1000.0, fire)
            callback()

        timer._handle = loop.call_later(interval_ms / 1000.0, fire)
        return timer
