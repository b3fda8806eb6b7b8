"""
Application-level liveness monitor for an open connection.

Any inbound traffic counts as a sign of life. While the connection is open,
the monitor checks on every interval tick how long it has been since the last
inbound message and reports a timeout once that exceeds the configured limit.
"""

from typing import Callable, Optional

from resilient_ws.utils.logger import get_logger
from resilient_ws.websocket.scheduler import Scheduler, Timer

logger = get_logger(__name__)


class HeartbeatMonitor:
    """
    Tracks the time of the last inbound traffic and detects silent links.

    The monitor never changes connection state itself. On timeout it stops
    ticking and invokes `on_timeout`, leaving it to the owner to close the
    connection. A new violation can only be reported after `start()` is
    called again, i.e. after the next transition into OPEN.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        interval_ms: Optional[float],
        timeout_ms: float,
        is_open: Callable[[], bool],
        on_timeout: Callable[[], None],
    ) -> None:
        self._scheduler = scheduler
        self._interval_ms = interval_ms
        self._timeout_ms = timeout_ms
        self._is_open = is_open
        self._on_timeout = on_timeout

        self._timer: Optional[Timer] = None
        self._last_pong_time: Optional[float] = None

    @property
    def enabled(self) -> bool:
        return bool(self._interval_ms)

    @property
    def running(self) -> bool:
        return self._timer is not None

    @property
    def last_pong_time(self) -> Optional[float]:
        """Scheduler time (ms) of the last inbound traffic, or None."""
        return self._last_pong_time

    def record_activity(self) -> None:
        self._last_pong_time = self._scheduler.now()

    def start(self) -> None:
        """Start ticking, granting a full timeout from now. No-op if disabled."""
        if not self.enabled:
            return

        self.stop()
        self.record_activity()
        self._timer = self._scheduler.call_repeating(self._interval_ms, self._tick)
        logger.debug(
            f"Heartbeat started (interval={self._interval_ms}ms, timeout={self._timeout_ms}ms)"
        )

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _tick(self) -> None:
        if not self._is_open():
            return

        elapsed = self._scheduler.now() - self._last_pong_time
        if elapsed > self._timeout_ms:
            logger.warning(
                f"Heartbeat timeout: no inbound traffic for {elapsed:.0f}ms "
                f"(limit {self._timeout_ms}ms)"
            )
            self.stop()
            self._on_timeout()
