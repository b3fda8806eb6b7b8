"""
Unit tests for HeartbeatMonitor, driven by the FakeScheduler fixture.
"""

from resilient_ws.websocket.heartbeat import HeartbeatMonitor


class MonitorHarness:
    def __init__(self, scheduler, interval_ms=1000, timeout_ms=3000):
        self.open = True
        self.timeouts = 0
        self.monitor = HeartbeatMonitor(
            scheduler,
            interval_ms,
            timeout_ms,
            is_open=lambda: self.open,
            on_timeout=self._on_timeout,
        )

    def _on_timeout(self):
        self.timeouts += 1


def test_disabled_monitor_never_starts(scheduler):
    harness = MonitorHarness(scheduler, interval_ms=None)

    harness.monitor.start()

    assert not harness.monitor.enabled
    assert not harness.monitor.running
    assert scheduler.pending == []
    assert harness.monitor.last_pong_time is None


def test_start_resets_last_pong_time(scheduler):
    harness = MonitorHarness(scheduler)
    scheduler.advance(1234)

    harness.monitor.start()

    assert harness.monitor.running
    assert harness.monitor.last_pong_time == 1234


def test_timeout_reported_once_and_monitor_stops(scheduler):
    harness = MonitorHarness(scheduler)
    harness.monitor.start()

    scheduler.advance(3000)
    assert harness.timeouts == 0

    scheduler.advance(1000)
    assert harness.timeouts == 1
    assert not harness.monitor.running

    scheduler.advance(10000)
    assert harness.timeouts == 1


def test_elapsed_equal_to_timeout_is_not_a_violation(scheduler):
    harness = MonitorHarness(scheduler, interval_ms=500, timeout_ms=1000)
    harness.monitor.start()

    scheduler.advance(1000)

    assert harness.timeouts == 0


def test_activity_postpones_timeout(scheduler):
    harness = MonitorHarness(scheduler)
    harness.monitor.start()

    scheduler.advance(2000)
    harness.monitor.record_activity()
    scheduler.advance(3000)

    assert harness.timeouts == 0
    assert harness.monitor.last_pong_time == 2000


def test_ticks_ignored_while_not_open(scheduler):
    harness = MonitorHarness(scheduler)
    harness.monitor.start()
    harness.open = False

    scheduler.advance(10000)

    assert harness.timeouts == 0
    assert harness.monitor.running


def test_stop_is_idempotent_and_safe_when_never_started(scheduler):
    harness = MonitorHarness(scheduler)

    harness.monitor.stop()
    harness.monitor.start()
    harness.monitor.stop()
    harness.monitor.stop()

    assert scheduler.pending == []


def test_restart_replaces_previous_timer(scheduler):
    harness = MonitorHarness(scheduler)
    harness.monitor.start()
    harness.monitor.start()

    assert len(scheduler.pending) == 1
