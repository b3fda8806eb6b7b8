"""
Unit tests for OutboundQueue.
"""

import pytest

from resilient_ws.exceptions import QueueFullError
from resilient_ws.websocket.message_queue import OutboundQueue, QueuedMessage


def test_queue_is_fifo():
    queue = OutboundQueue(max_size=3)
    callback = lambda error: None

    queue.append("a", callback)
    queue.append("b")

    assert len(queue) == 2
    assert queue.popleft() == QueuedMessage("a", callback)
    assert queue.popleft() == QueuedMessage("b", None)
    assert not queue


def test_append_to_full_queue_raises_without_dropping():
    queue = OutboundQueue(max_size=2)
    queue.append("a")
    queue.append("b")

    with pytest.raises(QueueFullError) as exc_info:
        queue.append("c")

    assert exc_info.value.error_code == "QUEUE_FULL"
    assert "2/2" in str(exc_info.value)
    assert len(queue) == 2
    assert [queue.popleft().payload, queue.popleft().payload] == ["a", "b"]


def test_zero_capacity_queue_refuses_everything():
    queue = OutboundQueue(max_size=0)

    assert queue.full
    with pytest.raises(QueueFullError):
        queue.append("a")


def test_popleft_on_empty_queue_raises_index_error():
    with pytest.raises(IndexError):
        OutboundQueue(max_size=1).popleft()


def test_clear():
    queue = OutboundQueue(max_size=5)
    queue.append("a")
    queue.clear()

    assert len(queue) == 0
    assert queue.max_size == 5
