"""
Bounded FIFO of outbound messages accepted while the connection is not open.
"""

from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Optional

from resilient_ws.exceptions import QueueFullError

SendCallback = Callable[[Optional[Exception]], Any]


@dataclass
class QueuedMessage:
    """A payload waiting for the connection, with its completion callback."""

    payload: Any
    callback: Optional[SendCallback] = None


class OutboundQueue:
    """
    Ordered queue of QueuedMessage entries with a hard capacity.

    Appending to a full queue raises QueueFullError instead of dropping
    anything, so the caller always learns that the message was refused.
    """

    def __init__(self, max_size: int) -> None:
        self._max_size = max_size
        self._entries: Deque[QueuedMessage] = deque()

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def full(self) -> bool:
        return len(self._entries) >= self._max_size

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def append(self, payload: Any, callback: Optional[SendCallback] = None) -> None:
        """
        Add a message at the tail of the queue.

        Raises:
            QueueFullError: If the queue already holds max_size entries
        """
        if self.full:
            raise QueueFullError(
                f"WebSocket is not open and the outbound queue is full "
                f"({len(self._entries)}/{self._max_size})",
                error_code="QUEUE_FULL",
            )
        self._entries.append(QueuedMessage(payload, callback))

    def popleft(self) -> QueuedMessage:
        """Remove and return the oldest entry. Raises IndexError when empty."""
        return self._entries.popleft()

    def clear(self) -> None:
        self._entries.clear()
