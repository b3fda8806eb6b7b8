"""
Custom exception hierarchy for resilient-ws.

Only configuration problems and programming errors are raised at callers.
Transport failures are reported through emitted events or per-send callbacks,
so the types below double as the payloads of those notifications.
"""

from typing import Optional


class ResilientWSError(Exception):
    """Base exception for all resilient-ws errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.original_error = original_error

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ConfigurationError(ResilientWSError):
    """Raised when client options or environment settings are invalid."""

    pass


class StateTransitionError(ResilientWSError):
    """Raised when an invalid state transition is attempted."""

    pass


class TransportError(ResilientWSError):
    """Base exception for failures of the underlying connection."""

    pass


class ConnectTimeoutError(TransportError):
    """Emitted when a connection attempt does not open within the timeout."""

    pass


class NotOpenError(TransportError):
    """Passed to send callbacks when a message cannot be sent or queued."""

    pass


class QueueFullError(NotOpenError):
    """Passed to send callbacks when the outbound queue is at capacity."""

    pass
