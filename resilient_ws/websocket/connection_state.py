"""
Connection state module for WebSocket connections.

This module defines the ConnectionState enum, shared by WebSocketClient and
the underlying socket implementations, and the ConnectionStateValidator that
holds the authoritative transition table for the client's state machine.
"""

from enum import Enum
from typing import Dict, Set

from resilient_ws.exceptions import StateTransitionError


class ConnectionState(Enum):
    """
    Enumeration of possible states for a WebSocket connection.

    The numeric values match the WebSocket readyState constants.

    States:
    - CONNECTING: A handle exists and the opening handshake is in progress
    - OPEN: The connection is established and messages can be sent
    - CLOSING: The connection is being closed
    - CLOSED: No connection; the client holds no handle
    """

    CONNECTING = 0
    OPEN = 1
    CLOSING = 2
    CLOSED = 3


class ConnectionStateValidator:
    """
    Validates state transitions for the client's state machine.
    """

    # Map of valid state transitions: from_state -> {valid_to_states}
    _VALID_TRANSITIONS: Dict[ConnectionState, Set[ConnectionState]] = {
        ConnectionState.CLOSED: {
            ConnectionState.CONNECTING,  # connect()
        },
        ConnectionState.CONNECTING: {
            ConnectionState.OPEN,  # Handshake completed
            ConnectionState.CLOSING,  # close() before open
            ConnectionState.CLOSED,  # Handshake failed or timed out
        },
        ConnectionState.OPEN: {
            ConnectionState.CLOSING,  # close()
            ConnectionState.CLOSED,  # Dropped by peer or network
        },
        ConnectionState.CLOSING: {
            ConnectionState.CLOSED,
        },
    }

    @classmethod
    def validate(cls, from_state: ConnectionState, to_state: ConnectionState) -> None:
        """
        Validates a state transition and raises an error if it's invalid.

        Args:
            from_state: The current state to transition from
            to_state: The desired state to transition to

        Raises:
            StateTransitionError: If the transition is not allowed
        """
        if from_state == to_state:
            return

        valid_to_states = cls._VALID_TRANSITIONS.get(from_state, set())

        if to_state not in valid_to_states:
            raise StateTransitionError(
                f"Invalid state transition from {from_state.name} to {to_state.name}. "
                f"Valid transitions from {from_state.name}: {sorted(s.name for s in valid_to_states)}"
            )

    @classmethod
    def get_valid_transitions(cls, from_state: ConnectionState) -> Set[ConnectionState]:
        """Get the set of states reachable from the given state."""
        return cls._VALID_TRANSITIONS.get(from_state, set()).copy()
