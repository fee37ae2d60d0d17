from __future__ import annotations

from enum import Enum
from typing import Set


class MessageType(str, Enum):
    """Message kinds carried in the ``msg`` field of every wire payload."""

    # Handshake
    CONNECT = "connect"          # client -> server, carries the token
    CONNECTED = "connected"      # server -> client, handshake accepted
    FAILED = "failed"            # server -> client, handshake rejected

    # Method calls
    METHOD = "method"            # client -> server, id/method/params
    RESULT = "result"            # server -> client, id/result or id/error

    @classmethod
    def is_valid(cls, value: str) -> bool:
        """Check if string is a valid message type."""
        try:
            cls(value)
            return True
        except ValueError:
            return False


# Message kinds this client sends
OUTBOUND_MESSAGES: Set[MessageType] = {
    MessageType.CONNECT,
    MessageType.METHOD,
}

# Message kinds this client accepts
INBOUND_MESSAGES: Set[MessageType] = {
    MessageType.CONNECTED,
    MessageType.FAILED,
    MessageType.RESULT,
}

# Message kinds that must carry a non-empty string id
CORRELATED_MESSAGES: Set[MessageType] = {
    MessageType.METHOD,
    MessageType.RESULT,
}
