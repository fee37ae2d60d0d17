"""
Public API:
- Connection: authenticated RPC session over one transport
- connect, connect_local: open a websocket-backed Connection
- start, run, pause, Suspension: cooperative tasks for await-style calls
- ChannelQuery, HistoricalDataQuery, Location: typed request structs
- Transport, WebSocketTransport: socket contract and its websockets adapter
- error types from rtlink.shared.errors
"""

from .core.Connection import Connection, ConnectionState
from .core.MessageTypes import MessageType
from .core.Suspension import Suspension, pause, run, start
from .core.requests import ChannelQuery, HistoricalDataQuery, Location
from .client import connect, connect_local, decode_api_token, encode_api_token
from .config import ClientConfig, load_config
from .transport.base import Transport
from .transport.websocket_transport import WebSocketTransport
from .shared.errors import (
    AuthenticationFailed,
    ConnectionClosedError,
    ConnectionUsageError,
    MalformedMessageError,
    ProtocolViolation,
    RemoteError,
    RtlinkError,
)

__all__ = [
    "Connection",
    "ConnectionState",
    "MessageType",
    "Suspension",
    "start",
    "run",
    "pause",
    "ChannelQuery",
    "HistoricalDataQuery",
    "Location",
    "connect",
    "connect_local",
    "decode_api_token",
    "encode_api_token",
    "ClientConfig",
    "load_config",
    "Transport",
    "WebSocketTransport",
    "RtlinkError",
    "ConnectionUsageError",
    "ProtocolViolation",
    "MalformedMessageError",
    "RemoteError",
    "AuthenticationFailed",
    "ConnectionClosedError",
]

__version__ = "0.1.0"
