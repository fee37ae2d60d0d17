"""Error types raised and delivered by rtlink connections."""

from __future__ import annotations


class RtlinkError(Exception):
    """Base class for every error rtlink raises or delivers."""


class ConnectionUsageError(RtlinkError):
    """An operation was invoked in the wrong state or with bad arguments.

    Raised synchronously to the caller; never closes the connection.
    """


class ProtocolViolation(RtlinkError):
    """The remote side broke the wire protocol. Always fatal to the connection."""


class MalformedMessageError(ProtocolViolation):
    """An inbound payload failed basic shape validation."""


class RemoteError(RtlinkError):
    """An error reported by the remote service for one request."""


class AuthenticationFailed(RemoteError):
    """The server rejected the handshake token."""


class ConnectionClosedError(RtlinkError):
    """The connection (or its transport) is closed."""
