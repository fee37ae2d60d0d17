from __future__ import annotations

import json
import uuid
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from rtlink.core.MessageTypes import INBOUND_MESSAGES, MessageType
from rtlink.core.PendingCalls import PendingCall, PendingCallTable, ResultHandler
from rtlink.core.Suspension import Suspension
from rtlink.core.requests import (
    ChannelQuery,
    HistoricalDataQuery,
    Location,
    channel_query_params,
    historical_params,
    locations_params,
    object_params,
)
from rtlink.shared.errors import (
    AuthenticationFailed,
    ConnectionClosedError,
    ConnectionUsageError,
    ProtocolViolation,
    RemoteError,
)
from rtlink.shared.log import get_logger
from rtlink.shared.message import WireMessage, create_message, from_protocol_error
from rtlink.shared.utils import is_non_empty_string
from rtlink.transport.base import Transport

logger = get_logger(__name__)

# Handshake completion: callback(error), error is None on success
AuthCallback = Callable[[Optional[BaseException]], None]


class ConnectionState(str, Enum):
    FRESH = "fresh"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class Connection:
    """
    One authenticated RPC session over an already-open transport.

    Every call-style method has two entry points. Without a callback it
    returns a :class:`Suspension` to ``await`` from inside an asyncio task;
    with a callback it returns nothing and the callback receives
    ``(error, result)`` later. Both share request construction and id
    correlation; only the handler recorded in the pending-call table differs.

    Closing is terminal. By default calls still pending at close are
    abandoned without notification; pass ``fail_pending_on_close=True`` to
    have each of them receive a :class:`ConnectionClosedError` instead.
    """

    def __init__(
        self,
        sock: Transport,
        *,
        auth_required: bool = True,
        fail_pending_on_close: bool = False,
        connection_id: Optional[str] = None,
    ) -> None:
        self._sock: Optional[Transport] = sock
        self._transport = sock
        self._auth_required = auth_required
        self._fail_pending_on_close = fail_pending_on_close
        self.connection_id = connection_id or uuid.uuid4().hex[:8]

        self._closed = False
        self._authenticating = False
        self._authenticated = False
        self._auth_callback: Optional[AuthCallback] = None

        self._calls = PendingCallTable()

        self._handlers: Dict[MessageType, Callable[[WireMessage], None]] = {
            MessageType.CONNECTED: self._handle_connected,
            MessageType.FAILED: self._handle_failed,
            MessageType.RESULT: self._handle_result,
        }

        sock.once_close(self._on_close)
        sock.on_message(self._on_message)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def authenticating(self) -> bool:
        return self._authenticating

    @property
    def authenticated(self) -> bool:
        return self._authenticated

    @property
    def auth_required(self) -> bool:
        return self._auth_required

    @property
    def state(self) -> ConnectionState:
        if self._closed:
            return ConnectionState.CLOSED
        if self._authenticating:
            return ConnectionState.AUTHENTICATING
        if self._authenticated:
            return ConnectionState.AUTHENTICATED
        return ConnectionState.FRESH

    @property
    def pending_count(self) -> int:
        """Number of calls sent and still waiting for a result."""
        return len(self._calls)

    def __repr__(self) -> str:
        return f"<Connection {self.connection_id} {self.state.value} pending={len(self._calls)}>"

    # ------------------------------------------------------------------
    # Handshake and lifecycle
    # ------------------------------------------------------------------

    def authenticate(self, token: str, callback: Optional[AuthCallback] = None) -> Optional[Suspension]:
        """Send the handshake token.

        With ``callback`` the outcome is delivered as ``callback(error)``.
        Without it, returns a :class:`Suspension` that completes with
        ``None`` once the server accepts the token, or raises.
        """
        if not is_non_empty_string(token):
            raise ConnectionUsageError("token must be a non-empty string")
        if callback is not None and not callable(callback):
            raise ConnectionUsageError("callback must be callable")
        if self._closed:
            raise ConnectionUsageError("connection is already closed")
        if self._authenticated:
            raise ConnectionUsageError("already authenticated")
        if self._authenticating:
            raise ConnectionUsageError("authentication already in progress")

        suspension: Optional[Suspension] = None
        if callback is None:
            suspension = Suspension()
            callback = suspension.resume

        payload = self._encode(MessageType.CONNECT, token=token)
        self._authenticating = True
        self._auth_callback = callback
        try:
            self._write(payload)
        except Exception:
            self._authenticating = False
            self._auth_callback = None
            raise
        logger.debug("Handshake started", extra={"connection_id": self.connection_id})
        return suspension

    def close(self, error: Optional[BaseException] = None) -> None:
        """Close the connection. Further calls are no-ops.

        ``error`` becomes the failure delivered to a handshake still in
        flight (a generic one is used when omitted).
        """
        if self._closed:
            return
        self._authenticating = False
        self._authenticated = False
        self._closed = True

        if error is None:
            logger.info("Connection closed", extra={"connection_id": self.connection_id})
        else:
            logger.info("Connection closed: %s", error, extra={"connection_id": self.connection_id})

        sock, self._sock = self._sock, None
        if sock is not None:
            try:
                sock.destroy()
            except Exception as e:
                logger.warning("Error tearing down transport: %s", e,
                               extra={"connection_id": self.connection_id})

        auth_callback, self._auth_callback = self._auth_callback, None
        if auth_callback is not None:
            self._notify(auth_callback, error or ConnectionClosedError("connection closed before auth completed"))

        abandoned = self._calls.drain()
        if not abandoned:
            return
        if not self._fail_pending_on_close:
            logger.debug("Abandoning %d pending call(s)", len(abandoned),
                         extra={"connection_id": self.connection_id})
            return
        reason = _closed_reason(error)
        for call in abandoned:
            self._notify(call.handler, reason, None)

    async def wait_closed(self) -> None:
        """Wait for the transport to finish closing after :meth:`close`."""
        await self._transport.wait_closed()

    def _notify(self, handler: Callable[..., None], *args: Any) -> None:
        # Handlers run while the connection tears down; one failing must not stop the rest.
        try:
            handler(*args)
        except Exception:
            logger.exception("Handler raised while closing connection",
                             extra={"connection_id": self.connection_id})

    # ------------------------------------------------------------------
    # Method calls
    # ------------------------------------------------------------------

    def call(self, method: str, *params: Any) -> Suspension:
        """Invoke ``method`` and return a :class:`Suspension` for its result.

        Must be called from inside an asyncio task::

            result = await conn.call("getMetadata", {"channelIds": ["a"]})
        """
        self._check_call(method)
        suspension = Suspension()
        self._start_call(method, params, suspension.resume)
        return suspension

    def call_with_callback(self, method: str, *params: Any, callback: ResultHandler) -> None:
        """Invoke ``method``; ``callback(error, result)`` fires when the result arrives."""
        if not callable(callback):
            raise ConnectionUsageError("callback must be callable")
        self._check_call(method)
        self._start_call(method, params, callback)

    def _check_call(self, method: Any) -> None:
        self._require_auth()
        if not is_non_empty_string(method):
            raise ConnectionUsageError("method name must be a non-empty string")

    def _require_auth(self) -> None:
        if self._closed:
            raise ConnectionUsageError("connection is already closed")
        if self._authenticating:
            raise ConnectionUsageError("authentication has not finished yet")
        if self._auth_required and not self._authenticated:
            raise ConnectionUsageError("not authenticated")

    def _start_call(self, method: str, params: Sequence[Any], handler: ResultHandler) -> str:
        call_id = self._calls.next_id()
        payload = self._encode(MessageType.METHOD, id=call_id, method=method, params=list(params))
        self._calls.add(PendingCall(id=call_id, method=method, handler=handler))
        try:
            self._write(payload)
        except Exception:
            self._calls.pop(call_id)
            raise
        logger.debug("Sent method call", extra={
            "connection_id": self.connection_id, "call_id": call_id, "method": method,
        })
        return call_id

    # ------------------------------------------------------------------
    # Typed wrappers
    # ------------------------------------------------------------------

    def get_real_time_data(self, request: Optional[ChannelQuery] = None, *,
                           callback: Optional[ResultHandler] = None) -> Optional[Suspension]:
        return self._invoke("getRealTimeData", channel_query_params(request), callback)

    def set_real_time_data(self, request: Mapping[str, Any], *,
                           callback: Optional[ResultHandler] = None) -> Optional[Suspension]:
        return self._invoke("setRealTimeData", object_params("real-time data", request), callback)

    def get_metadata(self, request: Optional[ChannelQuery] = None, *,
                     callback: Optional[ResultHandler] = None) -> Optional[Suspension]:
        return self._invoke("getMetadata", channel_query_params(request), callback)

    def set_metadata(self, request: Mapping[str, Any], *,
                     callback: Optional[ResultHandler] = None) -> Optional[Suspension]:
        return self._invoke("setMetadata", object_params("metadata", request), callback)

    def get_historical_data(self, request: HistoricalDataQuery, *,
                            callback: Optional[ResultHandler] = None) -> Optional[Suspension]:
        return self._invoke("getHistoricalData", historical_params(request), callback)

    def set_locations(self, locations: Sequence[Location], *,
                      callback: Optional[ResultHandler] = None) -> Optional[Suspension]:
        return self._invoke("setLocations", locations_params(locations), callback)

    def _invoke(self, method: str, params: List[Any],
                callback: Optional[ResultHandler]) -> Optional[Suspension]:
        if callback is None:
            return self.call(method, *params)
        self.call_with_callback(method, *params, callback=callback)
        return None

    # ------------------------------------------------------------------
    # Wire
    # ------------------------------------------------------------------

    def _encode(self, msg_type: MessageType, **fields: Any) -> str:
        try:
            return create_message(msg_type, **fields).to_json()
        except (TypeError, ValueError) as e:
            raise ConnectionUsageError(f"cannot encode {msg_type.value} message: {e}") from e

    def _write(self, payload: str) -> None:
        if self._sock is None:
            raise ConnectionUsageError("connection is already closed")
        self._sock.send(payload)

    def _on_message(self, data: str) -> None:
        if self._closed:
            logger.debug("Ignoring message received after close",
                         extra={"connection_id": self.connection_id})
            return
        try:
            message = WireMessage.from_json(data)
            logger.debug("Received message", extra={
                "connection_id": self.connection_id, "msg_type": message.msg,
            })
            self._dispatch(message)
        except Exception as err:
            logger.error("Error handling inbound message: %s", err, exc_info=True,
                         extra={"connection_id": self.connection_id})
            self.close(err)

    def _dispatch(self, message: WireMessage) -> None:
        msg_type = MessageType(message.msg) if MessageType.is_valid(message.msg) else None
        if msg_type not in INBOUND_MESSAGES:
            raise ProtocolViolation(f"unexpected message: {message.msg}")
        self._handlers[msg_type](message)

    def _handle_connected(self, message: WireMessage) -> None:
        if not self._authenticating:
            raise ProtocolViolation("unexpected connected message")
        self._authenticating = False
        self._authenticated = True
        logger.info("Authenticated", extra={"connection_id": self.connection_id})
        callback, self._auth_callback = self._auth_callback, None
        if callback is not None:
            callback(None)

    def _handle_failed(self, message: WireMessage) -> None:
        reason = from_protocol_error(message.get("error"))
        suffix = f": {reason}" if reason else ""
        if not self._authenticating:
            raise ProtocolViolation(f"unexpected auth failed message{suffix}")
        error = AuthenticationFailed(f"authentication failed{suffix}")
        logger.warning("%s", error, extra={"connection_id": self.connection_id})
        self.close(error)

    def _handle_result(self, message: WireMessage) -> None:
        call_id = message.require_id()
        call = self._calls.pop(call_id)
        if call is None:
            raise ProtocolViolation(f"method call not found: {call_id}")
        error = message.get("error")
        if error:
            call.resolve(RemoteError(from_protocol_error(error) or "an unknown error occurred"))
        else:
            call.resolve(None, message.get("result"))

    def _on_close(self, code: int, reason: str) -> None:
        if not self._closed:
            self.close(ConnectionClosedError(f"connection closed: {code}, {reason}"))


def _closed_reason(error: Optional[BaseException]) -> ConnectionClosedError:
    if isinstance(error, ConnectionClosedError):
        return error
    if error is not None:
        return ConnectionClosedError(f"connection closed: {error}")
    return ConnectionClosedError("connection closed")
