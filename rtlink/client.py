"""
Opening connections.

``connect`` takes an API token (base64 of a JSON object holding the
websocket ``url`` and the handshake ``token``), opens the websocket and
authenticates. ``connect_local`` opens the trusted local endpoint, which
needs no handshake.
"""

from __future__ import annotations
import asyncio
import base64
import binascii
import json
from typing import Optional, Tuple

import websockets
from websockets.exceptions import WebSocketException

from rtlink.config import ClientConfig, load_config
from rtlink.core.Connection import Connection
from rtlink.shared.errors import ConnectionClosedError, ConnectionUsageError
from rtlink.shared.log import get_logger
from rtlink.shared.utils import is_non_empty_string
from rtlink.transport.websocket_transport import WebSocketTransport

logger = get_logger(__name__)

_TOKEN_ERR = "apiToken must contain an encoded JSON object"


def decode_api_token(api_token: str) -> Tuple[str, str]:
    """Return ``(url, token)`` from an API token."""
    if not isinstance(api_token, str):
        raise ConnectionUsageError("apiToken must be a string")
    padded = api_token.strip() + "=" * (-len(api_token.strip()) % 4)
    try:
        info = base64.b64decode(padded, altchars=b"-_").decode("utf-8")
        parsed = json.loads(info)
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        raise ConnectionUsageError(f"{_TOKEN_ERR}: {e}") from e
    if not isinstance(parsed, dict):
        raise ConnectionUsageError(_TOKEN_ERR)
    for key in ("url", "token"):
        if not is_non_empty_string(parsed.get(key)):
            raise ConnectionUsageError(f"{_TOKEN_ERR} where {key} must be a non-empty string")
    return parsed["url"], parsed["token"]


def encode_api_token(url: str, token: str) -> str:
    """Inverse of decode_api_token, for tooling and tests."""
    raw = json.dumps({"url": url, "token": token}, separators=(",", ":"))
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


async def connect(api_token: str, *, config: Optional[ClientConfig] = None) -> Connection:
    """Open and authenticate a connection described by ``api_token``.

    Raises:
        ConnectionUsageError: the token is malformed.
        ConnectionClosedError: the websocket could not be opened, or closed
            during the handshake.
        AuthenticationFailed: the server rejected the token.
    """
    config = config or load_config()
    url, token = decode_api_token(api_token)
    try:
        websocket = await websockets.connect(
            url,
            ping_interval=config.ping_interval,
            ping_timeout=config.ping_timeout,
            open_timeout=config.open_timeout,
        )
    except (OSError, asyncio.TimeoutError, WebSocketException) as e:
        raise ConnectionClosedError(f"could not connect to {url}: {e}") from e

    logger.info(f"Connected to {url}; authenticating")
    connection = _wrap(websocket, config, auth_required=True)
    await connection.authenticate(token)
    return connection


async def connect_local(path: Optional[str] = None, *, config: Optional[ClientConfig] = None) -> Connection:
    """Open the local API socket. The returned connection needs no handshake."""
    config = config or load_config()
    path = path or config.local_socket_path
    try:
        websocket = await websockets.unix_connect(
            path,
            uri="ws://localhost/",
            ping_interval=config.ping_interval,
            ping_timeout=config.ping_timeout,
            open_timeout=config.open_timeout,
        )
    except (OSError, asyncio.TimeoutError, WebSocketException) as e:
        raise ConnectionClosedError(f"could not connect to the local socket at {path}: {e}") from e

    logger.info(f"Connected to local socket {path}")
    return _wrap(websocket, config, auth_required=False)


def _wrap(websocket: websockets.ClientConnection, config: ClientConfig, *, auth_required: bool) -> Connection:
    transport = WebSocketTransport(websocket)
    connection = Connection(
        transport,
        auth_required=auth_required,
        fail_pending_on_close=config.fail_pending_on_close,
    )
    # Listeners are registered by Connection before any frame can be read.
    transport.start()
    return connection
