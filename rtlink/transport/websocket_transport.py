from __future__ import annotations

import asyncio
from typing import List, Optional, Set

import websockets
from websockets.exceptions import ConnectionClosed

from rtlink.shared.errors import ConnectionClosedError
from rtlink.shared.log import get_logger
from rtlink.transport.base import CloseListener, MessageListener, Transport

logger = get_logger(__name__)

# Close code reported when the socket went away without a close frame
ABNORMAL_CLOSURE = 1006


class WebSocketTransport(Transport):
    """
    Adapts a ``websockets`` client connection to the Transport contract.

    ``send`` only queues: a writer task drains the queue in order, so callers
    stay synchronous and payloads leave in the order they were sent. A reader
    task hands every inbound frame to the message listeners and fires the
    close listeners once when the socket closes.
    """

    def __init__(self, websocket: websockets.ClientConnection) -> None:
        self.websocket = websocket
        self._message_listeners: List[MessageListener] = []
        self._close_listeners: List[CloseListener] = []
        self._outbox: "asyncio.Queue[Optional[str]]" = asyncio.Queue()
        self._reader: Optional[asyncio.Task] = None
        self._writer: Optional[asyncio.Task] = None
        self._background_tasks: Set[asyncio.Task] = set()
        self._shutdown_task: Optional[asyncio.Task] = None
        self._closing = False

    @property
    def closed(self) -> bool:
        return self._closing

    def start(self) -> None:
        """Start the reader and writer tasks on the running loop."""
        if self._reader is not None:
            return
        loop = asyncio.get_running_loop()
        self._reader = loop.create_task(self._recv_loop())
        self._writer = loop.create_task(self._send_loop())

    def send(self, text: str) -> None:
        if self._closing:
            raise ConnectionClosedError("transport is closed")
        self._outbox.put_nowait(text)

    def on_message(self, listener: MessageListener) -> None:
        self._message_listeners.append(listener)

    def once_close(self, listener: CloseListener) -> None:
        self._close_listeners.append(listener)

    def destroy(self) -> None:
        """Flush queued payloads, then close the websocket normally."""
        if self._closing:
            return
        self._closing = True
        self._outbox.put_nowait(None)
        self._shutdown_task = asyncio.get_running_loop().create_task(self._shutdown())
        self._track_background_task(self._shutdown_task)

    async def wait_closed(self) -> None:
        """Wait until the close frame is sent and the reader has seen the socket close."""
        if self._shutdown_task is not None:
            await asyncio.shield(self._shutdown_task)
        if self._reader is not None:
            await asyncio.shield(self._reader)

    async def _shutdown(self) -> None:
        if self._writer is not None:
            await self._writer
        try:
            await self.websocket.close(code=1000)
        except Exception as e:
            logger.warning(f"Error closing websocket: {e}")

    async def _send_loop(self) -> None:
        while True:
            text = await self._outbox.get()
            if text is None:
                return
            try:
                await self.websocket.send(text)
            except ConnectionClosed:
                logger.warning("Connection closed while sending; dropping queued payloads")
                return

    async def _recv_loop(self) -> None:
        try:
            async for raw in self.websocket:
                try:
                    if isinstance(raw, bytes):
                        raw = raw.decode('utf-8')
                    for listener in list(self._message_listeners):
                        listener(raw)
                except Exception as e:
                    logger.error("Failed to process inbound frame: %s", e)
        except ConnectionClosed as e:
            logger.debug("Websocket closed abnormally: %s", e)
        finally:
            code = self.websocket.close_code
            self._fire_close(ABNORMAL_CLOSURE if code is None else code,
                             self.websocket.close_reason or "")

    def _fire_close(self, code: int, reason: str) -> None:
        if not self._closing:
            self._closing = True
            self._outbox.put_nowait(None)
        listeners, self._close_listeners = self._close_listeners, []
        for listener in listeners:
            listener(code, reason)

    def _track_background_task(self, task: asyncio.Task) -> None:
        """Keep a strong reference to background tasks until completion."""
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
