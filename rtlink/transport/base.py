from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable

MessageListener = Callable[[str], None]          # one complete text payload
CloseListener = Callable[[int, str], None]       # (code, reason)


class Transport(ABC):
    """The socket a Connection talks through.

    The transport is already open when handed to a Connection. It owns
    framing; the connection only ever sees whole text payloads.
    """

    @abstractmethod
    def send(self, text: str) -> None:
        """Send one text payload. Must not block the event loop."""
        raise NotImplementedError

    @abstractmethod
    def on_message(self, listener: MessageListener) -> None:
        """Register a listener called for every inbound payload."""
        raise NotImplementedError

    @abstractmethod
    def once_close(self, listener: CloseListener) -> None:
        """Register a listener called once when the transport closes."""
        raise NotImplementedError

    @abstractmethod
    def destroy(self) -> None:
        """Tear the transport down. Called at most once by a Connection."""
        raise NotImplementedError

    async def wait_closed(self) -> None:
        """Wait until a destroyed transport has finished closing."""
        return None
