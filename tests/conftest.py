import json
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rtlink.core.Connection import Connection
from rtlink.transport.base import Transport


class DummyTransport(Transport):
    """In-memory transport: records sends, lets tests inject frames and closes."""

    def __init__(self) -> None:
        self.sent_messages: list = []
        self.destroy_calls = 0
        self.fail_destroy = False
        self._message_listeners = []
        self._close_listeners = []

    def send(self, text: str) -> None:
        self.sent_messages.append(text)

    def on_message(self, listener) -> None:
        self._message_listeners.append(listener)

    def once_close(self, listener) -> None:
        self._close_listeners.append(listener)

    def destroy(self) -> None:
        self.destroy_calls += 1
        if self.fail_destroy:
            raise OSError("socket already gone")

    @property
    def sent(self) -> list:
        return [json.loads(m) for m in self.sent_messages]

    def deliver(self, message) -> None:
        data = message if isinstance(message, str) else json.dumps(message)
        for listener in list(self._message_listeners):
            listener(data)

    def remote_close(self, code: int = 1006, reason: str = "gone") -> None:
        listeners, self._close_listeners = self._close_listeners, []
        for listener in listeners:
            listener(code, reason)


@pytest.fixture
def transport():
    return DummyTransport()


@pytest.fixture
def connection(transport):
    return Connection(transport)


@pytest.fixture
def authed(transport, connection):
    """A connection that has completed the handshake."""
    outcomes = []
    connection.authenticate("secret", outcomes.append)
    transport.deliver({"msg": "connected"})
    assert outcomes == [None]
    transport.sent_messages.clear()
    return connection


class Recorder:
    """Collects (error, result) pairs delivered to a callback."""

    def __init__(self) -> None:
        self.calls = []

    def __call__(self, error, result=None) -> None:
        self.calls.append((error, result))


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_recorder():
    return Recorder
