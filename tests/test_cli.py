import json

import pytest
from typer.testing import CliRunner

import rtlink.cli as cli
from rtlink.client import encode_api_token
from rtlink.shared.errors import RemoteError

runner = CliRunner()


class FakeConnection:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []
        self.closed = False
        self.waited = False

    async def _resolve(self):
        if self.error is not None:
            raise self.error
        return self.result

    def call(self, method, *params):
        self.calls.append((method, params))
        return self._resolve()

    def close(self):
        self.closed = True

    async def wait_closed(self):
        assert self.closed
        self.waited = True


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RTLINK_CONFIG", raising=False)


def test_decode_token_prints_url_only():
    token = encode_api_token("wss://api.example.com/ws", "hunter2")

    result = runner.invoke(cli.app, ["decode-token", token])

    assert result.exit_code == 0
    assert "wss://api.example.com/ws" in result.output
    assert "hunter2" not in result.output


def test_decode_token_rejects_garbage():
    result = runner.invoke(cli.app, ["decode-token", "@@@"])

    assert result.exit_code == 1


def test_call_requires_token_or_local():
    result = runner.invoke(cli.app, ["call", "getMetadata", "--token", ""])

    assert result.exit_code == 2


def test_call_prints_json_result(monkeypatch):
    fake = FakeConnection(result={"temp": {"units": "degC"}})
    seen = {}

    async def fake_connect(token, *, config=None):
        seen["token"] = token
        return fake

    monkeypatch.setattr(cli, "connect", fake_connect)

    result = runner.invoke(cli.app, ["call", "getMetadata", '{"channelIds": ["temp"]}', "plain", "--token", "tok"])

    assert result.exit_code == 0, result.output
    assert seen["token"] == "tok"
    assert fake.calls == [("getMetadata", ({"channelIds": ["temp"]}, "plain"))]
    assert json.loads(result.stdout) == {"temp": {"units": "degC"}}
    assert fake.closed
    assert fake.waited


def test_call_local_reports_remote_errors(monkeypatch):
    fake = FakeConnection(error=RemoteError("no such method"))

    async def fake_connect_local(path=None, *, config=None):
        return fake

    monkeypatch.setattr(cli, "connect_local", fake_connect_local)

    result = runner.invoke(cli.app, ["call", "nope", "--local"])

    assert result.exit_code == 1
    assert fake.closed
    assert fake.waited
