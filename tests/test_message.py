import json

import pytest

from rtlink.core.MessageTypes import INBOUND_MESSAGES, OUTBOUND_MESSAGES, MessageType
from rtlink.shared.errors import MalformedMessageError, ProtocolViolation
from rtlink.shared.message import WireMessage, create_message, from_protocol_error


def test_method_message_serialises_with_msg_field():
    message = create_message(MessageType.METHOD, id="3", method="getMetadata", params=[1, "a"])

    decoded = json.loads(message.to_json())

    assert decoded == {"msg": "method", "id": "3", "method": "getMetadata", "params": [1, "a"]}


def test_correlated_message_requires_id():
    with pytest.raises(ValueError):
        create_message(MessageType.METHOD, id="", method="m", params=[])


def test_from_json_splits_msg_from_fields():
    message = WireMessage.from_json('{"msg":"result","id":"7","result":{"ok":true}}')

    assert message.msg == "result"
    assert message.id == "7"
    assert message.get("result") == {"ok": True}
    assert "msg" not in message.fields


@pytest.mark.parametrize("raw", [
    "not json",
    "[1, 2]",
    '"connected"',
    "{}",
    '{"msg": ""}',
    '{"msg": 5}',
])
def test_from_json_rejects_bad_shapes(raw):
    with pytest.raises(MalformedMessageError):
        WireMessage.from_json(raw)


def test_malformed_message_is_a_protocol_violation():
    assert issubclass(MalformedMessageError, ProtocolViolation)


def test_require_id_rejects_missing_or_empty_id():
    with pytest.raises(MalformedMessageError):
        WireMessage(msg="result", fields={}).require_id()
    with pytest.raises(MalformedMessageError):
        WireMessage(msg="result", fields={"id": ""}).require_id()
    with pytest.raises(MalformedMessageError):
        WireMessage(msg="result", fields={"id": 4}).require_id()
    assert WireMessage(msg="result", fields={"id": "4"}).require_id() == "4"


@pytest.mark.parametrize("value, expected", [
    ("boom", "boom"),
    ({"error": "bad token"}, "bad token"),
    ({"error": ""}, None),
    ({"code": 3}, None),
    ("", None),
    (None, None),
    (42, None),
    (["x"], None),
])
def test_from_protocol_error(value, expected):
    assert from_protocol_error(value) == expected


def test_message_type_directions():
    assert MessageType.CONNECT in OUTBOUND_MESSAGES
    assert MessageType.RESULT in INBOUND_MESSAGES
    assert not OUTBOUND_MESSAGES & INBOUND_MESSAGES
    assert MessageType.is_valid("connected")
    assert not MessageType.is_valid("ping")


@pytest.mark.parametrize("msg_type", [MessageType.CONNECTED, MessageType.FAILED, MessageType.RESULT])
def test_create_message_refuses_inbound_kinds(msg_type):
    with pytest.raises(ValueError):
        create_message(msg_type, id="1")
