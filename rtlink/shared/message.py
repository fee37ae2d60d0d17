from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import json

from rtlink.core.MessageTypes import CORRELATED_MESSAGES, OUTBOUND_MESSAGES, MessageType
from rtlink.shared.errors import MalformedMessageError
from rtlink.shared.utils import is_non_empty_string


@dataclass
class WireMessage:
    """
    One JSON object exchanged over the channel:
    {
    "msg": "connect | connected | failed | method | result",
    ...kind-specific fields
    }

    connect:   {"token": STRING}
    failed:    {"error"?: STRING | {"error": STRING}}
    method:    {"id": STRING, "method": STRING, "params": [ ... ]}
    result:    {"id": STRING, "result"?: ANY, "error"?: STRING | {"error": STRING}}
    """
    msg: str
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> Optional[str]:
        return self.fields.get('id')

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    @classmethod
    def from_json(cls, json_str: str) -> 'WireMessage':
        """Parse JSON string into WireMessage, validating structure"""
        try:
            data = json.loads(json_str)
        except (TypeError, ValueError) as e:
            raise MalformedMessageError(f"invalid JSON: {e}")

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Any) -> 'WireMessage':
        """Create WireMessage from a decoded object, validating the msg field"""
        if not isinstance(data, dict):
            raise MalformedMessageError("message must be a JSON object")

        msg = data.get('msg')
        if not is_non_empty_string(msg):
            raise MalformedMessageError("message is missing a non-empty 'msg' field")

        fields = {k: v for k, v in data.items() if k != 'msg'}
        return cls(msg=msg, fields=fields)

    def require_id(self) -> str:
        """Return the correlation id, raising if it is absent or empty"""
        msg_id = self.fields.get('id')
        if not is_non_empty_string(msg_id):
            raise MalformedMessageError(f"'{self.msg}' message requires a non-empty string 'id'")
        return msg_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert WireMessage back to dictionary"""
        result = dict(self.fields)
        result['msg'] = self.msg
        return result

    def to_json(self) -> str:
        """Convert WireMessage to JSON string"""
        return json.dumps(self.to_dict(), separators=(',', ':'))


def create_message(msg_type: MessageType, **fields: Any) -> WireMessage:
    """Helper to build an outbound message of the given kind"""
    if msg_type not in OUTBOUND_MESSAGES:
        raise ValueError(f"'{msg_type.value}' is not a message this client sends")
    if msg_type in CORRELATED_MESSAGES and not is_non_empty_string(fields.get('id')):
        raise ValueError(f"'{msg_type.value}' message requires a non-empty string id")
    return WireMessage(msg=msg_type.value, fields=fields)


def from_protocol_error(error: Any) -> Optional[str]:
    """
    Extract the text of a server-reported error.

    The server sends either a bare string or an object with an 'error'
    string. Anything else (or an empty string) yields None.
    """
    if isinstance(error, dict):
        error = error.get('error')
    return error if is_non_empty_string(error) else None
