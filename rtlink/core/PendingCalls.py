from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

# Handler installed for one outstanding call: handler(error, result)
ResultHandler = Callable[[Optional[BaseException], Any], None]


@dataclass
class PendingCall:
    id: str
    method: str
    handler: ResultHandler

    def resolve(self, error: Optional[BaseException], result: Any = None) -> None:
        self.handler(error, result)


class PendingCallTable:
    """Outstanding method calls keyed by correlation id.

    Ids are the decimal rendering of a counter that only ever grows, so an
    id is never handed out twice for the lifetime of the table.
    """

    def __init__(self) -> None:
        self._calls: Dict[str, PendingCall] = {}
        self._last_id = 0

    def next_id(self) -> str:
        """Return the next correlation id ("1", "2", ...)."""
        self._last_id += 1
        return str(self._last_id)

    def add(self, call: PendingCall) -> None:
        if call.id in self._calls:
            raise ValueError(f"call id already pending: {call.id}")
        self._calls[call.id] = call

    def pop(self, call_id: str) -> Optional[PendingCall]:
        """Remove and return the call for call_id, or None when unknown."""
        return self._calls.pop(call_id, None)

    def drain(self) -> List[PendingCall]:
        """Remove and return every pending call, oldest first."""
        calls = list(self._calls.values())
        self._calls.clear()
        return calls

    def __contains__(self, call_id: object) -> bool:
        return call_id in self._calls

    def __len__(self) -> int:
        return len(self._calls)
