import pytest

from rtlink.core.PendingCalls import PendingCall, PendingCallTable


def _noop(error, result=None):
    pass


def test_ids_are_increasing_decimal_strings_from_one():
    table = PendingCallTable()
    ids = [table.next_id() for _ in range(12)]

    assert ids[:3] == ["1", "2", "3"]
    assert ids[-1] == "12"
    assert [int(i) for i in ids] == sorted(int(i) for i in ids)


def test_pop_removes_exactly_once():
    table = PendingCallTable()
    call = PendingCall(id=table.next_id(), method="m", handler=_noop)
    table.add(call)

    assert "1" in table
    assert table.pop("1") is call
    assert table.pop("1") is None
    assert len(table) == 0


def test_duplicate_id_rejected():
    table = PendingCallTable()
    table.add(PendingCall(id="1", method="m", handler=_noop))

    with pytest.raises(ValueError):
        table.add(PendingCall(id="1", method="other", handler=_noop))


def test_drain_returns_all_in_insertion_order_and_empties():
    table = PendingCallTable()
    for _ in range(3):
        table.add(PendingCall(id=table.next_id(), method="m", handler=_noop))

    drained = table.drain()

    assert [c.id for c in drained] == ["1", "2", "3"]
    assert len(table) == 0
    # the counter keeps going after a drain
    assert table.next_id() == "4"


def test_resolve_passes_error_and_result_to_handler():
    seen = []
    call = PendingCall(id="1", method="m", handler=lambda e, r: seen.append((e, r)))

    call.resolve(None, 42)

    assert seen == [(None, 42)]
