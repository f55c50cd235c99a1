from companion_core.domain.models import Reading, ReadingKind

from companion_client.local_history import LocalHistory


def r(ts: int, pm25: float = 10.0) -> Reading:
    return Reading(kind=ReadingKind.NODE, node="n1", pm25=pm25, pm10=20.0, lat=45.0, lon=9.0, timestamp=ts)


def test_capacity_evicts_oldest():
    history = LocalHistory(capacity=3)
    for ts in range(5):
        history.apply_push(r(ts))
    assert [x.timestamp for x in history.snapshot()] == [2, 3, 4]
    assert history.latest().timestamp == 4


def test_duplicate_push_is_ignored():
    history = LocalHistory()
    assert history.apply_push(r(1)) is True
    assert history.apply_push(r(1)) is False
    assert len(history) == 1


def test_snapshot_replaces_history():
    history = LocalHistory()
    history.apply_push(r(99))
    ticket = history.begin_poll()
    assert history.apply_snapshot(ticket, [r(1), r(2)]) is True
    assert [x.timestamp for x in history.snapshot()] == [1, 2]


def test_push_during_in_flight_poll_survives():
    history = LocalHistory()
    ticket = history.begin_poll()
    history.apply_push(r(3))  # arrives while the poll is in flight

    history.apply_snapshot(ticket, [r(1), r(2)])

    assert [x.timestamp for x in history.snapshot()] == [1, 2, 3]


def test_push_already_in_snapshot_is_not_duplicated():
    history = LocalHistory()
    ticket = history.begin_poll()
    history.apply_push(r(2))
    history.apply_snapshot(ticket, [r(1), r(2)])
    assert [x.timestamp for x in history.snapshot()] == [1, 2]


def test_out_of_order_poll_completion_is_discarded():
    history = LocalHistory()
    older = history.begin_poll()
    newer = history.begin_poll()

    assert history.apply_snapshot(newer, [r(1), r(2), r(3)]) is True
    assert history.apply_snapshot(older, [r(1)]) is False
    assert len(history) == 3


def test_snapshot_larger_than_capacity_keeps_newest():
    history = LocalHistory(capacity=2)
    history.apply_snapshot(history.begin_poll(), [r(1), r(2), r(3)])
    assert [x.timestamp for x in history.snapshot()] == [2, 3]
