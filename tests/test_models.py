from datetime import date, datetime

import pytest

from flowcal.models import Event, active_count, active_events, event_sort_key, parse_hhmm, sort_events


def _event(event_id: str, start: str, cancelled: bool = False) -> Event:
    return Event(
        id=event_id,
        title="Planning",
        date=date(2024, 5, 1),
        start_time=start,
        end_time="23:00",
        type="meeting",
        created_at=datetime(2024, 4, 1, 10, 0),
        location="HQ",
        cancelled=cancelled,
    )


@pytest.mark.parametrize("value,expected", [("00:00", 0), ("9:30", 570), ("23:59", 1439)])
def test_parse_hhmm(value, expected):
    assert parse_hhmm(value) == expected


@pytest.mark.parametrize("value", ["24:00", "12:60", "1200", "", "ab:cd", "9:5"])
def test_parse_hhmm_rejects_malformed_times(value):
    with pytest.raises(ValueError):
        parse_hhmm(value)


def test_sort_orders_by_start_then_id():
    events = [_event("b", "10:00"), _event("c", "09:00"), _event("a", "10:00")]

    assert [e.id for e in sort_events(events)] == ["c", "a", "b"]
    assert event_sort_key(events[0]) == ("10:00", "b")


def test_with_cancelled_preserves_every_other_field():
    original = _event("a", "10:00")

    cancelled = original.with_cancelled()

    assert cancelled.cancelled is True
    assert original.cancelled is False
    assert cancelled == Event(**{**original.__dict__, "cancelled": True})


def test_active_helpers_skip_cancelled_events():
    events = [_event("a", "10:00"), _event("b", "11:00", cancelled=True)]

    assert active_count(events) == 1
    assert [e.id for e in active_events(events)] == ["a"]
