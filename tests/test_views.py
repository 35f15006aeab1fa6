from datetime import date, datetime

from flowcal.indexer import get_locale
from flowcal.layout import LayoutConfig
from flowcal.models import Event
from flowcal.views import day_agenda, event_log, month_grid, timeline, type_legend, week_view


def _event(event_id, day, start="09:00", end="10:00", cancelled=False, created=None):
    return Event(
        id=event_id,
        title=f"Event {event_id}",
        date=day,
        start_time=start,
        end_time=end,
        type="work",
        created_at=created or datetime(2024, 4, 1, 9, 0),
        cancelled=cancelled,
    )


EVENTS = [
    _event("a", date(2024, 5, 1), "10:00", "11:30"),
    _event("b", date(2024, 5, 1), "10:30", "11:00", cancelled=True),
    _event("c", date(2024, 5, 1), "12:30", "13:30"),
    _event("d", date(2024, 5, 31)),
    _event("e", date(2024, 6, 2)),
]


def test_month_grid_marks_adjacent_month_days_and_today():
    view = month_grid(EVENTS, date(2024, 5, 15), week_start=6, today=date(2024, 5, 1))

    assert view.title == "May 2024"
    assert view.weekday_labels[0] == "Sun"
    assert len(view.weeks) == 6 and all(len(w) == 7 for w in view.weeks)
    cells = {c.day: c for week in view.weeks for c in week}
    assert cells[date(2024, 4, 28)].in_month is False
    assert cells[date(2024, 5, 1)].is_today
    assert cells[date(2024, 5, 1)].active_count == 2
    assert cells[date(2024, 5, 1)].cancelled_count == 1
    assert [e.id for e in cells[date(2024, 6, 2)].events] == ["e"]


def test_day_agenda_counts_only_active_events():
    view = day_agenda(EVENTS, date(2024, 5, 1))

    assert view.title == "Wednesday, May 1"
    assert view.subtitle == "2 events scheduled"
    assert [entry.event.id for entry in view.entries] == ["a", "b", "c"]
    assert [entry.cancelled for entry in view.entries] == [False, True, False]
    assert view.entries[0].time_range == "10:00 - 11:30"


def test_empty_day_agenda():
    view = day_agenda(EVENTS, date(2024, 5, 2), get_locale("es_ES"))

    assert view.entries == []
    assert view.subtitle == "0 events scheduled"
    assert view.title == "jueves, mayo 2"


def test_timeline_uses_shared_layout_and_window_marks():
    config = LayoutConfig(minute_scale=2.0, window_start_minute=9 * 60 + 30, window_end_minute=14 * 60)

    view = timeline(EVENTS, date(2024, 5, 1), config)

    lanes = {p.event.id: (p.lane, p.lane_count) for p in view.placements}
    assert lanes == {"a": (0, 2), "b": (1, 2), "c": (0, 1)}
    assert view.hour_marks[0] == ("10:00", 60.0)
    assert view.hour_marks[-1][0] == "13:00"
    assert view.height == 270 * 2.0


def test_week_view_lays_out_every_day_of_the_week():
    view = week_view(EVENTS, date(2024, 5, 1), week_start=0)

    assert [tl.day for tl in view.days][0] == date(2024, 4, 29)
    assert len(view.days) == 7
    busy = [tl for tl in view.days if tl.placements]
    assert [tl.day for tl in busy] == [date(2024, 5, 1)]


def test_event_log_is_newest_first_and_flags_cancellations():
    events = [
        _event("old", date(2024, 5, 3), created=datetime(2024, 4, 1, 9, 5)),
        _event("new", date(2024, 5, 1), cancelled=True, created=datetime(2024, 4, 2, 17, 45)),
    ]

    entries = event_log(events)

    assert [entry.event.id for entry in entries] == ["new", "old"]
    assert entries[0].cancelled
    assert entries[0].day_label == "May 1"
    assert entries[0].added_label == "Added Apr 2, 17:45"


def test_type_legend():
    assert type_legend(["interno", "externo"]) == ["Interno", "Externo"]
