"""View models for the month grid, week, day agenda, timeline and log views.

All builders are pure: they take a snapshot of events and return plain data,
consuming the indexer for bucketing and the layout engine for placement.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Sequence

from .indexer import (
    CalendarLocale,
    bucket_by_day,
    chronological_log,
    day_range,
    get_locale,
    month_grid_range,
    week_range,
)
from .layout import LayoutConfig, Placement, layout
from .models import Event, active_count


@dataclass(frozen=True)
class DayCell:
    day: date
    in_month: bool
    is_today: bool
    events: List[Event]

    @property
    def active_count(self) -> int:
        return active_count(self.events)

    @property
    def cancelled_count(self) -> int:
        return len(self.events) - self.active_count


@dataclass(frozen=True)
class MonthGridView:
    title: str
    weekday_labels: List[str]
    weeks: List[List[DayCell]]


@dataclass(frozen=True)
class AgendaEntry:
    event: Event
    time_range: str
    cancelled: bool


@dataclass(frozen=True)
class DayAgendaView:
    day: date
    title: str
    entries: List[AgendaEntry]
    active_count: int

    @property
    def subtitle(self) -> str:
        noun = "event" if self.active_count == 1 else "events"
        return f"{self.active_count} {noun} scheduled"


@dataclass(frozen=True)
class TimelineView:
    day: date
    title: str
    placements: List[Placement]
    hour_marks: List[tuple]     # (label, vertical offset)
    height: float


@dataclass(frozen=True)
class WeekView:
    title: str
    days: List[TimelineView]


@dataclass(frozen=True)
class LogEntry:
    event: Event
    day_label: str
    time_range: str
    added_label: str
    cancelled: bool


def _time_range(e: Event) -> str:
    return f"{e.start_time} - {e.end_time}"


def _day_title(day: date, locale: CalendarLocale) -> str:
    return f"{locale.weekday_label(day)}, {locale.month_names[day.month - 1]} {day.day}"


def month_grid(
    events: Iterable[Event],
    reference: date,
    week_start: int = 0,
    locale: Optional[CalendarLocale] = None,
    today: Optional[date] = None,
) -> MonthGridView:
    locale = locale or get_locale(None)
    buckets = bucket_by_day(events, month_grid_range(reference, week_start))
    cells = [
        DayCell(
            day=day,
            in_month=(day.month == reference.month and day.year == reference.year),
            is_today=(day == today),
            events=bucket,
        )
        for day, bucket in buckets.items()
    ]
    weeks = [cells[i:i + 7] for i in range(0, len(cells), 7)]
    return MonthGridView(
        title=locale.month_label(reference),
        weekday_labels=locale.ordered_weekdays(week_start),
        weeks=weeks,
    )


def day_agenda(
    events: Iterable[Event],
    day: date,
    locale: Optional[CalendarLocale] = None,
) -> DayAgendaView:
    locale = locale or get_locale(None)
    bucket = bucket_by_day(events, day_range(day))[day]
    return DayAgendaView(
        day=day,
        title=_day_title(day, locale),
        entries=[AgendaEntry(event=e, time_range=_time_range(e), cancelled=e.cancelled) for e in bucket],
        active_count=active_count(bucket),
    )


def _hour_marks(config: LayoutConfig) -> List[tuple]:
    first_hour = -(-config.window_start_minute // 60)
    marks = []
    for minute in range(first_hour * 60, config.window_end_minute, 60):
        marks.append((f"{minute // 60:02d}:00", (minute - config.window_start_minute) * config.minute_scale))
    return marks


def timeline(
    events: Iterable[Event],
    day: date,
    config: Optional[LayoutConfig] = None,
    locale: Optional[CalendarLocale] = None,
) -> TimelineView:
    config = config or LayoutConfig()
    locale = locale or get_locale(None)
    bucket = bucket_by_day(events, day_range(day))[day]
    return TimelineView(
        day=day,
        title=_day_title(day, locale),
        placements=layout(bucket, config),
        hour_marks=_hour_marks(config),
        height=config.window_height,
    )


def week_view(
    events: Iterable[Event],
    reference: date,
    week_start: int = 0,
    config: Optional[LayoutConfig] = None,
    locale: Optional[CalendarLocale] = None,
) -> WeekView:
    config = config or LayoutConfig()
    locale = locale or get_locale(None)
    rng = week_range(reference, week_start)
    buckets = bucket_by_day(events, rng)
    days = [
        TimelineView(
            day=day,
            title=_day_title(day, locale),
            placements=layout(bucket, config),
            hour_marks=_hour_marks(config),
            height=config.window_height,
        )
        for day, bucket in buckets.items()
    ]
    title = f"{_day_title(rng.start, locale)} - {_day_title(rng.end, locale)}"
    return WeekView(title=title, days=days)


def event_log(events: Iterable[Event], locale: Optional[CalendarLocale] = None) -> List[LogEntry]:
    locale = locale or get_locale(None)
    entries: List[LogEntry] = []
    for e in chronological_log(events):
        month = locale.month_names[e.date.month - 1][:3]
        added_month = locale.month_names[e.created_at.month - 1][:3]
        entries.append(
            LogEntry(
                event=e,
                day_label=f"{month} {e.date.day}",
                time_range=_time_range(e),
                added_label=f"Added {added_month} {e.created_at.day}, {e.created_at.strftime('%H:%M')}",
                cancelled=e.cancelled,
            )
        )
    return entries


def type_legend(event_types: Sequence[str]) -> List[str]:
    return [t.capitalize() for t in event_types]
