from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple

EVENT_TYPE_PRESETS = {
    "default": ("meeting", "personal", "work", "reminder"),
    "basic": ("interno", "externo"),
}
DEFAULT_EVENT_TYPES: Tuple[str, ...] = EVENT_TYPE_PRESETS["default"]


def parse_hhmm(value: str) -> int:
    """Minutes since midnight for an ``H:MM``/``HH:MM`` 24-hour string."""
    try:
        hh, mm = value.split(":")
        if not (1 <= len(hh) <= 2 and len(mm) == 2):
            raise ValueError
        hour, minute = int(hh), int(mm)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time format: {value!r}") from None
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time format: {value!r}")
    return hour * 60 + minute


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class EventDraft:
    title: str
    date: date
    start_time: str             # "HH:MM"
    end_time: str               # "HH:MM"
    type: str
    description: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class Event:
    id: str                     # server-assigned, never reused
    title: str
    date: date                  # local calendar day
    start_time: str             # "HH:MM"
    end_time: str               # "HH:MM"
    type: str
    created_at: datetime        # server-assigned, log ordering only
    description: Optional[str] = None
    location: Optional[str] = None
    cancelled: bool = False

    @property
    def start_minute(self) -> int:
        return parse_hhmm(self.start_time)

    @property
    def end_minute(self) -> int:
        return parse_hhmm(self.end_time)

    @property
    def is_active(self) -> bool:
        return not self.cancelled

    def with_cancelled(self) -> "Event":
        return replace(self, cancelled=True)


def event_sort_key(e: Event):
    # Fixed-width "HH:MM" compares correctly as a string; id breaks ties.
    return (e.start_time, e.id)


def sort_events(events: Iterable[Event]) -> List[Event]:
    return sorted(events, key=event_sort_key)


def active_events(events: Iterable[Event]) -> List[Event]:
    return [e for e in events if e.is_active]


def active_count(events: Iterable[Event]) -> int:
    return sum(1 for e in events if e.is_active)
