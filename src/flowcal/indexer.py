from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .models import Event, event_sort_key

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
MONTH_GRID_WEEKS = 6


@dataclass(frozen=True)
class CalendarLocale:
    name: str
    first_weekday: int          # 0 = Monday, as datetime.weekday()
    weekday_names: Tuple[str, ...]
    month_names: Tuple[str, ...]

    def weekday_label(self, day: date, short: bool = False) -> str:
        label = self.weekday_names[day.weekday()]
        return label[:3] if short else label

    def month_label(self, day: date) -> str:
        return f"{self.month_names[day.month - 1]} {day.year}"

    def ordered_weekdays(self, week_start: Optional[int] = None, short: bool = True) -> List[str]:
        start = self.first_weekday if week_start is None else week_start
        names = [self.weekday_names[(start + i) % 7] for i in range(7)]
        return [n[:3] for n in names] if short else names


_EN_WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
_EN_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

LOCALES: Dict[str, CalendarLocale] = {
    "en_US": CalendarLocale("en_US", 6, _EN_WEEKDAYS, _EN_MONTHS),
    "en_GB": CalendarLocale("en_GB", 0, _EN_WEEKDAYS, _EN_MONTHS),
    "es_ES": CalendarLocale(
        "es_ES",
        0,
        ("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"),
        (
            "enero", "febrero", "marzo", "abril", "mayo", "junio",
            "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
        ),
    ),
}
DEFAULT_LOCALE = "en_US"


def get_locale(name: Optional[str]) -> CalendarLocale:
    key = (name or DEFAULT_LOCALE).replace("-", "_")
    found = LOCALES.get(key)
    if found is None:
        logger.warning("Unknown calendar locale %r; falling back to %s", name, DEFAULT_LOCALE)
        return LOCALES[DEFAULT_LOCALE]
    return found


def parse_week_start(value: Union[str, int, None], locale: Optional[CalendarLocale] = None) -> int:
    """Weekday index (0 = Monday) for a weekday name or int; None defers to the locale."""
    if value is None or value == "":
        return (locale or LOCALES[DEFAULT_LOCALE]).first_weekday
    if isinstance(value, bool):
        raise ValueError(f"Invalid week start: {value!r}")
    if isinstance(value, int):
        if not 0 <= value <= 6:
            raise ValueError(f"Invalid week start: {value!r}")
        return value
    name = str(value).strip().lower()
    if name in WEEKDAY_NAMES:
        return WEEKDAY_NAMES.index(name)
    raise ValueError(f"Invalid week start: {value!r}")


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of calendar days."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"DateRange end {self.end} is before start {self.start}")

    def days(self) -> Iterator[date]:
        for offset in range((self.end - self.start).days + 1):
            yield self.start + timedelta(days=offset)

    def __len__(self) -> int:
        return (self.end - self.start).days + 1

    def __contains__(self, day: object) -> bool:
        return isinstance(day, date) and self.start <= day <= self.end


def start_of_week(reference: date, week_start: int) -> date:
    return reference - timedelta(days=(reference.weekday() - week_start) % 7)


def day_range(day: date) -> DateRange:
    return DateRange(day, day)


def week_range(reference: date, week_start: int = 0) -> DateRange:
    first = start_of_week(reference, week_start)
    return DateRange(first, first + timedelta(days=6))


def month_grid_range(reference: date, week_start: int = 0) -> DateRange:
    # Always six full weeks so the grid height never changes between months.
    first = start_of_week(reference.replace(day=1), week_start)
    return DateRange(first, first + timedelta(days=7 * MONTH_GRID_WEEKS - 1))


def bucket_by_day(events: Iterable[Event], date_range: DateRange) -> Dict[date, List[Event]]:
    """Events grouped by calendar day; every day of the range is a key."""
    buckets: Dict[date, List[Event]] = {day: [] for day in date_range.days()}
    for e in events:
        bucket = buckets.get(e.date)
        if bucket is not None:
            bucket.append(e)
    for bucket in buckets.values():
        bucket.sort(key=event_sort_key)
    return buckets


def events_on(events: Iterable[Event], day: date) -> List[Event]:
    return bucket_by_day(events, day_range(day))[day]


def chronological_log(events: Iterable[Event]) -> List[Event]:
    """Newest additions first."""
    ordered = sorted(events, key=lambda e: e.id)
    ordered.sort(key=lambda e: e.created_at, reverse=True)
    return ordered


@dataclass(frozen=True)
class DaySummary:
    day: date
    active: int
    cancelled: int

    @property
    def total(self) -> int:
        return self.active + self.cancelled


def day_summary(buckets: Dict[date, List[Event]]) -> Dict[date, DaySummary]:
    summary: Dict[date, DaySummary] = {}
    for day, bucket in buckets.items():
        cancelled = sum(1 for e in bucket if e.cancelled)
        summary[day] = DaySummary(day=day, active=len(bucket) - cancelled, cancelled=cancelled)
    return summary
