from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import os
from typing import Any, Dict, Optional, Tuple
import yaml

from .indexer import CalendarLocale, get_locale, parse_week_start
from .layout import MINUTES_PER_DAY, LayoutConfig
from .models import EVENT_TYPE_PRESETS, parse_hhmm

@dataclass
class ApiConfig:
    base_url: str
    timeout_seconds: float

@dataclass
class CalendarConfig:
    locale: str
    week_start: int             # 0 = Monday
    event_types: Tuple[str, ...]

    @property
    def calendar_locale(self) -> CalendarLocale:
        return get_locale(self.locale)

@dataclass
class LayoutSettings:
    minute_scale: float
    min_duration_minutes: int
    window_start: str
    window_end: str

    def to_layout_config(self) -> LayoutConfig:
        end = MINUTES_PER_DAY if self.window_end in ("24:00", "") else parse_hhmm(self.window_end)
        return LayoutConfig(
            minute_scale=self.minute_scale,
            min_duration_minutes=self.min_duration_minutes,
            window_start_minute=parse_hhmm(self.window_start),
            window_end_minute=end,
        )

@dataclass
class DisplayConfig:
    width: int
    height: int

@dataclass
class AppConfig:
    poll_interval_seconds: int
    api: ApiConfig
    calendar: CalendarConfig
    layout: LayoutSettings
    display: DisplayConfig

def _event_types(calendar: Dict[str, Any]) -> Tuple[str, ...]:
    explicit = calendar.get("event_types")
    if explicit:
        return tuple(str(t) for t in explicit)
    preset = str(calendar.get("event_type_preset", "default"))
    if preset not in EVENT_TYPE_PRESETS:
        raise ValueError(f"Unknown event_type_preset {preset!r}; expected one of {sorted(EVENT_TYPE_PRESETS)}")
    return EVENT_TYPE_PRESETS[preset]

def load_config(path: Optional[str] = None) -> AppConfig:
    data: Dict[str, Any] = {}
    if path:
        p = Path(path)
        data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    api = data.get("api") or {}
    calendar = data.get("calendar") or {}
    layout = data.get("layout") or {}
    display = data.get("display") or {}

    locale = str(calendar.get("locale", "en_US"))

    cfg = AppConfig(
        poll_interval_seconds=int(data.get("poll_interval_seconds", 60)),
        api=ApiConfig(
            base_url=str(api.get("base_url", "http://localhost:5000")),
            timeout_seconds=float(api.get("timeout_seconds", 10)),
        ),
        calendar=CalendarConfig(
            locale=locale,
            week_start=parse_week_start(calendar.get("week_start"), get_locale(locale)),
            event_types=_event_types(calendar),
        ),
        layout=LayoutSettings(
            minute_scale=float(layout.get("minute_scale", 1.0)),
            min_duration_minutes=int(layout.get("min_duration_minutes", 15)),
            window_start=str(layout.get("window_start", "00:00")),
            window_end=str(layout.get("window_end", "24:00")),
        ),
        display=DisplayConfig(
            width=int(display.get("width", 1200)),
            height=int(display.get("height", 1600)),
        ),
    )

    # Environment (and .env, loaded by the CLI) wins over the file.
    base_url = os.environ.get("FLOWCAL_API_BASE_URL")
    if base_url:
        cfg.api.base_url = base_url
    timeout = os.environ.get("FLOWCAL_API_TIMEOUT")
    if timeout:
        cfg.api.timeout_seconds = float(timeout)
    return cfg
