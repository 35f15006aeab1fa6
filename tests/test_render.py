from datetime import date, datetime

from PIL import ImageDraw

from flowcal.layout import LayoutConfig
from flowcal.models import Event
from flowcal.render import render_month, render_timeline, type_colors
from flowcal.views import month_grid, timeline

TYPES = ("meeting", "personal", "work", "reminder")


def _event(event_id, title, start, end, cancelled=False, event_type="work", day=date(2024, 5, 1)):
    return Event(
        id=event_id,
        title=title,
        date=day,
        start_time=start,
        end_time=end,
        type=event_type,
        created_at=datetime(2024, 4, 1, 9, 0),
        cancelled=cancelled,
    )


def _record_text(monkeypatch):
    observed = []
    original_text = ImageDraw.ImageDraw.text

    def recording_text(self, xy, text, *args, **kwargs):
        observed.append((xy, text, kwargs.get("fill")))
        return original_text(self, xy, text, *args, **kwargs)

    monkeypatch.setattr(ImageDraw.ImageDraw, "text", recording_text)
    return observed


def test_timeline_draws_overlapping_events_side_by_side(monkeypatch):
    observed = _record_text(monkeypatch)
    view = timeline(
        [_event("a", "Review", "09:00", "10:00"), _event("b", "Sync", "09:30", "10:30")],
        date(2024, 5, 1),
        LayoutConfig(window_start_minute=8 * 60, window_end_minute=12 * 60),
    )

    img = render_timeline(view, canvas_w=800, canvas_h=1000, event_types=TYPES)

    assert img.size == (800, 1000)
    positions = {text: xy for xy, text, _ in observed}
    assert positions["Review"][0] < positions["Sync"][0]
    assert "Wednesday, May 1" in positions


def test_timeline_draws_cancelled_events_in_grey_with_strike(monkeypatch):
    observed = _record_text(monkeypatch)
    lines = []
    original_line = ImageDraw.ImageDraw.line

    def recording_line(self, xy, *args, **kwargs):
        lines.append((xy, kwargs.get("fill")))
        return original_line(self, xy, *args, **kwargs)

    monkeypatch.setattr(ImageDraw.ImageDraw, "line", recording_line)
    view = timeline([_event("a", "Dentist", "09:00", "10:00", cancelled=True)], date(2024, 5, 1))

    render_timeline(view, canvas_w=800, canvas_h=1600, event_types=TYPES)

    fills = [fill for _, text, fill in observed if text == "Dentist"]
    assert fills == [(140, 140, 140)]
    assert any(fill == (140, 140, 140) for _, fill in lines)


def test_timeline_with_degenerate_event_renders(monkeypatch):
    observed = _record_text(monkeypatch)
    view = timeline([_event("p", "Ping", "10:00", "10:00")], date(2024, 5, 1))

    render_timeline(view, canvas_w=400, canvas_h=480, event_types=TYPES)

    assert all(text != "" for _, text, _ in observed)


def test_month_render_uses_type_colors_and_overflow_marker(monkeypatch):
    observed = _record_text(monkeypatch)
    busy = [_event(f"e{i}", f"Item {i}", f"{8 + i:02d}:00", f"{9 + i:02d}:00", event_type="meeting") for i in range(12)]
    view = month_grid(busy, date(2024, 5, 15), week_start=0)

    img = render_month(view, canvas_w=1200, canvas_h=900, event_types=TYPES)

    assert img.size == (1200, 900)
    texts = [text for _, text, _ in observed]
    assert "May 2024" in texts
    assert any(t.startswith("+") and t.endswith("more") for t in texts)
    meeting_ink = type_colors(TYPES)["meeting"][1]
    assert any(fill == meeting_ink for _, text, fill in observed if text.startswith("08:00"))
