from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple
from PIL import Image, ImageDraw, ImageFont

from .views import MonthGridView, TimelineView, type_legend

FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"

# (fill, outline) per event type, assigned in configured type order.
_TYPE_PALETTE: List[Tuple[Tuple[int, int, int], Tuple[int, int, int]]] = [
    ((219, 234, 254), (29, 78, 216)),     # blue
    ((220, 252, 231), (21, 128, 61)),     # green
    ((243, 232, 255), (126, 34, 206)),    # purple
    ((255, 237, 213), (194, 65, 12)),     # orange
]
_CANCELLED_FILL = (238, 238, 238)
_CANCELLED_INK = (140, 140, 140)


def _load_font(size: int):
    try:
        return ImageFont.truetype(FONT_PATH, size)
    except OSError:
        return ImageFont.load_default(size=size)


def type_colors(event_types: Sequence[str]) -> Dict[str, Tuple[Tuple[int, int, int], Tuple[int, int, int]]]:
    return {t: _TYPE_PALETTE[i % len(_TYPE_PALETTE)] for i, t in enumerate(event_types)}


def _wrap_text(
    draw: ImageDraw.ImageDraw,
    text: str,
    font,
    max_width: float,
    max_lines: Optional[int] = 2,
) -> List[str]:
    words = text.split()
    lines: List[str] = []
    cur = ""
    for w in words:
        test = (cur + " " + w).strip()
        if draw.textlength(test, font=font) <= max_width:
            cur = test
        else:
            if cur:
                lines.append(cur)
            cur = w
    if cur:
        lines.append(cur)
    return lines if max_lines is None else lines[:max_lines]


def _strike(draw: ImageDraw.ImageDraw, x: float, y: float, text: str, font, size: int) -> None:
    w = draw.textlength(text, font=font)
    mid = y + size * 0.55
    draw.line((x, mid, x + w, mid), fill=_CANCELLED_INK, width=2)


def render_timeline(
    view: TimelineView,
    canvas_w: int,
    canvas_h: int,
    event_types: Sequence[str],
) -> Image.Image:
    """Day timeline: hour rail on the left, one box per placement, lanes side by side."""
    img = Image.new("RGB", (canvas_w, canvas_h), "white")
    d = ImageDraw.Draw(img)

    header_size = 40
    label_size = 18
    title_size = 22
    font_header = _load_font(header_size)
    font_label = _load_font(label_size)
    font_title = _load_font(title_size)

    padding = 24
    y = padding
    d.text((padding, y), view.title, fill="black", font=font_header)
    y += header_size + 16
    d.line((padding, y, canvas_w - padding, y), fill="black", width=2)
    y += 10

    rail_w = max((d.textlength(label, font=font_label) for label, _ in view.hour_marks), default=0) + 12
    area_top = y
    area_left = padding + rail_w
    area_w = canvas_w - padding - area_left
    area_h = canvas_h - padding - area_top
    scale = area_h / view.height if view.height else 1.0

    for label, offset in view.hour_marks:
        my = area_top + offset * scale
        d.text((padding, my - label_size / 2), label, fill="black", font=font_label)
        d.line((area_left, my, canvas_w - padding, my), fill=(210, 210, 210), width=1)

    colors = type_colors(event_types)
    for p in view.placements:
        top = area_top + p.vertical_start * scale
        bottom = top + max(p.vertical_extent * scale, 4)
        left = area_left + area_w * p.left_fraction + 2
        right = area_left + area_w * (p.left_fraction + p.width_fraction) - 2
        if p.event.cancelled:
            fill, outline, ink = _CANCELLED_FILL, _CANCELLED_INK, _CANCELLED_INK
        else:
            fill, outline = colors.get(p.event.type, _TYPE_PALETTE[0])
            ink = outline
        d.rectangle((left, top, right, bottom), fill=fill, outline=outline, width=2)

        text_x = left + 6
        text_y = top + 4
        room = int((bottom - top - 8) // (title_size + 4))
        if room < 1:
            continue
        for line in _wrap_text(d, p.event.title, font_title, right - left - 12, max_lines=room):
            d.text((text_x, text_y), line, fill=ink, font=font_title)
            if p.event.cancelled:
                _strike(d, text_x, text_y, line, font_title, title_size)
            text_y += title_size + 4

    return img


def render_month(
    view: MonthGridView,
    canvas_w: int,
    canvas_h: int,
    event_types: Sequence[str],
) -> Image.Image:
    """Month grid with one cell per day; each cell lists its events until it runs out of room."""
    img = Image.new("RGB", (canvas_w, canvas_h), "white")
    d = ImageDraw.Draw(img)

    header_size = 40
    small_size = 16
    font_header = _load_font(header_size)
    font_small = _load_font(small_size)

    padding = 24
    y = padding
    d.text((padding, y), view.title, fill="black", font=font_header)
    legend_x = canvas_w - padding
    colors = type_colors(event_types)
    for event_type, label in reversed(list(zip(event_types, type_legend(event_types)))):
        legend_x -= d.textlength(label, font=font_small) + 16
        d.text((legend_x, y + 12), label, fill=colors[event_type][1], font=font_small)
    y += header_size + 16

    cell_w = (canvas_w - 2 * padding) / 7
    for i, label in enumerate(view.weekday_labels):
        d.text((padding + i * cell_w + 6, y), label, fill="black", font=font_small)
    y += small_size + 10

    rows = len(view.weeks) or 1
    cell_h = (canvas_h - padding - y) / rows
    line_h = small_size + 4
    for r, week in enumerate(view.weeks):
        for c, cell in enumerate(week):
            left = padding + c * cell_w
            top = y + r * cell_h
            d.rectangle((left, top, left + cell_w, top + cell_h), outline="black", width=2 if cell.is_today else 1)
            ink = "black" if cell.in_month else (160, 160, 160)
            d.text((left + 6, top + 4), str(cell.day.day), fill=ink, font=font_small)

            ty = top + 4 + line_h
            for idx, e in enumerate(cell.events):
                if ty + line_h > top + cell_h:
                    break
                remaining = len(cell.events) - idx
                if remaining > 1 and ty + 2 * line_h > top + cell_h:
                    d.text((left + 6, ty), f"+{remaining} more", fill="black", font=font_small)
                    break
                text = f"{e.start_time} {e.title}"
                lines = _wrap_text(d, text, font_small, cell_w - 12, max_lines=1)
                if not lines:
                    continue
                color = _CANCELLED_INK if e.cancelled else colors.get(e.type, _TYPE_PALETTE[0])[1]
                d.text((left + 6, ty), lines[0], fill=color, font=font_small)
                if e.cancelled:
                    _strike(d, left + 6, ty, lines[0], font_small, small_size)
                ty += line_h

    return img
