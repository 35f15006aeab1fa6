"""Overlap layout for the events of one day or one hour range.

Every event is turned into a half-open minute interval ``[start, end)``.
Overlapping events are spread over lanes with greedy interval colouring, and
all events of a connected overlap cluster share the same ``lane_count`` so
they render at equal fractional width.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from .models import Event, event_sort_key

MINUTES_PER_DAY = 24 * 60


@dataclass(frozen=True)
class LayoutConfig:
    minute_scale: float = 1.0           # vertical units per minute
    min_duration_minutes: int = 15      # extent given to zero/negative-length events
    window_start_minute: int = 0
    window_end_minute: int = MINUTES_PER_DAY

    def __post_init__(self) -> None:
        if self.minute_scale <= 0:
            raise ValueError("minute_scale must be positive")
        if self.min_duration_minutes < 1:
            raise ValueError("min_duration_minutes must be at least 1")
        if not 0 <= self.window_start_minute < self.window_end_minute <= MINUTES_PER_DAY:
            raise ValueError(
                f"Invalid layout window {self.window_start_minute}-{self.window_end_minute}"
            )

    @property
    def window_height(self) -> float:
        return (self.window_end_minute - self.window_start_minute) * self.minute_scale


@dataclass(frozen=True)
class Placement:
    event: Event
    vertical_start: float
    vertical_extent: float
    lane: int
    lane_count: int
    start_minute: int               # effective interval, after degenerate/window handling
    end_minute: int

    @property
    def width_fraction(self) -> float:
        return 1.0 / self.lane_count

    @property
    def left_fraction(self) -> float:
        return self.lane / self.lane_count

    def overlaps(self, other: "Placement") -> bool:
        return self.start_minute < other.end_minute and other.start_minute < self.end_minute


def effective_interval(e: Event, config: LayoutConfig) -> Optional[Tuple[int, int]]:
    """``[start, end)`` in minutes, clipped to the layout window; None when outside it."""
    start = e.start_minute
    end = e.end_minute
    if end <= start:
        end = start + config.min_duration_minutes
    end = min(end, MINUTES_PER_DAY)
    if end <= config.window_start_minute or start >= config.window_end_minute:
        return None
    return max(start, config.window_start_minute), min(end, config.window_end_minute)


def layout(day_events: Iterable[Event], config: Optional[LayoutConfig] = None) -> List[Placement]:
    """Place the events of a single day.

    Events are visited by start, then end (shorter first), then the model's
    ordering. Each takes the lowest lane not held by a still-open event.
    Output follows that visiting order.
    """
    config = config or LayoutConfig()

    intervals: List[Tuple[int, int, Event]] = []
    for e in day_events:
        interval = effective_interval(e, config)
        if interval is not None:
            intervals.append((interval[0], interval[1], e))
    intervals.sort(key=lambda item: (item[0], item[1], event_sort_key(item[2])))

    assigned: List[Tuple[int, int, Event, int, int]] = []  # start, end, event, lane, cluster
    lane_ends: List[Optional[int]] = []
    cluster_max_lane: List[int] = []

    for start, end, e in intervals:
        for lane, lane_end in enumerate(lane_ends):
            if lane_end is not None and lane_end <= start:
                lane_ends[lane] = None

        if all(lane_end is None for lane_end in lane_ends):
            cluster_max_lane.append(0)
            lane_ends = []

        try:
            lane = lane_ends.index(None)
            lane_ends[lane] = end
        except ValueError:
            lane = len(lane_ends)
            lane_ends.append(end)

        cluster = len(cluster_max_lane) - 1
        cluster_max_lane[cluster] = max(cluster_max_lane[cluster], lane)
        assigned.append((start, end, e, lane, cluster))

    placements: List[Placement] = []
    for start, end, e, lane, cluster in assigned:
        placements.append(
            Placement(
                event=e,
                vertical_start=(start - config.window_start_minute) * config.minute_scale,
                vertical_extent=(end - start) * config.minute_scale,
                lane=lane,
                lane_count=cluster_max_lane[cluster] + 1,
                start_minute=start,
                end_minute=end,
            )
        )
    return placements


def layout_days(
    buckets: Dict[date, List[Event]],
    config: Optional[LayoutConfig] = None,
) -> Dict[date, List[Placement]]:
    return {day: layout(events, config) for day, events in buckets.items()}


def max_concurrency(placements: Iterable[Placement]) -> int:
    """Largest number of placements open at the same minute."""
    edges: List[Tuple[int, int]] = []
    for p in placements:
        edges.append((p.start_minute, 1))
        edges.append((p.end_minute, -1))
    # Ends sort before starts at the same minute: intervals are half-open.
    edges.sort()
    current = peak = 0
    for _, delta in edges:
        current += delta
        peak = max(peak, current)
    return peak
