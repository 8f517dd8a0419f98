# plansmart/timeline.py
"""Single-day schedule composition.

Fixed appointments, task-blocks (views derived from a task's deadline and
duration) and AI time-block suggestions are merged into one positioned list
for the selected day. Positions come from plansmart.geometry; items that have
already elapsed are hidden when the selected day is today.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .geometry import HOUR_HEIGHT, extent, min_visible_extent, position
from .model import MIN_MS, TIMELINE_DEFAULT_DURATION_MIN, Appointment, SuggestedBlock, Task
from .partition import partition
from .util.tz import TzLike, day_of_ms, is_midnight_ms, local_datetime, now_ms as _now_ms, resolve_tz


@dataclass(frozen=True)
class TimelineWindow:
    day: dt.date
    start_hour: int
    hours: Tuple[int, ...]
    is_today: bool

    @property
    def hour_key(self) -> str:
        return f"{self.day.isoformat()}@{self.start_hour:02d}"


@dataclass(frozen=True)
class TimelineItem:
    appointment: Appointment
    top: float
    height: float
    lane: int = 0
    total_lanes: int = 1
    overlap: bool = False

    @property
    def id(self) -> str:
        return self.appointment.id

    @property
    def name(self) -> str:
        return self.appointment.name

    @property
    def start_ms(self) -> int:
        return self.appointment.start_ms

    @property
    def end_ms(self) -> int:
        return self.appointment.end_ms

    @property
    def kind(self) -> str:
        if self.appointment.is_suggestion:
            return "suggestion"
        if self.appointment.is_task:
            return "task"
        return "appointment"


@dataclass(frozen=True)
class Timeline:
    window: TimelineWindow
    items: Tuple[TimelineItem, ...]

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


def timeline_window(day: dt.date, *, now_ms: Optional[int] = None, tz: TzLike = "local") -> TimelineWindow:
    """Visible hour rows: from the current hour when `day` is today, else the full day."""
    tzinfo = resolve_tz(tz)
    now = local_datetime(_now_ms() if now_ms is None else now_ms, tzinfo)
    if day == now.date():
        return TimelineWindow(day=day, start_hour=now.hour, hours=tuple(range(now.hour, 24)), is_today=True)
    return TimelineWindow(day=day, start_hour=0, hours=tuple(range(24)), is_today=False)


def window_is_stale(window: TimelineWindow, day: dt.date, *, now_ms: Optional[int] = None, tz: TzLike = "local") -> bool:
    """True once the selected day changed or the wall-clock hour moved on."""
    fresh = timeline_window(day, now_ms=now_ms, tz=tz)
    return fresh != window


def task_blocks(
    tasks: Sequence[Task],
    day: dt.date,
    *,
    today: Optional[dt.date] = None,
    tz: TzLike = "local",
    default_duration_min: int = TIMELINE_DEFAULT_DURATION_MIN,
) -> List[Appointment]:
    """Appointment views for active-day tasks with a time-of-day deadline.

    A deadline at exactly local midnight means "date only" and is skipped.
    """
    tzinfo = resolve_tz(tz)
    active, _other = partition(tasks, day, today=today, tz=tzinfo)
    out: List[Appointment] = []
    for t in active:
        if t.deadline_ms is None or is_midnight_ms(t.deadline_ms, tzinfo):
            continue
        dur = t.duration_min if t.duration_min else int(default_duration_min)
        start_ms = int(t.deadline_ms)
        out.append(
            Appointment(
                id=t.id,
                name=t.name,
                start_ms=start_ms,
                end_ms=start_ms + int(dur) * MIN_MS,
                is_task=True,
            )
        )
    return out


def suggestion_appointments(blocks: Iterable[SuggestedBlock]) -> List[Appointment]:
    out: List[Appointment] = []
    for i, b in enumerate(blocks):
        out.append(
            Appointment(
                id=f"suggestion-{i:03d}",
                name=b.task_name,
                start_ms=int(b.start_ms),
                end_ms=int(b.end_ms),
                is_suggestion=True,
            )
        )
    return out


def _assign_lanes(items: List[TimelineItem]) -> List[TimelineItem]:
    """Greedy lane colouring per cluster of visually overlapping items."""
    groups: List[List[TimelineItem]] = []
    cur: List[TimelineItem] = []
    max_bottom = 0.0
    for it in items:
        bottom = it.top + it.height
        if cur and it.top < max_bottom:
            cur.append(it)
            max_bottom = max(max_bottom, bottom)
            continue
        if cur:
            groups.append(cur)
        cur = [it]
        max_bottom = bottom
    if cur:
        groups.append(cur)

    out: List[TimelineItem] = []
    for g in groups:
        lanes: List[float] = []
        assigned: List[Tuple[TimelineItem, int]] = []
        for it in g:
            lane_index = -1
            for i, lane_bottom in enumerate(lanes):
                if lane_bottom <= it.top:
                    lane_index = i
                    break
            if lane_index < 0:
                lane_index = len(lanes)
                lanes.append(it.top + it.height)
            else:
                lanes[lane_index] = it.top + it.height
            assigned.append((it, lane_index))
        total = max(1, len(lanes))
        for it, lane in assigned:
            out.append(
                TimelineItem(
                    appointment=it.appointment,
                    top=it.top,
                    height=it.height,
                    lane=lane,
                    total_lanes=total,
                    overlap=total > 1,
                )
            )
    return out


def compose_timeline(
    tasks: Sequence[Task],
    appointments: Sequence[Appointment],
    day: Optional[dt.date] = None,
    *,
    now_ms: Optional[int] = None,
    tz: TzLike = "local",
    suggestions: Sequence[SuggestedBlock] = (),
    hour_height: float = HOUR_HEIGHT,
    min_extent: Optional[float] = None,
    default_duration_min: int = TIMELINE_DEFAULT_DURATION_MIN,
) -> Timeline:
    """Compose the positioned schedule for `day` (default: today in `tz`)."""
    tzinfo = resolve_tz(tz)
    now = _now_ms() if now_ms is None else int(now_ms)
    today = local_datetime(now, tzinfo).date()
    if day is None:
        day = today

    window = timeline_window(day, now_ms=now, tz=tzinfo)
    floor = min_visible_extent(hour_height) if min_extent is None else float(min_extent)

    fixed = [a for a in appointments if day_of_ms(a.start_ms, tzinfo) == day]
    suggested = [a for a in suggestion_appointments(suggestions) if day_of_ms(a.start_ms, tzinfo) == day]
    derived = task_blocks(tasks, day, today=today, tz=tzinfo, default_duration_min=default_duration_min)

    merged = sorted(fixed + suggested + derived, key=lambda a: (a.start_ms, a.id))

    placed: List[TimelineItem] = []
    for appt in merged:
        top = position(appt.start_ms, window.start_hour, tz=tzinfo, hour_height=hour_height)
        if top < 0 and window.is_today:
            continue
        height = max(extent(appt.start_ms, appt.end_ms, hour_height=hour_height), floor)
        placed.append(TimelineItem(appointment=appt, top=top, height=height))

    return Timeline(window=window, items=tuple(_assign_lanes(placed)))


def day_summary(timeline: Timeline) -> Dict[str, int]:
    load_min = 0
    for it in timeline.items:
        load_min += max(0, (it.end_ms - it.start_ms) // MIN_MS)
    return {
        "item_count": len(timeline.items),
        "task_count": sum(1 for it in timeline.items if it.kind == "task"),
        "load_min": int(load_min),
        "overlap_count": sum(1 for it in timeline.items if it.overlap),
    }
