# plansmart/geometry.py
"""Timestamp -> layout coordinate conversion for a single-day grid.

Coordinates are unit-free: HOUR_HEIGHT units per hour, measured from the top
of the visible window (its first hour row).
"""
from __future__ import annotations

from typing import Optional

from .model import MIN_MS
from .util.tz import TzLike, local_datetime

HOUR_HEIGHT = 60.0


def min_visible_extent(hour_height: float = HOUR_HEIGHT) -> float:
    """Half an hour-row."""
    return float(hour_height) / 2.0


MIN_VISIBLE_EXTENT = min_visible_extent(HOUR_HEIGHT)


def position(t_ms: int, start_hour: int, *, tz: TzLike = "local", hour_height: float = HOUR_HEIGHT) -> float:
    """Offset of `t_ms` below the top of a window starting at `start_hour`.

    Negative when the time lies before the window; clipping is up to the caller.
    """
    t = local_datetime(t_ms, tz)
    return (t.hour - int(start_hour) + t.minute / 60.0) * float(hour_height)


def extent(start_ms: int, end_ms: int, *, hour_height: float = HOUR_HEIGHT) -> float:
    minutes = (int(end_ms) - int(start_ms)) / MIN_MS
    return minutes / 60.0 * float(hour_height)


def visible_extent(
    start_ms: int,
    end_ms: int,
    *,
    hour_height: float = HOUR_HEIGHT,
    floor: Optional[float] = None,
) -> float:
    """extent() clamped to a strictly positive floor (default: half an hour-row)."""
    lo = min_visible_extent(hour_height) if floor is None else float(floor)
    return max(extent(start_ms, end_ms, hour_height=hour_height), lo)
