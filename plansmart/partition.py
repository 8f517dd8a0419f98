# plansmart/partition.py
from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional, Sequence, Tuple

from .model import Task
from .util.tz import TzLike, day_of_ms, resolve_tz, today_date


def belongs_to_day(task: Task, day: dt.date, *, today: dt.date, tz: TzLike = "local") -> bool:
    """Dated tasks belong to the day of their deadline; undated ones only to today."""
    if task.deadline_ms is None:
        return day == today
    return day_of_ms(task.deadline_ms, tz) == day


def partition(
    tasks: Sequence[Task],
    day: Optional[dt.date] = None,
    *,
    today: Optional[dt.date] = None,
    tz: TzLike = "local",
) -> Tuple[List[Task], List[Task]]:
    """Split `tasks` into (active_day, other), each in original relative order.

    `day` and `today` default to the current date in `tz`. The two lists are
    disjoint and together hold every input task exactly once.
    """
    tzinfo = resolve_tz(tz)
    if today is None:
        today = today_date(tzinfo)
    if day is None:
        day = today

    active: List[Task] = []
    other: List[Task] = []
    for t in tasks:
        if belongs_to_day(t, day, today=today, tz=tzinfo):
            active.append(t)
        else:
            other.append(t)
    return active, other


def tasks_for_day(
    tasks: Iterable[Task],
    day: dt.date,
    *,
    include_undated: bool = False,
    tz: TzLike = "local",
) -> List[Task]:
    """Calendar listing for `day`: dated tasks only unless include_undated."""
    tzinfo = resolve_tz(tz)
    out: List[Task] = []
    for t in tasks:
        if t.deadline_ms is None:
            if include_undated:
                out.append(t)
            continue
        if day_of_ms(t.deadline_ms, tzinfo) == day:
            out.append(t)
    return out


def todo_tasks(tasks: Iterable[Task]) -> List[Task]:
    return [t for t in tasks if t.status == "todo"]


def index_of(tasks: Sequence[Task], task_id: str) -> int:
    for i, t in enumerate(tasks):
        if t.id == task_id:
            return i
    return -1
