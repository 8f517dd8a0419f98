# plansmart/analytics.py
"""Small aggregates for the stats view."""
from __future__ import annotations

import datetime as dt
from typing import Dict, Iterable, List, Optional, Tuple

from .model import PRIORITIES, Task
from .util.tz import TzLike, day_of_ms, resolve_tz, today_date


def completed_per_day(
    tasks: Iterable[Task],
    *,
    today: Optional[dt.date] = None,
    tz: TzLike = "local",
    days: int = 7,
) -> List[Tuple[dt.date, int]]:
    """Done tasks counted by deadline day over the last `days` days, oldest first."""
    tzinfo = resolve_tz(tz)
    if today is None:
        today = today_date(tzinfo)
    n = max(1, int(days))
    window = [today - dt.timedelta(days=i) for i in range(n - 1, -1, -1)]
    counts: Dict[dt.date, int] = {d: 0 for d in window}
    for t in tasks:
        if t.status != "done":
            continue
        d = day_of_ms(t.deadline_ms, tzinfo)
        if d in counts:
            counts[d] += 1
    return [(d, counts[d]) for d in window]


def priority_distribution(tasks: Iterable[Task]) -> Dict[str, int]:
    out = {p: 0 for p in reversed(PRIORITIES)}
    for t in tasks:
        if t.priority in out:
            out[t.priority] += 1
    return out
