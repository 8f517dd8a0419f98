# plansmart/ai/stub.py
"""Deterministic offline collaborators.

Useful for tests, demos and machines without a model server. Same inputs
always give the same outputs.
"""
from __future__ import annotations

import datetime as dt
from typing import Dict, List, Optional, Tuple

from plansmart.model import PrioritySuggestion, RankedItem, SuggestedBlock
from plansmart.util.timeparse import parse_date_yyyy_mm_dd, parse_hhmm, parse_iso_to_ms
from plansmart.util.tz import resolve_tz, today_date

from .interface import ChatRequest, PrioritizeRequest, PrioritizeTask, TimeBlockRequest, TimeBlockResult

STUB_MODEL_ID = "stub-v1"

_IMPORTANCE_ORDER: Dict[str, int] = {"high": 0, "medium": 1, "low": 2}


def _union_intervals(intervals: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    if not intervals:
        return []
    intervals = sorted(intervals)
    out: List[Tuple[int, int]] = []
    cur_s, cur_e = intervals[0]
    for s, e in intervals[1:]:
        if s <= cur_e:
            cur_e = max(cur_e, e)
        else:
            out.append((cur_s, cur_e))
            cur_s, cur_e = s, e
    out.append((cur_s, cur_e))
    return out


def _subtract(base: Tuple[int, int], blocks: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Subtract unioned blocks from base and return list of free intervals."""
    a, b = base
    if a >= b:
        return []
    out: List[Tuple[int, int]] = []
    cur = a
    for s, e in blocks:
        if e <= cur:
            continue
        if s >= b:
            break
        if s > cur:
            out.append((cur, min(s, b)))
        cur = max(cur, e)
        if cur >= b:
            break
    if cur < b:
        out.append((cur, b))
    return [(s, e) for s, e in out if e > s]


def _ceil_to_snap(ms: int, snap_ms: int) -> int:
    if snap_ms <= 0:
        return ms
    r = ms % snap_ms
    if r == 0:
        return ms
    return ms + (snap_ms - r)


def _priority_key(t: PrioritizeTask) -> Tuple[int, str, int, str]:
    # Undated tasks sort after every dated one.
    has_deadline = 0 if t.deadline else 1
    return (has_deadline, t.deadline, _IMPORTANCE_ORDER.get(t.importance, 1), t.name.lower())


class StubPrioritizer:
    def prioritize(self, req: PrioritizeRequest) -> PrioritySuggestion:
        ordered = sorted(req.tasks, key=_priority_key)
        items = []
        for i, t in enumerate(ordered, start=1):
            due = f"due {t.deadline}" if t.deadline else "no deadline"
            items.append(RankedItem(name=t.name, rank=float(i), reason=f"{due}, {t.importance} importance"))
        return PrioritySuggestion(items=tuple(items), model_id=STUB_MODEL_ID)


class StubTimeBlocker:
    """First-fit packing of tasks into the free part of the working window.

    Tasks are placed in request order. Starts are snapped up to `snap_min`.
    With `now_ms` set, nothing is placed before that instant.
    """

    def __init__(self, snap_min: int = 5, now_ms: Optional[int] = None):
        self.snap_min = max(1, int(snap_min))
        self.now_ms = now_ms

    def _day(self, req: TimeBlockRequest) -> dt.date:
        if req.day_iso:
            return parse_date_yyyy_mm_dd(req.day_iso)
        return today_date(req.tz, self.now_ms)

    def suggest_blocks(self, req: TimeBlockRequest) -> TimeBlockResult:
        tzinfo = resolve_tz(req.tz)
        day = self._day(req)
        sh, sm = parse_hhmm(req.work_start)
        eh, em = parse_hhmm(req.work_end)
        work_s = int(dt.datetime(day.year, day.month, day.day, sh, sm, tzinfo=tzinfo).timestamp() * 1000)
        work_e = int(dt.datetime(day.year, day.month, day.day, eh, em, tzinfo=tzinfo).timestamp() * 1000)
        if self.now_ms is not None:
            work_s = max(work_s, int(self.now_ms))

        busy: List[Tuple[int, int]] = []
        for s_iso, e_iso in req.existing:
            s = parse_iso_to_ms(s_iso, tzinfo)
            e = parse_iso_to_ms(e_iso, tzinfo)
            if s is not None and e is not None and e > s:
                busy.append((s, e))

        snap_ms = self.snap_min * 60_000
        blocks: List[SuggestedBlock] = []
        warnings: List[str] = []
        for t in req.tasks:
            dur_ms = int(t.duration_min or req.default_duration_min) * 60_000
            placed = False
            for free_s, free_e in _subtract((work_s, work_e), _union_intervals(busy)):
                start = _ceil_to_snap(free_s, snap_ms)
                if start + dur_ms <= free_e:
                    blocks.append(SuggestedBlock(task_name=t.name, start_ms=start, end_ms=start + dur_ms))
                    busy.append((start, start + dur_ms))
                    placed = True
                    break
            if not placed:
                warnings.append(f"no free slot for {t.name}")
        return TimeBlockResult(blocks=tuple(blocks), warnings=tuple(warnings))


class StubAssistant:
    def chat(self, req: ChatRequest) -> str:
        total = len(req.tasks)
        if total == 0:
            return "You have no tasks yet. Add one to get started."
        done = sum(1 for t in req.tasks if t.status == "done")
        open_high = [t.name for t in req.tasks if t.status != "done" and t.priority == "high"]
        parts = [f"You have {total} tasks, {done} done."]
        if open_high:
            parts.append("High priority: " + ", ".join(open_high[:3]) + ".")
        return " ".join(parts)
