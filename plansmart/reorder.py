# plansmart/reorder.py
"""Reordering confined to the active-day partition.

Both entry points split the full collection with partition(), reorder only
the active-day subsequence and return `other ++ reordered_active`. Tasks of
other days keep their relative order and their values.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import List, Mapping, Optional, Sequence, TypeVar, Union

from .model import PrioritySuggestion, Task, coerce_rank
from .partition import index_of, partition
from .util.tz import TzLike

log = logging.getLogger(__name__)

T = TypeVar("T")

Ranks = Union[PrioritySuggestion, Mapping[str, object]]

_UNRANKED = float("inf")


def array_move(seq: Sequence[T], source_index: int, target_index: int) -> List[T]:
    """Relocate one element; every other relative order is kept.

    Raises IndexError when either index is outside the sequence.
    """
    n = len(seq)
    if not (0 <= source_index < n) or not (0 <= target_index < n):
        raise IndexError(f"move {source_index}->{target_index} out of range for {n} items")
    out = list(seq)
    item = out.pop(source_index)
    out.insert(target_index, item)
    return out


def move_task(
    tasks: Sequence[Task],
    source_index: int,
    target_index: int,
    *,
    day: Optional[dt.date] = None,
    today: Optional[dt.date] = None,
    tz: TzLike = "local",
) -> List[Task]:
    """Move within the active-day subsequence and reintegrate.

    Indices refer to the active-day subsequence. Unresolvable indices (and
    source == target) leave the collection as it was.
    """
    active, other = partition(tasks, day, today=today, tz=tz)
    if source_index == target_index:
        return list(tasks)
    try:
        moved = array_move(active, source_index, target_index)
    except IndexError as ex:
        log.debug("drag dropped: %s", ex)
        return list(tasks)
    return other + moved


def move_task_by_id(
    tasks: Sequence[Task],
    active_id: str,
    over_id: str,
    *,
    day: Optional[dt.date] = None,
    today: Optional[dt.date] = None,
    tz: TzLike = "local",
) -> List[Task]:
    """Drag `active_id` onto the slot of `over_id` (ids resolved in the active day)."""
    if active_id == over_id:
        return list(tasks)
    active, _other = partition(tasks, day, today=today, tz=tz)
    src = index_of(active, active_id)
    dst = index_of(active, over_id)
    if src < 0 or dst < 0:
        log.debug("drag dropped: unresolved ids active=%s over=%s", active_id, over_id)
        return list(tasks)
    return move_task(tasks, src, dst, day=day, today=today, tz=tz)


def _rank_lookup(ranks: Ranks) -> dict:
    raw = ranks.rank_map() if isinstance(ranks, PrioritySuggestion) else dict(ranks)
    out = {}
    for name, r in raw.items():
        v = coerce_rank(r)
        if v is not None:
            out[name] = v
    return out


def rank_tasks(active: Sequence[Task], ranks: Ranks) -> List[Task]:
    """Stable sort by suggested rank; unranked tasks keep their order at the end."""
    lookup = _rank_lookup(ranks)
    return sorted(active, key=lambda t: lookup.get(t.name, _UNRANKED))


def apply_suggested_ranking(
    tasks: Sequence[Task],
    ranks: Ranks,
    *,
    day: Optional[dt.date] = None,
    today: Optional[dt.date] = None,
    tz: TzLike = "local",
) -> List[Task]:
    """Order the active day by an AI ranking (joined on task name) and reintegrate.

    Names that match no active-day task are ignored. Two tasks sharing a name
    receive the same rank; the ranking source cannot tell them apart.
    """
    active, other = partition(tasks, day, today=today, tz=tz)
    ranked = rank_tasks(active, ranks)
    return other + ranked
