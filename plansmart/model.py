# plansmart/model.py
from __future__ import annotations

import math
import uuid as _uuid
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from .util.timeparse import format_ms_iso, parse_iso_to_ms

PRIORITIES: Tuple[str, ...] = ("low", "medium", "high")
STATUSES: Tuple[str, ...] = ("todo", "in-progress", "done")

DEFAULT_PRIORITY = "medium"
DEFAULT_STATUS = "todo"

# Fallback durations when a task carries none.
TIMELINE_DEFAULT_DURATION_MIN = 60
TIMEBLOCK_DEFAULT_DURATION_MIN = 30

MIN_MS = 60_000

JsonDict = Dict[str, Any]


@dataclass(frozen=True)
class Task:
    id: str
    name: str
    priority: str = DEFAULT_PRIORITY
    status: str = DEFAULT_STATUS
    duration_min: Optional[int] = None
    deadline_ms: Optional[int] = None
    description: str = ""


@dataclass(frozen=True)
class Appointment:
    id: str
    name: str
    start_ms: int
    end_ms: int
    is_task: bool = False
    is_suggestion: bool = False


@dataclass(frozen=True)
class RankedItem:
    name: str
    rank: float
    reason: str = ""


@dataclass(frozen=True)
class PrioritySuggestion:
    """Ephemeral ranking produced by the prioritization collaborator."""

    items: Tuple[RankedItem, ...] = ()
    model_id: Optional[str] = None

    def rank_map(self) -> Dict[str, float]:
        # later duplicates win
        return {it.name: it.rank for it in self.items}

    def ordered(self) -> Tuple[RankedItem, ...]:
        return tuple(sorted(self.items, key=lambda it: it.rank))

    def __bool__(self) -> bool:
        return bool(self.items)


@dataclass(frozen=True)
class SuggestedBlock:
    task_name: str
    start_ms: int
    end_ms: int


def new_id() -> str:
    return _uuid.uuid4().hex


def _check_duration(duration_min: Optional[int]) -> Optional[int]:
    if duration_min is None:
        return None
    if isinstance(duration_min, bool) or not isinstance(duration_min, int) or duration_min <= 0:
        raise ValueError(f"duration must be a positive number of minutes, got {duration_min!r}")
    return duration_min


def new_task(
    name: str,
    *,
    duration_min: Optional[int] = None,
    deadline_ms: Optional[int] = None,
    priority: str = DEFAULT_PRIORITY,
    status: str = DEFAULT_STATUS,
    description: str = "",
    task_id: Optional[str] = None,
) -> Task:
    """Validate user input and build a Task with a fresh id."""
    title = (name or "").strip()
    if not title:
        raise ValueError("task name must be non-empty")
    if priority not in PRIORITIES:
        raise ValueError(f"priority must be one of {', '.join(PRIORITIES)}; got {priority!r}")
    if status not in STATUSES:
        raise ValueError(f"status must be one of {', '.join(STATUSES)}; got {status!r}")
    return Task(
        id=task_id or new_id(),
        name=title,
        priority=priority,
        status=status,
        duration_min=_check_duration(duration_min),
        deadline_ms=int(deadline_ms) if deadline_ms is not None else None,
        description=description or "",
    )


def new_appointment(
    name: str,
    start_ms: int,
    end_ms: int,
    *,
    appointment_id: Optional[str] = None,
) -> Appointment:
    """User-entered fixed appointment; requires end_ms > start_ms."""
    title = (name or "").strip()
    if not title:
        raise ValueError("appointment name must be non-empty")
    if int(end_ms) <= int(start_ms):
        raise ValueError("appointment end must be after its start")
    return Appointment(id=appointment_id or new_id(), name=title, start_ms=int(start_ms), end_ms=int(end_ms))


def coerce_rank(v: Any) -> Optional[float]:
    """Numeric, finite rank or None (unranked)."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        f = float(v)
    elif isinstance(v, str):
        try:
            f = float(v.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(f) or math.isinf(f):
        return None
    return f


# --- storage codecs ------------------------------------------------------
# Stored documents keep the camelCase field names of the browser snapshots
# so older data loads unchanged.


def _as_time_ms(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        return parse_iso_to_ms(v, "UTC")
    return None


def task_to_dict(t: Task) -> JsonDict:
    out: JsonDict = {
        "id": t.id,
        "name": t.name,
        "priority": t.priority,
        "status": t.status,
    }
    if t.duration_min is not None:
        out["duration"] = int(t.duration_min)
    if t.deadline_ms is not None:
        out["deadline"] = format_ms_iso(t.deadline_ms, "UTC")
    if t.description:
        out["description"] = t.description
    return out


def task_from_dict(raw: Mapping[str, Any]) -> Optional[Task]:
    """Decode a stored task; returns None for entries without a usable name."""
    if not isinstance(raw, Mapping):
        return None
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    tid = raw.get("id")
    priority = raw.get("priority")
    status = raw.get("status")
    duration = raw.get("duration")
    description = raw.get("description")
    return Task(
        id=str(tid) if isinstance(tid, (str, int)) and str(tid) else new_id(),
        name=name.strip(),
        priority=priority if priority in PRIORITIES else DEFAULT_PRIORITY,
        status=status if status in STATUSES else DEFAULT_STATUS,
        duration_min=duration if isinstance(duration, int) and not isinstance(duration, bool) and duration > 0 else None,
        deadline_ms=_as_time_ms(raw.get("deadline")),
        description=description if isinstance(description, str) else "",
    )


def appointment_to_dict(a: Appointment) -> JsonDict:
    out: JsonDict = {
        "id": a.id,
        "name": a.name,
        "startTime": format_ms_iso(a.start_ms, "UTC"),
        "endTime": format_ms_iso(a.end_ms, "UTC"),
    }
    if a.is_task:
        out["isTask"] = True
    if a.is_suggestion:
        out["isSuggestion"] = True
    return out


def appointment_from_dict(raw: Mapping[str, Any]) -> Optional[Appointment]:
    if not isinstance(raw, Mapping):
        return None
    name = raw.get("name")
    start_ms = _as_time_ms(raw.get("startTime"))
    end_ms = _as_time_ms(raw.get("endTime"))
    if not isinstance(name, str) or start_ms is None or end_ms is None:
        return None
    aid = raw.get("id")
    return Appointment(
        id=str(aid) if isinstance(aid, (str, int)) and str(aid) else new_id(),
        name=name,
        start_ms=start_ms,
        end_ms=end_ms,
        is_task=bool(raw.get("isTask")),
        is_suggestion=bool(raw.get("isSuggestion")),
    )


__all__ = [
    "PRIORITIES",
    "STATUSES",
    "Task",
    "Appointment",
    "RankedItem",
    "PrioritySuggestion",
    "SuggestedBlock",
    "new_id",
    "new_task",
    "new_appointment",
    "coerce_rank",
    "task_to_dict",
    "task_from_dict",
    "appointment_to_dict",
    "appointment_from_dict",
]
