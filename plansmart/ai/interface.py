"""AI collaborator interface (internal, forward-compatible).

Stable boundary between the engine and any AI service: prioritization,
time blocking and chat. Requests are plain frozen dataclasses built from
engine data; the engine never depends on how a collaborator answers them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from plansmart.model import (
    TIMEBLOCK_DEFAULT_DURATION_MIN,
    Appointment,
    PrioritySuggestion,
    SuggestedBlock,
    Task,
)
from plansmart.util.timeparse import format_hhmm, format_ms_iso
from plansmart.util.tz import TzLike, local_datetime

JsonDict = Dict[str, Any]


@dataclass(frozen=True)
class PrioritizeTask:
    name: str
    description: str
    deadline: str  # YYYY-MM-DD or ""
    importance: str


@dataclass(frozen=True)
class PrioritizeRequest:
    tasks: Tuple[PrioritizeTask, ...]

    def to_json(self) -> JsonDict:
        return {
            "tasks": [
                {"name": t.name, "description": t.description, "deadline": t.deadline, "importance": t.importance}
                for t in self.tasks
            ]
        }


@dataclass(frozen=True)
class TimeBlockTask:
    name: str
    duration_min: Optional[int] = None
    deadline_iso: Optional[str] = None
    priority: Optional[str] = None


@dataclass(frozen=True)
class TimeBlockRequest:
    """Inputs to a time-blocking collaborator.

    existing: (start_iso, end_iso) of fixed appointments.
    work_start/work_end: "HH:mm" working-hours window.
    day_iso: the day to plan (YYYY-MM-DD); tz: zone of naive times.
    """

    tasks: Tuple[TimeBlockTask, ...]
    existing: Tuple[Tuple[str, str], ...]
    work_start: str
    work_end: str
    day_iso: str = ""
    tz: str = "UTC"
    default_duration_min: int = TIMEBLOCK_DEFAULT_DURATION_MIN

    def to_json(self) -> JsonDict:
        tasks: List[JsonDict] = []
        for t in self.tasks:
            row: JsonDict = {"name": t.name}
            if t.duration_min is not None:
                row["duration"] = t.duration_min
            if t.deadline_iso:
                row["deadline"] = t.deadline_iso
            if t.priority:
                row["priority"] = t.priority
            tasks.append(row)
        return {
            "tasks": tasks,
            "existingAppointments": [{"startTime": s, "endTime": e} for s, e in self.existing],
            "workingHoursStart": self.work_start,
            "workingHoursEnd": self.work_end,
        }


@dataclass(frozen=True)
class TimeBlockResult:
    blocks: Tuple[SuggestedBlock, ...] = ()
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ChatTask:
    id: str
    name: str
    priority: str
    status: str
    deadline: Optional[str] = None


@dataclass(frozen=True)
class ChatRequest:
    message: str
    tasks: Tuple[ChatTask, ...] = field(default_factory=tuple)

    def to_json(self) -> JsonDict:
        rows: List[JsonDict] = []
        for t in self.tasks:
            row: JsonDict = {"id": t.id, "name": t.name, "priority": t.priority, "status": t.status}
            if t.deadline:
                row["deadline"] = t.deadline
            rows.append(row)
        return {"userMessage": self.message, "tasks": rows}


class Prioritizer(Protocol):
    def prioritize(self, req: PrioritizeRequest) -> PrioritySuggestion:
        """Return an advisory ranking for (a subset of) the request tasks."""


class TimeBlocker(Protocol):
    def suggest_blocks(self, req: TimeBlockRequest) -> TimeBlockResult:
        """Return suggested placements; overlap checks are the collaborator's job."""


class ChatAssistant(Protocol):
    def chat(self, req: ChatRequest) -> str:
        """Return one free-text reply."""


class NoopAssistant:
    """Baseline collaborator that proposes nothing."""

    def prioritize(self, req: PrioritizeRequest) -> PrioritySuggestion:
        return PrioritySuggestion()

    def suggest_blocks(self, req: TimeBlockRequest) -> TimeBlockResult:
        return TimeBlockResult()

    def chat(self, req: ChatRequest) -> str:
        return ""


NOOP_ASSISTANT = NoopAssistant()


# --- request builders ----------------------------------------------------


def build_prioritize_request(tasks: Iterable[Task], *, tz: TzLike = "UTC") -> PrioritizeRequest:
    rows = []
    for t in tasks:
        deadline = local_datetime(t.deadline_ms, tz).date().isoformat() if t.deadline_ms is not None else ""
        rows.append(PrioritizeTask(name=t.name, description=t.description, deadline=deadline, importance=t.priority))
    return PrioritizeRequest(tasks=tuple(rows))


def build_time_block_request(
    tasks: Iterable[Task],
    appointments: Sequence[Appointment],
    *,
    work_start_min: int,
    work_end_min: int,
    day_iso: str = "",
    tz: TzLike = "UTC",
    tz_name: str = "UTC",
) -> TimeBlockRequest:
    rows = tuple(
        TimeBlockTask(
            name=t.name,
            duration_min=t.duration_min,
            deadline_iso=format_ms_iso(t.deadline_ms, tz) if t.deadline_ms is not None else None,
            priority=t.priority,
        )
        for t in tasks
    )
    existing = tuple((format_ms_iso(a.start_ms, tz), format_ms_iso(a.end_ms, tz)) for a in appointments)
    return TimeBlockRequest(
        tasks=rows,
        existing=existing,
        work_start=format_hhmm(work_start_min),
        work_end=format_hhmm(work_end_min),
        day_iso=day_iso,
        tz=tz_name,
    )


def build_chat_request(message: str, tasks: Iterable[Task], *, tz: TzLike = "UTC") -> ChatRequest:
    rows = tuple(
        ChatTask(
            id=t.id,
            name=t.name,
            priority=t.priority,
            status=t.status,
            deadline=format_ms_iso(t.deadline_ms, tz) if t.deadline_ms is not None else None,
        )
        for t in tasks
    )
    return ChatRequest(message=message, tasks=rows)
