# plansmart/session.py
"""In-memory planning session.

A Session owns the task and appointment collections plus the chat
transcript. Engine functions stay pure; the session installs their results.
Persistence is explicit: callers invoke `save(store)` when they want a
snapshot written.
"""
from __future__ import annotations

import contextlib
import dataclasses
import datetime as dt
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional, Sequence

from .ai.interface import (
    ChatAssistant,
    Prioritizer,
    TimeBlocker,
    build_chat_request,
    build_prioritize_request,
    build_time_block_request,
)
from .errors import RequestInFlightError
from .geometry import HOUR_HEIGHT
from .model import (
    STATUSES,
    Appointment,
    PrioritySuggestion,
    SuggestedBlock,
    Task,
    new_appointment,
    new_task,
)
from .partition import index_of, partition, todo_tasks
from .reorder import Ranks, apply_suggested_ranking, move_task, move_task_by_id
from .storage import SnapshotStore
from .timeline import Timeline, compose_timeline
from .util.tz import day_of_ms, normalize_tz_name, now_ms as _wall_now_ms, resolve_tz, today_date

log = logging.getLogger(__name__)

USER = "user"
AI = "ai"

MIN_TASKS_TO_PRIORITIZE = 2


@dataclass(frozen=True)
class ChatMessage:
    sender: str  # "user" | "ai"
    text: str


class Session:
    def __init__(
        self,
        tasks: Sequence[Task] = (),
        appointments: Sequence[Appointment] = (),
        *,
        tz: Optional[str] = "local",
        clock: Optional[Callable[[], int]] = None,
    ):
        self.tz_name = normalize_tz_name(tz)
        self.tzinfo = resolve_tz(self.tz_name)
        self.tasks: List[Task] = list(tasks)
        self.appointments: List[Appointment] = list(appointments)
        self.transcript: List[ChatMessage] = []
        self.pending_blocks: List[SuggestedBlock] = []
        self.closed = False
        self._clock = clock or _wall_now_ms
        self._in_flight = threading.Lock()

    # --- lifecycle --------------------------------------------------------

    @classmethod
    def load(
        cls,
        store: SnapshotStore,
        *,
        tz: Optional[str] = "local",
        clock: Optional[Callable[[], int]] = None,
    ) -> "Session":
        tasks = store.read_tasks() or []
        appointments = store.read_appointments() or []
        log.debug("loaded %d tasks, %d appointments", len(tasks), len(appointments))
        return cls(tasks, appointments, tz=tz, clock=clock)

    def save(self, store: SnapshotStore) -> None:
        store.write_tasks(self.tasks)
        store.write_appointments(self.appointments)
        log.debug("saved %d tasks, %d appointments", len(self.tasks), len(self.appointments))

    def close(self) -> None:
        """Stop accepting collaborator results; outstanding answers are discarded."""
        self.closed = True

    def now_ms(self) -> int:
        return int(self._clock())

    def today(self) -> dt.date:
        return today_date(self.tzinfo, self.now_ms())

    # --- tasks --------------------------------------------------------------

    def add_task(
        self,
        name: str,
        *,
        duration_min: Optional[int] = None,
        deadline_ms: Optional[int] = None,
        priority: str = "medium",
        description: str = "",
        stamp_now: bool = True,
    ) -> Task:
        """Append a new todo task.

        Without a deadline the task is stamped with the current instant
        (so it lands on today's list) unless `stamp_now` is False.
        """
        if deadline_ms is None and stamp_now:
            deadline_ms = self.now_ms()
        task = new_task(
            name,
            duration_min=duration_min,
            deadline_ms=deadline_ms,
            priority=priority,
            description=description,
        )
        self.tasks = self.tasks + [task]
        log.debug("added task %s (%s)", task.id, task.name)
        return task

    def _task_index(self, task_id: str) -> int:
        i = index_of(self.tasks, task_id)
        if i < 0:
            raise ValueError(f"unknown task id: {task_id}")
        return i

    def get_task(self, task_id: str) -> Task:
        return self.tasks[self._task_index(task_id)]

    def update_task(self, task: Task) -> Task:
        """Replace the task with the same id, keeping its position."""
        i = self._task_index(task.id)
        checked = new_task(
            task.name,
            duration_min=task.duration_min,
            deadline_ms=task.deadline_ms,
            priority=task.priority,
            status=task.status,
            description=task.description,
            task_id=task.id,
        )
        tasks = list(self.tasks)
        tasks[i] = checked
        self.tasks = tasks
        log.debug("updated task %s", checked.id)
        return checked

    def set_status(self, task_id: str, status: str) -> Task:
        if status not in STATUSES:
            raise ValueError(f"status must be one of {', '.join(STATUSES)}; got {status!r}")
        return self.update_task(dataclasses.replace(self.get_task(task_id), status=status))

    def delete_task(self, task_id: str) -> Task:
        i = self._task_index(task_id)
        task = self.tasks[i]
        self.tasks = self.tasks[:i] + self.tasks[i + 1 :]
        log.debug("deleted task %s", task_id)
        return task

    # --- appointments -------------------------------------------------------

    def add_appointment(self, name: str, start_ms: int, end_ms: int) -> Appointment:
        appt = new_appointment(name, start_ms, end_ms)
        self.appointments = self.appointments + [appt]
        log.debug("added appointment %s (%s)", appt.id, appt.name)
        return appt

    def delete_appointment(self, appointment_id: str) -> Appointment:
        for i, a in enumerate(self.appointments):
            if a.id == appointment_id:
                self.appointments = self.appointments[:i] + self.appointments[i + 1 :]
                log.debug("deleted appointment %s", appointment_id)
                return a
        raise ValueError(f"unknown appointment id: {appointment_id}")

    # --- views and reordering ----------------------------------------------

    def active_tasks(self, day: Optional[dt.date] = None) -> List[Task]:
        active, _other = partition(self.tasks, day, today=self.today(), tz=self.tzinfo)
        return active

    def timeline(
        self,
        day: Optional[dt.date] = None,
        *,
        now_ms: Optional[int] = None,
        suggestions: Optional[Sequence[SuggestedBlock]] = None,
        hour_height: float = HOUR_HEIGHT,
    ) -> Timeline:
        return compose_timeline(
            self.tasks,
            self.appointments,
            day,
            now_ms=self.now_ms() if now_ms is None else now_ms,
            tz=self.tzinfo,
            suggestions=self.pending_blocks if suggestions is None else suggestions,
            hour_height=hour_height,
        )

    def move(self, source_index: int, target_index: int, day: Optional[dt.date] = None) -> List[Task]:
        self.tasks = move_task(self.tasks, source_index, target_index, day=day, today=self.today(), tz=self.tzinfo)
        log.debug("move %d -> %d", source_index, target_index)
        return self.tasks

    def move_by_id(self, active_id: str, over_id: str, day: Optional[dt.date] = None) -> List[Task]:
        self.tasks = move_task_by_id(self.tasks, active_id, over_id, day=day, today=self.today(), tz=self.tzinfo)
        log.debug("move %s onto %s", active_id, over_id)
        return self.tasks

    # --- collaborators ------------------------------------------------------

    @contextlib.contextmanager
    def _request(self) -> Iterator[None]:
        if not self._in_flight.acquire(blocking=False):
            raise RequestInFlightError("a suggestion request is already in flight")
        try:
            yield
        finally:
            self._in_flight.release()

    def request_priority(self, prioritizer: Prioritizer, day: Optional[dt.date] = None) -> Optional[PrioritySuggestion]:
        """Ask for an advisory ranking of the active day's todo tasks.

        Returns None when fewer than two todo tasks are eligible or the
        session was closed before the answer arrived.
        """
        if self.closed:
            return None
        candidates = todo_tasks(self.active_tasks(day))
        if len(candidates) < MIN_TASKS_TO_PRIORITIZE:
            log.debug("prioritize skipped: %d todo tasks", len(candidates))
            return None
        req = build_prioritize_request(candidates, tz=self.tzinfo)
        with self._request():
            suggestion = prioritizer.prioritize(req)
        if self.closed:
            log.debug("session closed; priority suggestion discarded")
            return None
        log.debug("priority suggestion with %d items", len(suggestion.items))
        return suggestion

    def apply_priority(self, suggestion: Ranks, day: Optional[dt.date] = None) -> List[Task]:
        self.tasks = apply_suggested_ranking(self.tasks, suggestion, day=day, today=self.today(), tz=self.tzinfo)
        log.debug("applied priority suggestion")
        return self.tasks

    def request_time_blocks(
        self,
        blocker: TimeBlocker,
        *,
        work_start_min: int,
        work_end_min: int,
        day: Optional[dt.date] = None,
    ) -> List[SuggestedBlock]:
        """Ask for time blocks for the open tasks of `day` around its appointments.

        Accepted blocks are kept in `pending_blocks` for timeline composition.
        """
        if self.closed:
            return []
        target = day or self.today()
        open_tasks = [t for t in self.active_tasks(target) if t.status != "done"]
        fixed = [a for a in self.appointments if day_of_ms(a.start_ms, self.tzinfo) == target]
        req = build_time_block_request(
            open_tasks,
            fixed,
            work_start_min=work_start_min,
            work_end_min=work_end_min,
            day_iso=target.isoformat(),
            tz=self.tzinfo,
            tz_name=self.tz_name,
        )
        with self._request():
            result = blocker.suggest_blocks(req)
        if self.closed:
            log.debug("session closed; time blocks discarded")
            return []
        for w in result.warnings:
            log.info("time blocking: %s", w)
        self.pending_blocks = list(result.blocks)
        return list(self.pending_blocks)

    def clear_time_blocks(self) -> None:
        self.pending_blocks = []

    def chat(self, assistant: ChatAssistant, message: str) -> Optional[str]:
        """Send one message; the reply is appended to the transcript.

        On failure the user's message is retracted and the error re-raised.
        Returns None when the session is closed.
        """
        text = (message or "").strip()
        if not text:
            raise ValueError("message must be non-empty")
        if self.closed:
            return None
        with self._request():
            user_at = len(self.transcript)
            self.transcript.append(ChatMessage(sender=USER, text=text))
            try:
                reply = assistant.chat(build_chat_request(text, self.tasks, tz=self.tzinfo))
            except Exception:
                del self.transcript[user_at]
                raise
        if self.closed:
            del self.transcript[user_at]
            log.debug("session closed; chat reply discarded")
            return None
        self.transcript.append(ChatMessage(sender=AI, text=reply))
        return reply
