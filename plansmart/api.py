"""plansmart.api

Stable *library* entrypoint for PlanSmart.

Policy:
  - Only names listed in __all__ are considered public API.
  - Everything else is internal and may change without notice.
"""

from __future__ import annotations

from plansmart.analytics import completed_per_day, priority_distribution
from plansmart.config import Settings
from plansmart.errors import AiError, CollaboratorError, PlanSmartError, RequestInFlightError, StorageError
from plansmart.geometry import HOUR_HEIGHT, MIN_VISIBLE_EXTENT, extent, position, visible_extent
from plansmart.model import (
    Appointment,
    PrioritySuggestion,
    RankedItem,
    SuggestedBlock,
    Task,
    new_appointment,
    new_task,
)
from plansmart.partition import belongs_to_day, partition, tasks_for_day, todo_tasks
from plansmart.reorder import apply_suggested_ranking, array_move, move_task, move_task_by_id, rank_tasks
from plansmart.session import ChatMessage, Session
from plansmart.storage import JsonStore, MemoryStore
from plansmart.timeline import (
    Timeline,
    TimelineItem,
    TimelineWindow,
    compose_timeline,
    day_summary,
    suggestion_appointments,
    task_blocks,
    timeline_window,
    window_is_stale,
)


# --- Public API exports ---------------------------------------------------
_PUBLIC_EXPORTS = (
    "AiError",
    "Appointment",
    "ChatMessage",
    "CollaboratorError",
    "HOUR_HEIGHT",
    "JsonStore",
    "MIN_VISIBLE_EXTENT",
    "MemoryStore",
    "PlanSmartError",
    "PrioritySuggestion",
    "RankedItem",
    "RequestInFlightError",
    "Session",
    "Settings",
    "StorageError",
    "SuggestedBlock",
    "Task",
    "Timeline",
    "TimelineItem",
    "TimelineWindow",
    "apply_suggested_ranking",
    "array_move",
    "belongs_to_day",
    "completed_per_day",
    "compose_timeline",
    "day_summary",
    "extent",
    "move_task",
    "move_task_by_id",
    "new_appointment",
    "new_task",
    "partition",
    "position",
    "priority_distribution",
    "rank_tasks",
    "suggestion_appointments",
    "task_blocks",
    "tasks_for_day",
    "timeline_window",
    "todo_tasks",
    "visible_extent",
    "window_is_stale",
)

__all__ = [n for n in _PUBLIC_EXPORTS if n in globals()]
# --- /Public API exports --------------------------------------------------
