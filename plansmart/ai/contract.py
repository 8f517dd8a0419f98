"""Collaborator result contract validation.

Accepted wire shapes:
  - priority: JSON array of {name, priority, reason?}, or an object holding
    that array under `suggestions` or `tasks`
  - time blocks: {"suggestedBlocks": [{taskName, startTime, endTime}]}
  - chat: {"response": "..."} (plain text is handled by the parser)

Validators return a list of human-readable errors; empty means valid.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


def _is_nonempty_str(v: Any) -> bool:
    return isinstance(v, str) and bool(v.strip())


def _is_number(v: Any) -> bool:
    if isinstance(v, bool):
        return False
    if isinstance(v, (int, float)):
        return True
    if isinstance(v, str):
        try:
            float(v.strip())
        except ValueError:
            return False
        return True
    return False


def priority_items(obj: Any) -> Optional[List[Any]]:
    """The ranked-entry list inside a priority result, or None if absent."""
    if isinstance(obj, list):
        return obj
    if isinstance(obj, dict):
        for key in ("suggestions", "tasks"):
            v = obj.get(key)
            if isinstance(v, list):
                return v
    return None


def _validate_common_fields(obj: Dict[str, Any], errs: List[str]) -> None:
    warnings = obj.get("warnings", [])
    if not isinstance(warnings, list) or not all(isinstance(x, str) for x in warnings):
        errs.append("warnings must be a list of strings")

    model_id = obj.get("model_id")
    if model_id is not None and not isinstance(model_id, str):
        errs.append("model_id must be a string")


def validate_priority_result(obj: Any) -> List[str]:
    errs: List[str] = []
    items = priority_items(obj)
    if items is None:
        return ["priority result must be a list or an object with 'suggestions' or 'tasks'"]

    for i, it in enumerate(items[:5000]):
        if not isinstance(it, dict):
            errs.append("priority entries must be objects")
            break
        if not _is_nonempty_str(it.get("name")):
            errs.append(f"priority entry {i} must include non-empty name")
        # Ranks outside 1..n are advisory; only the type is checked.
        if "priority" in it and it.get("priority") is not None and not _is_number(it.get("priority")):
            errs.append(f"priority entry {i} priority must be a number")
        reason = it.get("reason")
        if reason is not None and not isinstance(reason, str):
            errs.append(f"priority entry {i} reason must be a string when provided")

    if isinstance(obj, dict):
        _validate_common_fields(obj, errs)
    return errs


def validate_time_block_result(obj: Any) -> List[str]:
    if not isinstance(obj, dict):
        return ["time block result must be an object"]
    errs: List[str] = []
    blocks = obj.get("suggestedBlocks")
    if not isinstance(blocks, list):
        errs.append("suggestedBlocks must be a list")
    else:
        for i, b in enumerate(blocks[:5000]):
            if not isinstance(b, dict):
                errs.append("suggestedBlocks entries must be objects")
                break
            if not _is_nonempty_str(b.get("taskName")):
                errs.append(f"suggestedBlocks[{i}] must include non-empty taskName")
            # Unparsable or inverted times are dropped later, not rejected here.
            if not _is_nonempty_str(b.get("startTime")) or not _is_nonempty_str(b.get("endTime")):
                errs.append(f"suggestedBlocks[{i}] must include string startTime and endTime")
    _validate_common_fields(obj, errs)
    return errs


def validate_chat_result(obj: Any) -> List[str]:
    if isinstance(obj, str):
        return []
    if not isinstance(obj, dict):
        return ["chat result must be an object or a string"]
    if not isinstance(obj.get("response"), str):
        return ["chat result must include string response"]
    return []
