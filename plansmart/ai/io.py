"""Parse and load collaborator results."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Optional

from plansmart.model import PrioritySuggestion, RankedItem, SuggestedBlock, coerce_rank
from plansmart.util.timeparse import parse_iso_to_ms
from plansmart.util.tz import TzLike

from .contract import (
    priority_items,
    validate_chat_result,
    validate_priority_result,
    validate_time_block_result,
)
from .interface import TimeBlockResult

log = logging.getLogger(__name__)


def _raise_invalid(what: str, errs: List[str]) -> None:
    raise ValueError(f"Invalid {what}:\n" + "\n".join(f"  - {e}" for e in errs))


def _read_json(path: Path) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8", errors="replace"))


def parse_priority_result(obj: Any, *, model_id: Optional[str] = None) -> PrioritySuggestion:
    errs = validate_priority_result(obj)
    if errs:
        _raise_invalid("priority result", errs)

    if model_id is None and isinstance(obj, dict) and isinstance(obj.get("model_id"), str):
        model_id = obj["model_id"]

    items: List[RankedItem] = []
    for raw in priority_items(obj) or []:
        rank = coerce_rank(raw.get("priority"))
        if rank is None:
            log.debug("priority entry without usable rank: %r", raw)
            continue
        reason = raw.get("reason")
        items.append(
            RankedItem(
                name=str(raw["name"]).strip(),
                rank=rank,
                reason=reason.strip() if isinstance(reason, str) else "",
            )
        )
    return PrioritySuggestion(items=tuple(items), model_id=model_id)


def parse_time_block_result(obj: Any, *, tz: TzLike = "UTC") -> TimeBlockResult:
    """Decode suggested blocks; naive timestamps are read in `tz`.

    Blocks whose times do not parse, or whose end is not after the start,
    are dropped and reported in `warnings`.
    """
    errs = validate_time_block_result(obj)
    if errs:
        _raise_invalid("time block result", errs)

    blocks: List[SuggestedBlock] = []
    warnings: List[str] = [w for w in obj.get("warnings", []) if isinstance(w, str)]
    for i, raw in enumerate(obj["suggestedBlocks"]):
        name = str(raw["taskName"]).strip()
        start_ms = parse_iso_to_ms(raw.get("startTime"), tz)
        end_ms = parse_iso_to_ms(raw.get("endTime"), tz)
        if start_ms is None or end_ms is None:
            msg = f"dropped block {i} ({name}): unparsable time"
            log.warning(msg)
            warnings.append(msg)
            continue
        if end_ms <= start_ms:
            msg = f"dropped block {i} ({name}): end is not after start"
            log.warning(msg)
            warnings.append(msg)
            continue
        blocks.append(SuggestedBlock(task_name=name, start_ms=start_ms, end_ms=end_ms))
    return TimeBlockResult(blocks=tuple(blocks), warnings=tuple(warnings))


def parse_chat_result(obj: Any) -> str:
    errs = validate_chat_result(obj)
    if errs:
        _raise_invalid("chat result", errs)
    if isinstance(obj, str):
        return obj.strip()
    return str(obj["response"]).strip()


def load_priority_result(path: Path) -> PrioritySuggestion:
    return parse_priority_result(_read_json(path))


def load_time_block_result(path: Path, *, tz: TzLike = "UTC") -> TimeBlockResult:
    return parse_time_block_result(_read_json(path), tz=tz)
