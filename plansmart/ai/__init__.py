"""AI collaborator boundary (prioritization, time blocking, chat)."""

from __future__ import annotations

from .interface import (
    NOOP_ASSISTANT,
    ChatAssistant,
    ChatRequest,
    PrioritizeRequest,
    Prioritizer,
    TimeBlocker,
    TimeBlockRequest,
    TimeBlockResult,
    build_chat_request,
    build_prioritize_request,
    build_time_block_request,
)
from .contract import validate_chat_result, validate_priority_result, validate_time_block_result
from .io import (
    load_priority_result,
    load_time_block_result,
    parse_chat_result,
    parse_priority_result,
    parse_time_block_result,
)
from .lmstudio import LmStudioClient
from .stub import StubAssistant, StubPrioritizer, StubTimeBlocker

__all__ = [
    "ChatAssistant",
    "ChatRequest",
    "LmStudioClient",
    "NOOP_ASSISTANT",
    "PrioritizeRequest",
    "Prioritizer",
    "StubAssistant",
    "StubPrioritizer",
    "StubTimeBlocker",
    "TimeBlockRequest",
    "TimeBlockResult",
    "TimeBlocker",
    "build_chat_request",
    "build_prioritize_request",
    "build_time_block_request",
    "load_priority_result",
    "load_time_block_result",
    "parse_chat_result",
    "parse_priority_result",
    "parse_time_block_result",
    "validate_chat_result",
    "validate_priority_result",
    "validate_time_block_result",
]
