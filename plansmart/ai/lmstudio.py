# plansmart/ai/lmstudio.py
"""Collaborators backed by a local LM Studio server (OpenAI-compatible API)."""
from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict, List, Optional
from urllib import error, request

from plansmart.errors import AiError
from plansmart.model import PrioritySuggestion

from .interface import ChatRequest, PrioritizeRequest, TimeBlockRequest, TimeBlockResult
from .io import parse_chat_result, parse_priority_result, parse_time_block_result

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:1234"
DEFAULT_MODEL = "ministral-3-14b-reasoning"

_PRIORITY_SYSTEM = (
    "You are a task prioritization expert. Rank the given tasks with 1 being the highest priority "
    "and give a brief reason for each. Return ONLY a JSON object (no markdown) of the form "
    '{"suggestions": [{"name": <task name>, "priority": <int>, "reason": <string>}]}.'
)

_TIMEBLOCK_SYSTEM = (
    "You are a scheduling assistant. Place each task into a free time block inside the working hours "
    "without overlapping the existing appointments. Tasks without a duration take {default} minutes. "
    "Return ONLY a JSON object (no markdown) of the form "
    '{{"suggestedBlocks": [{{"taskName": <name>, "startTime": <ISO-8601>, "endTime": <ISO-8601>}}]}}.'
)

_CHAT_SYSTEM = (
    "You are PlanSmart AI, a friendly productivity assistant. Answer the user's question about their "
    "tasks with encouraging, actionable advice. Reply with a JSON object {\"response\": <text>}."
)


def _extract_json_from_text(text: str) -> Any:
    text = text.strip()
    try:
        obj = json.loads(text)
        if isinstance(obj, (dict, list)):
            return obj
    except ValueError:
        pass

    found = [m for m in (re.search(r"\{.*\}", text, flags=re.S), re.search(r"\[.*\]", text, flags=re.S)) if m]
    if not found:
        raise ValueError("No JSON object found in model output")
    # outermost bracket wins
    m = min(found, key=lambda x: x.start())
    try:
        return json.loads(m.group(0))
    except ValueError as e:
        raise ValueError(f"Failed to parse JSON from model output: {e}") from e


def _post_json(url: str, body: Dict[str, Any], api_key: Optional[str], timeout_s: float) -> Dict[str, Any]:
    data = json.dumps(body).encode("utf-8")
    req = request.Request(url, data=data, method="POST")
    req.add_header("Content-Type", "application/json")
    if api_key:
        req.add_header("Authorization", f"Bearer {api_key}")
    t0 = time.monotonic()
    try:
        with request.urlopen(req, timeout=timeout_s) as resp:
            text = resp.read().decode("utf-8", errors="replace")
    except error.HTTPError as e:
        elapsed_ms = int((time.monotonic() - t0) * 1000)
        body_txt = ""
        try:
            body_txt = e.read().decode("utf-8", errors="replace").strip()
        except (OSError, AttributeError):
            body_txt = ""
        suffix = f" body={body_txt[:400]!r}" if body_txt else ""
        raise AiError(f"LM Studio HTTP {e.code} after {elapsed_ms}ms.{suffix}") from e
    except (error.URLError, OSError) as e:
        elapsed_ms = int((time.monotonic() - t0) * 1000)
        raise AiError(f"LM Studio connection error after {elapsed_ms}ms: {e}") from e

    elapsed_ms = int((time.monotonic() - t0) * 1000)
    log.debug("LM Studio answered in %dms", elapsed_ms)
    if not text.strip():
        raise AiError(f"LM Studio returned empty response after {elapsed_ms}ms")
    try:
        obj = json.loads(text)
    except ValueError as e:
        raise AiError(f"LM Studio response is not JSON: {e}") from e
    if not isinstance(obj, dict):
        raise AiError("LM Studio response must be a JSON object")
    return obj


def _message_content(resp: Dict[str, Any]) -> str:
    choices = resp.get("choices")
    content = None
    if isinstance(choices, list) and choices:
        msg = choices[0].get("message") if isinstance(choices[0], dict) else None
        if isinstance(msg, dict):
            content = msg.get("content")
    if not isinstance(content, str) or not content.strip():
        raise AiError("No content in model response")
    return content


class LmStudioClient:
    """Prioritizer, TimeBlocker and ChatAssistant over /v1/chat/completions.

    Every failure (transport, HTTP status, unparsable or invalid output)
    surfaces as AiError.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        api_key: Optional[str] = None,
        timeout_s: float = 120.0,
        temperature: float = 0.2,
        max_tokens: int = 1200,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.api_key = api_key
        self.timeout_s = float(timeout_s)
        self.temperature = float(temperature)
        self.max_tokens = int(max_tokens)

    @property
    def url(self) -> str:
        return f"{self.base_url}/v1/chat/completions"

    def _complete(self, system: str, user: str) -> str:
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]
        body = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        return _message_content(_post_json(self.url, body, self.api_key, self.timeout_s))

    def prioritize(self, req: PrioritizeRequest) -> PrioritySuggestion:
        content = self._complete(_PRIORITY_SYSTEM, json.dumps(req.to_json(), ensure_ascii=False, indent=2))
        try:
            return parse_priority_result(_extract_json_from_text(content), model_id=self.model)
        except ValueError as e:
            raise AiError(f"Failed to parse model output: {e}") from e

    def suggest_blocks(self, req: TimeBlockRequest) -> TimeBlockResult:
        system = _TIMEBLOCK_SYSTEM.format(default=req.default_duration_min)
        prompt = dict(req.to_json())
        if req.day_iso:
            prompt["day"] = req.day_iso
        prompt["timezone"] = req.tz
        content = self._complete(system, json.dumps(prompt, ensure_ascii=False, indent=2))
        try:
            return parse_time_block_result(_extract_json_from_text(content), tz=req.tz)
        except ValueError as e:
            raise AiError(f"Failed to parse model output: {e}") from e

    def chat(self, req: ChatRequest) -> str:
        content = self._complete(_CHAT_SYSTEM, json.dumps(req.to_json(), ensure_ascii=False, indent=2))
        try:
            obj = _extract_json_from_text(content)
        except ValueError:
            # plain-text reply
            return content.strip()
        if isinstance(obj, dict) and isinstance(obj.get("response"), str):
            return parse_chat_result(obj)
        return content.strip()
