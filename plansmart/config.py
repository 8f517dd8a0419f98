# plansmart/config.py
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .util.timeparse import parse_workhours
from .util.tz import normalize_tz_name

DEFAULT_WORKHOURS = "09:00-17:00"
DEFAULT_AI_BASE_URL = "http://127.0.0.1:1234"
DEFAULT_AI_MODEL = "ministral-3-14b-reasoning"


def _env_str(env: Mapping[str, str], key: str, default: str) -> str:
    v = (env.get(key) or "").strip()
    return v or default


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = (env.get(key, "") or "").strip()
    if not raw:
        return default
    try:
        v = float(raw)
        if v > 0:
            return v
    except ValueError:
        pass
    return default


@dataclass(frozen=True)
class Settings:
    home: Path
    tz: str = "local"
    workhours: str = DEFAULT_WORKHOURS
    hour_height: float = 60.0
    ai_base_url: str = DEFAULT_AI_BASE_URL
    ai_model: str = DEFAULT_AI_MODEL
    ai_api_key: Optional[str] = None
    ai_timeout_s: float = 120.0
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        home_raw = (env.get("PLANSMART_HOME") or "").strip()
        home = Path(home_raw).expanduser() if home_raw else Path.home() / ".plansmart"
        api_key = (env.get("PLANSMART_AI_API_KEY") or "").strip() or None
        return cls(
            home=home,
            tz=normalize_tz_name(env.get("PLANSMART_TZ")),
            workhours=_env_str(env, "PLANSMART_WORKHOURS", DEFAULT_WORKHOURS),
            hour_height=_env_float(env, "PLANSMART_HOUR_HEIGHT", 60.0),
            ai_base_url=_env_str(env, "PLANSMART_AI_BASE_URL", DEFAULT_AI_BASE_URL),
            ai_model=_env_str(env, "PLANSMART_AI_MODEL", DEFAULT_AI_MODEL),
            ai_api_key=api_key,
            ai_timeout_s=_env_float(env, "PLANSMART_AI_TIMEOUT_S", 120.0),
            log_level=_env_str(env, "PLANSMART_LOG_LEVEL", "WARNING").upper(),
        )

    def with_overrides(self, **kw) -> "Settings":
        """Copy with non-None overrides (CLI flags win over env)."""
        clean = {k: v for k, v in kw.items() if v is not None}
        if "tz" in clean:
            clean["tz"] = normalize_tz_name(clean["tz"])
        if "home" in clean:
            clean["home"] = Path(clean["home"]).expanduser()
        return replace(self, **clean)

    def work_window(self) -> Tuple[int, int]:
        """(start_min, end_min); raises ValueError for a malformed workhours string."""
        return parse_workhours(self.workhours)
