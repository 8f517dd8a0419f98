# plansmart/util/timeparse.py
from __future__ import annotations

import datetime as dt
import re
from typing import Optional, Tuple

from .tz import TzLike, local_datetime, resolve_tz

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_hhmm(s: str) -> Tuple[int, int]:
    m = _HHMM_RE.match(s.strip())
    if not m:
        raise ValueError(f"Invalid HH:MM: {s!r}")
    hh = int(m.group(1))
    mm = int(m.group(2))
    if not (0 <= hh <= 23 and 0 <= mm <= 59):
        raise ValueError(f"Invalid HH:MM: {s!r}")
    return hh, mm


def parse_workhours(s: str) -> Tuple[int, int]:
    """Parse "HH:MM-HH:MM" into (start_min, end_min) minutes after midnight."""
    parts = s.split("-")
    if len(parts) != 2:
        raise ValueError("workhours must be like 09:00-17:00")
    sh, sm = parse_hhmm(parts[0])
    eh, em = parse_hhmm(parts[1])
    start = sh * 60 + sm
    end = eh * 60 + em
    if end <= start:
        raise ValueError("workhours end must be after start")
    return start, end


def format_hhmm(minutes: int) -> str:
    minutes = max(0, min(24 * 60, int(minutes)))
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_date_yyyy_mm_dd(s: str) -> dt.date:
    return dt.datetime.strptime(s.strip(), "%Y-%m-%d").date()


def parse_iso_to_ms(s: Optional[str], tz: TzLike = "UTC") -> Optional[int]:
    """Parse an ISO-8601 timestamp into epoch ms.

    Naive values are interpreted in `tz`. A bare date means local midnight.
    Returns None for empty or unparsable input.
    """
    if not s or not isinstance(s, str):
        return None
    text = s.strip()
    if not text:
        return None
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    try:
        d = dt.datetime.fromisoformat(text)
    except ValueError:
        return None
    if d.tzinfo is None:
        try:
            d = d.replace(tzinfo=resolve_tz(tz))
        except ValueError:
            return None
    return int(d.timestamp() * 1000)


def format_ms_iso(ms: int, tz: TzLike = "UTC") -> str:
    d = local_datetime(ms, tz).replace(microsecond=0)
    if d.utcoffset() == dt.timedelta(0):
        return d.strftime("%Y-%m-%dT%H:%M:%S.000Z")
    return d.isoformat(timespec="seconds")


def format_ms_hhmm(ms: int, tz: TzLike) -> str:
    return local_datetime(ms, tz).strftime("%H:%M")


def parse_local_datetime(s: str, tz: TzLike) -> int:
    """Parse "YYYY-MM-DD" or "YYYY-MM-DDTHH:MM" (or with a space) in `tz`.

    Raises ValueError on invalid input.
    """
    text = (s or "").strip().replace(" ", "T")
    ms = parse_iso_to_ms(text, tz)
    if ms is None:
        raise ValueError(f"Invalid date/time: {s!r} (expected YYYY-MM-DD or YYYY-MM-DDTHH:MM)")
    return ms
