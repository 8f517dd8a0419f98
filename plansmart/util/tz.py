# plansmart/util/tz.py
from __future__ import annotations

import datetime as dt
import re
import time
from typing import Optional, Union

try:
    from zoneinfo import ZoneInfo  # py3.9+
except Exception:  # pragma: no cover
    ZoneInfo = None  # type: ignore

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")

TzLike = Union[str, dt.tzinfo, None]


_EPOCH = dt.datetime(1970, 1, 1)


class _LocalTz(dt.tzinfo):
    """The machine's local zone, with the UTC offset looked up per instant.

    Follows the process TZ (see time.tzset), so dates on either side of a
    DST change keep their own offset.
    """

    @staticmethod
    def _ts(d: Optional[dt.datetime]) -> float:
        if d is None:
            return time.time()
        return d.replace(tzinfo=None).timestamp()

    def utcoffset(self, d: Optional[dt.datetime]) -> dt.timedelta:
        return dt.timedelta(seconds=time.localtime(self._ts(d)).tm_gmtoff)

    def dst(self, d: Optional[dt.datetime]) -> dt.timedelta:
        if time.localtime(self._ts(d)).tm_isdst > 0:
            return dt.timedelta(hours=1)
        return dt.timedelta(0)

    def tzname(self, d: Optional[dt.datetime]) -> str:
        return time.localtime(self._ts(d)).tm_zone

    def fromutc(self, d: dt.datetime) -> dt.datetime:
        ts = (d.replace(tzinfo=None) - _EPOCH).total_seconds()
        wall = d.replace(tzinfo=None) + dt.timedelta(seconds=time.localtime(ts).tm_gmtoff)
        # second pass through a repeated hour
        fold = 1 if abs(wall.replace(fold=0).timestamp() - ts) >= 60 else 0
        return wall.replace(tzinfo=self, fold=fold)

    def __repr__(self) -> str:
        return "LocalTz()"


LOCAL_TZ = _LocalTz()


def normalize_tz_name(name: Optional[str]) -> str:
    """Normalize a timezone identifier.

    Supported forms:
      - None/"" -> "local"
      - "local" / "system" -> "local" (the machine's local timezone)
      - "UTC" / "Z" / "GMT" -> "UTC"
      - IANA names, e.g. "Europe/Madrid"
      - Fixed offsets: "+02:00", "+0200", "-05:00"
    """
    if name is None:
        return "local"
    s = str(name).strip()
    if not s:
        return "local"

    low = s.lower()
    if low in {"local", "system", "native"}:
        return "local"
    if low in {"utc", "z", "gmt", "utc0", "utc+0"}:
        return "UTC"
    return s


def resolve_tz(name: TzLike) -> dt.tzinfo:
    """Resolve a timezone name (or pass through a tzinfo).

    Raises ValueError for invalid timezone identifiers.
    """
    if isinstance(name, dt.tzinfo):
        return name

    tz_name = normalize_tz_name(name)

    if tz_name == "UTC":
        return dt.timezone.utc

    if tz_name == "local":
        return LOCAL_TZ

    m = _OFFSET_RE.match(tz_name)
    if m:
        sign_s, hh_s, mm_s = m.groups()
        hh = int(hh_s)
        mm = int(mm_s)
        if hh > 23 or mm > 59:
            raise ValueError(f"Invalid timezone offset: {tz_name!r}")
        sign = 1 if sign_s == "+" else -1
        return dt.timezone(dt.timedelta(minutes=sign * (hh * 60 + mm)))

    if ZoneInfo is not None:
        try:
            return ZoneInfo(tz_name)  # type: ignore[misc]
        except Exception as ex:
            raise ValueError(f"Invalid timezone identifier: {tz_name!r}") from ex

    raise ValueError(f"Invalid timezone identifier: {tz_name!r} (zoneinfo unavailable)")


def now_ms() -> int:
    return int(dt.datetime.now(tz=dt.timezone.utc).timestamp() * 1000)


def today_date(tz: TzLike, at_ms: Optional[int] = None) -> dt.date:
    tzinfo = resolve_tz(tz)
    if at_ms is None:
        return dt.datetime.now(tz=tzinfo).date()
    return local_datetime(at_ms, tzinfo).date()


def local_datetime(ms: int, tz: TzLike) -> dt.datetime:
    return dt.datetime.fromtimestamp(int(ms) / 1000.0, tz=resolve_tz(tz))


def midnight_epoch_ms(d: dt.date, tz: TzLike) -> int:
    aware = dt.datetime(d.year, d.month, d.day, 0, 0, 0, tzinfo=resolve_tz(tz))
    return int(aware.timestamp() * 1000)


def day_of_ms(ms: Optional[int], tz: TzLike) -> Optional[dt.date]:
    if ms is None:
        return None
    try:
        return local_datetime(ms, tz).date()
    except (OverflowError, OSError, ValueError):
        return None


def day_key_from_ms(ms: Optional[int], tz: TzLike) -> Optional[str]:
    d = day_of_ms(ms, tz)
    return d.isoformat() if d is not None else None


def is_midnight_ms(ms: Optional[int], tz: TzLike) -> bool:
    """True for a local time of exactly 00:00:00 (a date without a time)."""
    if ms is None:
        return False
    try:
        t = local_datetime(ms, tz)
    except (OverflowError, OSError, ValueError):
        return False
    return t.hour == 0 and t.minute == 0 and t.second == 0
