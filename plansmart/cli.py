# plansmart/cli.py
from __future__ import annotations

import argparse
import dataclasses
import datetime as dt
import logging
import sys
from typing import List, Optional, Sequence

from .ai.lmstudio import LmStudioClient
from .ai.stub import StubAssistant, StubPrioritizer, StubTimeBlocker
from .analytics import completed_per_day, priority_distribution
from .config import Settings
from .errors import CollaboratorError, RequestInFlightError
from .model import PRIORITIES, STATUSES, Task
from .session import Session
from .storage import JsonStore
from .timeline import Timeline, day_summary
from .util.console import configure_logging, eprint
from .util.timeparse import format_ms_hhmm, parse_date_yyyy_mm_dd, parse_local_datetime, parse_workhours
from .util.tz import day_key_from_ms

PROG = "plansmart"

log = logging.getLogger(__name__)


def _die(msg: str, rc: int = 2) -> int:
    eprint(f"[{PROG}] ERROR: {msg}")
    return rc


def _resolve_id(ids: Sequence[str], ref: str, what: str) -> str:
    """Exact id or unique prefix."""
    ref = (ref or "").strip()
    if ref in ids:
        return ref
    hits = [i for i in ids if ref and i.startswith(ref)]
    if len(hits) == 1:
        return hits[0]
    if not hits:
        raise ValueError(f"no {what} matches id {ref!r}")
    raise ValueError(f"ambiguous {what} id {ref!r} ({len(hits)} matches)")


def _day_arg(s: Optional[str]) -> Optional[dt.date]:
    if not s:
        return None
    try:
        return parse_date_yyyy_mm_dd(s)
    except ValueError as e:
        raise ValueError(f"Invalid date {s!r} (expected YYYY-MM-DD)") from e


def _fmt_task(t: Task, tz) -> str:
    due = "-"
    if t.deadline_ms is not None:
        due = f"{day_key_from_ms(t.deadline_ms, tz)} {format_ms_hhmm(t.deadline_ms, tz)}"
    dur = f"{t.duration_min}m" if t.duration_min else "-"
    return f"{t.id[:8]}  [{t.status:<11}] {t.priority:<6} {due:<16} {dur:>5}  {t.name}"


def _print_timeline(tl: Timeline, tz) -> None:
    w = tl.window
    print(f"{w.day.isoformat()} (from {w.start_hour:02d}:00)")
    if not tl.items:
        print("  (nothing scheduled)")
        return
    for it in tl.items:
        span = f"{format_ms_hhmm(it.start_ms, tz)}-{format_ms_hhmm(it.end_ms, tz)}"
        lane = f" lane {it.lane + 1}/{it.total_lanes}" if it.overlap else ""
        print(f"  {span}  top={it.top:g} h={it.height:g}{lane}  [{it.kind}] {it.name}")
    s = day_summary(tl)
    print(f"  {s['item_count']} items, {s['load_min']} min booked, {s['overlap_count']} overlapping")


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog=PROG, description="Day planner: tasks, appointments and AI suggestions.")
    ap.add_argument("--home", default=None, help="Data directory (default: env PLANSMART_HOME or ~/.plansmart)")
    ap.add_argument("--tz", default=None, help="Timezone for day boundaries (default: env PLANSMART_TZ or 'local')")
    ap.add_argument("--now", default=None, help=argparse.SUPPRESS)
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging to stderr")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("add", help="Add a task")
    p.add_argument("name")
    p.add_argument("--duration", type=int, default=None, help="Minutes")
    p.add_argument("--deadline", default=None, help="YYYY-MM-DD or YYYY-MM-DDTHH:MM")
    p.add_argument("--priority", choices=PRIORITIES, default="medium")
    p.add_argument("--description", default="")
    p.add_argument("--undated", action="store_true", help="Do not stamp a missing deadline with now")

    p = sub.add_parser("list", help="List tasks of a day (default: today)")
    p.add_argument("--day", default=None)
    p.add_argument("--all", action="store_true", help="List every task")

    p = sub.add_parser("done", help="Mark a task done")
    p.add_argument("id")

    p = sub.add_parser("status", help="Set a task status")
    p.add_argument("id")
    p.add_argument("status", choices=STATUSES)

    p = sub.add_parser("edit", help="Edit task fields")
    p.add_argument("id")
    p.add_argument("--name", default=None)
    p.add_argument("--duration", type=int, default=None)
    p.add_argument("--deadline", default=None)
    p.add_argument("--clear-deadline", action="store_true")
    p.add_argument("--priority", choices=PRIORITIES, default=None)
    p.add_argument("--description", default=None)

    p = sub.add_parser("rm", help="Delete a task")
    p.add_argument("id")

    p = sub.add_parser("move", help="Reorder within a day's list (0-based positions)")
    p.add_argument("source", type=int)
    p.add_argument("target", type=int)
    p.add_argument("--day", default=None)

    p = sub.add_parser("appt-add", help="Add a fixed appointment")
    p.add_argument("name")
    p.add_argument("start", help="YYYY-MM-DDTHH:MM")
    p.add_argument("end", help="YYYY-MM-DDTHH:MM")

    p = sub.add_parser("appt-list", help="List appointments")
    p.add_argument("--day", default=None)

    p = sub.add_parser("appt-rm", help="Delete an appointment")
    p.add_argument("id")

    p = sub.add_parser("schedule", help="Show the day timeline")
    p.add_argument("--day", default=None)

    p = sub.add_parser("prioritize", help="Ask the AI to rank today's todo tasks")
    p.add_argument("--day", default=None)
    p.add_argument("--apply", action="store_true", help="Reorder the list by the suggestion")
    p.add_argument("--stub", action="store_true", help="Use the offline deterministic prioritizer")

    p = sub.add_parser("timeblock", help="Ask the AI to place open tasks into free time")
    p.add_argument("--day", default=None)
    p.add_argument("--workhours", default=None, help="HH:MM-HH:MM (default: env PLANSMART_WORKHOURS)")
    p.add_argument("--stub", action="store_true", help="Use the offline deterministic time blocker")

    p = sub.add_parser("chat", help="Ask the assistant about your tasks")
    p.add_argument("message")
    p.add_argument("--stub", action="store_true", help="Use the offline assistant")

    p = sub.add_parser("stats", help="Completion and priority statistics")
    p.add_argument("--days", type=int, default=7)

    return ap


def _client(settings: Settings) -> LmStudioClient:
    return LmStudioClient(
        base_url=settings.ai_base_url,
        model=settings.ai_model,
        api_key=settings.ai_api_key,
        timeout_s=settings.ai_timeout_s,
    )


def _run(ns: argparse.Namespace, settings: Settings) -> int:
    store = JsonStore(settings.home)
    clock = None
    if ns.now:
        fixed_now = parse_local_datetime(ns.now, settings.tz)
        clock = lambda: fixed_now  # noqa: E731
    session = Session.load(store, tz=settings.tz, clock=clock)
    tz = session.tzinfo
    cmd = ns.cmd

    if cmd == "add":
        deadline = parse_local_datetime(ns.deadline, tz) if ns.deadline else None
        t = session.add_task(
            ns.name,
            duration_min=ns.duration,
            deadline_ms=deadline,
            priority=ns.priority,
            description=ns.description,
            stamp_now=not ns.undated,
        )
        session.save(store)
        print(t.id)
        return 0

    if cmd == "list":
        tasks = session.tasks if ns.all else session.active_tasks(_day_arg(ns.day))
        for i, t in enumerate(tasks):
            print(f"{i:>3}  {_fmt_task(t, tz)}")
        return 0

    if cmd in {"done", "status"}:
        task_id = _resolve_id([t.id for t in session.tasks], ns.id, "task")
        t = session.set_status(task_id, "done" if cmd == "done" else ns.status)
        session.save(store)
        print(_fmt_task(t, tz))
        return 0

    if cmd == "edit":
        task_id = _resolve_id([t.id for t in session.tasks], ns.id, "task")
        cur = session.get_task(task_id)
        changes = {}
        if ns.name is not None:
            changes["name"] = ns.name
        if ns.duration is not None:
            changes["duration_min"] = ns.duration
        if ns.clear_deadline:
            changes["deadline_ms"] = None
        elif ns.deadline is not None:
            changes["deadline_ms"] = parse_local_datetime(ns.deadline, tz)
        if ns.priority is not None:
            changes["priority"] = ns.priority
        if ns.description is not None:
            changes["description"] = ns.description
        t = session.update_task(dataclasses.replace(cur, **changes))
        session.save(store)
        print(_fmt_task(t, tz))
        return 0

    if cmd == "rm":
        task_id = _resolve_id([t.id for t in session.tasks], ns.id, "task")
        t = session.delete_task(task_id)
        session.save(store)
        print(f"deleted {t.id}")
        return 0

    if cmd == "move":
        day = _day_arg(ns.day)
        before = list(session.tasks)
        session.move(ns.source, ns.target, day)
        if session.tasks == before:
            eprint(f"[{PROG}] WARN: nothing moved")
        session.save(store)
        for i, t in enumerate(session.active_tasks(day)):
            print(f"{i:>3}  {_fmt_task(t, tz)}")
        return 0

    if cmd == "appt-add":
        a = session.add_appointment(ns.name, parse_local_datetime(ns.start, tz), parse_local_datetime(ns.end, tz))
        session.save(store)
        print(a.id)
        return 0

    if cmd == "appt-list":
        day = _day_arg(ns.day)
        for a in sorted(session.appointments, key=lambda a: (a.start_ms, a.id)):
            if day is not None and day_key_from_ms(a.start_ms, tz) != day.isoformat():
                continue
            span = f"{day_key_from_ms(a.start_ms, tz)} {format_ms_hhmm(a.start_ms, tz)}-{format_ms_hhmm(a.end_ms, tz)}"
            print(f"{a.id[:8]}  {span}  {a.name}")
        return 0

    if cmd == "appt-rm":
        appt_id = _resolve_id([a.id for a in session.appointments], ns.id, "appointment")
        a = session.delete_appointment(appt_id)
        session.save(store)
        print(f"deleted {a.id}")
        return 0

    if cmd == "schedule":
        _print_timeline(session.timeline(_day_arg(ns.day), hour_height=settings.hour_height), tz)
        return 0

    if cmd == "prioritize":
        day = _day_arg(ns.day)
        prioritizer = StubPrioritizer() if ns.stub else _client(settings)
        suggestion = session.request_priority(prioritizer, day)
        if suggestion is None:
            print("Need at least two todo tasks to prioritize.")
            return 0
        for it in suggestion.ordered():
            reason = f"  ({it.reason})" if it.reason else ""
            print(f"{it.rank:g}. {it.name}{reason}")
        if ns.apply:
            session.apply_priority(suggestion, day)
            session.save(store)
        return 0

    if cmd == "timeblock":
        day = _day_arg(ns.day)
        work_start, work_end = parse_workhours(ns.workhours or settings.workhours)
        blocker = StubTimeBlocker(now_ms=session.now_ms()) if ns.stub else _client(settings)
        blocks = session.request_time_blocks(blocker, work_start_min=work_start, work_end_min=work_end, day=day)
        if not blocks:
            print("No time blocks suggested.")
        _print_timeline(session.timeline(day, hour_height=settings.hour_height), tz)
        return 0

    if cmd == "chat":
        assistant = StubAssistant() if ns.stub else _client(settings)
        reply = session.chat(assistant, ns.message)
        print(reply or "")
        return 0

    if cmd == "stats":
        today = session.today()
        for d, n in completed_per_day(session.tasks, today=today, tz=tz, days=ns.days):
            print(f"{d.isoformat()}  {n}")
        dist = priority_distribution(session.tasks)
        print("  ".join(f"{k}={v}" for k, v in dist.items()))
        return 0

    return _die(f"unknown command: {cmd}")


def main(argv: Optional[List[str]] = None) -> int:
    ap = _build_parser()
    ns = ap.parse_args(argv)

    try:
        settings = Settings.from_env().with_overrides(home=ns.home, tz=ns.tz)
    except ValueError as e:
        return _die(str(e))
    configure_logging("DEBUG" if ns.verbose else settings.log_level)

    try:
        return _run(ns, settings)
    except RequestInFlightError as e:
        return _die(str(e), rc=3)
    except CollaboratorError as e:
        log.debug("collaborator failure", exc_info=True)
        return _die(str(e), rc=1)
    except ValueError as e:
        return _die(str(e))


if __name__ == "__main__":
    sys.exit(main())
