from __future__ import annotations

import datetime as dt
import unittest

from plansmart.ai.interface import (
    ChatRequest,
    ChatTask,
    PrioritizeRequest,
    PrioritizeTask,
    TimeBlockRequest,
    TimeBlockTask,
)
from plansmart.ai.stub import StubAssistant, StubPrioritizer, StubTimeBlocker


def _ms(y: int, m: int, d: int, hh: int = 0, mm: int = 0) -> int:
    return int(dt.datetime(y, m, d, hh, mm, tzinfo=dt.timezone.utc).timestamp() * 1000)


class TestStubPrioritizerContract(unittest.TestCase):
    def test_deadline_then_importance_then_name(self) -> None:
        req = PrioritizeRequest(
            tasks=(
                PrioritizeTask(name="undated", description="", deadline="", importance="high"),
                PrioritizeTask(name="b-low", description="", deadline="2026-03-10", importance="low"),
                PrioritizeTask(name="later", description="", deadline="2026-03-12", importance="high"),
                PrioritizeTask(name="a-high", description="", deadline="2026-03-10", importance="high"),
            )
        )
        s = StubPrioritizer().prioritize(req)
        self.assertEqual([i.name for i in s.ordered()], ["a-high", "b-low", "later", "undated"])
        self.assertEqual([i.rank for i in s.ordered()], [1.0, 2.0, 3.0, 4.0])
        self.assertEqual(s, StubPrioritizer().prioritize(req))
        self.assertEqual(s.model_id, "stub-v1")


class TestStubTimeBlockerContract(unittest.TestCase):
    def _req(self, *tasks: TimeBlockTask, existing=()) -> TimeBlockRequest:
        return TimeBlockRequest(
            tasks=tuple(tasks),
            existing=tuple(existing),
            work_start="09:00",
            work_end="12:00",
            day_iso="2026-03-10",
            tz="UTC",
        )

    def test_packs_around_existing_appointments(self) -> None:
        req = self._req(
            TimeBlockTask(name="A", duration_min=45),
            TimeBlockTask(name="B"),
            TimeBlockTask(name="C", duration_min=60),
            existing=[("2026-03-10T09:30:00.000Z", "2026-03-10T10:00:00.000Z")],
        )
        res = StubTimeBlocker().suggest_blocks(req)
        got = [(b.task_name, b.start_ms, b.end_ms) for b in res.blocks]
        self.assertEqual(
            got,
            [
                ("A", _ms(2026, 3, 10, 10, 0), _ms(2026, 3, 10, 10, 45)),
                ("B", _ms(2026, 3, 10, 9, 0), _ms(2026, 3, 10, 9, 30)),
                ("C", _ms(2026, 3, 10, 10, 45), _ms(2026, 3, 10, 11, 45)),
            ],
        )
        self.assertEqual(res.warnings, ())

    def test_tasks_that_do_not_fit_are_reported(self) -> None:
        res = StubTimeBlocker().suggest_blocks(self._req(TimeBlockTask(name="Huge", duration_min=240)))
        self.assertEqual(res.blocks, ())
        self.assertEqual(res.warnings, ("no free slot for Huge",))

    def test_starts_snap_after_now(self) -> None:
        blocker = StubTimeBlocker(snap_min=5, now_ms=_ms(2026, 3, 10, 9, 7))
        res = blocker.suggest_blocks(self._req(TimeBlockTask(name="A", duration_min=30)))
        self.assertEqual(res.blocks[0].start_ms, _ms(2026, 3, 10, 9, 10))


class TestStubAssistantContract(unittest.TestCase):
    def test_summary(self) -> None:
        req = ChatRequest(
            message="How am I doing?",
            tasks=(
                ChatTask(id="1", name="Ship it", priority="high", status="todo"),
                ChatTask(id="2", name="Tidy", priority="low", status="done"),
            ),
        )
        reply = StubAssistant().chat(req)
        self.assertIn("2 tasks, 1 done", reply)
        self.assertIn("Ship it", reply)
        self.assertIn("no tasks", StubAssistant().chat(ChatRequest(message="?")))


if __name__ == "__main__":
    unittest.main(verbosity=2)
