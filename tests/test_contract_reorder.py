from __future__ import annotations

import datetime as dt
import unittest

from plansmart.model import PrioritySuggestion, RankedItem, Task
from plansmart.reorder import apply_suggested_ranking, array_move, move_task, move_task_by_id, rank_tasks


TODAY = dt.date(2026, 3, 10)


def _ms(y: int, m: int, d: int, hh: int = 0, mm: int = 0) -> int:
    return int(dt.datetime(y, m, d, hh, mm, tzinfo=dt.timezone.utc).timestamp() * 1000)


def _today(tid: str, name: str = "") -> Task:
    return Task(id=tid, name=name or tid.upper(), deadline_ms=_ms(2026, 3, 10, 12))


def _other(tid: str) -> Task:
    return Task(id=tid, name=tid.upper(), deadline_ms=_ms(2026, 3, 12, 12))


def _ids(tasks) -> list:
    return [t.id for t in tasks]


class TestArrayMoveContract(unittest.TestCase):
    def test_move_is_relocation_not_swap(self) -> None:
        self.assertEqual(array_move(["a", "b", "c", "d"], 0, 2), ["b", "c", "a", "d"])
        self.assertEqual(array_move(["a", "b", "c", "d"], 3, 1), ["a", "d", "b", "c"])

    def test_out_of_range_raises(self) -> None:
        with self.assertRaises(IndexError):
            array_move(["a"], 0, 1)
        with self.assertRaises(IndexError):
            array_move([], 0, 0)


class TestMoveTaskContract(unittest.TestCase):
    def setUp(self) -> None:
        self.tasks = [_today("a"), _other("x"), _today("b"), _other("y"), _today("c")]

    def test_reorders_active_day_and_keeps_others(self) -> None:
        out = move_task(self.tasks, 0, 2, today=TODAY, tz="UTC")
        self.assertEqual(_ids(out), ["x", "y", "b", "c", "a"])

    def test_other_tasks_are_untouched(self) -> None:
        out = move_task(self.tasks, 2, 0, today=TODAY, tz="UTC")
        others = [t for t in out if t.id in {"x", "y"}]
        self.assertEqual(others, [self.tasks[1], self.tasks[3]])
        self.assertIs(others[0], self.tasks[1])
        self.assertIs(others[1], self.tasks[3])
        self.assertEqual(len(out), len(self.tasks))

    def test_equal_indices_are_noop(self) -> None:
        out = move_task(self.tasks, 1, 1, today=TODAY, tz="UTC")
        self.assertEqual(out, self.tasks)
        self.assertIsNot(out, self.tasks)

    def test_unresolvable_indices_are_noop(self) -> None:
        self.assertEqual(move_task(self.tasks, 0, 3, today=TODAY, tz="UTC"), self.tasks)
        self.assertEqual(move_task(self.tasks, -1, 0, today=TODAY, tz="UTC"), self.tasks)

    def test_move_by_id(self) -> None:
        out = move_task_by_id(self.tasks, "c", "a", today=TODAY, tz="UTC")
        self.assertEqual(_ids(out), ["x", "y", "c", "a", "b"])
        self.assertEqual(move_task_by_id(self.tasks, "a", "x", today=TODAY, tz="UTC"), self.tasks)
        self.assertEqual(move_task_by_id(self.tasks, "a", "a", today=TODAY, tz="UTC"), self.tasks)

    def test_move_on_explicit_day(self) -> None:
        tasks = [_other("x"), _today("a"), Task(id="z", name="Z", deadline_ms=_ms(2026, 3, 12, 8))]
        out = move_task(tasks, 1, 0, day=dt.date(2026, 3, 12), today=TODAY, tz="UTC")
        self.assertEqual(_ids(out), ["a", "z", "x"])


class TestSuggestedRankingContract(unittest.TestCase):
    def test_rank_mapping_orders_active_day(self) -> None:
        tasks = [_today("a", "A"), _today("b", "B"), _today("c", "C")]
        out = apply_suggested_ranking(tasks, {"A": 2, "B": 1}, today=TODAY, tz="UTC")
        self.assertEqual(_ids(out), ["b", "a", "c"])

    def test_already_ordered_suggestion_keeps_order(self) -> None:
        report = Task(id="r", name="Write report", deadline_ms=_ms(2026, 3, 10, 9), duration_min=60, priority="high")
        email = Task(id="e", name="Email client", deadline_ms=_ms(2026, 3, 10, 10), duration_min=30, priority="low")
        later = _other("x")
        suggestion = PrioritySuggestion(
            items=(
                RankedItem(name="Write report", rank=1, reason="urgent"),
                RankedItem(name="Email client", rank=2, reason="quick win"),
            )
        )
        out = apply_suggested_ranking([report, email, later], suggestion, today=TODAY, tz="UTC")
        self.assertEqual(_ids(out), ["x", "r", "e"])
        self.assertIs(out[0], later)

    def test_unknown_and_bad_ranks_are_ignored(self) -> None:
        active = [_today("a", "A"), _today("b", "B"), _today("c", "C")]
        ranks = {"C": 1, "Ghost": 0, "A": float("nan"), "B": "not-a-number"}
        self.assertEqual(_ids(rank_tasks(active, ranks)), ["c", "a", "b"])

    def test_duplicate_names_share_rank(self) -> None:
        active = [_today("a1", "Same"), _today("b", "B"), _today("a2", "Same")]
        out = rank_tasks(active, PrioritySuggestion(items=(RankedItem("B", 1), RankedItem("Same", 2))))
        self.assertEqual(_ids(out), ["b", "a1", "a2"])

    def test_empty_suggestion_keeps_active_order(self) -> None:
        tasks = [_today("a"), _other("x"), _today("b")]
        out = apply_suggested_ranking(tasks, PrioritySuggestion(), today=TODAY, tz="UTC")
        self.assertEqual(_ids(out), ["x", "a", "b"])


if __name__ == "__main__":
    unittest.main(verbosity=2)
