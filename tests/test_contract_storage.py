from __future__ import annotations

import datetime as dt
import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from plansmart.errors import CollaboratorError, StorageError
from plansmart.model import Appointment, Task
from plansmart.storage import JsonStore, MemoryStore


def _ms(y: int, m: int, d: int, hh: int = 0, mm: int = 0) -> int:
    return int(dt.datetime(y, m, d, hh, mm, tzinfo=dt.timezone.utc).timestamp() * 1000)


class TestJsonStoreContract(unittest.TestCase):
    def test_missing_key_reads_none(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            store = JsonStore(Path(td) / "data")
            self.assertIsNone(store.read("tasks"))
            self.assertIsNone(store.read_tasks())
            self.assertIsNone(store.read_appointments())

    def test_tasks_and_appointments_roundtrip(self) -> None:
        tasks = [
            Task(id="t1", name="Write report", priority="high", duration_min=60, deadline_ms=_ms(2026, 3, 10, 9)),
            Task(id="t2", name="Undated", description="no deadline"),
        ]
        appts = [Appointment(id="a1", name="Dentist", start_ms=_ms(2026, 3, 10, 15), end_ms=_ms(2026, 3, 10, 16))]
        with tempfile.TemporaryDirectory() as td:
            store = JsonStore(td)
            store.write_tasks(tasks)
            store.write_appointments(appts)
            self.assertEqual(store.read_tasks(), tasks)
            self.assertEqual(store.read_appointments(), appts)

            raw = json.loads((Path(td) / "tasks.json").read_text(encoding="utf-8"))
            self.assertEqual(raw[0]["deadline"], "2026-03-10T09:00:00.000Z")
            self.assertEqual(raw[0]["duration"], 60)
            self.assertNotIn("deadline", raw[1])

    def test_write_replaces_whole_snapshot_without_temp_leftovers(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            store = JsonStore(td)
            store.write("tasks", [{"name": "a"}, {"name": "b"}])
            store.write("tasks", [{"name": "c"}])
            self.assertEqual(store.read("tasks"), [{"name": "c"}])
            self.assertEqual(sorted(p.name for p in Path(td).iterdir()), ["tasks.json"])

    def test_failed_write_keeps_previous_snapshot(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            store = JsonStore(td)
            store.write("tasks", [{"name": "keep"}])
            with mock.patch("plansmart.storage.os.replace", side_effect=OSError("disk full")):
                with self.assertRaises(StorageError):
                    store.write("tasks", [{"name": "lost"}])
            self.assertEqual(store.read("tasks"), [{"name": "keep"}])
            self.assertEqual(sorted(p.name for p in Path(td).iterdir()), ["tasks.json"])

    def test_corrupt_or_wrong_shape_raises_storage_error(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            (Path(td) / "tasks.json").write_text("{not json", encoding="utf-8")
            (Path(td) / "appointments.json").write_text('{"a": 1}', encoding="utf-8")
            store = JsonStore(td)
            with self.assertRaises(StorageError):
                store.read("tasks")
            with self.assertRaises(CollaboratorError):
                store.read_appointments()

    def test_decoder_tolerates_absent_and_invalid_fields(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            docs = [
                {"id": "1", "name": "Minimal"},
                {"id": "2", "name": "Odd", "priority": "urgent", "status": "blocked", "duration": -5},
                {"id": "3", "priority": "high"},
                "garbage",
            ]
            (Path(td) / "tasks.json").write_text(json.dumps(docs), encoding="utf-8")
            with self.assertLogs("plansmart.storage", level="WARNING"):
                tasks = JsonStore(td).read_tasks()
            self.assertEqual([t.id for t in tasks], ["1", "2"])
            self.assertEqual((tasks[0].priority, tasks[0].status, tasks[0].deadline_ms), ("medium", "todo", None))
            self.assertEqual((tasks[1].priority, tasks[1].status, tasks[1].duration_min), ("medium", "todo", None))

    def test_invalid_key_rejected(self) -> None:
        store = JsonStore("/tmp")
        with self.assertRaises(ValueError):
            store.path_for("../etc")


class TestMemoryStoreContract(unittest.TestCase):
    def test_values_are_copied(self) -> None:
        store = MemoryStore({"tasks": [{"name": "a"}]})
        got = store.read("tasks")
        got.append({"name": "mutated"})
        self.assertEqual(store.read("tasks"), [{"name": "a"}])
        self.assertIsNone(store.read("appointments"))

    def test_typed_helpers(self) -> None:
        store = MemoryStore()
        store.write_tasks([Task(id="t", name="T")])
        self.assertEqual(store.read_tasks(), [Task(id="t", name="T")])


if __name__ == "__main__":
    unittest.main(verbosity=2)
