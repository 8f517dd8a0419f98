from __future__ import annotations

import datetime as dt
import os
import time
import unittest

from plansmart.model import Task
from plansmart.partition import belongs_to_day
from plansmart.timeline import task_blocks
from plansmart.util.timeparse import (
    format_ms_iso,
    parse_iso_to_ms,
    parse_local_datetime,
    parse_workhours,
)
from plansmart.util.tz import day_of_ms, is_midnight_ms, local_datetime, midnight_epoch_ms, normalize_tz_name, resolve_tz


class TestTimezoneResolutionContract(unittest.TestCase):
    def test_valid_timezone_identifiers_resolve(self) -> None:
        self.assertEqual(resolve_tz("UTC"), dt.timezone.utc)
        self.assertEqual(resolve_tz("z"), dt.timezone.utc)
        self.assertIsNotNone(resolve_tz("local"))
        self.assertIsNotNone(resolve_tz(None))
        self.assertEqual(resolve_tz("+02:00").utcoffset(None), dt.timedelta(hours=2))
        self.assertIs(resolve_tz(dt.timezone.utc), dt.timezone.utc)

    def test_invalid_timezone_identifiers_raise(self) -> None:
        with self.assertRaises(ValueError):
            resolve_tz("No/Such_Zone")
        with self.assertRaises(ValueError):
            resolve_tz("+25:00")

    def test_normalize(self) -> None:
        self.assertEqual(normalize_tz_name(""), "local")
        self.assertEqual(normalize_tz_name("GMT"), "UTC")
        self.assertEqual(normalize_tz_name("Europe/Madrid"), "Europe/Madrid")


class TestTimeParsingContract(unittest.TestCase):
    def test_iso_roundtrip_and_naive_times(self) -> None:
        ms = parse_iso_to_ms("2026-03-10T09:00:00Z")
        self.assertEqual(format_ms_iso(ms), "2026-03-10T09:00:00.000Z")
        self.assertEqual(parse_iso_to_ms("2026-03-10T11:00", "+02:00"), ms)
        self.assertIsNone(parse_iso_to_ms("soon"))
        self.assertIsNone(parse_iso_to_ms(""))

    def test_local_datetime_input(self) -> None:
        self.assertEqual(parse_local_datetime("2026-03-10 09:00", "UTC"), parse_iso_to_ms("2026-03-10T09:00:00Z"))
        midnight = parse_local_datetime("2026-03-10", "UTC")
        self.assertTrue(is_midnight_ms(midnight, "UTC"))
        self.assertEqual(day_of_ms(midnight, "UTC"), dt.date(2026, 3, 10))
        with self.assertRaises(ValueError):
            parse_local_datetime("10/03/2026", "UTC")

    def test_workhours(self) -> None:
        self.assertEqual(parse_workhours("09:00-17:00"), (540, 1020))
        for bad in ("9-5", "17:00-09:00", "09:00"):
            with self.assertRaises(ValueError):
                parse_workhours(bad)


def _utc_ms(y: int, m: int, d: int, hh: int = 0, mm: int = 0) -> int:
    return int(dt.datetime(y, m, d, hh, mm, tzinfo=dt.timezone.utc).timestamp() * 1000)


@unittest.skipUnless(hasattr(time, "tzset"), "needs time.tzset")
class TestLocalZoneAcrossDstContract(unittest.TestCase):
    def setUp(self) -> None:
        self._old_tz = os.environ.get("TZ")
        os.environ["TZ"] = "Europe/Madrid"
        time.tzset()

    def tearDown(self) -> None:
        if self._old_tz is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = self._old_tz
        time.tzset()

    def test_offset_follows_each_instant(self) -> None:
        winter = local_datetime(_utc_ms(2026, 12, 1, 12), "local")
        summer = local_datetime(_utc_ms(2026, 7, 1, 12), "local")
        self.assertEqual(winter.utcoffset(), dt.timedelta(hours=1))
        self.assertEqual(summer.utcoffset(), dt.timedelta(hours=2))
        self.assertEqual((winter.hour, summer.hour), (13, 14))

    def test_late_evening_stays_on_its_day(self) -> None:
        today = dt.date(2026, 7, 1)
        late_winter = Task(id="w", name="W", deadline_ms=_utc_ms(2026, 12, 1, 22, 30))  # 23:30 CET
        late_summer = Task(id="s", name="S", deadline_ms=_utc_ms(2026, 7, 1, 21, 30))  # 23:30 CEST
        self.assertTrue(belongs_to_day(late_winter, dt.date(2026, 12, 1), today=today, tz="local"))
        self.assertTrue(belongs_to_day(late_summer, today, today=today, tz="local"))
        self.assertFalse(belongs_to_day(late_winter, dt.date(2026, 12, 2), today=today, tz="local"))

    def test_midnight_on_both_sides_of_the_change(self) -> None:
        winter_midnight = midnight_epoch_ms(dt.date(2026, 12, 1), "local")
        summer_midnight = midnight_epoch_ms(dt.date(2026, 7, 1), "local")
        self.assertEqual(winter_midnight, _utc_ms(2026, 11, 30, 23))
        self.assertEqual(summer_midnight, _utc_ms(2026, 6, 30, 22))
        self.assertTrue(is_midnight_ms(winter_midnight, "local"))
        self.assertEqual(day_of_ms(winter_midnight, "local"), dt.date(2026, 12, 1))

        day = dt.date(2026, 12, 1)
        tasks = [
            Task(id="m", name="Date only", deadline_ms=winter_midnight),
            Task(id="t", name="Timed", deadline_ms=_utc_ms(2026, 12, 1, 9)),
        ]
        self.assertEqual([b.id for b in task_blocks(tasks, day, today=day, tz="local")], ["t"])

    def test_repeated_hour_keeps_both_instants(self) -> None:
        first = _utc_ms(2026, 10, 25, 0, 30)  # 02:30 CEST
        second = _utc_ms(2026, 10, 25, 1, 30)  # 02:30 CET
        a = local_datetime(first, "local")
        b = local_datetime(second, "local")
        self.assertEqual((a.hour, a.minute, b.hour, b.minute), (2, 30, 2, 30))
        self.assertEqual((a.fold, b.fold), (0, 1))
        self.assertEqual(int(a.timestamp() * 1000), first)
        self.assertEqual(int(b.timestamp() * 1000), second)


if __name__ == "__main__":
    unittest.main(verbosity=2)
