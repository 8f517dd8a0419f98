from __future__ import annotations

import datetime as dt
import unittest

from plansmart.geometry import HOUR_HEIGHT, MIN_VISIBLE_EXTENT, extent, position, visible_extent


def _ms(y: int, m: int, d: int, hh: int = 0, mm: int = 0) -> int:
    return int(dt.datetime(y, m, d, hh, mm, tzinfo=dt.timezone.utc).timestamp() * 1000)


class TestGeometryContract(unittest.TestCase):
    def test_constants(self) -> None:
        self.assertEqual(HOUR_HEIGHT, 60)
        self.assertEqual(MIN_VISIBLE_EXTENT, 30)

    def test_position_is_relative_to_window_start(self) -> None:
        t = _ms(2026, 3, 10, 10, 30)
        self.assertEqual(position(t, 8, tz="UTC"), 150.0)
        self.assertEqual(position(t, 0, tz="UTC"), 630.0)
        self.assertEqual(position(t, 10, tz="UTC", hour_height=100), 50.0)

    def test_position_before_window_is_negative(self) -> None:
        self.assertEqual(position(_ms(2026, 3, 10, 7, 0), 8, tz="UTC"), -60.0)

    def test_position_uses_timezone_wall_clock(self) -> None:
        t = _ms(2026, 3, 10, 10, 0)
        self.assertEqual(position(t, 0, tz="+02:00"), 12 * 60.0)

    def test_extent(self) -> None:
        self.assertEqual(extent(_ms(2026, 3, 10, 9), _ms(2026, 3, 10, 10, 30)), 90.0)
        self.assertEqual(extent(_ms(2026, 3, 10, 9), _ms(2026, 3, 10, 9, 15), hour_height=120), 30.0)
        self.assertEqual(extent(_ms(2026, 3, 10, 9), _ms(2026, 3, 10, 9)), 0.0)
        self.assertLess(extent(_ms(2026, 3, 10, 10), _ms(2026, 3, 10, 9)), 0)

    def test_visible_extent_floor(self) -> None:
        s = _ms(2026, 3, 10, 9)
        self.assertEqual(visible_extent(s, s + 15 * 60_000), 30.0)
        self.assertEqual(visible_extent(s, s - 60 * 60_000), 30.0)
        self.assertEqual(visible_extent(s, s + 120 * 60_000), 120.0)
        self.assertEqual(visible_extent(s, s, floor=5), 5.0)
        self.assertEqual(visible_extent(s, s, hour_height=100), 50.0)


if __name__ == "__main__":
    unittest.main(verbosity=2)
