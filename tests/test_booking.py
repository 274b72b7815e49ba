import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from parking_allocator import InvalidWindowError, Window, has_time_overlap


class TestTimeOverlap(unittest.TestCase):
    def setUp(self) -> None:
        self.exist_start = datetime(2026, 2, 24, 12, 0)
        self.exist_end = datetime(2026, 2, 24, 14, 0)

    def test_non_overlapping_before_passes(self) -> None:
        self.assertFalse(
            has_time_overlap(
                datetime(2026, 2, 24, 9, 0),
                datetime(2026, 2, 24, 11, 59),
                self.exist_start,
                self.exist_end,
            )
        )

    def test_exactly_touching_boundary_passes(self) -> None:
        self.assertFalse(
            has_time_overlap(
                datetime(2026, 2, 24, 10, 0),
                datetime(2026, 2, 24, 12, 0),
                self.exist_start,
                self.exist_end,
            )
        )
        self.assertFalse(
            has_time_overlap(
                datetime(2026, 2, 24, 14, 0),
                datetime(2026, 2, 24, 15, 0),
                self.exist_start,
                self.exist_end,
            )
        )

    def test_straddling_boundary_fails(self) -> None:
        self.assertTrue(
            has_time_overlap(
                datetime(2026, 2, 24, 11, 59),
                datetime(2026, 2, 24, 12, 1),
                self.exist_start,
                self.exist_end,
            )
        )

    def test_fully_contained_fails(self) -> None:
        self.assertTrue(
            has_time_overlap(
                datetime(2026, 2, 24, 12, 30),
                datetime(2026, 2, 24, 13, 0),
                self.exist_start,
                self.exist_end,
            )
        )

    def test_degenerate_interval_raises(self) -> None:
        with self.assertRaises(InvalidWindowError):
            has_time_overlap(self.exist_start, self.exist_start, self.exist_start, self.exist_end)


class TestWindow(unittest.TestCase):
    def test_rejects_start_not_before_end(self) -> None:
        moment = datetime(2026, 2, 24, 10, 0)
        with self.assertRaises(InvalidWindowError):
            Window(moment, moment)
        with self.assertRaises(ValueError):
            Window(moment, datetime(2026, 2, 24, 9, 0))

    def test_covers_is_half_open(self) -> None:
        window = Window(datetime(2026, 2, 24, 10, 0), datetime(2026, 2, 24, 12, 0))

        self.assertTrue(window.covers(datetime(2026, 2, 24, 10, 0)))
        self.assertTrue(window.covers(datetime(2026, 2, 24, 11, 59, 59)))
        self.assertFalse(window.covers(datetime(2026, 2, 24, 12, 0)))

    def test_duration_hours_is_fractional(self) -> None:
        window = Window(datetime(2026, 2, 24, 10, 0), datetime(2026, 2, 24, 11, 30))

        self.assertEqual(window.duration_hours(), Decimal("1.5"))

    def test_aware_bounds_become_naive_local_time(self) -> None:
        start = datetime(2026, 2, 24, 10, 0, tzinfo=timezone.utc)
        window = Window(start, datetime(2026, 2, 24, 13, 0, tzinfo=timezone(timedelta(hours=2))))

        self.assertIsNone(window.start.tzinfo)
        self.assertIsNone(window.end.tzinfo)
        self.assertEqual(window.start, start.astimezone().replace(tzinfo=None))
        self.assertEqual(window.duration_hours(), Decimal("1"))


if __name__ == "__main__":
    unittest.main()
