from __future__ import annotations

import unittest
from datetime import date, time, timedelta

from app.services.rotation import (
    ROTATION_ANCHORS,
    RotationGroup,
    ShiftType,
    compute_shift,
    cycle_day,
    days_offset,
    effective_group,
    group_assignments,
    regular_work_hours,
    resolve_effective_shift,
    shift_number,
    shift_work_hours,
)

FULL_CYCLE = [
    ShiftType.DAY,
    ShiftType.DAY,
    ShiftType.NIGHT,
    ShiftType.NIGHT,
    ShiftType.OFF,
    ShiftType.OFF,
    ShiftType.OFF,
    ShiftType.OFF,
]


class RotationTests(unittest.TestCase):
    def test_compute_shift_is_deterministic(self) -> None:
        for group in RotationGroup:
            first = compute_shift(date(2026, 3, 17), group)
            second = compute_shift(date(2026, 3, 17), group)
            self.assertEqual(first, second)

    def test_eight_days_from_anchor_walk_the_cycle(self) -> None:
        for group, anchor in ROTATION_ANCHORS.items():
            start = anchor.cycle_offset - 1
            expected = FULL_CYCLE[start:] + FULL_CYCLE[:start]
            actual = [compute_shift(anchor.day + timedelta(days=index), group) for index in range(8)]
            self.assertEqual(actual, expected, msg=f"group {group.value}")

    def test_reference_week_matches_known_pattern(self) -> None:
        # Jan 1 2025: D works its second day shift, C its second night.
        self.assertEqual(compute_shift(date(2025, 1, 1), RotationGroup.D), ShiftType.DAY)
        self.assertEqual(shift_number(date(2025, 1, 1), RotationGroup.D), 2)
        self.assertEqual(compute_shift(date(2025, 1, 1), RotationGroup.C), ShiftType.NIGHT)
        self.assertEqual(shift_number(date(2025, 1, 1), RotationGroup.C), 2)
        self.assertEqual(compute_shift(date(2025, 1, 1), RotationGroup.A), ShiftType.OFF)
        self.assertIsNone(shift_number(date(2025, 1, 1), RotationGroup.A))
        self.assertEqual(compute_shift(date(2025, 1, 4), RotationGroup.A), ShiftType.DAY)
        self.assertEqual(shift_number(date(2025, 1, 4), RotationGroup.A), 1)

    def test_dates_before_anchor_wrap_into_cycle(self) -> None:
        anchor = ROTATION_ANCHORS[RotationGroup.A]
        self.assertEqual(days_offset(date(2025, 1, 3), anchor), -1)
        self.assertEqual(cycle_day(date(2025, 1, 3), RotationGroup.A), 8)
        self.assertEqual(cycle_day(date(2024, 12, 27), RotationGroup.A), 1)

        for group in RotationGroup:
            for back in range(1, 400, 7):
                value = date(2025, 1, 1) - timedelta(days=back)
                self.assertIn(cycle_day(value, group), range(1, 9))

    def test_historical_arithmetic_drifts_after_leap_day(self) -> None:
        value = date(2029, 1, 4)
        self.assertEqual(cycle_day(value, RotationGroup.A), 6)
        self.assertEqual(cycle_day(value, RotationGroup.A, leap_aware=False), 5)

        same_year = date(2025, 9, 30)
        self.assertEqual(
            cycle_day(same_year, RotationGroup.B),
            cycle_day(same_year, RotationGroup.B, leap_aware=False),
        )

    def test_group_assignments_have_one_day_and_one_night_group(self) -> None:
        assignments = group_assignments(date(2025, 1, 1))
        self.assertEqual(assignments.day_shift.group, RotationGroup.D)
        self.assertFalse(assignments.day_shift.is_first)
        self.assertEqual(assignments.night_shift.group, RotationGroup.C)
        self.assertFalse(assignments.night_shift.is_first)
        self.assertEqual(assignments.off, [RotationGroup.A, RotationGroup.B])

        for offset in range(60):
            value = date(2026, 2, 1) + timedelta(days=offset)
            result = group_assignments(value)
            self.assertEqual(len(result.off), 2)
            self.assertNotEqual(result.day_shift.group, result.night_shift.group)

    def test_shift_hours(self) -> None:
        self.assertEqual(shift_work_hours(ShiftType.DAY), (time(7, 0), time(19, 0)))
        self.assertEqual(shift_work_hours(ShiftType.NIGHT), (time(19, 0), time(7, 0)))
        self.assertIsNone(shift_work_hours(ShiftType.OFF))

    def test_regular_week(self) -> None:
        self.assertEqual(regular_work_hours(date(2025, 1, 5)), (time(7, 45), time(16, 0)))  # Sunday
        self.assertEqual(regular_work_hours(date(2025, 1, 2)), (time(7, 45), time(13, 30)))  # Thursday
        self.assertIsNone(regular_work_hours(date(2025, 1, 3)))  # Friday
        self.assertIsNone(regular_work_hours(date(2025, 1, 4)))  # Saturday

    def test_override_wins_over_rotation(self) -> None:
        self.assertEqual(resolve_effective_shift(ShiftType.DAY, ShiftType.LEAVE), ShiftType.LEAVE)
        self.assertEqual(resolve_effective_shift(ShiftType.DAY, None), ShiftType.DAY)

    def test_effective_group_uses_latest_change_on_or_before_date(self) -> None:
        changes = {
            date(2025, 2, 1): RotationGroup.B,
            date(2025, 3, 1): RotationGroup.C,
        }
        self.assertEqual(effective_group(date(2025, 1, 31), RotationGroup.A, changes), (RotationGroup.A, False))
        self.assertEqual(effective_group(date(2025, 2, 1), RotationGroup.A, changes), (RotationGroup.B, True))
        self.assertEqual(effective_group(date(2025, 3, 15), RotationGroup.A, changes), (RotationGroup.C, True))

    def test_unknown_group_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            compute_shift(date(2025, 1, 1), "E")  # type: ignore[arg-type]


if __name__ == "__main__":
    unittest.main()
