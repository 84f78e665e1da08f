from __future__ import annotations

import unittest
from datetime import date

from app.services.rotation import RotationGroup, ShiftType
from app.services.schedule import (
    HolidayEntry,
    OverrideEntry,
    build_month_calendar,
    calendar_range,
    lookup_shift,
)


def _day(calendar, value: date):  # type: ignore[no-untyped-def]
    return next(item for item in calendar.days if item.date == value)


class MonthCalendarTests(unittest.TestCase):
    def test_grid_is_padded_to_whole_weeks_starting_sunday(self) -> None:
        self.assertEqual(calendar_range(2025, 1), (date(2024, 12, 29), date(2025, 2, 1)))

        calendar = build_month_calendar(employee_id=1, year=2025, month=1, group=RotationGroup.A)

        self.assertEqual(calendar.name, "January")
        self.assertEqual(len(calendar.days), 35)
        self.assertEqual(calendar.days[0].day_of_week, 0)
        self.assertFalse(calendar.days[0].is_current_month)
        self.assertTrue(_day(calendar, date(2025, 1, 15)).is_current_month)

    def test_plain_rotation_day(self) -> None:
        calendar = build_month_calendar(employee_id=1, year=2025, month=1, group=RotationGroup.A)
        day = _day(calendar, date(2025, 1, 4))

        self.assertEqual(day.rotation_shift, ShiftType.DAY)
        self.assertEqual(day.shift_type, ShiftType.DAY)
        self.assertFalse(day.is_overridden)
        self.assertIsNone(day.original_type)
        self.assertEqual(day.shift_number, 1)
        self.assertEqual(day.group_assignments.day_shift.group, RotationGroup.A)

    def test_leave_override_beats_rotation_day(self) -> None:
        calendar = build_month_calendar(
            employee_id=1,
            year=2025,
            month=1,
            group=RotationGroup.A,
            overrides={date(2025, 1, 4): OverrideEntry(shift_type=ShiftType.LEAVE, note="Annual")},
        )
        day = _day(calendar, date(2025, 1, 4))

        self.assertEqual(day.shift_type, ShiftType.LEAVE)
        self.assertTrue(day.is_overridden)
        self.assertEqual(day.original_type, ShiftType.DAY)
        self.assertEqual(day.notes, "Annual")
        self.assertIsNone(day.shift_number)

    def test_active_leave_without_override_marks_day_as_leave(self) -> None:
        calendar = build_month_calendar(
            employee_id=1,
            year=2025,
            month=1,
            group=RotationGroup.A,
            leave_days={date(2025, 1, 5): "SICK"},
        )
        day = _day(calendar, date(2025, 1, 5))
        self.assertEqual(day.shift_type, ShiftType.LEAVE)
        self.assertEqual(day.notes, "SICK")

    def test_official_holiday_applies_only_without_override(self) -> None:
        holidays = {
            date(2025, 1, 6): HolidayEntry(name="Founders Day"),
            date(2025, 1, 7): HolidayEntry(name="Founders Day"),
            date(2025, 1, 8): HolidayEntry(name="Observance", is_official=False),
        }
        calendar = build_month_calendar(
            employee_id=1,
            year=2025,
            month=1,
            group=RotationGroup.A,
            holidays=holidays,
            overrides={date(2025, 1, 7): OverrideEntry(shift_type=ShiftType.OVERTIME)},
        )

        self.assertEqual(_day(calendar, date(2025, 1, 6)).shift_type, ShiftType.PUBLIC)
        self.assertEqual(_day(calendar, date(2025, 1, 7)).shift_type, ShiftType.OVERTIME)
        unofficial = _day(calendar, date(2025, 1, 8))
        self.assertEqual(unofficial.shift_type, unofficial.rotation_shift)
        self.assertIsNotNone(unofficial.holiday)

    def test_group_change_switches_rotation_from_effective_date(self) -> None:
        calendar = build_month_calendar(
            employee_id=1,
            year=2025,
            month=1,
            group=RotationGroup.A,
            group_changes={date(2025, 1, 20): RotationGroup.B},
        )

        before = _day(calendar, date(2025, 1, 19))
        after = _day(calendar, date(2025, 1, 20))
        self.assertFalse(before.has_group_change)
        self.assertEqual(before.rotation_shift, ShiftType.OFF)
        self.assertTrue(after.has_group_change)
        self.assertEqual(after.rotation_shift, ShiftType.NIGHT)

    def test_regular_schedule_follows_weekdays(self) -> None:
        calendar = build_month_calendar(employee_id=2, year=2025, month=1, group=None)

        self.assertIsNone(calendar.group)
        self.assertEqual(_day(calendar, date(2025, 1, 2)).shift_type, ShiftType.DAY)
        self.assertEqual(_day(calendar, date(2025, 1, 3)).shift_type, ShiftType.OFF)
        self.assertEqual(_day(calendar, date(2025, 1, 5)).shift_type, ShiftType.DAY)
        self.assertIsNone(_day(calendar, date(2025, 1, 5)).shift_number)

    def test_lookup_shift_includes_hours(self) -> None:
        response = lookup_shift(date(2025, 1, 6), RotationGroup.A)
        self.assertEqual(response.cycle_day, 3)
        self.assertEqual(response.shift_type, ShiftType.NIGHT)
        self.assertEqual(response.shift_number, 1)
        self.assertEqual(response.start_time.hour, 19)  # type: ignore[union-attr]


if __name__ == "__main__":
    unittest.main()
