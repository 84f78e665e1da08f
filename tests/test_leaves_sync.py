from __future__ import annotations

import unittest
from datetime import date

from sqlalchemy.exc import IntegrityError

from app.models import Leave, LeaveStatus, LeaveType, OverrideSource, ShiftOverride
from app.services.leaves import leave_day_count, sync_leave_to_overrides
from app.services.rotation import ShiftType


class _FakeScalarResult:
    def __init__(self, values):  # type: ignore[no-untyped-def]
        self._values = values

    def all(self):  # type: ignore[no-untyped-def]
        return list(self._values)


class _FakeSavepoint:
    def __enter__(self):  # type: ignore[no-untyped-def]
        return self

    def __exit__(self, exc_type, exc, tb):  # type: ignore[no-untyped-def]
        return False


class _FakeDB:
    def __init__(self, *, failing_days: set[date] | None = None) -> None:
        self.overrides: list[ShiftOverride] = []
        self.failing_days = failing_days or set()
        self.commits = 0

    def scalars(self, _statement):  # type: ignore[no-untyped-def]
        return _FakeScalarResult([item.day_date for item in self.overrides])

    def begin_nested(self) -> _FakeSavepoint:
        return _FakeSavepoint()

    def add(self, obj) -> None:  # type: ignore[no-untyped-def]
        if obj.day_date in self.failing_days:
            raise IntegrityError("INSERT INTO shift_overrides", {}, Exception("duplicate key"))
        self.overrides.append(obj)

    def commit(self) -> None:
        self.commits += 1


def _leave(status: LeaveStatus = LeaveStatus.APPROVED) -> Leave:
    return Leave(
        id=11,
        employee_id=7,
        start_date=date(2025, 3, 10),
        end_date=date(2025, 3, 13),
        type=LeaveType.ANNUAL,
        status=status,
        note=None,
    )


class LeaveSyncTests(unittest.TestCase):
    def test_creates_one_leave_override_per_day(self) -> None:
        db = _FakeDB()
        result = sync_leave_to_overrides(db, _leave())  # type: ignore[arg-type]

        self.assertEqual(len(result.created_days), 4)
        self.assertEqual([item.day_date for item in db.overrides], result.created_days)
        for item in db.overrides:
            self.assertEqual(item.shift_type, ShiftType.LEAVE)
            self.assertEqual(item.source, OverrideSource.LEAVE_SYNC)
            self.assertEqual(item.note, "ANNUAL")
        self.assertEqual(db.commits, 1)

    def test_second_run_adds_nothing(self) -> None:
        db = _FakeDB()
        leave = _leave()
        sync_leave_to_overrides(db, leave)  # type: ignore[arg-type]
        first_rows = [(item.employee_id, item.day_date) for item in db.overrides]

        second = sync_leave_to_overrides(db, leave)  # type: ignore[arg-type]

        self.assertEqual(second.created_days, [])
        self.assertEqual(len(second.skipped_days), 4)
        self.assertEqual([(item.employee_id, item.day_date) for item in db.overrides], first_rows)

    def test_existing_manual_override_is_kept(self) -> None:
        db = _FakeDB()
        db.overrides.append(
            ShiftOverride(employee_id=7, day_date=date(2025, 3, 11), shift_type=ShiftType.OVERTIME)
        )
        result = sync_leave_to_overrides(db, _leave())  # type: ignore[arg-type]

        self.assertEqual(result.skipped_days, [date(2025, 3, 11)])
        self.assertEqual(len(result.created_days), 3)
        self.assertEqual(db.overrides[0].shift_type, ShiftType.OVERTIME)

    def test_failed_day_does_not_stop_the_range(self) -> None:
        db = _FakeDB(failing_days={date(2025, 3, 12)})
        with self.assertLogs("app.leaves", level="ERROR"):
            result = sync_leave_to_overrides(db, _leave())  # type: ignore[arg-type]

        self.assertEqual(result.failed_days, [date(2025, 3, 12)])
        self.assertEqual(result.created_days, [date(2025, 3, 10), date(2025, 3, 11), date(2025, 3, 13)])

    def test_pending_leave_is_synced(self) -> None:
        db = _FakeDB()
        result = sync_leave_to_overrides(db, _leave(LeaveStatus.PENDING))  # type: ignore[arg-type]
        self.assertEqual(len(result.created_days), 4)

    def test_rejected_leave_is_not_synced(self) -> None:
        db = _FakeDB()
        result = sync_leave_to_overrides(db, _leave(LeaveStatus.REJECTED))  # type: ignore[arg-type]

        self.assertEqual(result.created_days, [])
        self.assertEqual(db.overrides, [])
        self.assertEqual(db.commits, 0)

    def test_leave_day_count_is_inclusive(self) -> None:
        self.assertEqual(leave_day_count(date(2025, 3, 10), date(2025, 3, 10)), 1)
        self.assertEqual(leave_day_count(date(2025, 3, 10), date(2025, 3, 13)), 4)


if __name__ == "__main__":
    unittest.main()
