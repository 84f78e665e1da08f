from __future__ import annotations

import unittest
from datetime import date
from unittest.mock import patch

from fastapi import HTTPException

from app.models import Employee, InLieuRecord, OverrideSource, OvertimeEntry, ShiftOverride
from app.schemas import ShiftOverrideUpsertRequest
from app.services.rotation import ShiftType
from app.services.shift_overrides import list_shift_overrides, upsert_shift_override


class _FakeSavepoint:
    def __enter__(self):  # type: ignore[no-untyped-def]
        return self

    def __exit__(self, exc_type, exc, tb):  # type: ignore[no-untyped-def]
        return False


class _FakeDB:
    def __init__(self, employee: Employee | None, scalar_results: list[object] | None = None) -> None:
        self.employee = employee
        self.scalar_results = list(scalar_results or [])
        self.added: list[object] = []
        self.deleted: list[object] = []
        self.commits = 0

    def get(self, _model, _identifier):  # type: ignore[no-untyped-def]
        return self.employee

    def scalar(self, _statement):  # type: ignore[no-untyped-def]
        if self.scalar_results:
            return self.scalar_results.pop(0)
        return None

    def begin_nested(self) -> _FakeSavepoint:
        return _FakeSavepoint()

    def add(self, obj) -> None:  # type: ignore[no-untyped-def]
        self.added.append(obj)

    def delete(self, obj) -> None:  # type: ignore[no-untyped-def]
        self.deleted.append(obj)

    def commit(self) -> None:
        self.commits += 1

    def refresh(self, _obj) -> None:  # type: ignore[no-untyped-def]
        return None


def _employee(balance: float = 0.0) -> Employee:
    return Employee(id=7, full_name="Sam Carter", annual_leave_balance=balance, years_of_service=3)


class ShiftOverrideServiceTests(unittest.TestCase):
    @patch("app.services.shift_overrides.recalculate_salary_record")
    def test_overtime_day_books_overtime_hours_and_recalculates(self, mock_recalculate) -> None:
        db = _FakeDB(_employee())
        payload = ShiftOverrideUpsertRequest(day_date=date(2025, 4, 9), shift_type=ShiftType.OVERTIME)

        override = upsert_shift_override(db, employee_id=7, payload=payload, created_by="7")  # type: ignore[arg-type]

        self.assertIsInstance(override, ShiftOverride)
        self.assertEqual(override.shift_type, ShiftType.OVERTIME)
        self.assertEqual(override.source, OverrideSource.MANUAL)
        entries = [item for item in db.added if isinstance(item, OvertimeEntry)]
        self.assertEqual(len(entries), 1)
        self.assertEqual(entries[0].hours, 24.0)
        self.assertEqual(entries[0].source, "schedule")
        mock_recalculate.assert_called_once_with(db, employee_id=7, month=date(2025, 4, 9))

    @patch("app.services.shift_overrides.recalculate_salary_record")
    def test_leaving_overtime_removes_overtime_entry(self, mock_recalculate) -> None:
        existing = ShiftOverride(
            id=3,
            employee_id=7,
            day_date=date(2025, 4, 9),
            shift_type=ShiftType.OVERTIME,
            source=OverrideSource.MANUAL,
        )
        entry = OvertimeEntry(id=5, employee_id=7, day_date=date(2025, 4, 9), hours=24.0)
        db = _FakeDB(_employee(), scalar_results=[existing, entry])
        payload = ShiftOverrideUpsertRequest(day_date=date(2025, 4, 9), shift_type=ShiftType.OFF)

        override = upsert_shift_override(db, employee_id=7, payload=payload, created_by="7")  # type: ignore[arg-type]

        self.assertIs(override, existing)
        self.assertEqual(override.shift_type, ShiftType.OFF)
        self.assertEqual(db.deleted, [entry])
        mock_recalculate.assert_called_once()

    @patch("app.services.shift_overrides.recalculate_salary_record")
    def test_in_lieu_day_credits_leave_balance(self, mock_recalculate) -> None:
        employee = _employee(balance=5.0)
        db = _FakeDB(employee)
        payload = ShiftOverrideUpsertRequest(day_date=date(2025, 4, 10), shift_type=ShiftType.IN_LIEU)

        upsert_shift_override(db, employee_id=7, payload=payload, created_by="7")  # type: ignore[arg-type]

        records = [item for item in db.added if isinstance(item, InLieuRecord)]
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0].leave_days_added, 0.67)
        self.assertAlmostEqual(employee.annual_leave_balance, 5.67)
        mock_recalculate.assert_not_called()

    def test_missing_employee_is_404(self) -> None:
        db = _FakeDB(None)
        payload = ShiftOverrideUpsertRequest(day_date=date(2025, 4, 10), shift_type=ShiftType.DAY)
        with self.assertRaises(HTTPException) as ctx:
            upsert_shift_override(db, employee_id=99, payload=payload, created_by="1")  # type: ignore[arg-type]
        self.assertEqual(ctx.exception.status_code, 404)

    def test_list_rejects_inverted_range(self) -> None:
        db = _FakeDB(_employee())
        with self.assertRaises(HTTPException) as ctx:
            list_shift_overrides(
                db,  # type: ignore[arg-type]
                employee_id=7,
                start_date=date(2025, 4, 30),
                end_date=date(2025, 4, 1),
            )
        self.assertEqual(ctx.exception.status_code, 422)


if __name__ == "__main__":
    unittest.main()
