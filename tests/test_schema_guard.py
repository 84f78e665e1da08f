from __future__ import annotations

import unittest
from unittest.mock import patch

from sqlalchemy.exc import NoSuchTableError

from app.services.schema_guard import REQUIRED_ENUM_VALUES, REQUIRED_TABLE_COLUMNS, verify_runtime_schema


class _FakeResult:
    def __init__(self, value):
        self._value = value

    def scalar(self):  # type: ignore[no-untyped-def]
        return self._value


class _FakeConnection:
    def __init__(self, version_value):
        self._version_value = version_value

    def __enter__(self):  # type: ignore[no-untyped-def]
        return self

    def __exit__(self, exc_type, exc, tb):  # type: ignore[no-untyped-def]
        return False

    def execute(self, _statement):  # type: ignore[no-untyped-def]
        return _FakeResult(self._version_value)


class _FakeEngine:
    def __init__(self, version_value):
        self._version_value = version_value

    def connect(self):  # type: ignore[no-untyped-def]
        return _FakeConnection(self._version_value)


class _FakeInspector:
    def __init__(self, *, columns_by_table: dict[str, set[str]], enums: list[dict[str, object]]):
        self._columns_by_table = columns_by_table
        self._enums = enums

    def get_columns(self, table_name: str):  # type: ignore[no-untyped-def]
        if table_name not in self._columns_by_table:
            raise NoSuchTableError(table_name)
        return [{"name": item} for item in self._columns_by_table[table_name]]

    def get_enums(self):  # type: ignore[no-untyped-def]
        return self._enums


def _complete_columns() -> dict[str, set[str]]:
    return {table: set(columns) | {"created_at"} for table, columns in REQUIRED_TABLE_COLUMNS.items()}


def _complete_enums() -> list[dict[str, object]]:
    return [{"name": name, "labels": sorted(values)} for name, values in REQUIRED_ENUM_VALUES.items()]


class SchemaGuardTests(unittest.TestCase):
    def test_verify_runtime_schema_ok_when_required_columns_exist(self) -> None:
        fake_inspector = _FakeInspector(columns_by_table=_complete_columns(), enums=_complete_enums())

        with patch("app.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(_FakeEngine("0001_initial"))  # type: ignore[arg-type]

        self.assertTrue(result.ok)
        self.assertEqual(result.issues, [])
        self.assertEqual(result.warnings, [])
        self.assertEqual(result.to_dict()["issue_count"], 0)

    def test_verify_runtime_schema_reports_drift(self) -> None:
        columns = _complete_columns()
        columns["employees"] = {"id", "full_name"}
        del columns["salary_records"]
        enums = [
            {"name": "shift_type", "labels": ["Day", "Night", "Off", "Leave", "Public", "Overtime"]},
            {"name": "leave_status", "labels": ["APPROVED", "PENDING", "REJECTED", "CANCELLED"]},
        ]
        fake_inspector = _FakeInspector(columns_by_table=columns, enums=enums)

        with patch("app.services.schema_guard.inspect", return_value=fake_inspector):
            result = verify_runtime_schema(_FakeEngine(""))  # type: ignore[arg-type]

        self.assertFalse(result.ok)
        self.assertIn(
            "MISSING_COLUMNS:employees:annual_leave_balance,rotation_group,schedule_type",
            result.issues,
        )
        self.assertIn("TABLE_UNREADABLE:salary_records:NoSuchTableError", result.issues)
        self.assertIn("MISSING_ENUM_VALUES:shift_type:InLieu", result.issues)
        self.assertIn("ENUM_NOT_FOUND:override_source", result.warnings)
        self.assertIn("ALEMBIC_VERSION_EMPTY", result.issues)


if __name__ == "__main__":
    unittest.main()
