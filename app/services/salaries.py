from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timezone

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import Employee, OvertimeEntry, SalaryRecord
from app.schemas import SalaryCalculationRequest, SalaryUpsertRequest
from app.services.salary_calc import SalaryInput, SalaryResult, calculate

logger = logging.getLogger("app.salaries")


def month_bounds(month: date) -> tuple[date, date]:
    start = month.replace(day=1)
    if start.month == 12:
        return start, date(start.year + 1, 1, 1)
    return start, date(start.year, start.month + 1, 1)


def to_salary_input(payload: SalaryCalculationRequest) -> SalaryInput:
    return SalaryInput(
        basic_salary=payload.basic_salary,
        exchange_rate=payload.exchange_rate,
        cost_of_living=payload.cost_of_living,
        shift_allowance=payload.shift_allowance,
        other_earnings=payload.other_earnings,
        schedule_overtime_hours=payload.schedule_overtime_hours,
        manual_overtime_hours=payload.manual_overtime_hours,
        deduction=payload.deduction,
    )


def _record_input(record: SalaryRecord) -> SalaryInput:
    return SalaryInput(
        basic_salary=record.basic_salary,
        exchange_rate=record.exchange_rate,
        cost_of_living=record.cost_of_living,
        shift_allowance=record.shift_allowance,
        other_earnings=record.other_earnings,
        schedule_overtime_hours=record.schedule_overtime_hours,
        manual_overtime_hours=record.manual_overtime_hours,
        deduction=record.deduction,
    )


def _store_result(record: SalaryRecord, result: SalaryResult) -> None:
    record.overtime_pay = result.overtime_pay
    record.rate_ratio = result.rate_ratio
    record.gross_base = result.gross_base
    record.total_salary = result.total_salary
    record.calculated_at = datetime.now(timezone.utc)


def _ensure_employee_exists(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    return employee


def schedule_overtime_hours(db: Session, *, employee_id: int, month: date) -> float:
    start, end = month_bounds(month)
    total = db.scalar(
        select(func.coalesce(func.sum(OvertimeEntry.hours), 0.0)).where(
            OvertimeEntry.employee_id == employee_id,
            OvertimeEntry.day_date >= start,
            OvertimeEntry.day_date < end,
        )
    )
    return float(total or 0.0)


def get_salary_record(db: Session, *, employee_id: int, month: date) -> SalaryRecord | None:
    return db.scalar(
        select(SalaryRecord).where(
            SalaryRecord.employee_id == employee_id,
            SalaryRecord.month == month.replace(day=1),
        )
    )


def upsert_salary_record(
    db: Session,
    *,
    employee_id: int,
    payload: SalaryUpsertRequest,
) -> tuple[SalaryRecord, SalaryResult]:
    _ensure_employee_exists(db, employee_id)
    month = payload.month.replace(day=1)

    salary_input = to_salary_input(payload)
    if payload.schedule_overtime_hours is None:
        salary_input = replace(
            salary_input,
            schedule_overtime_hours=schedule_overtime_hours(db, employee_id=employee_id, month=month),
        )
    # Raises before anything is written.
    result = calculate(salary_input)

    values = {
        "basic_salary": float(salary_input.basic_salary),  # type: ignore[arg-type]
        "exchange_rate": float(salary_input.exchange_rate),  # type: ignore[arg-type]
        "cost_of_living": salary_input.cost_of_living or 0.0,
        "shift_allowance": salary_input.shift_allowance or 0.0,
        "other_earnings": salary_input.other_earnings or 0.0,
        "schedule_overtime_hours": salary_input.schedule_overtime_hours or 0.0,
        "manual_overtime_hours": salary_input.manual_overtime_hours or 0.0,
        "deduction": salary_input.deduction or 0.0,
    }

    record = get_salary_record(db, employee_id=employee_id, month=month)
    if record is None:
        record = SalaryRecord(employee_id=employee_id, month=month, **values)
        _store_result(record, result)
        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            record = get_salary_record(db, employee_id=employee_id, month=month)
            if record is None:
                raise
            for key, value in values.items():
                setattr(record, key, value)
            _store_result(record, result)
            db.commit()
    else:
        for key, value in values.items():
            setattr(record, key, value)
        _store_result(record, result)
        db.commit()

    db.refresh(record)
    logger.info(
        "salary_record_calculated",
        extra={
            "employee_id": employee_id,
            "month": month.isoformat(),
            "total_overtime_hours": result.total_overtime_hours,
            "total_salary": result.total_salary,
        },
    )
    return record, result


def recalculate_salary_record(db: Session, *, employee_id: int, month: date) -> SalaryRecord | None:
    """Refresh schedule overtime on a stored record; records that do not exist are left alone."""
    record = get_salary_record(db, employee_id=employee_id, month=month)
    if record is None:
        logger.info(
            "salary_recalculation_skipped",
            extra={"employee_id": employee_id, "month": month.replace(day=1).isoformat()},
        )
        return None

    record.schedule_overtime_hours = schedule_overtime_hours(db, employee_id=employee_id, month=month)
    result = calculate(_record_input(record))
    _store_result(record, result)
    db.commit()
    db.refresh(record)
    return record


def list_salary_records(db: Session, *, employee_id: int, year: int | None = None) -> list[SalaryRecord]:
    _ensure_employee_exists(db, employee_id)
    stmt = select(SalaryRecord).where(SalaryRecord.employee_id == employee_id)
    if year is not None:
        stmt = stmt.where(
            SalaryRecord.month >= date(year, 1, 1),
            SalaryRecord.month < date(year + 1, 1, 1),
        )
    stmt = stmt.order_by(SalaryRecord.month.asc(), SalaryRecord.id.asc())
    return list(db.scalars(stmt).all())


def yearly_salary_summary(db: Session, *, employee_id: int, year: int) -> dict[str, float | int]:
    records = [record for record in list_salary_records(db, employee_id=employee_id, year=year) if record.total_salary is not None]
    months = len(records)
    total_salary = sum(record.total_salary or 0.0 for record in records)
    return {
        "employee_id": employee_id,
        "year": year,
        "months": months,
        "total_overtime_hours": sum(record.schedule_overtime_hours + record.manual_overtime_hours for record in records),
        "total_overtime_pay": sum(record.overtime_pay or 0.0 for record in records),
        "total_gross_base": sum(record.gross_base or 0.0 for record in records),
        "total_salary": total_salary,
        "average_salary": total_salary / months if months else 0.0,
    }
