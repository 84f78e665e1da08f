from __future__ import annotations

import logging
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models import Employee, InLieuRecord, OverrideSource, OvertimeEntry, OvertimeType, ShiftOverride
from app.schemas import ShiftOverrideUpsertRequest
from app.services.leave_balance import in_lieu_credit
from app.services.rotation import ShiftType
from app.services.salaries import recalculate_salary_record

logger = logging.getLogger("app.shift_overrides")

OVERTIME_SHIFT_HOURS = 24.0


def _ensure_employee_exists(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    return employee


def get_shift_override(db: Session, *, employee_id: int, day_date: date) -> ShiftOverride | None:
    return db.scalar(
        select(ShiftOverride).where(
            ShiftOverride.employee_id == employee_id,
            ShiftOverride.day_date == day_date,
        )
    )


def existing_override_days(db: Session, *, employee_id: int, start_date: date, end_date: date) -> set[date]:
    return set(
        db.scalars(
            select(ShiftOverride.day_date).where(
                ShiftOverride.employee_id == employee_id,
                ShiftOverride.day_date >= start_date,
                ShiftOverride.day_date <= end_date,
            )
        ).all()
    )


def _sync_overtime_entry(db: Session, *, employee_id: int, day_date: date, shift_type: ShiftType) -> bool:
    entry = db.scalar(
        select(OvertimeEntry).where(
            OvertimeEntry.employee_id == employee_id,
            OvertimeEntry.day_date == day_date,
        )
    )
    if shift_type == ShiftType.OVERTIME:
        if entry is None:
            db.add(
                OvertimeEntry(
                    employee_id=employee_id,
                    day_date=day_date,
                    hours=OVERTIME_SHIFT_HOURS,
                    type=OvertimeType.DAY,
                    source="schedule",
                )
            )
        else:
            entry.hours = OVERTIME_SHIFT_HOURS
        return True
    if entry is not None:
        db.delete(entry)
        return True
    return False


def _sync_in_lieu_day(
    db: Session,
    *,
    employee: Employee,
    day_date: date,
    previous_type: ShiftType | None,
    shift_type: ShiftType,
) -> None:
    if shift_type == ShiftType.IN_LIEU and previous_type != ShiftType.IN_LIEU:
        credit = in_lieu_credit(1)
        db.add(
            InLieuRecord(
                employee_id=employee.id,
                start_date=day_date,
                end_date=day_date,
                days_count=1,
                leave_days_added=credit,
            )
        )
        employee.annual_leave_balance = (employee.annual_leave_balance or 0.0) + credit
    elif previous_type == ShiftType.IN_LIEU and shift_type != ShiftType.IN_LIEU:
        record = db.scalar(
            select(InLieuRecord).where(
                InLieuRecord.employee_id == employee.id,
                InLieuRecord.start_date == day_date,
                InLieuRecord.end_date == day_date,
            )
        )
        if record is None:
            return
        employee.annual_leave_balance = max(0.0, (employee.annual_leave_balance or 0.0) - record.leave_days_added)
        db.delete(record)


def upsert_shift_override(
    db: Session,
    *,
    employee_id: int,
    payload: ShiftOverrideUpsertRequest,
    created_by: str,
) -> ShiftOverride:
    employee = _ensure_employee_exists(db, employee_id)

    override = get_shift_override(db, employee_id=employee_id, day_date=payload.day_date)
    previous_type = override.shift_type if override is not None else None

    if override is None:
        override = ShiftOverride(
            employee_id=employee_id,
            day_date=payload.day_date,
            shift_type=payload.shift_type,
            source=payload.source,
            note=payload.note,
            created_by=created_by,
        )
        try:
            with db.begin_nested():
                db.add(override)
        except IntegrityError:
            # A concurrent writer created the row first; update that one.
            override = get_shift_override(db, employee_id=employee_id, day_date=payload.day_date)
            if override is None:
                raise
            previous_type = override.shift_type

    override.shift_type = payload.shift_type
    override.source = payload.source
    override.note = payload.note
    override.created_by = created_by

    overtime_changed = _sync_overtime_entry(
        db,
        employee_id=employee_id,
        day_date=payload.day_date,
        shift_type=payload.shift_type,
    )
    _sync_in_lieu_day(
        db,
        employee=employee,
        day_date=payload.day_date,
        previous_type=previous_type,
        shift_type=payload.shift_type,
    )

    db.commit()
    db.refresh(override)

    if overtime_changed:
        recalculate_salary_record(db, employee_id=employee_id, month=payload.day_date)

    logger.info(
        "shift_override_upserted",
        extra={
            "employee_id": employee_id,
            "day_date": payload.day_date.isoformat(),
            "shift_type": payload.shift_type.value,
            "previous_type": previous_type.value if previous_type is not None else None,
            "source": payload.source.value,
        },
    )
    return override


def list_shift_overrides(
    db: Session,
    *,
    employee_id: int,
    start_date: date,
    end_date: date,
) -> list[ShiftOverride]:
    _ensure_employee_exists(db, employee_id)
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must be greater than or equal to start_date",
        )

    return list(
        db.scalars(
            select(ShiftOverride)
            .where(
                ShiftOverride.employee_id == employee_id,
                ShiftOverride.day_date >= start_date,
                ShiftOverride.day_date <= end_date,
            )
            .order_by(ShiftOverride.day_date.asc(), ShiftOverride.id.asc())
        ).all()
    )


def delete_shift_override(db: Session, override_id: int) -> ShiftOverride:
    override = db.get(ShiftOverride, override_id)
    if override is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shift override not found")

    employee = _ensure_employee_exists(db, override.employee_id)
    overtime_changed = override.shift_type == ShiftType.OVERTIME
    if overtime_changed:
        db.execute(
            delete(OvertimeEntry).where(
                OvertimeEntry.employee_id == override.employee_id,
                OvertimeEntry.day_date == override.day_date,
            )
        )
    _sync_in_lieu_day(
        db,
        employee=employee,
        day_date=override.day_date,
        previous_type=override.shift_type,
        shift_type=ShiftType.OFF,
    )
    db.delete(override)
    db.commit()

    if overtime_changed:
        recalculate_salary_record(db, employee_id=override.employee_id, month=override.day_date)
    return override


def delete_leave_sync_overrides(db: Session, *, employee_id: int, start_date: date, end_date: date) -> int:
    result = db.execute(
        delete(ShiftOverride).where(
            ShiftOverride.employee_id == employee_id,
            ShiftOverride.day_date >= start_date,
            ShiftOverride.day_date <= end_date,
            ShiftOverride.source == OverrideSource.LEAVE_SYNC,
        )
    )
    return int(result.rowcount or 0)
