from __future__ import annotations

import logging
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Employee, InLieuRecord, OverrideSource, ShiftOverride
from app.services.leave_balance import in_lieu_credit
from app.services.rotation import ShiftType, iter_days
from app.services.shift_overrides import existing_override_days

logger = logging.getLogger("app.in_lieu")


def create_in_lieu_record(
    db: Session,
    *,
    employee_id: int,
    start_date: date,
    end_date: date,
    created_by: str,
) -> InLieuRecord:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must be greater than or equal to start_date",
        )

    days_count = (end_date - start_date).days + 1
    leave_days_added = in_lieu_credit(days_count)

    record = InLieuRecord(
        employee_id=employee_id,
        start_date=start_date,
        end_date=end_date,
        days_count=days_count,
        leave_days_added=leave_days_added,
    )
    db.add(record)
    employee.annual_leave_balance = (employee.annual_leave_balance or 0.0) + leave_days_added

    taken_days = existing_override_days(db, employee_id=employee_id, start_date=start_date, end_date=end_date)
    for day_date in iter_days(start_date, end_date):
        if day_date in taken_days:
            continue
        db.add(
            ShiftOverride(
                employee_id=employee_id,
                day_date=day_date,
                shift_type=ShiftType.IN_LIEU,
                source=OverrideSource.MANUAL,
                note="In lieu",
                created_by=created_by,
            )
        )

    db.commit()
    db.refresh(record)
    logger.info(
        "in_lieu_record_created",
        extra={
            "employee_id": employee_id,
            "days_count": days_count,
            "leave_days_added": leave_days_added,
            "annual_leave_balance": employee.annual_leave_balance,
        },
    )
    return record


def list_in_lieu_records(db: Session, *, employee_id: int | None = None) -> list[InLieuRecord]:
    stmt = select(InLieuRecord).order_by(InLieuRecord.created_at.desc(), InLieuRecord.id.desc())
    if employee_id is not None:
        stmt = stmt.where(InLieuRecord.employee_id == employee_id)
    return list(db.scalars(stmt).all())


def _days_covered_by_other_records(db: Session, record: InLieuRecord) -> set[date]:
    covered: set[date] = set()
    others = db.scalars(
        select(InLieuRecord).where(
            InLieuRecord.employee_id == record.employee_id,
            InLieuRecord.start_date <= record.end_date,
            InLieuRecord.end_date >= record.start_date,
        )
    ).all()
    for other in others:
        if other.id == record.id:
            continue
        covered.update(iter_days(max(other.start_date, record.start_date), min(other.end_date, record.end_date)))
    return covered


def delete_in_lieu_record(db: Session, record_id: int) -> InLieuRecord:
    record = db.get(InLieuRecord, record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="In-lieu record not found")

    employee = db.get(Employee, record.employee_id)
    if employee is not None:
        employee.annual_leave_balance = max(0.0, (employee.annual_leave_balance or 0.0) - record.leave_days_added)

    # days owned by another in-lieu record keep their override
    covered = _days_covered_by_other_records(db, record)
    overrides = db.scalars(
        select(ShiftOverride).where(
            ShiftOverride.employee_id == record.employee_id,
            ShiftOverride.day_date >= record.start_date,
            ShiftOverride.day_date <= record.end_date,
            ShiftOverride.shift_type == ShiftType.IN_LIEU,
        )
    ).all()
    removed = 0
    for override in overrides:
        if override.day_date in covered:
            continue
        db.delete(override)
        removed += 1

    db.delete(record)
    db.commit()
    logger.info(
        "in_lieu_record_deleted",
        extra={
            "employee_id": record.employee_id,
            "removed_overrides": removed,
            "kept_overrides": len(overrides) - removed,
        },
    )
    return record
