from __future__ import annotations

import logging
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import ACTIVE_LEAVE_STATUSES, Employee, Leave, LeaveStatus, OverrideSource, ShiftOverride
from app.schemas import LeaveCreateRequest
from app.services.rotation import ShiftType, iter_days
from app.services.shift_overrides import delete_leave_sync_overrides, existing_override_days

logger = logging.getLogger("app.leaves")


@dataclass
class LeaveSyncResult:
    leave_id: int
    created_days: list[date] = field(default_factory=list)
    skipped_days: list[date] = field(default_factory=list)
    failed_days: list[date] = field(default_factory=list)


def leave_day_count(start_date: date, end_date: date) -> int:
    return (end_date - start_date).days + 1


def is_active_leave(leave: Leave) -> bool:
    return leave.status in ACTIVE_LEAVE_STATUSES


def sync_leave_to_overrides(db: Session, leave: Leave) -> LeaveSyncResult:
    """Create a Leave override for every day of an active leave that has none yet.

    Days that already carry an override are skipped, so running this twice is
    harmless. Each day is written in its own savepoint and a failed day does
    not stop the rest of the range.
    """
    result = LeaveSyncResult(leave_id=leave.id)
    if not is_active_leave(leave):
        return result

    existing_days = existing_override_days(
        db,
        employee_id=leave.employee_id,
        start_date=leave.start_date,
        end_date=leave.end_date,
    )
    for day_date in iter_days(leave.start_date, leave.end_date):
        if day_date in existing_days:
            result.skipped_days.append(day_date)
            continue
        try:
            with db.begin_nested():
                db.add(
                    ShiftOverride(
                        employee_id=leave.employee_id,
                        day_date=day_date,
                        shift_type=ShiftType.LEAVE,
                        source=OverrideSource.LEAVE_SYNC,
                        note=leave.note or leave.type.value,
                        created_by="leave_sync",
                    )
                )
        except SQLAlchemyError:
            logger.exception(
                "leave_sync_day_failed",
                extra={
                    "leave_id": leave.id,
                    "employee_id": leave.employee_id,
                    "day_date": day_date.isoformat(),
                },
            )
            result.failed_days.append(day_date)
            continue
        result.created_days.append(day_date)

    db.commit()
    logger.info(
        "leave_sync_complete",
        extra={
            "leave_id": leave.id,
            "employee_id": leave.employee_id,
            "created": len(result.created_days),
            "skipped": len(result.skipped_days),
            "failed": len(result.failed_days),
        },
    )
    return result


def _resync_overlapping_leaves(db: Session, leave: Leave) -> int:
    restored = 0
    overlapping = list_active_leaves_in_range(
        db,
        employee_id=leave.employee_id,
        start_date=leave.start_date,
        end_date=leave.end_date,
    )
    for other in overlapping:
        if other.id == leave.id:
            continue
        restored += len(sync_leave_to_overrides(db, other).created_days)
    return restored


def remove_leave_overrides(db: Session, leave: Leave) -> int:
    """Drop the leave_sync overrides in the leave's range.

    Other active leaves that overlap the range are synced again afterwards, so
    their days keep a Leave override.
    """
    removed = delete_leave_sync_overrides(
        db,
        employee_id=leave.employee_id,
        start_date=leave.start_date,
        end_date=leave.end_date,
    )
    db.commit()
    restored = _resync_overlapping_leaves(db, leave)
    logger.info(
        "leave_overrides_removed",
        extra={
            "leave_id": leave.id,
            "employee_id": leave.employee_id,
            "removed": removed,
            "restored": restored,
        },
    )
    return removed


def get_leave(db: Session, leave_id: int) -> Leave:
    leave = db.get(Leave, leave_id)
    if leave is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave not found")
    return leave


def create_leave(db: Session, payload: LeaveCreateRequest) -> tuple[Leave, LeaveSyncResult]:
    employee = db.get(Employee, payload.employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    if payload.end_date < payload.start_date:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end_date must be greater than or equal to start_date",
        )

    days_taken = payload.days_taken
    if days_taken is None:
        days_taken = float(leave_day_count(payload.start_date, payload.end_date))

    leave = Leave(
        employee_id=payload.employee_id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        type=payload.type,
        status=payload.status,
        days_taken=days_taken,
        note=payload.note,
    )
    db.add(leave)
    db.commit()
    db.refresh(leave)

    return leave, sync_leave_to_overrides(db, leave)


def update_leave_status(
    db: Session,
    leave_id: int,
    new_status: LeaveStatus,
) -> tuple[Leave, LeaveSyncResult | None, int]:
    leave = get_leave(db, leave_id)
    was_active = is_active_leave(leave)
    leave.status = new_status
    db.commit()
    db.refresh(leave)

    if is_active_leave(leave):
        return leave, sync_leave_to_overrides(db, leave), 0
    removed = remove_leave_overrides(db, leave) if was_active else 0
    return leave, None, removed


def list_leaves(
    db: Session,
    *,
    employee_id: int | None,
    year: int | None,
    month: int | None,
) -> list[Leave]:
    if (year is None) != (month is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="year and month must be provided together",
        )

    stmt = select(Leave).order_by(Leave.start_date.asc(), Leave.id.asc())
    if employee_id is not None:
        stmt = stmt.where(Leave.employee_id == employee_id)

    if year is not None and month is not None:
        days_in_month = monthrange(year, month)[1]
        start = date(year, month, 1)
        end = date(year, month, days_in_month)
        stmt = stmt.where(
            Leave.start_date <= end,
            Leave.end_date >= start,
        )

    return list(db.scalars(stmt).all())


def list_active_leaves_in_range(db: Session, *, employee_id: int, start_date: date, end_date: date) -> list[Leave]:
    return list(
        db.scalars(
            select(Leave)
            .where(
                Leave.employee_id == employee_id,
                Leave.status.in_(list(ACTIVE_LEAVE_STATUSES)),
                Leave.start_date <= end_date,
                Leave.end_date >= start_date,
            )
            .order_by(Leave.start_date.asc(), Leave.id.asc())
        ).all()
    )


def delete_leave(db: Session, leave_id: int) -> int:
    leave = get_leave(db, leave_id)
    removed = remove_leave_overrides(db, leave)
    db.delete(leave)
    db.commit()
    return removed
