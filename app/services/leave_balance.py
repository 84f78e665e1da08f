from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models import Employee, InLieuRecord, Leave, LeaveAllocation, LeaveStatus, LeaveType

SENIOR_YEARS_OF_SERVICE = 10
SENIOR_ANNUAL_DAYS = 24.67
STANDARD_ANNUAL_DAYS = 18.67
IN_LIEU_DAY_CREDIT = 0.667


@dataclass(frozen=True)
class LeaveBalance:
    base_leave_balance: float
    in_lieu_balance: float
    leave_taken: float
    remaining_balance: float


def in_lieu_credit(days: int) -> float:
    return round(days * IN_LIEU_DAY_CREDIT, 2)


def base_annual_allowance(years_of_service: int) -> float:
    if years_of_service >= SENIOR_YEARS_OF_SERVICE:
        return SENIOR_ANNUAL_DAYS
    return STANDARD_ANNUAL_DAYS


def calculate_leave_balance(
    *,
    years_of_service: int,
    in_lieu_days: float,
    leave_taken: float,
    allocated_days: float | None = None,
) -> LeaveBalance:
    base = allocated_days if allocated_days else base_annual_allowance(years_of_service)
    return LeaveBalance(
        base_leave_balance=base,
        in_lieu_balance=in_lieu_days,
        leave_taken=leave_taken,
        remaining_balance=round(base + in_lieu_days - leave_taken, 2),
    )


def get_leave_balance(db: Session, *, employee_id: int, year: int) -> LeaveBalance:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    start = date(year, 1, 1)
    end = date(year, 12, 31)

    allocated_days = db.scalar(
        select(LeaveAllocation.allocated_days).where(
            LeaveAllocation.employee_id == employee_id,
            LeaveAllocation.year == year,
            LeaveAllocation.type == LeaveType.ANNUAL,
        )
    )
    in_lieu_days = db.scalar(
        select(func.coalesce(func.sum(InLieuRecord.leave_days_added), 0.0)).where(
            InLieuRecord.employee_id == employee_id,
        )
    )
    leave_taken = db.scalar(
        select(func.coalesce(func.sum(Leave.days_taken), 0.0)).where(
            Leave.employee_id == employee_id,
            Leave.status == LeaveStatus.APPROVED,
            Leave.type == LeaveType.ANNUAL,
            Leave.start_date >= start,
            Leave.end_date <= end,
        )
    )
    return calculate_leave_balance(
        years_of_service=employee.years_of_service or 0,
        in_lieu_days=float(in_lieu_days or 0.0),
        leave_taken=float(leave_taken or 0.0),
        allocated_days=float(allocated_days) if allocated_days else None,
    )
