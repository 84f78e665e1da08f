from __future__ import annotations

from calendar import month_name, monthrange
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Mapping

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models import Employee, GroupChange, PublicHoliday, ScheduleType
from app.schemas import (
    CalendarDayRead,
    GroupAssignmentsRead,
    GroupSlotRead,
    HolidayRead,
    MonthCalendarResponse,
    ShiftLookupResponse,
)
from app.services.leaves import list_active_leaves_in_range
from app.services.rotation import (
    GroupAssignments,
    RotationGroup,
    ShiftType,
    compute_shift,
    cycle_day,
    effective_group,
    group_assignments,
    iter_days,
    regular_work_hours,
    resolve_effective_shift,
    shift_number,
    shift_work_hours,
)
from app.services.shift_overrides import list_shift_overrides
from app.settings import get_settings


@dataclass(frozen=True)
class OverrideEntry:
    shift_type: ShiftType
    note: str | None = None


@dataclass(frozen=True)
class HolidayEntry:
    name: str
    is_official: bool = True


def sunday_first_weekday(value: date) -> int:
    return (value.weekday() + 1) % 7


def calendar_range(year: int, month: int) -> tuple[date, date]:
    first = date(year, month, 1)
    last = date(year, month, monthrange(year, month)[1])
    start = first - timedelta(days=sunday_first_weekday(first))
    end = last + timedelta(days=6 - sunday_first_weekday(last))
    return start, end


def _assignments_read(assignments: GroupAssignments) -> GroupAssignmentsRead:
    return GroupAssignmentsRead(
        date=assignments.day,
        day_shift=GroupSlotRead(group=assignments.day_shift.group, is_first=assignments.day_shift.is_first),
        night_shift=GroupSlotRead(group=assignments.night_shift.group, is_first=assignments.night_shift.is_first),
        off=list(assignments.off),
    )


def lookup_shift(value: date, group: RotationGroup, *, leap_aware: bool = True) -> ShiftLookupResponse:
    shift_type = compute_shift(value, group, leap_aware=leap_aware)
    hours = shift_work_hours(shift_type)
    return ShiftLookupResponse(
        date=value,
        group=group,
        cycle_day=cycle_day(value, group, leap_aware=leap_aware),
        shift_type=shift_type,
        shift_number=shift_number(value, group, leap_aware=leap_aware),
        start_time=hours[0] if hours else None,
        end_time=hours[1] if hours else None,
    )


def lookup_group_assignments(value: date, *, leap_aware: bool = True) -> GroupAssignmentsRead:
    return _assignments_read(group_assignments(value, leap_aware=leap_aware))


def build_month_calendar(
    *,
    employee_id: int,
    year: int,
    month: int,
    group: RotationGroup | None,
    overrides: Mapping[date, OverrideEntry] | None = None,
    leave_days: Mapping[date, str | None] | None = None,
    holidays: Mapping[date, HolidayEntry] | None = None,
    group_changes: Mapping[date, RotationGroup] | None = None,
    leap_aware: bool = True,
) -> MonthCalendarResponse:
    """Lay out a Sunday-first month grid for one employee.

    Per day the shift is taken, in order, from the stored override, an active
    leave covering the day, an official public holiday, and finally the
    rotation (or the regular weekday schedule when the employee has no group).
    """
    overrides = overrides or {}
    leave_days = leave_days or {}
    holidays = holidays or {}
    start, end = calendar_range(year, month)

    days: list[CalendarDayRead] = []
    for value in iter_days(start, end):
        number: int | None = None
        has_group_change = False
        if group is not None:
            day_group, has_group_change = effective_group(value, group, group_changes)
            rotation_shift = compute_shift(value, day_group, leap_aware=leap_aware)
            number = shift_number(value, day_group, leap_aware=leap_aware)
        else:
            rotation_shift = ShiftType.DAY if regular_work_hours(value) else ShiftType.OFF

        override = overrides.get(value)
        holiday = holidays.get(value)
        notes: str | None = None
        shift_type = resolve_effective_shift(rotation_shift, override.shift_type if override else None)
        if override is not None:
            notes = override.note
        elif value in leave_days:
            shift_type = ShiftType.LEAVE
            notes = leave_days[value]
        elif holiday is not None and holiday.is_official:
            shift_type = ShiftType.PUBLIC
            notes = holiday.name

        is_overridden = shift_type != rotation_shift or override is not None
        days.append(
            CalendarDayRead(
                date=value,
                day_of_month=value.day,
                day_of_week=sunday_first_weekday(value),
                is_current_month=value.month == month and value.year == year,
                is_weekend=value.weekday() >= 5,
                rotation_shift=rotation_shift,
                shift_type=shift_type,
                is_overridden=is_overridden,
                original_type=rotation_shift if is_overridden else None,
                notes=notes,
                shift_number=number if not is_overridden and rotation_shift in (ShiftType.DAY, ShiftType.NIGHT) else None,
                holiday=HolidayRead(date=value, name=holiday.name, is_official=holiday.is_official) if holiday else None,
                group_assignments=lookup_group_assignments(value, leap_aware=leap_aware),
                has_group_change=has_group_change,
            )
        )

    return MonthCalendarResponse(
        employee_id=employee_id,
        year=year,
        month=month,
        name=month_name[month],
        group=group,
        days=days,
    )


def get_employee_month_calendar(db: Session, *, employee_id: int, year: int, month: int) -> MonthCalendarResponse:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    start, end = calendar_range(year, month)
    overrides = {
        item.day_date: OverrideEntry(shift_type=item.shift_type, note=item.note)
        for item in list_shift_overrides(db, employee_id=employee_id, start_date=start, end_date=end)
    }

    leave_days: dict[date, str | None] = {}
    for leave in list_active_leaves_in_range(db, employee_id=employee_id, start_date=start, end_date=end):
        for value in iter_days(max(leave.start_date, start), min(leave.end_date, end)):
            leave_days[value] = leave.note or leave.type.value

    holidays = {
        item.day_date: HolidayEntry(name=item.name, is_official=item.is_official)
        for item in db.scalars(
            select(PublicHoliday).where(PublicHoliday.day_date >= start, PublicHoliday.day_date <= end)
        ).all()
    }

    group_changes = {
        item.effective_date: item.new_group
        for item in db.scalars(
            select(GroupChange)
            .where(GroupChange.employee_id == employee_id, GroupChange.effective_date <= end)
            .order_by(GroupChange.effective_date.asc(), GroupChange.id.asc())
        ).all()
    }

    group = employee.rotation_group if employee.schedule_type != ScheduleType.REGULAR else None
    return build_month_calendar(
        employee_id=employee_id,
        year=year,
        month=month,
        group=group,
        overrides=overrides,
        leave_days=leave_days,
        holidays=holidays,
        group_changes=group_changes if group is not None else None,
        leap_aware=get_settings().rotation_leap_aware,
    )
