from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models import LeaveStatus, LeaveType, OverrideSource
from app.services.rotation import RotationGroup, ShiftType


class ShiftLookupResponse(BaseModel):
    date: date
    group: RotationGroup
    cycle_day: int = Field(ge=1, le=8)
    shift_type: ShiftType
    shift_number: int | None = None
    start_time: time | None = None
    end_time: time | None = None


class GroupSlotRead(BaseModel):
    group: RotationGroup
    is_first: bool


class GroupAssignmentsRead(BaseModel):
    date: date
    day_shift: GroupSlotRead
    night_shift: GroupSlotRead
    off: list[RotationGroup]


class ShiftOverrideUpsertRequest(BaseModel):
    day_date: date
    shift_type: ShiftType
    source: OverrideSource = OverrideSource.MANUAL
    note: str | None = Field(default=None, max_length=1000)


class ShiftOverrideRead(BaseModel):
    id: int
    employee_id: int
    day_date: date
    shift_type: ShiftType
    source: OverrideSource
    note: str | None
    created_by: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HolidayRead(BaseModel):
    date: date
    name: str
    is_official: bool


class CalendarDayRead(BaseModel):
    date: date
    day_of_month: int
    day_of_week: int
    is_current_month: bool
    is_weekend: bool
    rotation_shift: ShiftType
    shift_type: ShiftType
    is_overridden: bool
    original_type: ShiftType | None = None
    notes: str | None = None
    shift_number: int | None = None
    holiday: HolidayRead | None = None
    group_assignments: GroupAssignmentsRead
    has_group_change: bool = False


class MonthCalendarResponse(BaseModel):
    employee_id: int
    year: int
    month: int
    name: str
    group: RotationGroup | None
    days: list[CalendarDayRead]


class LeaveCreateRequest(BaseModel):
    employee_id: int
    start_date: date
    end_date: date
    type: LeaveType
    status: LeaveStatus = LeaveStatus.PENDING
    days_taken: float | None = Field(default=None, ge=0)
    note: str | None = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def validate_range(self) -> "LeaveCreateRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be greater than or equal to start_date")
        return self


class LeaveStatusUpdateRequest(BaseModel):
    status: LeaveStatus


class LeaveRead(BaseModel):
    id: int
    employee_id: int
    start_date: date
    end_date: date
    type: LeaveType
    status: LeaveStatus
    days_taken: float
    note: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LeaveSyncRead(BaseModel):
    leave_id: int
    created_days: list[date] = Field(default_factory=list)
    skipped_days: list[date] = Field(default_factory=list)
    failed_days: list[date] = Field(default_factory=list)


class LeaveWithSyncRead(BaseModel):
    leave: LeaveRead
    sync: LeaveSyncRead | None = None
    removed_overrides: int = 0


class LeaveBalanceRead(BaseModel):
    employee_id: int
    year: int
    base_leave_balance: float
    in_lieu_balance: float
    leave_taken: float
    remaining_balance: float


class InLieuCreateRequest(BaseModel):
    employee_id: int
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_range(self) -> "InLieuCreateRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be greater than or equal to start_date")
        return self


class InLieuRead(BaseModel):
    id: int
    employee_id: int
    start_date: date
    end_date: date
    days_count: int
    leave_days_added: float
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SalaryCalculationRequest(BaseModel):
    basic_salary: float | None = None
    exchange_rate: float | None = None
    cost_of_living: float | None = None
    shift_allowance: float | None = None
    other_earnings: float | None = None
    schedule_overtime_hours: float | None = None
    manual_overtime_hours: float | None = None
    deduction: float | None = None


class SalaryUpsertRequest(SalaryCalculationRequest):
    month: date

    @model_validator(mode="after")
    def normalize_month(self) -> "SalaryUpsertRequest":
        self.month = self.month.replace(day=1)
        return self


class SalaryResultRead(BaseModel):
    total_overtime_hours: float
    hourly_rate: float
    overtime_pay: float
    rate_ratio: float
    gross_base: float
    total_salary: float
    display: dict[str, float]


class SalaryRecordRead(BaseModel):
    id: int
    employee_id: int
    month: date
    basic_salary: float
    cost_of_living: float
    shift_allowance: float
    other_earnings: float
    schedule_overtime_hours: float
    manual_overtime_hours: float
    deduction: float
    exchange_rate: float
    overtime_pay: float | None
    rate_ratio: float | None
    gross_base: float | None
    total_salary: float | None
    calculated_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class SalaryYearSummaryRead(BaseModel):
    employee_id: int
    year: int
    months: int
    total_overtime_hours: float
    total_overtime_pay: float
    total_gross_base: float
    total_salary: float
    average_salary: float


class HealthResponse(BaseModel):
    status: str
    schema_guard: dict[str, Any]
