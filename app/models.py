from __future__ import annotations

import enum
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base
from app.services.rotation import RotationGroup, ShiftType


class ScheduleType(str, enum.Enum):
    SHIFT = "shift"
    REGULAR = "regular"


class OverrideSource(str, enum.Enum):
    MANUAL = "manual"
    LEAVE_SYNC = "leave_sync"
    DEBUG = "debug"


class LeaveType(str, enum.Enum):
    ANNUAL = "ANNUAL"
    SICK = "SICK"
    UNPAID = "UNPAID"
    IN_LIEU = "IN_LIEU"
    PUBLIC_HOLIDAY = "PUBLIC_HOLIDAY"


class LeaveStatus(str, enum.Enum):
    APPROVED = "APPROVED"
    PENDING = "PENDING"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


# Pending leave is synced as well so the calendar shows it before approval.
ACTIVE_LEAVE_STATUSES = frozenset({LeaveStatus.APPROVED, LeaveStatus.PENDING})


class OvertimeType(str, enum.Enum):
    DAY = "DAY"
    NIGHT = "NIGHT"
    HOLIDAY = "HOLIDAY"


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    rotation_group: Mapped[RotationGroup | None] = mapped_column(
        Enum(RotationGroup, name="rotation_group"),
        nullable=True,
    )
    schedule_type: Mapped[ScheduleType] = mapped_column(
        Enum(ScheduleType, name="schedule_type", values_callable=_enum_values),
        nullable=False,
        default=ScheduleType.SHIFT,
        server_default=text("'shift'"),
    )
    years_of_service: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    annual_leave_balance: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        server_default=text("0"),
    )
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    shift_overrides: Mapped[list[ShiftOverride]] = relationship(back_populates="employee")
    leaves: Mapped[list[Leave]] = relationship(back_populates="employee")
    salary_records: Mapped[list[SalaryRecord]] = relationship(back_populates="employee")
    in_lieu_records: Mapped[list[InLieuRecord]] = relationship(back_populates="employee")
    group_changes: Mapped[list[GroupChange]] = relationship(back_populates="employee")
    leave_allocations: Mapped[list[LeaveAllocation]] = relationship(back_populates="employee")


class ShiftOverride(Base):
    __tablename__ = "shift_overrides"
    __table_args__ = (UniqueConstraint("employee_id", "day_date", name="uq_shift_overrides_employee_day"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    shift_type: Mapped[ShiftType] = mapped_column(
        Enum(ShiftType, name="shift_type", values_callable=_enum_values),
        nullable=False,
    )
    source: Mapped[OverrideSource] = mapped_column(
        Enum(OverrideSource, name="override_source", values_callable=_enum_values),
        nullable=False,
        default=OverrideSource.MANUAL,
        server_default=text("'manual'"),
    )
    note: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, default="system")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    employee: Mapped[Employee] = relationship(back_populates="shift_overrides")


class Leave(Base):
    __tablename__ = "leaves"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    type: Mapped[LeaveType] = mapped_column(
        Enum(LeaveType, name="leave_type"),
        nullable=False,
    )
    status: Mapped[LeaveStatus] = mapped_column(
        Enum(LeaveStatus, name="leave_status"),
        nullable=False,
        default=LeaveStatus.PENDING,
        server_default=text("'PENDING'"),
    )
    days_taken: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, server_default=text("0"))
    note: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    employee: Mapped[Employee] = relationship(back_populates="leaves")


class OvertimeEntry(Base):
    __tablename__ = "overtime_entries"
    __table_args__ = (UniqueConstraint("employee_id", "day_date", name="uq_overtime_entries_employee_day"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours: Mapped[float] = mapped_column(Float, nullable=False)
    type: Mapped[OvertimeType] = mapped_column(
        Enum(OvertimeType, name="overtime_type"),
        nullable=False,
        default=OvertimeType.DAY,
        server_default=text("'DAY'"),
    )
    source: Mapped[str] = mapped_column(String(40), nullable=False, default="schedule")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )


class SalaryRecord(Base):
    __tablename__ = "salary_records"
    __table_args__ = (UniqueConstraint("employee_id", "month", name="uq_salary_records_employee_month"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    month: Mapped[date] = mapped_column(Date, nullable=False)
    basic_salary: Mapped[float] = mapped_column(Float, nullable=False)
    cost_of_living: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, server_default=text("0"))
    shift_allowance: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, server_default=text("0"))
    other_earnings: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, server_default=text("0"))
    schedule_overtime_hours: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        server_default=text("0"),
    )
    manual_overtime_hours: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        server_default=text("0"),
    )
    deduction: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, server_default=text("0"))
    exchange_rate: Mapped[float] = mapped_column(Float, nullable=False)
    overtime_pay: Mapped[float | None] = mapped_column(Float, nullable=True)
    rate_ratio: Mapped[float | None] = mapped_column(Float, nullable=True)
    gross_base: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_salary: Mapped[float | None] = mapped_column(Float, nullable=True)
    calculated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    employee: Mapped[Employee] = relationship(back_populates="salary_records")


class InLieuRecord(Base):
    __tablename__ = "in_lieu_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    days_count: Mapped[int] = mapped_column(Integer, nullable=False)
    leave_days_added: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    employee: Mapped[Employee] = relationship(back_populates="in_lieu_records")


class LeaveAllocation(Base):
    __tablename__ = "leave_allocations"
    __table_args__ = (
        UniqueConstraint("employee_id", "year", "type", name="uq_leave_allocations_employee_year_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[LeaveType] = mapped_column(
        Enum(LeaveType, name="leave_type"),
        nullable=False,
        default=LeaveType.ANNUAL,
    )
    allocated_days: Mapped[float] = mapped_column(Float, nullable=False, default=0.0, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    employee: Mapped[Employee] = relationship(back_populates="leave_allocations")


class PublicHoliday(Base):
    __tablename__ = "public_holidays"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    day_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_official: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=text("true"))


class GroupChange(Base):
    __tablename__ = "group_changes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    old_group: Mapped[RotationGroup | None] = mapped_column(Enum(RotationGroup, name="rotation_group"), nullable=True)
    new_group: Mapped[RotationGroup] = mapped_column(Enum(RotationGroup, name="rotation_group"), nullable=False)
    effective_date: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    employee: Mapped[Employee] = relationship(back_populates="group_changes")


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ts_utc: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        index=True,
    )
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
    action: Mapped[str] = mapped_column(String(100), nullable=False)
    entity_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    entity_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ip: Mapped[str | None] = mapped_column(String(100), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    details: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )
