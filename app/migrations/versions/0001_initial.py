"""Initial rota and salary schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

rotation_group = postgresql.ENUM("A", "B", "C", "D", name="rotation_group", create_type=False)
schedule_type = postgresql.ENUM("shift", "regular", name="schedule_type", create_type=False)
shift_type = postgresql.ENUM(
    "Day",
    "Night",
    "Off",
    "Leave",
    "Public",
    "Overtime",
    "InLieu",
    name="shift_type",
    create_type=False,
)
override_source = postgresql.ENUM("manual", "leave_sync", "debug", name="override_source", create_type=False)
leave_type = postgresql.ENUM(
    "ANNUAL",
    "SICK",
    "UNPAID",
    "IN_LIEU",
    "PUBLIC_HOLIDAY",
    name="leave_type",
    create_type=False,
)
leave_status = postgresql.ENUM(
    "APPROVED",
    "PENDING",
    "REJECTED",
    "CANCELLED",
    name="leave_status",
    create_type=False,
)
overtime_type = postgresql.ENUM("DAY", "NIGHT", "HOLIDAY", name="overtime_type", create_type=False)

_ENUMS = (
    rotation_group,
    schedule_type,
    shift_type,
    override_source,
    leave_type,
    leave_status,
    overtime_type,
)


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def _employee_fk() -> sa.ForeignKeyConstraint:
    return sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE")


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in _ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("rotation_group", rotation_group, nullable=True),
        sa.Column("schedule_type", schedule_type, nullable=False, server_default=sa.text("'shift'")),
        sa.Column("years_of_service", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("annual_leave_balance", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _timestamp("created_at"),
        sa.UniqueConstraint("email", name="uq_employees_email"),
    )

    op.create_table(
        "shift_overrides",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("day_date", sa.Date(), nullable=False),
        sa.Column("shift_type", shift_type, nullable=False),
        sa.Column("source", override_source, nullable=False, server_default=sa.text("'manual'")),
        sa.Column("note", sa.String(length=1000), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=False, server_default=sa.text("'system'")),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _employee_fk(),
        sa.UniqueConstraint("employee_id", "day_date", name="uq_shift_overrides_employee_day"),
    )
    op.create_index("ix_shift_overrides_employee_id", "shift_overrides", ["employee_id"], unique=False)
    op.create_index("ix_shift_overrides_day_date", "shift_overrides", ["day_date"], unique=False)

    op.create_table(
        "leaves",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("type", leave_type, nullable=False),
        sa.Column("status", leave_status, nullable=False, server_default=sa.text("'PENDING'")),
        sa.Column("days_taken", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("note", sa.String(length=1000), nullable=True),
        _timestamp("created_at"),
        _employee_fk(),
    )
    op.create_index("ix_leaves_employee_id", "leaves", ["employee_id"], unique=False)

    op.create_table(
        "overtime_entries",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("day_date", sa.Date(), nullable=False),
        sa.Column("hours", sa.Float(), nullable=False),
        sa.Column("type", overtime_type, nullable=False, server_default=sa.text("'DAY'")),
        sa.Column("source", sa.String(length=40), nullable=False, server_default=sa.text("'schedule'")),
        _timestamp("created_at"),
        _employee_fk(),
        sa.UniqueConstraint("employee_id", "day_date", name="uq_overtime_entries_employee_day"),
    )
    op.create_index("ix_overtime_entries_employee_id", "overtime_entries", ["employee_id"], unique=False)

    op.create_table(
        "salary_records",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("month", sa.Date(), nullable=False),
        sa.Column("basic_salary", sa.Float(), nullable=False),
        sa.Column("cost_of_living", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("shift_allowance", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("other_earnings", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("schedule_overtime_hours", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("manual_overtime_hours", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("deduction", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("exchange_rate", sa.Float(), nullable=False),
        sa.Column("overtime_pay", sa.Float(), nullable=True),
        sa.Column("rate_ratio", sa.Float(), nullable=True),
        sa.Column("gross_base", sa.Float(), nullable=True),
        sa.Column("total_salary", sa.Float(), nullable=True),
        sa.Column("calculated_at", sa.DateTime(timezone=True), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _employee_fk(),
        sa.UniqueConstraint("employee_id", "month", name="uq_salary_records_employee_month"),
    )
    op.create_index("ix_salary_records_employee_id", "salary_records", ["employee_id"], unique=False)

    op.create_table(
        "in_lieu_records",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("days_count", sa.Integer(), nullable=False),
        sa.Column("leave_days_added", sa.Float(), nullable=False),
        _timestamp("created_at"),
        _employee_fk(),
    )
    op.create_index("ix_in_lieu_records_employee_id", "in_lieu_records", ["employee_id"], unique=False)

    op.create_table(
        "public_holidays",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("day_date", sa.Date(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_official", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.UniqueConstraint("day_date", name="uq_public_holidays_day_date"),
    )

    op.create_table(
        "group_changes",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("old_group", rotation_group, nullable=True),
        sa.Column("new_group", rotation_group, nullable=False),
        sa.Column("effective_date", sa.Date(), nullable=False),
        _timestamp("created_at"),
        _employee_fk(),
    )
    op.create_index("ix_group_changes_employee_id", "group_changes", ["employee_id"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        _timestamp("ts_utc"),
        sa.Column("actor_id", sa.String(length=255), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("ip", sa.String(length=100), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column(
            "details",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
    )
    op.create_index("ix_audit_logs_ts_utc", "audit_logs", ["ts_utc"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_audit_logs_ts_utc", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_group_changes_employee_id", table_name="group_changes")
    op.drop_table("group_changes")
    op.drop_table("public_holidays")
    op.drop_index("ix_in_lieu_records_employee_id", table_name="in_lieu_records")
    op.drop_table("in_lieu_records")
    op.drop_index("ix_salary_records_employee_id", table_name="salary_records")
    op.drop_table("salary_records")
    op.drop_index("ix_overtime_entries_employee_id", table_name="overtime_entries")
    op.drop_table("overtime_entries")
    op.drop_index("ix_leaves_employee_id", table_name="leaves")
    op.drop_table("leaves")
    op.drop_index("ix_shift_overrides_day_date", table_name="shift_overrides")
    op.drop_index("ix_shift_overrides_employee_id", table_name="shift_overrides")
    op.drop_table("shift_overrides")
    op.drop_table("employees")

    bind = op.get_bind()
    for enum_type in reversed(_ENUMS):
        enum_type.drop(bind, checkfirst=True)
