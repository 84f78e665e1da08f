"""Per-year leave allocations

Revision ID: 0002_leave_allocations
Revises: 0001_initial
Create Date: 2026-10-19 00:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0002_leave_allocations"
down_revision: Union[str, None] = "0001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

leave_type = postgresql.ENUM(
    "ANNUAL",
    "SICK",
    "UNPAID",
    "IN_LIEU",
    "PUBLIC_HOLIDAY",
    name="leave_type",
    create_type=False,
)


def upgrade() -> None:
    op.create_table(
        "leave_allocations",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("type", leave_type, nullable=False),
        sa.Column("allocated_days", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("employee_id", "year", "type", name="uq_leave_allocations_employee_year_type"),
    )
    op.create_index("ix_leave_allocations_employee_id", "leave_allocations", ["employee_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_leave_allocations_employee_id", table_name="leave_allocations")
    op.drop_table("leave_allocations")
