"""create consultants and weekly availability

Revision ID: 20261019_02
Revises: 20261019_01
Create Date: 2026-10-19 09:10:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_02"
down_revision: Union[str, None] = "20261019_01"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "consultants",
        sa.Column("id", sa.Integer(), sa.Identity(), primary_key=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("specializations", sa.JSON(), nullable=False),
        sa.Column("languages", sa.JSON(), nullable=False),
        sa.Column("qualifications", sa.JSON(), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.String(length=500), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(10, 2), nullable=False),
        sa.Column("experience_years", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("user_id", name="uq_consultants_user_id"),
    )
    op.create_index("ix_consultants_id", "consultants", ["id"], unique=False)

    op.create_table(
        "consultant_availability",
        sa.Column("id", sa.Integer(), sa.Identity(), primary_key=True, nullable=False),
        sa.Column("consultant_id", sa.Integer(), nullable=False),
        sa.Column("day_of_week", sa.SmallInteger(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.ForeignKeyConstraint(["consultant_id"], ["consultants.id"], ondelete="CASCADE"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_consultant_availability_day_of_week"),
        sa.CheckConstraint("end_time > start_time", name="ck_consultant_availability_window"),
    )
    op.create_index("ix_consultant_availability_id", "consultant_availability", ["id"], unique=False)
    op.create_index(
        "ix_consultant_availability_consultant_id",
        "consultant_availability",
        ["consultant_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_consultant_availability_consultant_id", table_name="consultant_availability")
    op.drop_index("ix_consultant_availability_id", table_name="consultant_availability")
    op.drop_table("consultant_availability")

    op.drop_index("ix_consultants_id", table_name="consultants")
    op.drop_table("consultants")
