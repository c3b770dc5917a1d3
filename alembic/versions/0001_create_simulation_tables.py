"""create simulation tables

Revision ID: 0001
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "simulation_runs",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("scoring_key", sa.String(length=50), nullable=False),
        sa.Column("always_bonus_mode", sa.String(length=20), nullable=False),
        sa.Column("always_bonus_kind", sa.String(length=100), nullable=True),
        sa.Column("randomize_board", sa.Boolean(), nullable=False),
        sa.Column("active_target", sa.String(length=20), nullable=False),
        sa.Column("enabled_bonus_kinds", sa.JSON(), nullable=False),
        sa.Column("seed", sa.Integer(), nullable=True),
        sa.Column("total_draws", sa.Integer(), nullable=False),
        sa.Column("hit_count", sa.Integer(), nullable=False),
        sa.Column("win_count", sa.Integer(), nullable=False),
        sa.Column("total_lines", sa.Integer(), nullable=False),
        sa.Column("total_score", sa.Integer(), nullable=False),
        sa.Column("total_active_count", sa.Integer(), nullable=False),
        sa.Column("lines_distribution", sa.JSON(), nullable=False),
        sa.Column("score_distribution", sa.JSON(), nullable=False),
        sa.Column("bonus_statistics", sa.JSON(), nullable=False),
        sa.CheckConstraint(
            "always_bonus_mode IN ('disabled','off','fixed','random')",
            name=op.f("ck_simulation_runs_always_bonus_mode_enum"),
        ),
        sa.CheckConstraint(
            "active_target IN ('fixed','random')",
            name=op.f("ck_simulation_runs_active_target_enum"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_simulation_runs")),
    )
    op.create_index(
        op.f("ix_simulation_runs_name"), "simulation_runs", ["name"], unique=False
    )

    op.create_table(
        "draw_records",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("run_id", ID_TYPE, nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("drawn_number", sa.Integer(), nullable=False),
        sa.Column("is_hit", sa.Boolean(), nullable=False),
        sa.Column("activated_numbers", sa.JSON(), nullable=False),
        sa.Column("bonus_queued", sa.Boolean(), nullable=False),
        sa.Column("bonus_applied", sa.Boolean(), nullable=False),
        sa.Column("bonus_kind", sa.String(length=100), nullable=True),
        sa.Column("bonus_queued_kind", sa.String(length=100), nullable=True),
        sa.Column("lines_completed", sa.Integer(), nullable=False),
        sa.Column("line_numbers", sa.JSON(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("active_count", sa.Integer(), nullable=False),
        sa.CheckConstraint(
            "drawn_number >= 1 AND drawn_number <= 25",
            name=op.f("ck_draw_records_drawn_number_range"),
        ),
        sa.ForeignKeyConstraint(
            ["run_id"],
            ["simulation_runs.id"],
            name=op.f("fk_draw_records_run_id_simulation_runs"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_draw_records")),
        sa.UniqueConstraint("run_id", "sequence", name="uq_run_sequence"),
    )
    op.create_index(
        op.f("ix_draw_records_run_id"), "draw_records", ["run_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_draw_records_run_id"), table_name="draw_records")
    op.drop_table("draw_records")
    op.drop_index(op.f("ix_simulation_runs_name"), table_name="simulation_runs")
    op.drop_table("simulation_runs")
