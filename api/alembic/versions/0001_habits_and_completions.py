"""habits and completions

Revision ID: 0001_habits_and_completions
Revises:
Create Date: 2026-10-19

Initial schema: habits with flat recurrence columns, completions unique
per (habit, date).
"""

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_habits_and_completions"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "habits",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column(
            "color", sa.String(7), nullable=False, server_default="#3b82f6"
        ),
        sa.Column("icon", sa.String(10), nullable=True),
        sa.Column(
            "category",
            sa.Enum(
                "health",
                "fitness",
                "learning",
                "mindfulness",
                "productivity",
                "social",
                "finance",
                "creativity",
                "other",
                name="habit_category",
                native_enum=False,
            ),
            nullable=False,
            server_default="other",
        ),
        sa.Column("frequency_type", sa.String(20), nullable=False),
        sa.Column(
            "frequency_days_of_week",
            postgresql.ARRAY(sa.SmallInteger()),
            nullable=True,
        ),
        sa.Column("frequency_interval", sa.Integer(), nullable=True),
        sa.Column("frequency_unit", sa.String(10), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_habits_user_id", "habits", ["user_id"])
    op.create_index("ix_habits_user_archived", "habits", ["user_id", "archived_at"])

    op.create_table(
        "completions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("habit_id", sa.Uuid(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["habit_id"], ["habits.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("habit_id", "date", name="uq_completions_habit_date"),
    )
    op.create_index("ix_completions_date", "completions", ["date"])
    op.create_index(
        "ix_completions_habit_date", "completions", ["habit_id", "date"]
    )


def downgrade() -> None:
    op.drop_index("ix_completions_habit_date", table_name="completions")
    op.drop_index("ix_completions_date", table_name="completions")
    op.drop_table("completions")
    op.drop_index("ix_habits_user_archived", table_name="habits")
    op.drop_index("ix_habits_user_id", table_name="habits")
    op.drop_table("habits")
