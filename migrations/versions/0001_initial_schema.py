"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # --- ENUM types ---
    vow_status_enum = sa.Enum(
        "active", "completed", "paused", "broken", name="vow_status_enum"
    )
    vow_status_enum.create(op.get_bind(), checkfirst=True)

    activity_category_enum = sa.Enum(
        "reflection", "vow_completion", "trigger_log", "streak_recovery",
        name="activity_category_enum",
    )
    activity_category_enum.create(op.get_bind(), checkfirst=True)

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("name", sa.String(128), nullable=True),
        sa.Column("subscription_status", sa.String(32), nullable=False, server_default="trial"),
        sa.Column("subscription_tier", sa.String(32), nullable=True),
        sa.Column("trial_end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("recovery_tokens_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_token_reset", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # --- vows ---
    op.create_table(
        "vows",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("identity", sa.String(500), nullable=False),
        sa.Column("boundary", sa.String(500), nullable=False),
        sa.Column("statement", sa.Text(), nullable=False),
        sa.Column("duration_days", sa.Integer(), nullable=False),
        sa.Column("current_day", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("days_kept", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("days_breached", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.Enum(
            "active", "completed", "paused", "broken",
            name="vow_status_enum", create_type=False,
        ), nullable=False, server_default="active"),
        sa.Column("last_completed_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("current_day <= duration_days", name="ck_vows_current_day_le_duration"),
    )
    op.create_index("ix_vows_id", "vows", ["id"])
    op.create_index("ix_vows_user_id", "vows", ["user_id"])

    # --- activities ---
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("vow_id", sa.Integer(), nullable=True),
        sa.Column("category", sa.Enum(
            "reflection", "vow_completion", "trigger_log", "streak_recovery",
            name="activity_category_enum", create_type=False,
        ), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("emotions", sa.Text(), nullable=True),
        sa.Column("urge_intensity", sa.Integer(), nullable=True),
        sa.Column("location", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["vow_id"], ["vows.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activities_id", "activities", ["id"])
    op.create_index("ix_activities_user_id", "activities", ["user_id"])
    op.create_index("ix_activities_vow_id", "activities", ["vow_id"])
    op.create_index("ix_activities_category", "activities", ["category"])
    op.create_index("ix_activities_user_day", "activities", ["user_id", "day"])
    op.create_index(
        "uq_activities_vow_completion_day", "activities", ["vow_id", "day"],
        unique=True,
        postgresql_where=sa.text("category = 'vow_completion'"),
    )

    # --- kv_entries ---
    op.create_table(
        "kv_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("key", sa.String(255), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_kv_entries_id", "kv_entries", ["id"])
    op.create_index("ix_kv_entries_key", "kv_entries", ["key"], unique=True)


def downgrade() -> None:
    op.drop_table("kv_entries")
    op.drop_table("activities")
    op.drop_table("vows")
    op.drop_table("users")
    sa.Enum(name="activity_category_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="vow_status_enum").drop(op.get_bind(), checkfirst=True)
