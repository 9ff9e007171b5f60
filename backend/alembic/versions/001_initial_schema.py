"""Initial schema with tasks, completion archive, notifications.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    # Create tasks table
    op.create_table(
        "tasks",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", postgresql.JSONB(), nullable=True),
        sa.Column("location_label", sa.String(500), nullable=False, server_default=""),
        sa.Column("time", sa.String(64), nullable=False),
        sa.Column("signed_up", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_by", sa.String(255), nullable=True),
        sa.Column("points_reward", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("estimated_hours", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_by", sa.String(255), nullable=False, server_default="unknown"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tasks_completed", "tasks", ["completed"])
    op.create_index("ix_tasks_created_by", "tasks", ["created_by"])
    op.create_index("ix_tasks_created_at", "tasks", ["created_at"])

    # Create completed_tasks table (no FK to tasks; snapshots outlive deletion)
    op.create_table(
        "completed_tasks",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("task_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("location", postgresql.JSONB(), nullable=True),
        sa.Column("location_label", sa.String(500), nullable=False, server_default=""),
        sa.Column("time", sa.String(64), nullable=False),
        sa.Column("signed_up", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("points_reward", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("estimated_hours", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("feedback", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "completed_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_completed_tasks_user_id", "completed_tasks", ["user_id"])
    op.create_index("ix_completed_tasks_task_id", "completed_tasks", ["task_id"])
    op.create_index("ix_completed_tasks_completed_at", "completed_tasks", ["completed_at"])
    op.create_index("ix_completed_tasks_created_at", "completed_tasks", ["created_at"])

    # Create notifications table
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("type", sa.String(32), nullable=False, server_default="general"),
        sa.Column("status", sa.String(16), nullable=False, server_default="unread"),
        sa.Column("task_id", sa.String(36), nullable=True),
        sa.Column("organization_info", postgresql.JSONB(), nullable=True),
        sa.Column("task_info", postgresql.JSONB(), nullable=True),
        sa.Column("completed_by", postgresql.JSONB(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "type IN ('new_task', 'task_reminder', 'task_completed', 'task_assigned', 'general')",
            name="ck_notifications_type",
        ),
        sa.CheckConstraint(
            "status IN ('unread', 'read')",
            name="ck_notifications_status",
        ),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])
    op.create_index("ix_notifications_type", "notifications", ["type"])
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"])
    # Inbox query: WHERE user_id IN (X, 'all') ORDER BY created_at DESC
    op.create_index(
        "ix_notifications_user_created",
        "notifications",
        ["user_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("completed_tasks")
    op.drop_table("tasks")
