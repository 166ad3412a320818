"""notifications, preferences and client error logs

Revision ID: 0001_notifications
Revises:
Create Date: 2026-10-17
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001_notifications"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("priority", sa.String(length=16), nullable=False, server_default=sa.text("'medium'")),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("action_url", sa.String(length=1000), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "type in ('form_submission','content_published','reminder','system')",
            name="ck_notifications_type",
        ),
        sa.CheckConstraint(
            "priority in ('low','medium','high','urgent')",
            name="ck_notifications_priority",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_created_at", "notifications", ["created_at"], unique=False)
    op.create_index("ix_notifications_read_created", "notifications", ["is_read", "created_at"], unique=False)
    op.create_index("ix_notifications_type_created", "notifications", ["type", "created_at"], unique=False)

    op.create_table(
        "notification_preferences",
        sa.Column("subject", sa.String(length=255), nullable=False),
        sa.Column("email_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("browser_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sound_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "notification_types",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("subject"),
    )
    op.create_index(
        "ix_notification_preferences_created_at",
        "notification_preferences",
        ["created_at"],
        unique=False,
    )

    op.create_table(
        "client_error_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("client_error_id", sa.String(length=64), nullable=True),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("severity", sa.String(length=16), nullable=False, server_default=sa.text("'medium'")),
        sa.Column("category", sa.String(length=16), nullable=False, server_default=sa.text("'system'")),
        sa.Column("status", sa.Integer(), nullable=True),
        sa.Column("session_id", sa.String(length=128), nullable=True),
        sa.Column("environment", sa.String(length=32), nullable=True),
        sa.Column(
            "context",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_client_error_logs_created_at", "client_error_logs", ["created_at"], unique=False)
    op.create_index(
        "ix_client_error_logs_severity_created",
        "client_error_logs",
        ["severity", "created_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_client_error_logs_severity_created", table_name="client_error_logs")
    op.drop_index("ix_client_error_logs_created_at", table_name="client_error_logs")
    op.drop_table("client_error_logs")
    op.drop_index("ix_notification_preferences_created_at", table_name="notification_preferences")
    op.drop_table("notification_preferences")
    op.drop_index("ix_notifications_type_created", table_name="notifications")
    op.drop_index("ix_notifications_read_created", table_name="notifications")
    op.drop_index("ix_notifications_created_at", table_name="notifications")
    op.drop_table("notifications")
