"""core schema: slots, assignments, attendance, skip requests, updates, admins

Revision ID: 0001_core_schema
Revises:
Create Date: 2025-03-01 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_core_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return (
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )


def upgrade() -> None:
    op.create_table(
        "admin_users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("role", sa.String(32), nullable=False, server_default="admin"),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "available_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("slot_time", sa.String(16), nullable=False, unique=True),
        sa.Column(
            "is_available", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
    )

    op.create_table(
        "prayer_slots",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("slot_time", sa.String(16), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column(
            "missed_count", sa.Integer(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column("skip_start_date", sa.DateTime(timezone=True)),
        sa.Column("skip_end_date", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('active','missed','skipped','released')",
            name="ck_prayer_slots_status",
        ),
        sa.CheckConstraint("missed_count >= 0", name="ck_prayer_slots_missed_count"),
    )
    op.create_index("ix_prayer_slots_user_id", "prayer_slots", ["user_id"])
    op.create_index(
        "uq_prayer_slots_slot_time_held",
        "prayer_slots",
        ["slot_time"],
        unique=True,
        postgresql_where=sa.text("status <> 'released'"),
        sqlite_where=sa.text("status <> 'released'"),
    )

    op.create_table(
        "attendance_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("slot_id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("zoom_join_time", sa.DateTime(timezone=True)),
        sa.Column("zoom_leave_time", sa.DateTime(timezone=True)),
        sa.Column("zoom_meeting_id", sa.String(64)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["slot_id"], ["prayer_slots.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "status IN ('attended','missed')", name="ck_attendance_log_status"
        ),
    )
    op.create_index(
        "ix_attendance_log_user_slot_date",
        "attendance_log",
        ["user_id", "slot_id", "date"],
    )

    op.create_table(
        "skip_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("prayer_slot_id", sa.Integer()),
        sa.Column("skip_days", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("admin_comment", sa.Text()),
        sa.Column("processed_by", sa.String(255)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("processed_at", sa.DateTime(timezone=True)),
        sa.ForeignKeyConstraint(
            ["prayer_slot_id"], ["prayer_slots.id"], ondelete="SET NULL"
        ),
        sa.CheckConstraint(
            "skip_days >= 1 AND skip_days <= 30", name="ck_skip_requests_skip_days"
        ),
        sa.CheckConstraint(
            "status IN ('pending','approved','rejected')",
            name="ck_skip_requests_status",
        ),
    )
    op.create_index("ix_skip_requests_user_id", "skip_requests", ["user_id"])
    op.create_index("ix_skip_requests_status", "skip_requests", ["status"])

    op.create_table(
        "updates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("type", sa.String(32), nullable=False, server_default="general"),
        sa.Column("priority", sa.String(16), nullable=False, server_default="normal"),
        sa.Column(
            "schedule", sa.String(32), nullable=False, server_default="immediate"
        ),
        sa.Column("expiry", sa.String(16), nullable=False, server_default="never"),
        sa.Column("user_id", sa.String(64)),
        sa.Column(
            "send_notification",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column(
            "send_email", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column(
            "pin_to_top", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("updates")
    op.drop_index("ix_skip_requests_status", table_name="skip_requests")
    op.drop_index("ix_skip_requests_user_id", table_name="skip_requests")
    op.drop_table("skip_requests")
    op.drop_index("ix_attendance_log_user_slot_date", table_name="attendance_log")
    op.drop_table("attendance_log")
    op.drop_index("uq_prayer_slots_slot_time_held", table_name="prayer_slots")
    op.drop_index("ix_prayer_slots_user_id", table_name="prayer_slots")
    op.drop_table("prayer_slots")
    op.drop_table("available_slots")
    op.drop_table("admin_users")
