"""fasting templates, programs and registrations

Revision ID: 0002_fasting_programs
Revises: 0001_core_schema
Create Date: 2025-03-02 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_fasting_programs"
down_revision = "0001_core_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "fasting_event_templates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("template_name", sa.String(120), nullable=False, unique=True),
        sa.Column("template_description", sa.Text()),
        sa.Column(
            "duration_days", sa.Integer(), nullable=False, server_default=sa.text("3")
        ),
        sa.Column("default_title", sa.String(255), nullable=False),
        sa.Column("default_subtitle", sa.String(255)),
        sa.Column("default_description", sa.Text()),
        sa.Column("default_prayer_focus", sa.Text()),
        sa.Column("default_instructions", sa.Text()),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_table(
        "fasting_program_details",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("program_title", sa.String(255), nullable=False),
        sa.Column("program_subtitle", sa.String(255)),
        sa.Column("program_description", sa.Text()),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("registration_open_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "registration_close_date", sa.DateTime(timezone=True), nullable=False
        ),
        sa.Column(
            "max_participants",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("1000"),
        ),
        sa.Column(
            "current_participants",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column(
            "program_status", sa.String(24), nullable=False, server_default="upcoming"
        ),
        sa.Column(
            "fasting_type", sa.String(24), nullable=False, server_default="complete"
        ),
        sa.Column("special_instructions", sa.Text()),
        sa.Column("prayer_focus", sa.Text()),
        sa.Column("contact_email", sa.String(255)),
        sa.Column("contact_phone", sa.String(64)),
        sa.Column("location_details", sa.Text()),
        sa.Column("zoom_meeting_link", sa.String(512)),
        sa.Column("youtube_stream_link", sa.String(512)),
        sa.Column("template_name", sa.String(120)),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.Column("created_by", sa.String(255)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.CheckConstraint(
            "program_status IN ('upcoming','registration_open','preparation',"
            "'active','completed','cancelled')",
            name="ck_fasting_program_status",
        ),
    )
    op.create_index(
        "uq_fasting_program_single_active",
        "fasting_program_details",
        ["is_active"],
        unique=True,
        postgresql_where=sa.text("is_active"),
        sqlite_where=sa.text("is_active = 1"),
    )

    op.create_table(
        "fasting_registrations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("program_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(64)),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone_number", sa.String(64), nullable=False),
        sa.Column("region", sa.String(120), nullable=False),
        sa.Column("travel_cost", sa.String(32), server_default="0"),
        sa.Column("gps_latitude", sa.String(32)),
        sa.Column("gps_longitude", sa.String(32)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["program_id"], ["fasting_program_details.id"], ondelete="CASCADE"
        ),
    )


def downgrade() -> None:
    op.drop_table("fasting_registrations")
    op.drop_index(
        "uq_fasting_program_single_active", table_name="fasting_program_details"
    )
    op.drop_table("fasting_program_details")
    op.drop_table("fasting_event_templates")
