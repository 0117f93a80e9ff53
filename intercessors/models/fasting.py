from __future__ import annotations

from ..app import db
from ..shared.constants import PROGRAM_UPCOMING


class FastingEventTemplate(db.Model):
    __tablename__ = "fasting_event_templates"

    id = db.Column(db.Integer, primary_key=True)
    template_name = db.Column(db.String(120), nullable=False, unique=True)
    template_description = db.Column(db.Text)
    duration_days = db.Column(
        db.Integer, nullable=False, default=3, server_default=db.text("3")
    )
    default_title = db.Column(db.String(255), nullable=False)
    default_subtitle = db.Column(db.String(255))
    default_description = db.Column(db.Text)
    default_prayer_focus = db.Column(db.Text)
    default_instructions = db.Column(db.Text)
    is_active = db.Column(
        db.Boolean, nullable=False, default=True, server_default=db.text("true")
    )
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime, server_default=db.func.now(), onupdate=db.func.now()
    )


class FastingProgram(db.Model):
    """A dated fasting campaign; at most one row is active."""

    __tablename__ = "fasting_program_details"
    __table_args__ = (
        db.CheckConstraint(
            "program_status IN ('upcoming','registration_open','preparation',"
            "'active','completed','cancelled')",
            name="ck_fasting_program_status",
        ),
        db.Index(
            "uq_fasting_program_single_active",
            "is_active",
            unique=True,
            postgresql_where=db.text("is_active"),
            sqlite_where=db.text("is_active = 1"),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    program_title = db.Column(db.String(255), nullable=False)
    program_subtitle = db.Column(db.String(255))
    program_description = db.Column(db.Text)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    registration_open_date = db.Column(db.DateTime(timezone=True), nullable=False)
    registration_close_date = db.Column(db.DateTime(timezone=True), nullable=False)
    max_participants = db.Column(
        db.Integer, nullable=False, default=1000, server_default=db.text("1000")
    )
    current_participants = db.Column(
        db.Integer, nullable=False, default=0, server_default=db.text("0")
    )
    program_status = db.Column(
        db.String(24),
        nullable=False,
        default=PROGRAM_UPCOMING,
        server_default=PROGRAM_UPCOMING,
    )
    fasting_type = db.Column(db.String(24), nullable=False, default="complete")
    special_instructions = db.Column(db.Text)
    prayer_focus = db.Column(db.Text)
    contact_email = db.Column(db.String(255))
    contact_phone = db.Column(db.String(64))
    location_details = db.Column(db.Text)
    zoom_meeting_link = db.Column(db.String(512))
    youtube_stream_link = db.Column(db.String(512))
    template_name = db.Column(db.String(120))
    is_active = db.Column(
        db.Boolean, nullable=False, default=True, server_default=db.text("true")
    )
    created_by = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime, server_default=db.func.now(), onupdate=db.func.now()
    )

    registrations = db.relationship(
        "FastingRegistration", back_populates="program", lazy="dynamic"
    )


class FastingRegistration(db.Model):
    __tablename__ = "fasting_registrations"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer,
        db.ForeignKey("fasting_program_details.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = db.Column(db.String(64))
    full_name = db.Column(db.String(255), nullable=False)
    phone_number = db.Column(db.String(64), nullable=False)
    region = db.Column(db.String(120), nullable=False)
    travel_cost = db.Column(db.String(32), default="0")
    gps_latitude = db.Column(db.String(32))
    gps_longitude = db.Column(db.String(32))
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    program = db.relationship("FastingProgram", back_populates="registrations")
