from __future__ import annotations

from datetime import date

from sqlalchemy.orm import validates

from ..app import db
from ..shared.constants import (
    ASSIGNMENT_ACTIVE,
    ATTENDANCE_STATUSES,
    HELD_STATUSES,
    SKIP_PENDING,
)
from ..shared.time import as_date

from .fasting import (  # noqa: E402,F401
    FastingEventTemplate,
    FastingProgram,
    FastingRegistration,
)


class AdminUser(db.Model):
    __tablename__ = "admin_users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    role = db.Column(db.String(32), nullable=False, default="admin")
    is_active = db.Column(
        db.Boolean, nullable=False, default=True, server_default=db.text("true")
    )
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    @validates("email")
    def lower_email(self, key, value):  # pragma: no cover - simple normalizer
        return (value or "").strip().lower()


class AvailableSlot(db.Model):
    __tablename__ = "available_slots"

    id = db.Column(db.Integer, primary_key=True)
    slot_time = db.Column(db.String(16), nullable=False, unique=True)
    is_available = db.Column(
        db.Boolean, nullable=False, default=True, server_default=db.text("true")
    )
    timezone = db.Column(db.String(64), nullable=False, default="UTC")


class PrayerSlot(db.Model):
    """A user's claim on one catalog time range."""

    __tablename__ = "prayer_slots"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('active','missed','skipped','released')",
            name="ck_prayer_slots_status",
        ),
        db.CheckConstraint("missed_count >= 0", name="ck_prayer_slots_missed_count"),
        # one holder per time range; released rows stay for history
        db.Index(
            "uq_prayer_slots_slot_time_held",
            "slot_time",
            unique=True,
            postgresql_where=db.text("status <> 'released'"),
            sqlite_where=db.text("status <> 'released'"),
        ),
        db.Index("ix_prayer_slots_user_id", "user_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False)
    user_email = db.Column(db.String(255), nullable=False)
    slot_time = db.Column(db.String(16), nullable=False)
    status = db.Column(
        db.String(16),
        nullable=False,
        default=ASSIGNMENT_ACTIVE,
        server_default=ASSIGNMENT_ACTIVE,
    )
    missed_count = db.Column(
        db.Integer, nullable=False, default=0, server_default=db.text("0")
    )
    skip_start_date = db.Column(db.DateTime(timezone=True))
    skip_end_date = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime, server_default=db.func.now(), onupdate=db.func.now()
    )

    attendance = db.relationship(
        "AttendanceLog",
        back_populates="prayer_slot",
        order_by="AttendanceLog.id",
    )

    @validates("user_email")
    def lower_email(self, key, value):  # pragma: no cover - simple normalizer
        return (value or "").strip().lower()

    @property
    def is_held(self) -> bool:
        return self.status in HELD_STATUSES

    def in_skip_window(self, on: date) -> bool:
        start = as_date(self.skip_start_date)
        end = as_date(self.skip_end_date)
        if start is None or end is None:
            return False
        return start <= on <= end


class AttendanceLog(db.Model):
    """Append-only record of one slot occurrence."""

    __tablename__ = "attendance_log"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('attended','missed')", name="ck_attendance_log_status"
        ),
        db.Index("ix_attendance_log_user_slot_date", "user_id", "slot_id", "date"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False)
    slot_id = db.Column(
        db.Integer, db.ForeignKey("prayer_slots.id", ondelete="CASCADE"), nullable=False
    )
    date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(16), nullable=False)
    zoom_join_time = db.Column(db.DateTime(timezone=True))
    zoom_leave_time = db.Column(db.DateTime(timezone=True))
    zoom_meeting_id = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, server_default=db.func.now())

    prayer_slot = db.relationship("PrayerSlot", back_populates="attendance")

    @validates("status")
    def _check_status(self, key, value):
        if value not in ATTENDANCE_STATUSES:
            raise ValueError(f"Unknown attendance status: {value}")
        return value


class SkipRequest(db.Model):
    __tablename__ = "skip_requests"
    __table_args__ = (
        db.CheckConstraint(
            "skip_days >= 1 AND skip_days <= 30", name="ck_skip_requests_skip_days"
        ),
        db.CheckConstraint(
            "status IN ('pending','approved','rejected')",
            name="ck_skip_requests_status",
        ),
        db.Index("ix_skip_requests_user_id", "user_id"),
        db.Index("ix_skip_requests_status", "status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False)
    user_email = db.Column(db.String(255), nullable=False)
    prayer_slot_id = db.Column(
        db.Integer, db.ForeignKey("prayer_slots.id", ondelete="SET NULL")
    )
    skip_days = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=False)
    status = db.Column(
        db.String(16), nullable=False, default=SKIP_PENDING, server_default=SKIP_PENDING
    )
    admin_comment = db.Column(db.Text)
    processed_by = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    processed_at = db.Column(db.DateTime(timezone=True))

    prayer_slot = db.relationship("PrayerSlot")

    @property
    def is_terminal(self) -> bool:
        return self.status != SKIP_PENDING


class Update(db.Model):
    """Announcement feed entry read by the notification dispatcher."""

    __tablename__ = "updates"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(32), nullable=False, default="general")
    priority = db.Column(db.String(16), nullable=False, default="normal")
    schedule = db.Column(db.String(32), nullable=False, default="immediate")
    expiry = db.Column(db.String(16), nullable=False, default="never")
    user_id = db.Column(db.String(64))
    send_notification = db.Column(db.Boolean, nullable=False, default=False)
    send_email = db.Column(db.Boolean, nullable=False, default=False)
    pin_to_top = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime, server_default=db.func.now(), onupdate=db.func.now()
    )
