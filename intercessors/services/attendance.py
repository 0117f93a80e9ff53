from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from flask import current_app

from ..app import db
from ..models import AttendanceLog, PrayerSlot
from ..shared.constants import ATTENDANCE_STATUSES, ATTENDED, HELD_STATUSES, MISSED
from ..shared.slot_times import normalize_slot_range
from ..shared.time import now_utc
from .errors import NotFoundError, ValidationError


@dataclass
class MeetingMeta:
    """Meeting-platform details attached to an attended occurrence."""

    meeting_id: str | None = None
    join_time: datetime | None = None
    leave_time: datetime | None = None


def _validate_status(status: str) -> str:
    value = (status or "").strip().lower()
    if value not in ATTENDANCE_STATUSES:
        raise ValidationError("status must be 'attended' or 'missed'.")
    return value


def append(
    assignment: PrayerSlot,
    on: date,
    status: str,
    meeting: MeetingMeta | None = None,
) -> AttendanceLog:
    """Add one row to the log; existing rows are never touched."""

    status = _validate_status(status)
    meeting = meeting or MeetingMeta()
    record = AttendanceLog(
        user_id=assignment.user_id,
        slot_id=assignment.id,
        date=on,
        status=status,
        zoom_join_time=meeting.join_time,
        zoom_leave_time=meeting.leave_time,
        zoom_meeting_id=meeting.meeting_id,
    )
    db.session.add(record)
    db.session.flush()
    current_app.logger.info(
        "[ATTENDANCE] user=%s slot=%s date=%s status=%s",
        assignment.user_id,
        assignment.slot_time,
        on.isoformat(),
        status,
    )
    return record


def find_assignment(user_id: str, slot_time: str) -> PrayerSlot:
    """The user's holding assignment for the slot, else their latest one."""

    slot_time = normalize_slot_range(slot_time)
    query = PrayerSlot.query.filter_by(user_id=user_id, slot_time=slot_time)
    assignment = (
        query.filter(PrayerSlot.status.in_(HELD_STATUSES))
        .order_by(PrayerSlot.id.desc())
        .first()
    )
    if assignment is None:
        assignment = query.order_by(PrayerSlot.id.desc()).first()
    if assignment is None:
        raise NotFoundError(f"No assignment for {user_id} at {slot_time}.")
    return assignment


def record(
    user_id: str,
    slot_time: str,
    on: date,
    status: str,
    meeting: MeetingMeta | None = None,
) -> AttendanceLog:
    assignment = find_assignment(user_id, slot_time)
    return append(assignment, on, status, meeting)


def latest_record(slot_id: int, on: date) -> AttendanceLog | None:
    return (
        AttendanceLog.query.filter_by(slot_id=slot_id, date=on)
        .order_by(AttendanceLog.id.desc())
        .first()
    )


def has_missed(slot_id: int, on: date) -> bool:
    return (
        AttendanceLog.query.filter_by(slot_id=slot_id, date=on, status=MISSED)
        .first()
        is not None
    )


def deduplicate(records) -> list[AttendanceLog]:
    """Keep the most recent row per (user, slot, date), newest day first."""

    latest: dict[tuple, AttendanceLog] = {}
    for row in records:
        key = (row.user_id, row.slot_id, row.date)
        kept = latest.get(key)
        if kept is None or row.id > kept.id:
            latest[key] = row
    return sorted(latest.values(), key=lambda row: (row.date, row.id), reverse=True)


def current_streak(records: list[AttendanceLog]) -> int:
    """Consecutive attended occurrences counting back from the newest one."""

    streak = 0
    for row in records:
        if row.status != ATTENDED:
            break
        streak += 1
    return streak


def user_summary(user_id: str) -> dict:
    rows = deduplicate(AttendanceLog.query.filter_by(user_id=user_id).all())
    attended = sum(1 for row in rows if row.status == ATTENDED)
    missed = sum(1 for row in rows if row.status == MISSED)
    total = len(rows)
    last_attended = next((row.date for row in rows if row.status == ATTENDED), None)
    return {
        "user_id": user_id,
        "total_sessions": total,
        "attended_sessions": attended,
        "missed_sessions": missed,
        "attendance_rate": round(attended * 100.0 / total, 2) if total else 0.0,
        "current_streak": current_streak(rows),
        "last_attended": last_attended.isoformat() if last_attended else None,
    }


def admin_stats() -> dict:
    rows = deduplicate(AttendanceLog.query.all())
    total = len(rows)
    attended = sum(1 for row in rows if row.status == ATTENDED)
    return {
        "total_sessions": total,
        "attended_sessions": attended,
        "missed_sessions": total - attended,
        "overall_attendance_rate": round(attended / total, 4) if total else 0.0,
        "active_users": len({row.user_id for row in rows}),
        "last_updated": now_utc().isoformat(),
    }
