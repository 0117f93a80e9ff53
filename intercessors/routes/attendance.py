from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..app import db
from ..models import AttendanceLog
from ..services import assignments, attendance, meeting_ingest
from ..services.errors import ValidationError
from ..shared.payload import (
    get_payload,
    optional_date,
    optional_datetime,
    optional_str,
    require_str,
)
from ..shared.rbac import admin_required, ingest_allowed, login_required
from ..shared.time import isoformat_or_none, now_utc
from .slots import assignment_json

bp = Blueprint("attendance", __name__, url_prefix="/api")


def _record_json(record: AttendanceLog) -> dict:
    return {
        "id": record.id,
        "user_id": record.user_id,
        "slot_id": record.slot_id,
        "date": record.date.isoformat(),
        "status": record.status,
        "zoom_join_time": isoformat_or_none(record.zoom_join_time),
        "zoom_leave_time": isoformat_or_none(record.zoom_leave_time),
        "zoom_meeting_id": record.zoom_meeting_id,
        "created_at": isoformat_or_none(record.created_at),
    }


def _meeting_meta(payload: dict) -> attendance.MeetingMeta:
    return attendance.MeetingMeta(
        meeting_id=optional_str(payload, "meeting_id"),
        join_time=optional_datetime(payload, "join_time"),
        leave_time=optional_datetime(payload, "leave_time"),
    )


@bp.post("/attendance")
@admin_required
def record_attendance(current_user):
    """Append a raw log row without touching the assignment's counter."""

    payload = get_payload()
    record = attendance.record(
        require_str(payload, "user_id"),
        require_str(payload, "slot_time"),
        optional_date(payload, "date") or now_utc().date(),
        require_str(payload, "status"),
        _meeting_meta(payload),
    )
    db.session.commit()
    return jsonify({"ok": True, "record": _record_json(record)}), 201


@bp.post("/prayer-slots/<int:assignment_id>/outcome")
@ingest_allowed
def record_outcome(assignment_id: int, current_user):
    payload = get_payload()
    assignment, record = assignments.record_outcome(
        assignment_id,
        require_str(payload, "outcome"),
        occurrence_date=optional_date(payload, "date"),
        meeting=_meeting_meta(payload),
    )
    db.session.commit()
    return jsonify(
        {
            "ok": True,
            "prayer_slot": assignment_json(assignment),
            "record": _record_json(record),
        }
    )


@bp.post("/attendance/meeting")
@ingest_allowed
def meeting_webhook(current_user):
    payload = get_payload()
    meeting_start = optional_datetime(payload, "start_time")
    if meeting_start is None:
        raise ValidationError("start_time is required.")
    raw_participants = payload.get("participants") or []
    if not isinstance(raw_participants, list):
        raise ValidationError("participants must be a list.")
    participants = []
    for raw in raw_participants:
        if not isinstance(raw, dict):
            raise ValidationError("Each participant must be an object.")
        participants.append(
            meeting_ingest.Participant(
                email=optional_str(raw, "user_email") or optional_str(raw, "email"),
                join_time=optional_datetime(raw, "join_time"),
                leave_time=optional_datetime(raw, "leave_time"),
            )
        )
    result = meeting_ingest.ingest_meeting(
        optional_str(payload, "meeting_id"), meeting_start, participants
    )
    db.session.commit()
    return jsonify({"ok": True, **result.as_dict()})


@bp.get("/attendance/summary")
@login_required
def my_summary(current_user):
    return jsonify({"ok": True, **attendance.user_summary(current_user.user_id)})


@bp.get("/attendance/history")
@login_required
def my_history(current_user):
    try:
        limit = int(request.args.get("limit", 30))
    except ValueError:
        raise ValidationError("limit must be an integer.")
    rows = attendance.deduplicate(
        AttendanceLog.query.filter_by(user_id=current_user.user_id).all()
    )
    return jsonify({"ok": True, "records": [_record_json(r) for r in rows[:limit]]})


@bp.get("/admin/attendance-stats")
@admin_required
def admin_stats(current_user):
    return jsonify({"ok": True, **attendance.admin_stats()})
