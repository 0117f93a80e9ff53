from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..app import db
from ..models import AvailableSlot, PrayerSlot
from ..services import assignments, slots
from ..shared.payload import get_payload, require_bool, require_str
from ..shared.rbac import admin_required, login_required
from ..shared.slot_times import slot_sort_key
from ..shared.time import isoformat_or_none

bp = Blueprint("slots", __name__, url_prefix="/api")


def _slot_json(slot: AvailableSlot, held: set[str] | None = None) -> dict:
    data = {
        "id": slot.id,
        "slot_time": slot.slot_time,
        "is_available": slot.is_available,
        "timezone": slot.timezone,
    }
    if held is not None:
        data["is_taken"] = slot.slot_time in held
    return data


def assignment_json(assignment: PrayerSlot) -> dict:
    return {
        "id": assignment.id,
        "user_id": assignment.user_id,
        "user_email": assignment.user_email,
        "slot_time": assignment.slot_time,
        "status": assignment.status,
        "missed_count": assignment.missed_count,
        "skip_start_date": isoformat_or_none(assignment.skip_start_date),
        "skip_end_date": isoformat_or_none(assignment.skip_end_date),
        "created_at": isoformat_or_none(assignment.created_at),
        "updated_at": isoformat_or_none(assignment.updated_at),
    }


@bp.get("/available-slots")
def available_slots():
    rows = slots.list_available()
    return jsonify({"ok": True, "slots": [_slot_json(slot) for slot in rows]})


@bp.get("/slots")
def list_slots():
    held = slots.held_slot_times()
    rows = slots.list_slots()
    return jsonify({"ok": True, "slots": [_slot_json(slot, held) for slot in rows]})


@bp.post("/slots")
@admin_required
def add_slot(current_user):
    payload = get_payload()
    slot = slots.add_slot(require_str(payload, "slot_time"), payload.get("timezone"))
    db.session.commit()
    return jsonify({"ok": True, "slot": _slot_json(slot)}), 201


@bp.post("/slots/availability")
@admin_required
def set_availability(current_user):
    payload = get_payload()
    slot = slots.mark_availability(
        require_str(payload, "slot_time"),
        require_bool(payload.get("is_available"), "is_available"),
    )
    db.session.commit()
    return jsonify({"ok": True, "slot": _slot_json(slot)})


@bp.get("/prayer-slot")
@login_required
def my_prayer_slot(current_user):
    held = assignments.held_by_user(current_user.user_id)
    return jsonify(
        {
            "ok": True,
            "prayer_slot": assignment_json(held[0]) if held else None,
            "prayer_slots": [assignment_json(a) for a in held],
        }
    )


@bp.post("/prayer-slot/claim")
@login_required
def claim_slot(current_user):
    payload = get_payload()
    assignment = assignments.claim(
        current_user.user_id, current_user.email, require_str(payload, "slot_time")
    )
    db.session.commit()
    return jsonify({"ok": True, "prayer_slot": assignment_json(assignment)}), 201


@bp.post("/prayer-slot/change")
@login_required
def change_slot(current_user):
    payload = get_payload()
    assignment = assignments.change_slot(
        current_user.user_id, current_user.email, require_str(payload, "slot_time")
    )
    db.session.commit()
    return jsonify({"ok": True, "prayer_slot": assignment_json(assignment)})


@bp.get("/slot-coverage/check")
@admin_required
def coverage_check(current_user):
    return jsonify({"ok": True, **slots.coverage_report()})


@bp.get("/admin/prayer-slots")
@admin_required
def admin_prayer_slots(current_user):
    query = PrayerSlot.query
    status = request.args.get("status")
    if status:
        query = query.filter_by(status=status)
    rows = sorted(
        query.all(), key=lambda a: (slot_sort_key(a.slot_time), a.id)
    )
    return jsonify({"ok": True, "prayer_slots": [assignment_json(a) for a in rows]})


@bp.post("/admin/prayer-slots/<int:assignment_id>/reset-missed")
@admin_required
def reset_missed(assignment_id: int, current_user):
    assignment = assignments.reset_missed_count(assignment_id)
    db.session.commit()
    return jsonify({"ok": True, "prayer_slot": assignment_json(assignment)})
