from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..app import db
from ..models import SkipRequest
from ..services import assignments, skip_requests
from ..services.errors import ForbiddenError
from ..shared.acl import owns_assignment
from ..shared.payload import get_payload, optional_str, require_int
from ..shared.rbac import admin_required, login_required
from ..shared.time import isoformat_or_none

bp = Blueprint("skip_requests", __name__, url_prefix="/api")


def _request_json(req: SkipRequest) -> dict:
    return {
        "id": req.id,
        "user_id": req.user_id,
        "user_email": req.user_email,
        "prayer_slot_id": req.prayer_slot_id,
        "skip_days": req.skip_days,
        "reason": req.reason,
        "status": req.status,
        "admin_comment": req.admin_comment,
        "processed_by": req.processed_by,
        "created_at": isoformat_or_none(req.created_at),
        "processed_at": isoformat_or_none(req.processed_at),
    }


@bp.post("/skip-requests")
@login_required
def submit_request(current_user):
    payload = get_payload()
    assignment_id = None
    if payload.get("prayer_slot_id") not in (None, ""):
        assignment_id = require_int(payload, "prayer_slot_id")
    req = skip_requests.submit(
        current_user.user_id,
        current_user.email,
        payload.get("skip_days"),
        payload.get("reason"),
        assignment_id=assignment_id,
    )
    db.session.commit()
    return jsonify({"ok": True, "skip_request": _request_json(req)}), 201


@bp.get("/skip-requests")
@login_required
def my_requests(current_user):
    rows = skip_requests.list_requests(user_id=current_user.user_id)
    return jsonify({"ok": True, "skip_requests": [_request_json(r) for r in rows]})


@bp.post("/prayer-slots/<int:assignment_id>/skip-requests")
@login_required
def request_for_assignment(assignment_id: int, current_user):
    assignment = assignments.get_assignment(assignment_id)
    if not owns_assignment(current_user, assignment) and not current_user.is_admin:
        raise ForbiddenError("That prayer slot belongs to someone else.")
    payload = get_payload()
    req = skip_requests.request_skip(
        assignment.id, payload.get("skip_days"), payload.get("reason")
    )
    db.session.commit()
    return jsonify({"ok": True, "skip_request": _request_json(req)}), 201


@bp.get("/admin/skip-requests")
@admin_required
def admin_list(current_user):
    rows = skip_requests.list_requests(status=request.args.get("status"))
    return jsonify({"ok": True, "skip_requests": [_request_json(r) for r in rows]})


@bp.post("/admin/skip-requests/<int:request_id>/approve")
@admin_required
def approve(request_id: int, current_user):
    payload = get_payload()
    req = skip_requests.approve(
        request_id, current_user.email, optional_str(payload, "admin_comment")
    )
    db.session.commit()
    return jsonify({"ok": True, "skip_request": _request_json(req)})


@bp.post("/admin/skip-requests/<int:request_id>/reject")
@admin_required
def reject(request_id: int, current_user):
    payload = get_payload()
    req = skip_requests.reject(
        request_id, current_user.email, optional_str(payload, "admin_comment")
    )
    db.session.commit()
    return jsonify({"ok": True, "skip_request": _request_json(req)})
