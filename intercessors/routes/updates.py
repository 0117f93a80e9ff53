from __future__ import annotations

from flask import Blueprint, jsonify, session as flask_session

from ..app import db
from ..models import Update
from ..services import updates
from ..shared.payload import get_payload, optional_str, require_bool, require_str
from ..shared.rbac import admin_required
from ..shared.time import isoformat_or_none

bp = Blueprint("updates", __name__, url_prefix="/api")


def _update_json(update: Update) -> dict:
    return {
        "id": update.id,
        "title": update.title,
        "description": update.description,
        "type": update.type,
        "priority": update.priority,
        "expiry": update.expiry,
        "pin_to_top": update.pin_to_top,
        "send_notification": update.send_notification,
        "send_email": update.send_email,
        "user_id": update.user_id,
        "created_at": isoformat_or_none(update.created_at),
    }


def _flag(payload: dict, key: str) -> bool:
    if payload.get(key) is None:
        return False
    return require_bool(payload.get(key), key)


@bp.get("/updates")
def list_updates():
    rows = updates.active_updates(user_id=flask_session.get("user_id"))
    return jsonify({"ok": True, "updates": [_update_json(u) for u in rows]})


@bp.post("/admin/updates")
@admin_required
def post_update(current_user):
    payload = get_payload()
    update = updates.post_update(
        require_str(payload, "title"),
        require_str(payload, "description"),
        type=optional_str(payload, "type") or "general",
        priority=optional_str(payload, "priority") or "normal",
        expiry=optional_str(payload, "expiry") or "never",
        pin_to_top=_flag(payload, "pin_to_top"),
        send_notification=_flag(payload, "send_notification"),
        send_email=_flag(payload, "send_email"),
    )
    db.session.commit()
    return jsonify({"ok": True, "update": _update_json(update)}), 201


@bp.post("/admin/updates/<int:update_id>/deactivate")
@admin_required
def deactivate(update_id: int, current_user):
    update = updates.deactivate(update_id)
    db.session.commit()
    return jsonify({"ok": True, "update": _update_json(update)})
