from __future__ import annotations

from flask import Blueprint, current_app, jsonify, session as flask_session

from ..shared.acl import is_admin_email
from ..shared.payload import get_payload, require_str

bp = Blueprint("auth", __name__, url_prefix="/auth")


@bp.post("/session")
def start_session():
    """Store the identity asserted by the external provider."""

    payload = get_payload()
    user_id = require_str(payload, "user_id")
    email = require_str(payload, "email").lower()
    flask_session.clear()
    flask_session["user_id"] = user_id
    flask_session["user_email"] = email
    admin = is_admin_email(email)
    current_app.logger.info("[AUTH] user=%s admin=%s", user_id, admin)
    return jsonify({"ok": True, "user_id": user_id, "email": email, "is_admin": admin})


@bp.post("/logout")
def logout():
    user_id = flask_session.get("user_id")
    flask_session.clear()
    if user_id:
        current_app.logger.info("[AUTH] logout user=%s", user_id)
    return jsonify({"ok": True})
