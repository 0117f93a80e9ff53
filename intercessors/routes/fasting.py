from __future__ import annotations

from flask import Blueprint, jsonify, session as flask_session

from ..app import db
from ..models import FastingEventTemplate, FastingProgram, FastingRegistration
from ..services import campaigns
from ..shared.payload import (
    get_payload,
    optional_datetime,
    optional_str,
    require_int,
    require_str,
)
from ..shared.rbac import admin_required
from ..shared.time import isoformat_or_none

bp = Blueprint("fasting", __name__, url_prefix="/api")


def _template_json(template: FastingEventTemplate) -> dict:
    return {
        "id": template.id,
        "template_name": template.template_name,
        "template_description": template.template_description,
        "duration_days": template.duration_days,
        "default_title": template.default_title,
        "default_subtitle": template.default_subtitle,
    }


def _registration_json(registration: FastingRegistration) -> dict:
    return {
        "id": registration.id,
        "program_id": registration.program_id,
        "full_name": registration.full_name,
        "region": registration.region,
        "created_at": isoformat_or_none(registration.created_at),
    }


def _program_response(program: FastingProgram | None, status: int = 200):
    if program is None:
        return jsonify({"ok": True, "program": None}), status
    view = campaigns.program_view(program)
    db.session.commit()
    return jsonify({"ok": True, "program": view}), status


@bp.get("/fasting-program")
def active_program():
    return _program_response(campaigns.active_program())


@bp.get("/fasting-templates")
def list_templates():
    rows = campaigns.list_templates()
    return jsonify({"ok": True, "templates": [_template_json(t) for t in rows]})


@bp.post("/fasting-registrations")
def register():
    payload = get_payload()
    registration = campaigns.register(
        payload.get("full_name"),
        payload.get("phone_number"),
        payload.get("region"),
        user_id=flask_session.get("user_id"),
        travel_cost=optional_str(payload, "travel_cost"),
        gps_latitude=optional_str(payload, "gps_latitude"),
        gps_longitude=optional_str(payload, "gps_longitude"),
    )
    db.session.commit()
    return jsonify({"ok": True, "registration": _registration_json(registration)}), 201


@bp.post("/admin/fasting-programs/from-template")
@admin_required
def create_from_template(current_user):
    payload = get_payload()
    program = campaigns.create_from_template(
        require_str(payload, "template_name"),
        optional_datetime(payload, "start_date"),
        title=optional_str(payload, "title"),
        subtitle=optional_str(payload, "subtitle"),
        admin_email=current_user.email,
    )
    db.session.commit()
    return _program_response(program, 201)


@bp.post("/admin/fasting-programs/schedule-next")
@admin_required
def schedule_next(current_user):
    payload = get_payload()
    offset = require_int(payload, "offset") if "offset" in payload else 1
    program = campaigns.schedule_next_monthly(offset, admin_email=current_user.email)
    db.session.commit()
    return _program_response(program, 201)


@bp.post("/admin/fasting-programs/refresh-status")
@admin_required
def refresh_status(current_user):
    program = campaigns.refresh_status()
    db.session.commit()
    return jsonify(
        {
            "ok": True,
            "program_id": program.id if program else None,
            "program_status": program.program_status if program else None,
        }
    )


@bp.patch("/admin/fasting-program")
@admin_required
def update_program(current_user):
    payload = get_payload()
    fields = {}
    for name in campaigns.EDITABLE_FIELDS:
        if name not in payload:
            continue
        if name in campaigns.DATE_FIELDS:
            fields[name] = optional_datetime(payload, name)
        elif name == "max_participants":
            fields[name] = require_int(payload, name)
        else:
            fields[name] = optional_str(payload, name)
    unknown = sorted(set(payload) - set(campaigns.EDITABLE_FIELDS))
    if unknown:
        fields.update({name: payload[name] for name in unknown})
    program = campaigns.update_active_program(fields)
    db.session.commit()
    return _program_response(program)


@bp.post("/admin/fasting-program/cancel")
@admin_required
def cancel_program(current_user):
    program = campaigns.cancel_active_program()
    db.session.commit()
    return _program_response(program)
